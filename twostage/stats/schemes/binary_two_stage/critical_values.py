"""
twostage.stats.schemes.binary_two_stage.critical_values
=======================================================

Critical values of a two-stage design.

The null hypothesis is rejected iff ``x1 + x2 > c(x1)``. Besides finite
thresholds a design needs two sentinel states: *never reject* (stop for
futility, or continue without any chance of rejection) and *always reject*
(stop early for efficacy). They are modelled as a tagged variant rather than
as IEEE infinities; floats only appear in tabular exports where ``+inf`` means
never reject and ``-inf`` always reject.

Examples
--------
>>> CriticalValue.finite(11).rejects(15)
True
>>> CriticalValue.never_reject().rejects(10**6)
False
>>> CriticalValue.coerce(float("-inf")) == CriticalValue.always_reject()
True
>>> CriticalValue.coerce(3).as_float()
3.0
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from twostage.core.errors import ConstructionError


class CriticalKind(str, Enum):
    FINITE = "finite"
    ALWAYS_REJECT = "always_reject"
    NEVER_REJECT = "never_reject"


@dataclass(frozen=True)
class CriticalValue:
    """A finite threshold or one of the two sentinels."""

    kind: CriticalKind
    value: Optional[float] = None

    def __post_init__(self) -> None:
        if self.kind is CriticalKind.FINITE:
            if self.value is None or math.isnan(self.value) or math.isinf(self.value):
                raise ConstructionError(
                    f"finite critical value needs a finite number, got {self.value}"
                )
        elif self.value is not None:
            raise ConstructionError(f"{self.kind.value} carries no value")

    @classmethod
    def finite(cls, value: float) -> "CriticalValue":
        return cls(CriticalKind.FINITE, float(value))

    @classmethod
    def always_reject(cls) -> "CriticalValue":
        return cls(CriticalKind.ALWAYS_REJECT)

    @classmethod
    def never_reject(cls) -> "CriticalValue":
        return cls(CriticalKind.NEVER_REJECT)

    @classmethod
    def coerce(cls, c: Union["CriticalValue", float, int]) -> "CriticalValue":
        """Accept a CriticalValue or a number (``+inf``/``-inf`` for sentinels)."""
        if isinstance(c, CriticalValue):
            return c
        value = float(c)
        if math.isnan(value):
            raise ConstructionError("critical value must not be NaN")
        if value == math.inf:
            return cls.never_reject()
        if value == -math.inf:
            return cls.always_reject()
        return cls.finite(value)

    @property
    def is_finite(self) -> bool:
        return self.kind is CriticalKind.FINITE

    @property
    def is_always_reject(self) -> bool:
        return self.kind is CriticalKind.ALWAYS_REJECT

    @property
    def is_never_reject(self) -> bool:
        return self.kind is CriticalKind.NEVER_REJECT

    def rejects(self, total: float) -> bool:
        """Decision for an observed total response count ``x1 + x2``."""
        if self.kind is CriticalKind.ALWAYS_REJECT:
            return True
        if self.kind is CriticalKind.NEVER_REJECT:
            return False
        return total > self.value

    def as_float(self) -> float:
        if self.kind is CriticalKind.ALWAYS_REJECT:
            return -math.inf
        if self.kind is CriticalKind.NEVER_REJECT:
            return math.inf
        return float(self.value)

    def __repr__(self) -> str:
        if self.is_finite:
            return f"CriticalValue.finite({self.value:g})"
        return f"CriticalValue.{self.kind.name.lower()}()"


ALWAYS_REJECT = CriticalValue.always_reject()
NEVER_REJECT = CriticalValue.never_reject()

CriticalLike = Union[CriticalValue, float, int]
