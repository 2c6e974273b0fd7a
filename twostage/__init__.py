"""
twostage: exact characterization and inference for two-stage binary designs.

A two-stage design for a single-arm trial with a binary endpoint observes
``n1`` subjects first. Given the number of stage-one responses ``x1`` it fixes
the overall sample size ``n(x1)`` and a critical value ``c(x1)``; the null
hypothesis is rejected iff ``x1 + x2 > c(x1)``. twostage evaluates such rules
exactly (density, conditional and overall power), simulates them, computes
Clopper-Pearson intervals once data arrive, and prepares the discretized
candidate grid an external optimizer searches over.

Example
-------
>>> from twostage import Design, CriticalValue
>>> d = Design([5, 8, 8], [CriticalValue.never_reject(), 3, 3])
>>> d.interimsamplesize()
2
>>> d.test(1, 3)
True
"""

from twostage.__version__ import __version__
from twostage.core.errors import (
    TwoStageError,
    ConstructionError,
    DomainError,
    OutOfRangeError,
    IncompatibleObservationError,
)
from twostage.stats.schemes.binary_two_stage import (
    ALWAYS_REJECT,
    NEVER_REJECT,
    CriticalValue,
    Design,
    SampleSpace,
    Discretization,
    OutcomeOrdering,
    SumOrdering,
    ConfidenceInterval,
    ClopperPearsonInterval,
)

__all__ = [
    "__version__",
    "TwoStageError",
    "ConstructionError",
    "DomainError",
    "OutOfRangeError",
    "IncompatibleObservationError",
    "ALWAYS_REJECT",
    "NEVER_REJECT",
    "CriticalValue",
    "Design",
    "SampleSpace",
    "Discretization",
    "OutcomeOrdering",
    "SumOrdering",
    "ConfidenceInterval",
    "ClopperPearsonInterval",
]
