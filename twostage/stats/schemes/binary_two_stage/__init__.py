"""
Two-stage designs for single-arm trials with a binary endpoint.

**Module Organization:**

- `critical_values`: tagged critical values (finite, always/never reject)
- `design`: the design and its exact probability engine
- `simulation`: parallel Monte-Carlo replication
- `sample_space`: constraints and candidate-grid discretization for optimizers
- `orderings`: outcome orderings used by ordering-based inference
- `intervals`: Clopper-Pearson confidence intervals

Example Usage
-------------
>>> from twostage.stats.schemes.binary_two_stage import (
...     Design, ClopperPearsonInterval, NEVER_REJECT,
... )
>>> d = Design([4, 4, 10, 10, 10], [NEVER_REJECT, NEVER_REJECT, 4, 4, 4])
>>> d.test(2, 3)
True
>>> ci = ClopperPearsonInterval(d, confidence=0.95)
>>> lo, hi = ci.limits(2, 3)
>>> lo < 0.5 < hi
True
"""

from twostage.stats.schemes.binary_two_stage.critical_values import (
    ALWAYS_REJECT,
    NEVER_REJECT,
    CriticalKind,
    CriticalValue,
)
from twostage.stats.schemes.binary_two_stage.design import Design
from twostage.stats.schemes.binary_two_stage.sample_space import (
    Discretization,
    SampleSpace,
)
from twostage.stats.schemes.binary_two_stage.orderings import (
    OutcomeOrdering,
    SumOrdering,
    outcomes,
)
from twostage.stats.schemes.binary_two_stage.intervals import (
    ClopperPearsonInterval,
    ConfidenceInterval,
    clopper_pearson,
)

__all__ = [
    "ALWAYS_REJECT",
    "NEVER_REJECT",
    "CriticalKind",
    "CriticalValue",
    "Design",
    "Discretization",
    "SampleSpace",
    "OutcomeOrdering",
    "SumOrdering",
    "outcomes",
    "ClopperPearsonInterval",
    "ConfidenceInterval",
    "clopper_pearson",
]
