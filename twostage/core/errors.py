"""
twostage.core.errors
====================

Exception hierarchy.

Every error is a `ValueError` so callers that already guard numeric code with
``except ValueError`` keep working; `OutOfRangeError` is additionally an
`IndexError` because it reports an index (x1, x2 or n1) outside its range.

Examples
--------
>>> from twostage.core.errors import OutOfRangeError, IncompatibleObservationError
>>> issubclass(IncompatibleObservationError, OutOfRangeError)
True
>>> issubclass(OutOfRangeError, IndexError)
True
"""


class TwoStageError(ValueError):
    """Base class for all twostage errors."""


class ConstructionError(TwoStageError):
    """Malformed arguments for a design, sample space or solver assignment."""


class DomainError(TwoStageError):
    """A probability, confidence level or count outside its admissible domain."""


class OutOfRangeError(TwoStageError, IndexError):
    """An outcome or interim size outside the admissible region."""


class IncompatibleObservationError(OutOfRangeError):
    """An observation that cannot occur under the given design."""
