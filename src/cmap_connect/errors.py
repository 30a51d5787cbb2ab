"""Exception types raised by the connection-score kernel."""

from __future__ import annotations

__all__ = [
    "ValidationError",
    "SweepError",
]


class ValidationError(ValueError):
    """Invalid construction or window parameters.

    Raised for N ≤ 0, population size ≤ 0, windows outside ``[1, N]``,
    ``offset + length > N`` and query/reference length mismatches.
    Subclasses :class:`ValueError` so callers catching the builtin
    still see it.
    """


class SweepError(RuntimeError):
    """A sweep chunk failed with an unexpected (non-validation) error.

    Attributes
    ----------
    chunk : tuple[int, int]
        Inclusive ``(first, last)`` sweep indices of the failed chunk.
    """

    def __init__(self, message: str, chunk: tuple = ()):
        super().__init__(message)
        self.chunk = tuple(chunk)
