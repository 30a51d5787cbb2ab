"""Rank weighting schemes for reference profiles.

A weight function maps ``(n, i)`` (profile size, 1-based rank)
to a non-negative magnitude that never increases with ``i``.  The
maximum achievable connection strength of a window of length ``m`` is
the sum of the first ``m`` weights, so any such function keeps the
"score ≤ 1" argument intact.

Usage
-----
>>> weight_vector(5)                          # canonical n - i + 1
array([5., 4., 3., 2., 1.])
>>> weight_vector(5, PowerRankWeight(0.0))    # unweighted
array([1., 1., 1., 1., 1.])
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from .errors import ValidationError

__all__ = [
    "WeightFunction",
    "linear_rank_weight",
    "constant_weight",
    "PowerRankWeight",
    "weight_vector",
]

WeightFunction = Callable[[int, int], float]


def linear_rank_weight(n: int, i: int) -> int:
    """Canonical weighting: rank 1 carries ``n``, rank ``n`` carries 1."""
    return n - i + 1


def constant_weight(n: int, i: int) -> int:
    """Every rank carries weight 1 (plain sign agreement)."""
    return 1


class PowerRankWeight:
    """``(n - i + 1) ** p`` — the enrichment-style weighting exponent.

    A class rather than a closure so that it pickles into process
    workers.

    Parameters
    ----------
    p : float
        Exponent, ``p ≥ 0``.  ``p = 0`` is :func:`constant_weight`,
        ``p = 1`` is :func:`linear_rank_weight`.
    """

    def __init__(self, p: float = 1.0):
        if p < 0:
            raise ValidationError(f"Weight exponent must be >= 0, got {p}")
        self.p = float(p)

    def __call__(self, n: int, i: int) -> float:
        return float(n - i + 1) ** self.p

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PowerRankWeight):
            return NotImplemented
        return self.p == other.p

    def __hash__(self) -> int:
        return hash(("PowerRankWeight", self.p))

    def __repr__(self) -> str:
        return f"PowerRankWeight(p={self.p:g})"


def weight_vector(n: int, weight: WeightFunction = linear_rank_weight) -> np.ndarray:
    """Evaluate *weight* at ranks ``1..n``.

    Raises
    ------
    ValidationError
        If ``n <= 0`` or the weights are negative or increase with rank.
    """
    if n <= 0:
        raise ValidationError(f"Profile size must be positive, got {n}")
    w = np.array([weight(n, i) for i in range(1, n + 1)], dtype=float)
    if np.any(w < 0):
        raise ValidationError(f"{weight!r} produced negative weights")
    if w[0] <= 0:
        raise ValidationError(f"{weight!r} gives rank 1 no weight")
    if np.any(np.diff(w) > 0):
        raise ValidationError(
            f"{weight!r} is not non-increasing in rank")
    return w
