"""ScoreEngine — connection strength, maximum strength and score.

For a window ``(m, F)`` over a reference profile ``r`` and a query
signature ``q``::

    strength     = Σ_{i = 1+F}^{m+F}  q_i · r_i
    max_strength = Σ_{i = 1}^{m}      weight(N, i)
    score        = strength / max_strength        (0 when m = 0)

``max_strength`` depends only on ``(N, m)``, never on the offset or
the signature, so moving a perfectly matching window down the
ranking lowers the score.  The score is not clamped: it is only
bounded by 1 when the profile's magnitudes are themselves bounded by
the weighting (e.g. a rank-ordered profile built with the same weight
function).

Usage
-----
>>> ref = build_reference_profile(10)
>>> q = derive_query_signature(ref)
>>> score(q, ref, Window(5, 0)).score
1.0
>>> score(q, ref, Window(5, 5)).score
0.375
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

import numpy as np

from .errors import ValidationError
from .profile import QuerySignature, ReferenceProfile, Window
from .weighting import WeightFunction, linear_rank_weight, weight_vector

__all__ = [
    "ScoreResult",
    "max_connection_strength",
    "connection_strength",
    "connection_score",
    "score",
    "rank_weights",
    "window_strength",
]


# ═══════════════════════════════════════════════════════════════════
# ScoreResult
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ScoreResult:
    """One evaluated window.

    Attributes
    ----------
    window : Window
    strength : float
        Signed weighted sum over the window.
    max_strength : float
        Theoretical maximum for ``(N, window.length)``.
    score : float
        ``strength / max_strength``; 0 for an empty window.
    """

    window: Window
    strength: float
    max_strength: float
    score: float

    @property
    def length(self) -> int:
        return self.window.length

    @property
    def offset(self) -> int:
        return self.window.offset

    def as_tuple(self, parameter: str = "length") -> Tuple[int, float]:
        """``(parameter value, score)`` row for reporting.

        Parameters
        ----------
        parameter : {"length", "offset"}
            Which window coordinate the row is keyed by.
        """
        if parameter == "length":
            return (self.length, self.score)
        if parameter == "offset":
            return (self.offset, self.score)
        raise ValidationError(
            f"parameter must be 'length' or 'offset', got {parameter!r}")


# ═══════════════════════════════════════════════════════════════════
# Maximum strength
# ═══════════════════════════════════════════════════════════════════

@lru_cache(maxsize=64)
def rank_weights(n: int, weight: WeightFunction = linear_rank_weight) -> np.ndarray:
    """Read-only, cached :func:`~cmap_connect.weighting.weight_vector`."""
    w = weight_vector(n, weight)
    w.setflags(write=False)
    return w


def max_connection_strength(
    n: int,
    m: int,
    weight: WeightFunction = linear_rank_weight,
) -> float:
    """Sum of the *m* largest weights a profile of size *n* can carry.

    Summed with ``math.fsum`` like :func:`connection_strength`, so a
    window whose magnitudes are exactly these weights scores exactly 1.

    Raises
    ------
    ValidationError
        If ``n <= 0``, ``m < 0`` or ``m > n``.
    """
    if n <= 0:
        raise ValidationError(f"Profile size must be positive, got {n}")
    if m < 0 or m > n:
        raise ValidationError(f"Window length {m} outside [0, {n}]")
    return math.fsum(rank_weights(n, weight)[:m])


# ═══════════════════════════════════════════════════════════════════
# Strength & score
# ═══════════════════════════════════════════════════════════════════

def _check_alignment(
    query: QuerySignature, reference: ReferenceProfile, window: Window,
):
    if len(query) > reference.n:
        raise ValidationError(
            f"Query signature ({len(query)}) is longer than the "
            f"reference profile ({reference.n})")
    if window.stop > len(query):
        raise ValidationError(
            f"Window [{window.start}, {window.stop}] is not covered by "
            f"the query signature (length {len(query)})")


def connection_strength(
    query: QuerySignature,
    reference: ReferenceProfile,
    window: Window,
) -> float:
    """Σ sign_i · value_i over the window's ranks ``[1+F, m+F]``."""
    window.validate(reference.n)
    _check_alignment(query, reference, window)
    sl = window.slice()
    return window_strength(query.signs[sl], reference.values[sl])


def window_strength(signs: np.ndarray, values: np.ndarray) -> float:
    """Exactly rounded Σ sign · value.

    The one summation used for observed and random strengths alike, so
    equal sign patterns always give bit-identical strengths.
    """
    return math.fsum(signs * values)


def connection_score(
    query: QuerySignature,
    reference: ReferenceProfile,
    window: Window,
    weight: WeightFunction = linear_rank_weight,
) -> float:
    """Strength normalised by :func:`max_connection_strength`.

    Returns 0 for ``window.length == 0``.  Callers must supply a
    profile ordered by non-increasing magnitude (and bounded by
    *weight*) for the result to be read as a fraction of the maximum.
    """
    return score(query, reference, window, weight).score


def score(
    query: QuerySignature,
    reference: ReferenceProfile,
    window: Window,
    weight: WeightFunction = linear_rank_weight,
) -> ScoreResult:
    """Evaluate one window and return the full :class:`ScoreResult`."""
    window.validate(reference.n, allow_empty=True)
    if window.length == 0:
        return ScoreResult(window, 0.0, 0.0, 0.0)
    strength = connection_strength(query, reference, window)
    max_s = max_connection_strength(reference.n, window.length, weight)
    return ScoreResult(window, strength, max_s, strength / max_s)
