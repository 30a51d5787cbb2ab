"""SignificanceEstimator — empirical p-values against random signatures.

For an observed score at window ``(m, F)`` every signature of a random
population is scored against the *same* reference and window, with the
same denominator ``max_connection_strength(N, m)``.  The empirical
p-value is the fraction of random scores strictly greater than the
observed one (upper tail)::

    p = #{ r : score_r > observed } / R

Ties are not counted.  They are reported separately in
:attr:`SignificanceResult.n_ties` so a caller can see how much the
strict comparison matters for a given window.  Random strengths use the
same exactly rounded sum as the observed one
(:func:`~cmap_connect.scoring.window_strength`), so a random signature
sharing the query's signs on the window always ties.

When the reference is bounded by the weighting (``|r_i| <= w_i``) no
random strength can exceed ``max_strength``; random scores are capped
at 1 in that case so that an observed score of 1 gives ``p == 0.0``
exactly, whatever the population.

Usage
-----
>>> ref = build_reference_profile(10)
>>> obs = score(derive_query_signature(ref), ref, Window(5))
>>> pop = generate_random_signatures(10, 1000, rng=7)
>>> estimate_p_value(obs.score, obs.window, ref, pop)
0.0
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import binomtest

from .errors import ValidationError
from .profile import ReferenceProfile, Window
from .random_signatures import (
    RandomSignaturePopulation,
    RandomSource,
    generate_random_signatures,
)
from .scoring import (
    ScoreResult,
    max_connection_strength,
    rank_weights,
    window_strength,
)
from .weighting import WeightFunction, linear_rank_weight

__all__ = [
    "SignificanceResult",
    "random_scores",
    "estimate_p_value",
    "evaluate_significance",
    "estimate_significance",
]

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
# SignificanceResult
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SignificanceResult:
    """Observed score of one window with its empirical p-value.

    Attributes
    ----------
    window : Window
    score : float
        Observed connection score.
    p_value : float
        ``n_exceeding / n_random``, in ``[0, 1]``.
    n_random : int
        Population size R.
    n_exceeding : int
        Random scores strictly above ``score``.
    n_ties : int
        Random scores exactly equal to ``score`` (not counted in p).
    """

    window: Window
    score: float
    p_value: float
    n_random: int
    n_exceeding: int
    n_ties: int = 0

    @property
    def length(self) -> int:
        return self.window.length

    @property
    def offset(self) -> int:
        return self.window.offset

    @property
    def standard_error(self) -> float:
        """Monte Carlo standard error of :attr:`p_value`."""
        p = self.p_value
        return math.sqrt(p * (1.0 - p) / self.n_random)

    def p_value_interval(self, confidence: float = 0.95) -> Tuple[float, float]:
        """Clopper–Pearson interval for the true tail probability."""
        ci = binomtest(self.n_exceeding, self.n_random).proportion_ci(
            confidence_level=confidence, method="exact")
        return (float(ci.low), float(ci.high))

    def as_tuple(self) -> Tuple[int, float, float]:
        """``(window length, score, p_value)`` row for reporting."""
        return (self.length, self.score, self.p_value)


# ═══════════════════════════════════════════════════════════════════
# Random scores
# ═══════════════════════════════════════════════════════════════════

def random_scores(
    window: Window,
    reference: ReferenceProfile,
    population: RandomSignaturePopulation,
    weight: WeightFunction = linear_rank_weight,
) -> np.ndarray:
    """Score every random signature against *reference* at *window*.

    Returns
    -------
    np.ndarray
        Shape ``(R,)``.  Capped at 1 when the reference is bounded by
        *weight* (see module docstring).
    """
    window.validate(reference.n)
    if population.length != reference.n:
        raise ValidationError(
            f"Population signatures have length {population.length}, "
            f"reference profile has N={reference.n}")
    sl = window.slice()
    values = reference.values[sl]
    strengths = np.array(
        [window_strength(row, values) for row in population.matrix[:, sl]],
        dtype=float,
    )
    max_s = max_connection_strength(reference.n, window.length, weight)
    scores = strengths / max_s
    if reference.is_bounded_by(rank_weights(reference.n, weight)):
        np.minimum(scores, 1.0, out=scores)
    return scores


def _tail_counts(observed_score: float, scores: np.ndarray) -> Tuple[int, int]:
    return int(np.count_nonzero(scores > observed_score)), int(
        np.count_nonzero(scores == observed_score))


def evaluate_significance(
    observed_score: float,
    window: Window,
    reference: ReferenceProfile,
    population: RandomSignaturePopulation,
    weight: WeightFunction = linear_rank_weight,
) -> SignificanceResult:
    """Full :class:`SignificanceResult` for one observed score."""
    if population.size == 0:
        raise ValidationError(
            "Cannot estimate significance from an empty random population")
    scores = random_scores(window, reference, population, weight)
    n_exceeding, n_ties = _tail_counts(observed_score, scores)
    return SignificanceResult(
        window=window,
        score=float(observed_score),
        p_value=n_exceeding / population.size,
        n_random=population.size,
        n_exceeding=n_exceeding,
        n_ties=n_ties,
    )


def estimate_p_value(
    observed_score: float,
    window: Window,
    reference: ReferenceProfile,
    population: RandomSignaturePopulation,
    weight: WeightFunction = linear_rank_weight,
) -> float:
    """Fraction of random scores strictly greater than *observed_score*.

    Raises
    ------
    ValidationError
        If the population is empty or the window does not fit.
    """
    return evaluate_significance(
        observed_score, window, reference, population, weight).p_value


# ═══════════════════════════════════════════════════════════════════
# Series
# ═══════════════════════════════════════════════════════════════════

def estimate_significance(
    observed: Sequence[ScoreResult],
    reference: ReferenceProfile,
    random_population_size: int,
    rng_seed: RandomSource = None,
    weight: WeightFunction = linear_rank_weight,
    population: Optional[RandomSignaturePopulation] = None,
) -> List[SignificanceResult]:
    """p-values for a whole score series, in the series' order.

    One population of ``random_population_size`` signatures (length N)
    is drawn from *rng_seed* and reused, read-only, for every window.
    Pass *population* to reuse one drawn elsewhere; its size then
    overrides *random_population_size*.
    """
    if population is None:
        if random_population_size <= 0:
            raise ValidationError(
                f"Random population size must be positive, "
                f"got {random_population_size}")
        population = generate_random_signatures(
            reference.n, random_population_size, rng_seed)
    logger.debug("Scoring %d windows against %r", len(observed), population)
    if not reference.is_rank_ordered():
        logger.warning(
            "Reference profile is not rank ordered; scores are not "
            "bounded by 1 and p = 0 at the maximum is not guaranteed")
    return [
        evaluate_significance(r.score, r.window, reference, population, weight)
        for r in observed
    ]
