"""Tests for cmap_connect.significance — empirical p-values.

Covers:
1. p = 0 exactly at the theoretical maximum, for every seed and size
2. strict greater-than counting and tie reporting
3. series estimation, reproducibility and validation
4. Monte Carlo uncertainty of the estimate
"""

import numpy as np
import pytest

from cmap_connect.errors import ValidationError
from cmap_connect.profile import (
    QuerySignature,
    Window,
    build_reference_profile,
    derive_query_signature,
    reference_profile_from_values,
)
from cmap_connect.random_signatures import (
    RandomSignaturePopulation,
    generate_random_signatures,
)
from cmap_connect.scoring import score
from cmap_connect.significance import (
    SignificanceResult,
    estimate_p_value,
    estimate_significance,
    evaluate_significance,
    random_scores,
)
from cmap_connect.weighting import PowerRankWeight


@pytest.fixture
def ref10():
    return build_reference_profile(10)


@pytest.fixture
def ref4():
    # [4, -3, 2, -1]
    return build_reference_profile(4)


@pytest.fixture
def hand_population():
    """Four signatures whose first-two-rank scores against ref4 are
    1, 1/7, -1/7 and -1 (m = 2, maximum strength 7)."""
    return RandomSignaturePopulation(np.array([
        [1, -1, 1, 1],
        [1, 1, -1, -1],
        [-1, -1, 1, 1],
        [-1, 1, 1, 1],
    ]))


# ═══════════════════════════════════════════════════════════════════
# 1. Exactness at the maximum
# ═══════════════════════════════════════════════════════════════════

class TestMaximumScoreHasZeroPValue:

    @pytest.mark.parametrize("seed", range(15))
    def test_every_seed(self, ref10, seed):
        pop = generate_random_signatures(10, 300, rng=seed)
        for m in range(1, 11):
            assert estimate_p_value(1.0, Window(m, 0), ref10, pop) == 0.0

    @pytest.mark.parametrize("size", [1, 2, 17, 2000])
    def test_every_population_size(self, ref10, size):
        pop = generate_random_signatures(10, size, rng=123)
        assert estimate_p_value(1.0, Window(3, 0), ref10, pop) == 0.0

    def test_population_containing_the_match(self, ref10):
        q = derive_query_signature(ref10)
        pop = RandomSignaturePopulation(np.vstack([q.signs] * 5))
        r = evaluate_significance(1.0, Window(10, 0), ref10, pop)
        assert r.p_value == 0.0
        assert r.n_ties == 5

    def test_power_weighting(self):
        w = PowerRankWeight(1.7)
        ref = build_reference_profile(25, w)
        obs = score(derive_query_signature(ref), ref, Window(12, 0), w)
        for seed in range(5):
            pop = generate_random_signatures(25, 500, rng=seed)
            assert estimate_p_value(obs.score, obs.window, ref, pop, w) == 0.0


# ═══════════════════════════════════════════════════════════════════
# 2. Strict counting & ties
# ═══════════════════════════════════════════════════════════════════

class TestStrictCounting:

    def test_random_scores(self, ref4, hand_population):
        s = random_scores(Window(2, 0), ref4, hand_population)
        np.testing.assert_allclose(s, [1.0, 1 / 7, -1 / 7, -1.0])

    def test_tie_not_counted(self, ref4, hand_population):
        r = evaluate_significance(1.0 / 7.0, Window(2, 0), ref4, hand_population)
        assert r.n_exceeding == 1
        assert r.n_ties == 1
        assert r.p_value == 0.25

    def test_lowest_score(self, ref4, hand_population):
        r = evaluate_significance(-1.0, Window(2, 0), ref4, hand_population)
        assert r.n_exceeding == 3
        assert r.p_value == 0.75

    def test_above_everything(self, ref4, hand_population):
        assert estimate_p_value(1.5, Window(2, 0), ref4, hand_population) == 0.0

    def test_below_everything(self, ref4, hand_population):
        assert estimate_p_value(-2.0, Window(2, 0), ref4, hand_population) == 1.0

    def test_denominator_fixed_by_length(self, ref4, hand_population):
        # window (2, 2) covers [2, -1]; maximum stays 4 + 3
        s = random_scores(Window(2, 2), ref4, hand_population)
        np.testing.assert_allclose(s, [1 / 7, -1 / 7, 1 / 7, 1 / 7])

    def test_unbounded_reference_not_capped(self):
        ref = reference_profile_from_values([1.0, -10.0, 1.0])
        pop = RandomSignaturePopulation(np.array([[1, -1, 1], [1, 1, 1]]))
        s = random_scores(Window(3, 0), ref, pop)
        np.testing.assert_allclose(s, [2.0, -8 / 6])

    @pytest.mark.parametrize("p", [0.3, 0.5, 1.7, 2.3])
    def test_copies_of_query_tie_under_fractional_weights(self, p):
        w = PowerRankWeight(p)
        ref = build_reference_profile(40, w)
        rng = np.random.default_rng(17)
        q = QuerySignature(rng.choice([-1, 1], size=40))
        pop = RandomSignaturePopulation(np.vstack([q.signs] * 5))
        for m, f in [(11, 9), (39, 0), (1, 0), (7, 20), (40, 0), (3, 37)]:
            obs = score(q, ref, Window(m, f), w)
            r = evaluate_significance(obs.score, obs.window, ref, pop, w)
            assert (r.n_exceeding, r.n_ties) == (0, 5)
            assert r.p_value == 0.0

    def test_identical_rows_score_identically(self):
        w = PowerRankWeight(0.3)
        ref = build_reference_profile(30, w)
        row = np.where(np.arange(30) % 3 == 0, -1, 1)
        pop = RandomSignaturePopulation(np.vstack([row] * 8))
        s = random_scores(Window(17, 6), ref, pop, w)
        assert len(set(s.tolist())) == 1

    def test_intermediate_score(self, ref10):
        q = QuerySignature(np.ones(10, dtype=int))
        obs = score(q, ref10, Window(10, 0))
        pop = generate_random_signatures(10, 2000, rng=11)
        p = estimate_p_value(obs.score, obs.window, ref10, pop)
        assert 0.0 < p < 1.0


class TestValidation:

    def test_empty_population(self, ref10):
        pop = RandomSignaturePopulation(np.empty((0, 10)))
        with pytest.raises(ValidationError, match="empty"):
            estimate_p_value(0.5, Window(3, 0), ref10, pop)

    def test_length_mismatch(self, ref10):
        pop = generate_random_signatures(9, 10, rng=0)
        with pytest.raises(ValidationError, match="length 9"):
            estimate_p_value(0.5, Window(3, 0), ref10, pop)

    def test_window_out_of_bounds(self, ref10):
        pop = generate_random_signatures(10, 10, rng=0)
        with pytest.raises(ValidationError):
            estimate_p_value(0.5, Window(6, 5), ref10, pop)


# ═══════════════════════════════════════════════════════════════════
# 3. Series
# ═══════════════════════════════════════════════════════════════════

class TestEstimateSignificance:

    def _observed(self, ref):
        q = derive_query_signature(ref)
        return [score(q, ref, Window(m, 0)) for m in range(1, ref.n + 1)]

    def test_order_and_values(self, ref10):
        series = estimate_significance(self._observed(ref10), ref10, 200, rng_seed=5)
        assert [r.length for r in series] == list(range(1, 11))
        assert all(r.p_value == 0.0 for r in series)
        assert all(r.n_random == 200 for r in series)

    def test_reproducible(self, ref10):
        q = QuerySignature(np.ones(10, dtype=int))
        observed = [score(q, ref10, Window(m, 0)) for m in range(1, 11)]
        a = estimate_significance(observed, ref10, 500, rng_seed=8)
        b = estimate_significance(observed, ref10, 500, rng_seed=8)
        assert a == b

    def test_p_values_in_unit_interval(self, ref10):
        q = QuerySignature(np.ones(10, dtype=int))
        observed = [score(q, ref10, Window(m, 0)) for m in range(1, 11)]
        for r in estimate_significance(observed, ref10, 300, rng_seed=1):
            assert 0.0 <= r.p_value <= 1.0

    @pytest.mark.parametrize("size", [0, -5])
    def test_non_positive_population_size(self, ref10, size):
        with pytest.raises(ValidationError, match="positive"):
            estimate_significance(self._observed(ref10), ref10, size)

    def test_explicit_population(self, ref4, hand_population):
        observed = [score(derive_query_signature(ref4), ref4, Window(2, 0))]
        (r,) = estimate_significance(observed, ref4, 0, population=hand_population)
        assert r.n_random == 4
        assert r.n_ties == 1

    def test_unordered_reference_warns(self, caplog):
        ref = reference_profile_from_values([1.0, -10.0, 1.0])
        observed = [score(derive_query_signature(ref), ref, Window(1, 0))]
        with caplog.at_level("WARNING", logger="cmap_connect.significance"):
            estimate_significance(observed, ref, 10, rng_seed=0)
        assert "not rank ordered" in caplog.text


# ═══════════════════════════════════════════════════════════════════
# 4. Uncertainty
# ═══════════════════════════════════════════════════════════════════

class TestSignificanceResult:

    def test_as_tuple(self):
        r = SignificanceResult(Window(4, 0), 0.5, 0.1, 100, 10)
        assert r.as_tuple() == (4, 0.5, 0.1)

    def test_interval_contains_estimate(self):
        r = SignificanceResult(Window(4, 0), 0.5, 0.1, 100, 10)
        lo, hi = r.p_value_interval()
        assert lo < 0.1 < hi

    def test_interval_at_zero(self):
        r = SignificanceResult(Window(4, 0), 1.0, 0.0, 1000, 0)
        lo, hi = r.p_value_interval(0.99)
        assert lo == 0.0
        assert 0.0 < hi < 0.01

    def test_standard_error(self):
        assert SignificanceResult(Window(1), 1.0, 0.0, 50, 0).standard_error == 0.0
        r = SignificanceResult(Window(1), 0.2, 0.5, 100, 50)
        assert r.standard_error == pytest.approx(0.05)
