"""Tests for series export (cmap_connect.export).

Verifies the row shapes handed to reporting code and JSON
round-tripping of score and significance series.
"""

import json

import numpy as np
import pytest

from cmap_connect.errors import ValidationError
from cmap_connect.export import (
    result_from_dict,
    result_to_dict,
    score_rows,
    series_from_json,
    series_to_json,
    significance_rows,
)
from cmap_connect.profile import Window, build_reference_profile, derive_query_signature
from cmap_connect.scoring import ScoreResult
from cmap_connect.significance import SignificanceResult
from cmap_connect.sweep import SweepRunner


# ── Fixtures ────────────────────────────────────────────────────

@pytest.fixture
def ref():
    return build_reference_profile(10)


@pytest.fixture
def runner():
    return SweepRunner(n_workers=2)


@pytest.fixture
def length_series(ref, runner):
    return runner.sweep_by_window_length(ref, derive_query_signature(ref))


@pytest.fixture
def offset_series(ref, runner):
    return runner.sweep_by_offset(ref, derive_query_signature(ref), 5)


@pytest.fixture
def significance_series(ref, runner):
    return runner.sweep_significance(ref, derive_query_signature(ref), 100, rng_seed=2)


# ── Rows ────────────────────────────────────────────────────────

class TestRows:

    def test_length_rows(self, length_series):
        rows = score_rows(length_series)
        assert rows == [(m, 1.0) for m in range(1, 11)]

    def test_offset_rows(self, offset_series):
        rows = score_rows(offset_series, "offset")
        assert rows[0] == (0, 1.0)
        assert rows[-1] == (5, 0.375)

    def test_significance_rows(self, significance_series):
        rows = significance_rows(significance_series)
        assert rows == [(m, 1.0, 0.0) for m in range(1, 11)]


# ── Dict / JSON ─────────────────────────────────────────────────

class TestSerialisation:

    def test_score_dict(self):
        d = result_to_dict(ScoreResult(Window(5, 5), 15.0, 40.0, 0.375))
        assert d == {"length": 5, "offset": 5, "kind": "score",
                     "strength": 15.0, "max_strength": 40.0, "score": 0.375}

    def test_numpy_scalars_converted(self):
        d = result_to_dict(ScoreResult(
            Window(2, 0), np.float64(3.0), np.float64(4.0), np.float64(0.75)))
        json.dumps(d)
        assert type(d["score"]) is float

    def test_significance_dict_round_trip(self):
        r = SignificanceResult(Window(3, 1), 0.5, 0.2, 50, 10, 2)
        assert result_from_dict(result_to_dict(r)) == r

    def test_series_round_trip(self, length_series, offset_series, significance_series):
        series = length_series + offset_series + significance_series
        assert series_from_json(series_to_json(series)) == series

    def test_metadata(self, length_series):
        text = series_to_json(length_series, metadata={"n": np.int64(10)})
        payload = json.loads(text)
        assert payload["metadata"] == {"n": 10}
        assert payload["n_results"] == 10

    def test_unknown_version(self, length_series):
        payload = json.loads(series_to_json(length_series))
        payload["version"] = 99
        with pytest.raises(ValidationError, match="version"):
            series_from_json(json.dumps(payload))

    def test_unknown_kind(self):
        with pytest.raises(ValidationError, match="kind"):
            result_from_dict({"length": 1, "offset": 0, "kind": "plot"})

    def test_unsupported_object(self):
        with pytest.raises(ValidationError):
            result_to_dict("not a result")
