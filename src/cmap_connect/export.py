"""Series export — hand score and p-value series to the reporting layer.

The reporting code (tables, plots, documents) lives outside this
package.  It receives plain rows:

* ``(parameter, score)`` for a window-length or offset sweep,
* ``(m, score, p_value)`` for a significance sweep,

or a JSON string of the full records.  Everything here is in-memory;
nothing is written to disk.

Workflow
--------
>>> series = runner.sweep_by_window_length(ref, query)
>>> score_rows(series, "length")[:2]
[(1, 1.0), (2, 1.0)]
>>> text = series_to_json(series)
>>> series_from_json(text) == series
True
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import ValidationError
from .profile import Window
from .scoring import ScoreResult
from .significance import SignificanceResult

__all__ = [
    "score_rows",
    "significance_rows",
    "result_to_dict",
    "result_from_dict",
    "series_to_json",
    "series_from_json",
]

SERIES_VERSION = 1

Result = Union[ScoreResult, SignificanceResult]


# ═══════════════════════════════════════════════════════════════════
# Rows
# ═══════════════════════════════════════════════════════════════════

def score_rows(
    series: Sequence[ScoreResult], parameter: str = "length",
) -> List[Tuple[int, float]]:
    """``(parameter, score)`` rows, one per result, in series order."""
    return [r.as_tuple(parameter) for r in series]


def significance_rows(
    series: Sequence[SignificanceResult],
) -> List[Tuple[int, float, float]]:
    """``(m, score, p_value)`` rows, one per result, in series order."""
    return [r.as_tuple() for r in series]


# ═══════════════════════════════════════════════════════════════════
# Dict / JSON
# ═══════════════════════════════════════════════════════════════════

def _numpy_safe(obj: Any) -> Any:
    """Recursively convert numpy scalars/arrays to native Python types."""
    if isinstance(obj, dict):
        return {k: _numpy_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_numpy_safe(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj


def result_to_dict(result: Result) -> Dict[str, Any]:
    """Flatten a result record into a JSON-safe dict."""
    if not isinstance(result, (ScoreResult, SignificanceResult)):
        raise ValidationError(f"Cannot export {type(result).__name__}")
    d: Dict[str, Any] = {
        "length": result.window.length,
        "offset": result.window.offset,
    }
    if isinstance(result, ScoreResult):
        d.update(kind="score", strength=result.strength,
                 max_strength=result.max_strength, score=result.score)
    else:
        d.update(kind="significance", score=result.score,
                 p_value=result.p_value, n_random=result.n_random,
                 n_exceeding=result.n_exceeding, n_ties=result.n_ties)
    return _numpy_safe(d)


def result_from_dict(d: Dict[str, Any]) -> Result:
    """Rebuild a record written by :func:`result_to_dict`."""
    window = Window(int(d["length"]), int(d["offset"]))
    kind = d.get("kind")
    if kind == "score":
        return ScoreResult(window, d["strength"], d["max_strength"], d["score"])
    if kind == "significance":
        return SignificanceResult(
            window, d["score"], d["p_value"], d["n_random"],
            d["n_exceeding"], d.get("n_ties", 0))
    raise ValidationError(f"Unknown result kind {kind!r}")


def series_to_json(
    series: Sequence[Result],
    metadata: Optional[Dict[str, Any]] = None,
) -> str:
    """Serialise a result series (one kind or mixed) to a JSON string."""
    payload = {
        "version": SERIES_VERSION,
        "n_results": len(series),
        "results": [result_to_dict(r) for r in series],
    }
    if metadata:
        payload["metadata"] = _numpy_safe(metadata)
    return json.dumps(payload, indent=2)


def series_from_json(text: str) -> List[Result]:
    """Deserialise a series written by :func:`series_to_json`."""
    payload = json.loads(text)
    if payload.get("version") != SERIES_VERSION:
        raise ValidationError(
            f"Unsupported series version {payload.get('version')!r}")
    return [result_from_dict(d) for d in payload["results"]]
