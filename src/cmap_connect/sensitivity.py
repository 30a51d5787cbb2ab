"""Offset sensitivity — how a perfect match degrades down the ranking.

Slides a window of fixed length ``m`` from offset 0 to ``N - m`` and
summarises the resulting score curve.  With a rank-ordered profile and
a signature matching it everywhere, the strength at offset ``F`` is the
sum of weights ``F+1 .. F+m`` while the denominator stays fixed at the
sum of weights ``1 .. m``, so the score can only fall as ``F`` grows.

Depends only on :mod:`sweep`, numpy and scipy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import spearmanr

from .profile import QuerySignature, ReferenceProfile
from .sweep import SweepRunner

__all__ = [
    "OffsetSensitivity",
    "offset_sensitivity",
    "sensitivity_table",
]


@dataclass(frozen=True)
class OffsetSensitivity:
    """Score-vs-offset curve for one window length.

    Attributes
    ----------
    window_length : int
    offsets : tuple[int, ...]
        ``0 .. N - m``.
    scores : tuple[float, ...]
        Score at each offset.
    is_monotone : bool
        Scores never increase with offset.
    spearman_rho : float
        Rank correlation of offset with score; NaN for a single offset
        or a flat curve.
    score_drop_per_rank : float
        Mean score lost per one-rank shift (0 for a single offset).
    half_score_offset : int or None
        First offset whose score is at most half the offset-0 score.
    """

    window_length: int
    offsets: Tuple[int, ...]
    scores: Tuple[float, ...]
    is_monotone: bool
    spearman_rho: float
    score_drop_per_rank: float
    half_score_offset: Optional[int]

    @property
    def n_offsets(self) -> int:
        return len(self.offsets)

    def as_rows(self) -> List[Tuple[int, float]]:
        """``(offset, score)`` rows for reporting."""
        return list(zip(self.offsets, self.scores))

    def summary(self) -> str:
        """One-line summary."""
        half = "never" if self.half_score_offset is None else str(self.half_score_offset)
        return (
            f"OffsetSensitivity(m={self.window_length}: "
            f"{self.n_offsets} offsets, monotone={self.is_monotone}, "
            f"rho={self.spearman_rho:.3f}, "
            f"drop/rank={self.score_drop_per_rank:.4f}, half at {half})"
        )


def offset_sensitivity(
    reference: ReferenceProfile,
    query: QuerySignature,
    m: int,
    runner: Optional[SweepRunner] = None,
) -> OffsetSensitivity:
    """Run the offset sweep for window length *m* and summarise it."""
    runner = runner or SweepRunner()
    series = runner.sweep_by_offset(reference, query, m)
    offsets = np.array([r.offset for r in series])
    scores = np.array([r.score for r in series])

    if scores.size > 1:
        drops = -np.diff(scores)
        is_monotone = bool(np.all(drops >= 0))
        drop_per_rank = float((scores[0] - scores[-1]) / (offsets[-1] - offsets[0]))
        if np.ptp(scores) > 0:
            rho = float(spearmanr(offsets, scores)[0])
        else:
            rho = float("nan")
    else:
        is_monotone = True
        drop_per_rank = 0.0
        rho = float("nan")

    half_at = None
    below = np.nonzero(scores <= scores[0] / 2.0)[0]
    if scores[0] > 0 and below.size:
        half_at = int(offsets[below[0]])

    return OffsetSensitivity(
        window_length=m,
        offsets=tuple(int(f) for f in offsets),
        scores=tuple(float(s) for s in scores),
        is_monotone=is_monotone,
        spearman_rho=rho,
        score_drop_per_rank=drop_per_rank,
        half_score_offset=half_at,
    )


def sensitivity_table(
    reference: ReferenceProfile,
    query: QuerySignature,
    lengths: Sequence[int],
    runner: Optional[SweepRunner] = None,
) -> List[OffsetSensitivity]:
    """One :class:`OffsetSensitivity` per window length, ascending by length."""
    runner = runner or SweepRunner()
    return [offset_sensitivity(reference, query, m, runner)
            for m in sorted(set(lengths))]
