"""Reference profiles, query signatures and windows.

The three parallel sequences of the kernel:

* :class:`ReferenceProfile` — N signed weights, rank 1 first.
* :class:`QuerySignature` — ±1 directions aligned to the profile's
  ranks, no magnitudes.
* :class:`Window` — ``(length m, offset F)`` selecting the 1-based,
  inclusive index range ``[1 + F, m + F]`` of both.

All three are frozen; the wrapped arrays are flagged read-only so they
can be shared across sweep workers without copying or locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .errors import ValidationError
from .weighting import WeightFunction, linear_rank_weight, weight_vector

__all__ = [
    "ReferenceProfile",
    "QuerySignature",
    "Window",
    "build_reference_profile",
    "derive_query_signature",
    "reference_profile_from_values",
]


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, copy=True)
    arr.setflags(write=False)
    return arr


# ═══════════════════════════════════════════════════════════════════
# ReferenceProfile
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class ReferenceProfile:
    """Ranked, signed measurement set indexed ``1..N``.

    Attributes
    ----------
    values : np.ndarray
        Read-only float array of shape ``(N,)``.  ``values[0]`` is rank 1.
    """

    values: np.ndarray

    def __post_init__(self):
        arr = np.asarray(self.values, dtype=float)
        if arr.ndim != 1 or arr.size == 0:
            raise ValidationError(
                f"Reference profile must be a non-empty 1-D sequence, "
                f"got shape {arr.shape}")
        if not np.all(np.isfinite(arr)):
            raise ValidationError("Reference profile contains non-finite values")
        object.__setattr__(self, "values", _frozen(arr))

    @property
    def n(self) -> int:
        """Number of ranked items N."""
        return int(self.values.size)

    def __len__(self) -> int:
        return self.n

    def at(self, i: int) -> float:
        """Value at 1-based rank *i*."""
        if not 1 <= i <= self.n:
            raise ValidationError(f"Rank {i} outside [1, {self.n}]")
        return float(self.values[i - 1])

    @property
    def magnitudes(self) -> np.ndarray:
        return np.abs(self.values)

    @property
    def signs(self) -> np.ndarray:
        """±1 per rank; zero entries count as +1."""
        return np.where(self.values < 0, -1, 1).astype(np.int8)

    def is_rank_ordered(self) -> bool:
        """True iff magnitudes are non-increasing with rank."""
        return bool(np.all(np.diff(self.magnitudes) <= 0))

    def is_bounded_by(self, weights: np.ndarray) -> bool:
        """True iff ``|values[i]| <= weights[i]`` at every rank.

        This is the condition under which the summed weights are a true
        upper bound on the strength of *any* window.
        """
        return bool(np.all(self.magnitudes <= np.asarray(weights)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReferenceProfile):
            return NotImplemented
        return np.array_equal(self.values, other.values)

    def __hash__(self) -> int:
        return hash(self.values.tobytes())

    def __repr__(self) -> str:
        head = ", ".join(f"{v:g}" for v in self.values[:5])
        more = ", …" if self.n > 5 else ""
        return f"ReferenceProfile(N={self.n}, [{head}{more}])"


# ═══════════════════════════════════════════════════════════════════
# QuerySignature
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class QuerySignature:
    """Rank-free direction signature: one ±1 per aligned rank."""

    signs: np.ndarray

    def __post_init__(self):
        arr = np.asarray(self.signs)
        if arr.ndim != 1 or arr.size == 0:
            raise ValidationError(
                f"Query signature must be a non-empty 1-D sequence, "
                f"got shape {arr.shape}")
        if not np.all(np.isin(arr, (-1, 1))):
            raise ValidationError("Query signature entries must be +1 or -1")
        object.__setattr__(self, "signs", _frozen(arr.astype(np.int8)))

    def __len__(self) -> int:
        return int(self.signs.size)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QuerySignature):
            return NotImplemented
        return np.array_equal(self.signs, other.signs)

    def __hash__(self) -> int:
        return hash(self.signs.tobytes())

    def __repr__(self) -> str:
        body = "".join("+" if s > 0 else "-" for s in self.signs[:20])
        more = "…" if len(self) > 20 else ""
        return f"QuerySignature({len(self)}: {body}{more})"


# ═══════════════════════════════════════════════════════════════════
# Window
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, order=True)
class Window:
    """Sub-range ``[1 + offset, length + offset]`` (1-based, inclusive).

    ``length == 0`` is representable so that the degenerate score
    convention (score 0) can be expressed; :meth:`validate` rejects it
    unless ``allow_empty`` is set.
    """

    length: int
    offset: int = 0

    @property
    def start(self) -> int:
        return 1 + self.offset

    @property
    def stop(self) -> int:
        return self.length + self.offset

    def slice(self) -> slice:
        """0-based python slice over the window's ranks."""
        return slice(self.offset, self.offset + self.length)

    def validate(self, n: int, *, allow_empty: bool = False) -> "Window":
        """Check ``1 <= length``, ``0 <= offset`` and ``length + offset <= n``."""
        lo = 0 if allow_empty else 1
        if self.length < lo:
            raise ValidationError(
                f"Window length must be >= {lo}, got {self.length}")
        if self.offset < 0:
            raise ValidationError(
                f"Window offset must be >= 0, got {self.offset}")
        if self.length + self.offset > n:
            raise ValidationError(
                f"Window [{self.start}, {self.stop}] exceeds profile "
                f"size N={n} (length {self.length} + offset "
                f"{self.offset} > {n})")
        return self


# ═══════════════════════════════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════════════════════════════

def build_reference_profile(
    n: int,
    weight: WeightFunction = linear_rank_weight,
) -> ReferenceProfile:
    """Synthetic profile: magnitude ``weight(n, i)``, negative at even ranks.

    >>> build_reference_profile(4).values
    array([ 4., -3.,  2., -1.])
    """
    if n <= 0:
        raise ValidationError(f"Profile size must be positive, got {n}")
    w = weight_vector(n, weight)
    ranks = np.arange(1, n + 1)
    signs = np.where(ranks % 2 == 0, -1.0, 1.0)
    return ReferenceProfile(w * signs)


def derive_query_signature(profile: ReferenceProfile) -> QuerySignature:
    """Signature whose i-th sign is ``sign(profile[i])``."""
    return QuerySignature(profile.signs)


def reference_profile_from_values(values: Sequence[float]) -> ReferenceProfile:
    """Wrap caller-supplied values as a :class:`ReferenceProfile`."""
    return ReferenceProfile(np.asarray(values, dtype=float))
