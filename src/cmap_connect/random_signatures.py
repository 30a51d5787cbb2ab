"""Random ±1 signature populations for the significance null.

The random source is always passed in explicitly (a
``numpy.random.Generator``, an integer seed, or ``None`` for fresh OS
entropy), so a run is reproducible from its seed and nothing touches
numpy's global state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Union

import numpy as np

from .errors import ValidationError
from .profile import QuerySignature

__all__ = [
    "RandomSignaturePopulation",
    "as_generator",
    "generate_random_signatures",
]

RandomSource = Union[np.random.Generator, int, None]


def as_generator(rng: RandomSource = None) -> np.random.Generator:
    """Resolve *rng* to a ``numpy.random.Generator``."""
    if isinstance(rng, np.random.Generator):
        return rng
    if rng is None or isinstance(rng, (int, np.integer)):
        return np.random.default_rng(rng)
    raise ValidationError(
        f"rng must be a numpy Generator, an int seed or None, got {type(rng).__name__}")


@dataclass(frozen=True, eq=False)
class RandomSignaturePopulation:
    """R independent sign sequences of length N, stored as an (R, N) int8 matrix.

    The matrix is read-only; workers share it without copying.
    """

    matrix: np.ndarray

    def __post_init__(self):
        arr = np.array(self.matrix, dtype=np.int8, copy=True)
        if arr.ndim != 2:
            raise ValidationError(
                f"Population matrix must be 2-D, got shape {arr.shape}")
        if arr.size and not np.all(np.isin(arr, (-1, 1))):
            raise ValidationError("Population entries must be +1 or -1")
        arr.setflags(write=False)
        object.__setattr__(self, "matrix", arr)

    @property
    def size(self) -> int:
        """Number of random signatures R."""
        return int(self.matrix.shape[0])

    @property
    def length(self) -> int:
        """Length N of every signature."""
        return int(self.matrix.shape[1])

    def __len__(self) -> int:
        return self.size

    def signature(self, k: int) -> QuerySignature:
        return QuerySignature(self.matrix[k])

    def __iter__(self) -> Iterator[QuerySignature]:
        for k in range(self.size):
            yield self.signature(k)

    def __repr__(self) -> str:
        return f"RandomSignaturePopulation(R={self.size}, N={self.length})"


def generate_random_signatures(
    length: int,
    count: int,
    rng: RandomSource = None,
) -> RandomSignaturePopulation:
    """Draw *count* signatures of *length* uniform ±1 entries.

    Parameters
    ----------
    length : int
        Signature length N (> 0).
    count : int
        Population size R (> 0).
    rng : numpy.random.Generator, int or None
        Random source; see :func:`as_generator`.

    Raises
    ------
    ValidationError
        If ``length <= 0`` or ``count <= 0``.
    """
    if length <= 0:
        raise ValidationError(f"Signature length must be positive, got {length}")
    if count <= 0:
        raise ValidationError(f"Population size must be positive, got {count}")
    gen = as_generator(rng)
    bits = gen.integers(0, 2, size=(count, length), dtype=np.int8)
    return RandomSignaturePopulation(bits * 2 - 1)
