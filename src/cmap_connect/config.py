"""Run parameters for sweeps and significance estimation.

The kernel's configuration surface is small: profile size N, window
length m, random population size R, an optional seed, and the sweep
pool settings.  :class:`SweepParameters` holds them in one frozen
record; :meth:`~SweepParameters.replace` derives variants and
:meth:`~SweepParameters.validate` checks ranges before a run.

Usage
-----
>>> from cmap_connect.config import DEFAULT_PARAMETERS, runner_from_config
>>> params = DEFAULT_PARAMETERS.replace(n=20, n_workers=2).validate()
>>> runner = runner_from_config(params)
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import ValidationError
from .sweep import EXECUTORS, SweepRunner

__all__ = [
    "SweepParameters",
    "DEFAULT_PARAMETERS",
    "runner_from_config",
]


@dataclass(frozen=True)
class SweepParameters:
    """Everything a sweep run needs besides the profile itself.

    Attributes
    ----------
    n : int
        Reference profile size N.
    window_length : int
        Window length m for offset sweeps.
    population_size : int
        Random population size R.
    seed : int or None
        Seed for the random population; None draws fresh entropy.
    n_workers : int
        Worker pool size.
    chunk_size : int or None
        Sweep indices per task; None splits evenly over the workers.
    executor : {"thread", "process", "serial"}
    """

    n: int = 10
    window_length: int = 5
    population_size: int = 1000
    seed: Optional[int] = None
    n_workers: int = 4
    chunk_size: Optional[int] = None
    executor: str = "thread"

    def replace(self, **overrides: Any) -> "SweepParameters":
        """Return a copy with *overrides* applied.

        Raises
        ------
        TypeError
            If a name is not a parameter.
        """
        return dataclasses.replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    def validate(self) -> "SweepParameters":
        """Check ranges; returns ``self`` so it can be chained.

        Raises
        ------
        ValidationError
            On the first out-of-range value.
        """
        _positive_int("n", self.n)
        _positive_int("window_length", self.window_length)
        if self.window_length > self.n:
            raise ValidationError(
                f"window_length={self.window_length} exceeds n={self.n}")
        _positive_int("population_size", self.population_size)
        if self.seed is not None and (
                isinstance(self.seed, bool) or not isinstance(self.seed, int)
                or self.seed < 0):
            raise ValidationError(
                f"seed must be a non-negative int or None, got {self.seed!r}")
        _positive_int("n_workers", self.n_workers)
        if self.chunk_size is not None:
            _positive_int("chunk_size", self.chunk_size)
        if self.executor not in EXECUTORS:
            raise ValidationError(
                f"executor must be one of {EXECUTORS}, got {self.executor!r}")
        return self


def _positive_int(name: str, value: Any):
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be a positive int, got {value!r}")


DEFAULT_PARAMETERS = SweepParameters()


def runner_from_config(params: SweepParameters = DEFAULT_PARAMETERS) -> SweepRunner:
    """Build a :class:`~cmap_connect.sweep.SweepRunner` from *params*."""
    params.validate()
    return SweepRunner(
        n_workers=params.n_workers,
        chunk_size=params.chunk_size,
        executor=params.executor,
    )
