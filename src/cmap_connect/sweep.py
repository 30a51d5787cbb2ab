"""SweepRunner — parallel window-length and offset sweeps.

Every sweep index (a window length ``m`` or an offset ``F``) is scored
independently, so the sweep domain is cut into contiguous chunks and
each chunk is handed to one task of a fixed-size worker pool.  Tasks
return ``(index, result)`` pairs; the runner waits for all of them and
reassembles the series in ascending index order, so the output is
identical to a serial run whatever order the chunks finish in.

The reference profile, query signature and random population are
frozen and read-only; workers share them and keep only local lists.

A failing chunk aborts the whole sweep.  :class:`ValidationError`
propagates unchanged; anything else is wrapped in :class:`SweepError`
naming the chunk.  Pending chunks are cancelled and no partial series
is returned.

Usage
-----
>>> runner = SweepRunner(n_workers=4)
>>> series = runner.sweep_by_window_length(ref, query)
>>> [r.length for r in series] == list(range(1, ref.n + 1))
True
"""

from __future__ import annotations

import logging
import math
import os
import time
from concurrent.futures import (
    Executor,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import SweepError, ValidationError
from .profile import QuerySignature, ReferenceProfile, Window
from .random_signatures import RandomSource, generate_random_signatures
from .scoring import ScoreResult, score
from .significance import SignificanceResult, evaluate_significance
from .weighting import WeightFunction, linear_rank_weight

__all__ = [
    "EXECUTORS",
    "SweepRunner",
    "partition",
    "sweep_by_window_length",
    "sweep_by_offset",
    "sweep_significance",
]

logger = logging.getLogger(__name__)

EXECUTORS = ("thread", "process", "serial")

DEFAULT_WORKERS = 4


def partition(domain: Sequence[int], n_chunks: int) -> List[List[int]]:
    """Split *domain* into at most *n_chunks* contiguous, near-equal runs."""
    items = list(domain)
    if not items:
        return []
    n_chunks = max(1, min(n_chunks, len(items)))
    size = math.ceil(len(items) / n_chunks)
    return [items[i:i + size] for i in range(0, len(items), size)]


# ── Chunk workers (module level so process pools can pickle them) ──

def _window_for(kind: str, index: int, fixed: int) -> Window:
    if kind == "length":
        return Window(index, fixed)
    return Window(fixed, index)


def _score_chunk(task: Tuple) -> List[Tuple[int, ScoreResult]]:
    kind, reference, query, indices, fixed, weight = task
    return [
        (i, score(query, reference, _window_for(kind, i, fixed), weight))
        for i in indices
    ]


def _significance_chunk(task: Tuple) -> List[Tuple[int, SignificanceResult]]:
    kind, reference, query, indices, fixed, weight, population = task
    out = []
    for i in indices:
        observed = score(query, reference, _window_for(kind, i, fixed), weight)
        out.append((i, evaluate_significance(
            observed.score, observed.window, reference, population, weight)))
    return out


# ═══════════════════════════════════════════════════════════════════
# SweepRunner
# ═══════════════════════════════════════════════════════════════════

class SweepRunner:
    """Fixed-size worker pool for independent sweep evaluations.

    Parameters
    ----------
    n_workers : int, optional
        Pool size.  Defaults to ``min(4, os.cpu_count())``.
    chunk_size : int, optional
        Sweep indices per task.  Defaults to an even split over the
        workers.
    executor : {"thread", "process", "serial"}
        ``"thread"`` (default) shares the inputs in memory; numpy
        releases the GIL inside the dot products.  ``"process"``
        pickles each chunk's inputs to a worker process.  ``"serial"``
        evaluates the chunks in the calling thread.
    weight : WeightFunction
        Rank weighting for the maximum strength.
    """

    def __init__(
        self,
        n_workers: Optional[int] = None,
        chunk_size: Optional[int] = None,
        executor: str = "thread",
        weight: WeightFunction = linear_rank_weight,
    ):
        if n_workers is None:
            n_workers = min(DEFAULT_WORKERS, os.cpu_count() or 1)
        if n_workers <= 0:
            raise ValidationError(f"n_workers must be positive, got {n_workers}")
        if chunk_size is not None and chunk_size <= 0:
            raise ValidationError(f"chunk_size must be positive, got {chunk_size}")
        if executor not in EXECUTORS:
            raise ValidationError(
                f"executor must be one of {EXECUTORS}, got {executor!r}")
        self.n_workers = int(n_workers)
        self.chunk_size = chunk_size
        self.executor = executor
        self.weight = weight

    def __repr__(self) -> str:
        return (f"SweepRunner(n_workers={self.n_workers}, "
                f"chunk_size={self.chunk_size}, executor={self.executor!r})")

    # ── public sweeps ───────────────────────────────────────────

    def sweep_by_window_length(
        self,
        reference: ReferenceProfile,
        query: QuerySignature,
        n: Optional[int] = None,
    ) -> List[ScoreResult]:
        """Scores for ``m = 1..n`` at offset 0 (``n`` defaults to N)."""
        n = self._resolve_n(reference, n)
        return self._run(
            _score_chunk, range(1, n + 1),
            lambda idx: ("length", reference, query, idx, 0, self.weight),
            label="window-length sweep",
        )

    def sweep_by_offset(
        self,
        reference: ReferenceProfile,
        query: QuerySignature,
        m: int,
        n: Optional[int] = None,
    ) -> List[ScoreResult]:
        """Scores for offsets ``F = 0..n-m`` at fixed window length *m*."""
        n = self._resolve_n(reference, n)
        if not 1 <= m <= n:
            raise ValidationError(f"Window length {m} outside [1, {n}]")
        return self._run(
            _score_chunk, range(0, n - m + 1),
            lambda idx: ("offset", reference, query, idx, m, self.weight),
            label=f"offset sweep (m={m})",
        )

    def sweep_significance(
        self,
        reference: ReferenceProfile,
        query: QuerySignature,
        random_population_size: int,
        n: Optional[int] = None,
        rng_seed: RandomSource = None,
    ) -> List[SignificanceResult]:
        """Window-length sweep with an empirical p-value per window.

        One random population is drawn before dispatch and shared by
        every chunk.
        """
        n = self._resolve_n(reference, n)
        if random_population_size <= 0:
            raise ValidationError(
                f"Random population size must be positive, "
                f"got {random_population_size}")
        if not reference.is_rank_ordered():
            logger.warning(
                "Reference profile is not rank ordered; p = 0 at the "
                "maximum score is not guaranteed")
        population = generate_random_signatures(
            reference.n, random_population_size, rng_seed)
        return self._run(
            _significance_chunk, range(1, n + 1),
            lambda idx: ("length", reference, query, idx, 0, self.weight,
                         population),
            label=f"significance sweep (R={random_population_size})",
        )

    # ── machinery ───────────────────────────────────────────────

    @staticmethod
    def _resolve_n(reference: ReferenceProfile, n: Optional[int]) -> int:
        if n is None:
            return reference.n
        if not 1 <= n <= reference.n:
            raise ValidationError(
                f"Sweep bound n={n} outside [1, {reference.n}]")
        return n

    def _pool(self) -> Executor:
        if self.executor == "process":
            return ProcessPoolExecutor(max_workers=self.n_workers)
        return ThreadPoolExecutor(max_workers=self.n_workers)

    def _partition(self, domain: Sequence[int]) -> List[List[int]]:
        if self.chunk_size is not None:
            n_chunks = math.ceil(len(domain) / self.chunk_size)
        else:
            n_chunks = self.n_workers
        return partition(domain, n_chunks)

    def _run(
        self,
        worker: Callable[[Tuple], List[Tuple[int, Any]]],
        domain: Sequence[int],
        make_task: Callable[[List[int]], Tuple],
        label: str,
    ) -> List[Any]:
        chunks = self._partition(domain)
        logger.info("Starting %s: %d indices in %d chunks (%s)",
                    label, len(domain), len(chunks), self)
        t0 = time.perf_counter()

        merged: Dict[int, Any] = {}
        if self.executor == "serial" or len(chunks) <= 1:
            for chunk in chunks:
                merged.update(self._guarded(worker, make_task(chunk), chunk))
        else:
            with self._pool() as pool:
                futures = {}
                for chunk in chunks:
                    logger.debug("Dispatching chunk [%d, %d]", chunk[0], chunk[-1])
                    futures[pool.submit(worker, make_task(chunk))] = chunk
                for fut in as_completed(futures):
                    chunk = futures[fut]
                    try:
                        merged.update(self._unwrap(fut.result, chunk))
                    except Exception:
                        for other in futures:
                            other.cancel()
                        raise

        results = [merged[i] for i in domain]
        logger.info("Finished %s in %.3fs", label, time.perf_counter() - t0)
        return results

    def _guarded(self, worker, task, chunk):
        return self._unwrap(lambda: worker(task), chunk)

    @staticmethod
    def _unwrap(call: Callable[[], List[Tuple[int, Any]]], chunk: List[int]):
        try:
            return call()
        except ValidationError:
            logger.error("Chunk [%d, %d] rejected its inputs", chunk[0], chunk[-1])
            raise
        except Exception as exc:
            logger.error("Chunk [%d, %d] failed: %r", chunk[0], chunk[-1], exc)
            raise SweepError(
                f"Sweep chunk [{chunk[0]}, {chunk[-1]}] failed: {exc}",
                chunk=(chunk[0], chunk[-1]),
            ) from exc


# ── Module-level conveniences ───────────────────────────────────

def sweep_by_window_length(reference, query, n=None, runner=None):
    """:meth:`SweepRunner.sweep_by_window_length` on a default runner."""
    return (runner or SweepRunner()).sweep_by_window_length(reference, query, n)


def sweep_by_offset(reference, query, m, n=None, runner=None):
    """:meth:`SweepRunner.sweep_by_offset` on a default runner."""
    return (runner or SweepRunner()).sweep_by_offset(reference, query, m, n)


def sweep_significance(reference, query, random_population_size, n=None,
                       rng_seed=None, runner=None):
    """:meth:`SweepRunner.sweep_significance` on a default runner."""
    return (runner or SweepRunner()).sweep_significance(
        reference, query, random_population_size, n=n, rng_seed=rng_seed)
