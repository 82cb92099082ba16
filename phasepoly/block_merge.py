"""Randomized greedy merging of partition blocks under an ancilla budget."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Sequence
import logging
import math
import os

import numpy as np

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockSpan:
    """Group of consecutive blocks ``[start, end)`` with total Hadamard ``cost``."""

    cost: int
    start: int
    end: int


@dataclass
class MergePlan:
    """Best grouping found by :func:`search_merges`."""

    spans: List[BlockSpan] = field(default_factory=list)
    attempts: int = 0

    def __len__(self) -> int:
        return len(self.spans)


def resolve_worker_count(max_workers: int | None, task_count: int) -> int:
    """Return an appropriate worker count bounded by ``task_count``."""

    if task_count <= 0:
        return 0
    if max_workers is not None:
        try:
            workers = int(max_workers)
        except (TypeError, ValueError):
            workers = 0
        else:
            if workers < 0:
                workers = 0
        if workers:
            return min(workers, task_count)
        return 1
    cpu_count = os.cpu_count() or 1
    return min(cpu_count, task_count)


def merge_attempt(
    spans: Sequence[BlockSpan], budget: float, rng: np.random.Generator
) -> List[BlockSpan]:
    """Run one randomized greedy merge pass over ``spans``.

    Clifford junctions (odd positions) are visited in a random order.  The
    first junction whose block and both neighbours fit within ``budget`` is
    merged and the scan restarts; the attempt ends after a full pass without
    a merge.
    """

    run = list(spans)
    while True:
        n = len(run[1:]) // 2
        order = np.arange(1, 2 * n, 2)
        rng.shuffle(order)
        for i in order:
            i = int(i)
            left, mid, right = run[i - 1], run[i], run[i + 1]
            if left.cost + mid.cost + right.cost <= budget:
                run[i - 1:i + 2] = [
                    BlockSpan(left.cost + mid.cost + right.cost, left.start, right.end)
                ]
                break
        else:
            return run


def _attempt_generators(
    iterations: int,
    seed: int | np.random.SeedSequence | None,
    rng: np.random.Generator | None,
) -> List[np.random.Generator]:
    if rng is not None:
        root = np.random.SeedSequence(int(rng.integers(0, 2**63 - 1)))
    elif isinstance(seed, np.random.SeedSequence):
        root = seed
    else:
        root = np.random.SeedSequence(seed)
    return [np.random.default_rng(child) for child in root.spawn(iterations)]


def search_merges(
    costs: Sequence[int],
    budget: int | None,
    iterations: int,
    *,
    seed: int | np.random.SeedSequence | None = None,
    rng: np.random.Generator | None = None,
    workers: int | None = None,
) -> MergePlan:
    """Search for the grouping of blocks with the fewest groups.

    Parameters
    ----------
    costs:
        Hadamard count of every block, functional and Clifford alternating.
    budget:
        Maximum summed cost of a group.  ``None`` means unbounded.
    iterations:
        Number of independent randomized attempts.
    seed, rng:
        Source of randomness.  Every attempt draws from its own generator
        spawned up front, so results do not depend on ``workers``.
    workers:
        Number of threads running attempts concurrently.

    Returns
    -------
    MergePlan
        The first attempt reaching the fewest groups.  The search stops
        early once a single group is reached.
    """

    initial = [BlockSpan(int(cost), i, i + 1) for i, cost in enumerate(costs)]
    if len(initial) <= 1 or iterations <= 0:
        return MergePlan(initial, 0)

    limit = math.inf if budget is None else budget
    generators = _attempt_generators(iterations, seed, rng)
    best = initial
    attempts = 0

    workers = resolve_worker_count(workers if workers is not None else 1, iterations)
    if workers <= 1:
        for generator in generators:
            attempts += 1
            run = merge_attempt(initial, limit, generator)
            if len(run) < len(best):
                best = run
            if len(best) == 1:
                break
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            for offset in range(0, iterations, workers):
                batch = generators[offset:offset + workers]
                runs = list(executor.map(lambda g: merge_attempt(initial, limit, g), batch))
                attempts += len(runs)
                for run in runs:
                    if len(run) < len(best):
                        best = run
                if len(best) == 1:
                    break

    LOGGER.debug(
        "Block merge: %d blocks => %d blocks after %d attempts",
        len(initial),
        len(best),
        attempts,
    )
    return MergePlan(best, attempts)


__all__ = [
    "BlockSpan",
    "MergePlan",
    "merge_attempt",
    "resolve_worker_count",
    "search_merges",
]
