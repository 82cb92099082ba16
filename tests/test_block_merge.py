from __future__ import annotations

import logging

import numpy as np
import pytest

from phasepoly.block_merge import BlockSpan, merge_attempt, resolve_worker_count, search_merges


def _costs(plan):
    return [span.cost for span in plan.spans]


def _assert_contiguous(plan, size: int) -> None:
    assert plan.spans[0].start == 0
    assert plan.spans[-1].end == size
    for left, right in zip(plan.spans, plan.spans[1:]):
        assert left.end == right.start


def test_merge_attempt_merges_everything_within_budget() -> None:
    spans = [BlockSpan(c, i, i + 1) for i, c in enumerate([0, 1, 0, 2, 0])]
    run = merge_attempt(spans, np.inf, np.random.default_rng(0))
    assert run == [BlockSpan(3, 0, 5)]


def test_search_merges_respects_the_budget() -> None:
    plan = search_merges([0, 1, 0, 1, 0, 1, 0], 1, 50, seed=0)

    # merging the first or last junction first leaves room for another merge
    assert len(plan) == 3
    assert max(_costs(plan)) <= 1
    _assert_contiguous(plan, 7)


def test_over_budget_blocks_stay_alone() -> None:
    plan = search_merges([0, 5, 0], 1, 10, seed=0)
    assert plan.spans == [BlockSpan(0, 0, 1), BlockSpan(5, 1, 2), BlockSpan(0, 2, 3)]


def test_unbounded_budget_reaches_a_single_block() -> None:
    plan = search_merges([0, 2, 0, 3, 0], None, 100, seed=1)
    assert plan.spans == [BlockSpan(5, 0, 5)]
    # the search stops at the first attempt reaching one block
    assert plan.attempts == 1


def test_trivial_inputs_are_returned_unchanged() -> None:
    assert search_merges([], 1, 10).spans == []
    assert search_merges([0], 1, 10).spans == [BlockSpan(0, 0, 1)]
    plan = search_merges([0, 1, 0], 1, 0)
    assert len(plan) == 3
    assert plan.attempts == 0


def test_same_seed_gives_the_same_plan() -> None:
    costs = [0, 1, 0, 2, 0, 1, 0, 1, 0, 2, 0, 1, 0]
    first = search_merges(costs, 2, 30, seed=1234)
    second = search_merges(costs, 2, 30, seed=1234)
    assert first.spans == second.spans


@pytest.mark.parametrize("workers", [2, 4])
def test_parallel_search_matches_serial_search(workers) -> None:
    costs = [0, 1, 0, 2, 0, 1, 0, 1, 0, 2, 0, 1, 0]
    serial = search_merges(costs, 2, 40, seed=7, workers=1)
    parallel = search_merges(costs, 2, 40, seed=7, workers=workers)
    assert parallel.spans == serial.spans
    _assert_contiguous(parallel, len(costs))


def test_generator_source(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="phasepoly.block_merge")
    plan = search_merges([0, 1, 0, 1, 0], 1, 5, rng=np.random.default_rng(3))
    assert len(plan) == 3
    assert "Block merge: 5 blocks => 3 blocks" in caplog.text


def test_resolve_worker_count() -> None:
    assert resolve_worker_count(4, 2) == 2
    assert resolve_worker_count(0, 5) == 1
    assert resolve_worker_count(-3, 5) == 1
    assert resolve_worker_count(3, 0) == 0
    assert 1 <= resolve_worker_count(None, 3) <= 3
