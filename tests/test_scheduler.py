from __future__ import annotations

from pathlib import Path
import threading
import time

import pytest

from heading_geotagger.core.pair_task import PairOutcome, PairStatus, PairTask
from heading_geotagger.core.photo_record import PhotoRecord
from heading_geotagger.core.scheduler import PairScheduler, SchedulerState


def _batch(n: int) -> tuple[PhotoRecord, ...]:
    return tuple(PhotoRecord(name=f"p{i}.jpg", path=Path(f"p{i}.jpg"), timestamp=i) for i in range(n))


def _ok(task: PairTask) -> PairOutcome:
    return PairOutcome(index=task.index, status=PairStatus.COMPLETED, messages=(f"done {task.current.name}",))


@pytest.mark.parametrize("n", [0, 1])
def test_small_batches_run_nothing(n: int) -> None:
    calls: list[int] = []

    def handler(task: PairTask) -> PairOutcome:
        calls.append(task.index)
        return _ok(task)

    state = PairScheduler(handler).run(_batch(n))

    assert calls == []
    assert state.total_pairs == 0
    assert state.finished


def test_every_pair_runs_exactly_once_in_dispatch_order() -> None:
    seen: list[tuple[int, str, str, bool]] = []
    lock = threading.Lock()

    def handler(task: PairTask) -> PairOutcome:
        with lock:
            seen.append((task.index, task.previous.name, task.current.name, task.is_first_pair))
        return _ok(task)

    state = PairScheduler(handler, max_workers=3).run(_batch(8), bearing_adjustment=12.0)

    assert sorted(seen) == [(i, f"p{i - 1}.jpg", f"p{i}.jpg", i == 1) for i in range(1, 8)]
    assert list(state.statuses) == list(range(1, 8))
    assert all(s == PairStatus.COMPLETED for s in state.statuses.values())
    assert state.completed == 7
    assert state.finished
    assert state.in_flight == 0


def test_concurrency_ceiling() -> None:
    active = 0
    peak = 0
    lock = threading.Lock()

    def handler(task: PairTask) -> PairOutcome:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.01)
        with lock:
            active -= 1
        return _ok(task)

    state = PairScheduler(handler, max_workers=2).run(_batch(10))

    assert peak <= 2
    assert state.max_in_flight == 2
    assert state.completed == 9


def test_failures_are_isolated() -> None:
    def handler(task: PairTask) -> PairOutcome:
        if task.index == 3:
            raise OSError("disk on fire")
        if task.index == 5:
            return PairOutcome(index=5, status=PairStatus.SKIPPED, reason="missing GPS data")
        return _ok(task)

    messages: list[str] = []
    outcomes: list[PairOutcome] = []
    state = PairScheduler(handler, max_workers=2).run(
        _batch(7), message_cb=messages.append, outcome_cb=outcomes.append
    )

    assert state.finished
    assert state.completed == 6
    assert state.failed == 1
    assert state.skipped == 1
    assert state.statuses[3] == PairStatus.FAILED
    assert any("p3.jpg" in m and "disk on fire" in m for m in messages)
    assert sorted(o.index for o in outcomes) == [1, 2, 3, 4, 5, 6]


def test_messages_emitted_on_coordinating_thread() -> None:
    threads: set[str] = set()

    def collect(msg: str) -> None:
        threads.add(threading.current_thread().name)

    PairScheduler(_ok, max_workers=4).run(_batch(6), message_cb=collect)

    assert threads == {threading.current_thread().name}


def test_invalid_worker_count() -> None:
    with pytest.raises(ValueError):
        PairScheduler(_ok, max_workers=0)


def test_state_rejects_unknown_outcome() -> None:
    state = SchedulerState(batch_length=3)
    with pytest.raises(RuntimeError):
        state.received(PairOutcome(index=1, status=PairStatus.COMPLETED))


def test_state_starts_with_every_pair_pending() -> None:
    state = SchedulerState(batch_length=4)

    assert state.statuses == {1: PairStatus.PENDING, 2: PairStatus.PENDING, 3: PairStatus.PENDING}
    state.dispatched(1)
    assert state.statuses[1] == PairStatus.RUNNING
    with pytest.raises(RuntimeError):
        state.dispatched(1)
