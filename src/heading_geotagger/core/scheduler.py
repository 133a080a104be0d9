from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Sequence

from heading_geotagger.core.pair_task import PairOutcome, PairStatus, PairTask
from heading_geotagger.core.photo_record import PhotoRecord

DEFAULT_MAX_WORKERS = 4

PairHandler = Callable[[PairTask], PairOutcome]
MessageCb = Callable[[str], None]
OutcomeCb = Callable[[PairOutcome], None]

@dataclass
class SchedulerState:
    """Bookkeeping for one batch, owned and mutated by the coordinating thread only."""
    batch_length: int
    next_index: int = 1
    in_flight: int = 0
    max_in_flight: int = 0
    completed: int = 0
    skipped: int = 0
    failed: int = 0
    statuses: dict[int, PairStatus] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for i in range(1, self.batch_length):
            self.statuses.setdefault(i, PairStatus.PENDING)

    @property
    def total_pairs(self) -> int:
        return max(0, self.batch_length - 1)

    @property
    def exhausted(self) -> bool:
        return self.next_index >= self.batch_length

    @property
    def finished(self) -> bool:
        return self.completed == self.total_pairs

    def dispatched(self, index: int) -> None:
        if self.statuses.get(index) is not PairStatus.PENDING:
            raise RuntimeError(f"Pair {index} is not pending.")
        self.statuses[index] = PairStatus.RUNNING
        self.next_index = index + 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)

    def received(self, outcome: PairOutcome) -> None:
        if self.statuses.get(outcome.index) is not PairStatus.RUNNING:
            raise RuntimeError(f"Outcome for pair {outcome.index} which is not running.")
        self.statuses[outcome.index] = outcome.status
        self.in_flight -= 1
        self.completed += 1
        if outcome.status == PairStatus.SKIPPED:
            self.skipped += 1
        elif outcome.status == PairStatus.FAILED:
            self.failed += 1

class PairScheduler:
    """Run a handler over every consecutive pair of a batch with bounded concurrency.

    Pairs are dispatched in ascending index order starting at 1. At most
    ``max_workers`` pairs are in flight; each completion immediately admits the
    next undispatched pair. Pairs are data-independent, so the ceiling only
    limits I/O fan-out. A handler that raises is recorded as a FAILED pair and
    never stops its siblings.

    Handlers must only touch files belonging to their own pair index (plus
    index 0 for the first pair); the scheduler relies on that partitioning
    instead of locks.
    """

    def __init__(self, handler: PairHandler, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.handler = handler
        self.max_workers = max_workers

    def run(
        self,
        batch: Sequence[PhotoRecord],
        bearing_adjustment: float = 0.0,
        message_cb: MessageCb | None = None,
        outcome_cb: OutcomeCb | None = None,
    ) -> SchedulerState:
        state = SchedulerState(batch_length=len(batch))
        if state.total_pairs == 0:
            return state

        emit = message_cb or (lambda _msg: None)
        pending: dict[Future[PairOutcome], int] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="pair") as pool:

            def admit() -> None:
                while len(pending) < self.max_workers and not state.exhausted:
                    i = state.next_index
                    task = PairTask(
                        index=i,
                        previous=batch[i - 1],
                        current=batch[i],
                        bearing_adjustment=bearing_adjustment,
                    )
                    state.dispatched(i)
                    pending[pool.submit(self.handler, task)] = i

            admit()
            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for fut in sorted(done, key=lambda f: pending[f]):
                    index = pending.pop(fut)
                    outcome = _outcome_of(fut, index, batch[index].name)
                    state.received(outcome)
                    for msg in outcome.messages:
                        emit(msg)
                    if outcome_cb:
                        outcome_cb(outcome)
                admit()

        return state

def _outcome_of(fut: Future[PairOutcome], index: int, name: str) -> PairOutcome:
    try:
        outcome = fut.result()
    except Exception as e:
        return PairOutcome(
            index=index,
            status=PairStatus.FAILED,
            reason=str(e),
            messages=(f"Worker error on {name}: {e}",),
        )
    if outcome.index != index:
        raise RuntimeError(f"Handler returned outcome for pair {outcome.index}, expected {index}.")
    return outcome
