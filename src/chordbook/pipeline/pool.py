"""Bounded, lazily-fed worker pool.

Work is submitted only while fewer than ``max_workers`` items are in
flight, so a stop request takes effect before the rest of the queue is
scheduled. Items already running are always allowed to finish.
"""

from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")

# Called as on_done(index, result, error); returning False stops scheduling
DoneCallback = Callable[[int, R | None, BaseException | None], bool]


def run_bounded(
    items: Sequence[T],
    work: Callable[[T], R],
    max_workers: int,
    on_done: DoneCallback,
) -> set[int]:
    """Run ``work`` over ``items``; returns the indices that were scheduled.

    ``on_done`` is invoked on the calling thread, in index order within each
    batch of completions.
    """
    scheduled: set[int] = set()
    if not items:
        return scheduled

    workers = max(1, min(max_workers, len(items)))
    queue = iter(range(len(items)))
    pending: dict[Future[R], int] = {}
    stopped = False

    with ThreadPoolExecutor(max_workers=workers) as pool:
        while True:
            while not stopped and len(pending) < workers:
                index = next(queue, None)
                if index is None:
                    break
                pending[pool.submit(work, items[index])] = index
                scheduled.add(index)

            if not pending:
                break

            done, _ = wait(pending, return_when=FIRST_COMPLETED)
            for future in sorted(done, key=lambda f: pending[f]):
                index = pending.pop(future)
                error = future.exception()
                result = future.result() if error is None else None
                if not on_done(index, result, error):
                    stopped = True

    return scheduled
