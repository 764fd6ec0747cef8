"""Bounded-concurrency fan-out with ordered fan-in."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from .exceptions import UnitCancelled

logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")


@dataclass(frozen=True)
class UnitOutcome(Generic[K, T]):
    key: K
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_bounded(
    keys: Sequence[K],
    func: Callable[[K], Awaitable[T]],
    limit: int,
    *,
    timeout: float | None = None,
    stop: asyncio.Event | None = None,
) -> list[UnitOutcome[K, T]]:
    """Run ``func(key)`` for every key, at most ``limit`` at a time.

    Outcomes come back in the order of ``keys`` regardless of completion
    order. A unit that raises yields an outcome carrying the exception. When
    ``timeout`` expires or ``stop`` is set, unfinished units are cancelled
    (units still queued never start) and reported as ``UnitCancelled``;
    finished units keep their results.
    """
    if not keys:
        return []
    semaphore = asyncio.Semaphore(limit)

    async def _run(key: K) -> T:
        async with semaphore:
            return await func(key)

    tasks = [asyncio.ensure_future(_run(key)) for key in keys]
    pending: set[asyncio.Future] = set(tasks)
    stopper = asyncio.ensure_future(stop.wait()) if stop is not None else None
    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + timeout
    try:
        while pending:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                break
            waiting = pending | {stopper} if stopper is not None else pending
            done, _ = await asyncio.wait(waiting, timeout=remaining, return_when=asyncio.FIRST_COMPLETED)
            pending -= done
            if stopper is not None and stopper in done:
                break
    finally:
        if stopper is not None:
            stopper.cancel()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    if pending:
        logger.warning("Stopped %d of %d units before completion", len(pending), len(tasks))

    outcomes: list[UnitOutcome[K, T]] = []
    for key, task in zip(keys, tasks):
        if task.cancelled():
            outcomes.append(UnitOutcome(key, error=UnitCancelled(f"{key} did not finish")))
        elif task.exception() is not None:
            outcomes.append(UnitOutcome(key, error=task.exception()))
        else:
            outcomes.append(UnitOutcome(key, value=task.result()))
    return outcomes
