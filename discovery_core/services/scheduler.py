"""Sequential, paced execution of async steps.

A single worker loop runs steps strictly one after another. Each step declares
how long to wait before it starts, so pacing against a rate-limited provider
lives in the step list instead of scattered sleep calls. Steps may enqueue a
follow-up that runs next (e.g. the next result page).
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class PacedStep:
    name: str
    run: Callable[[], Awaitable[Any]]
    delay_before: float = 0.0


class SequentialScheduler:
    """Runs queued steps in order with their declared delays.

    The delay of the very first step is never applied. If a step raises, the
    remaining steps are dropped and the error propagates from ``run``.
    """

    def __init__(self, sleep: Sleep = asyncio.sleep) -> None:
        self._sleep = sleep
        self._queue: deque[PacedStep] = deque()
        self._started = False
        self.steps_run = 0
        self.slept_seconds = 0.0

    def __len__(self) -> int:
        return len(self._queue)

    def add(self, step: PacedStep) -> None:
        self._queue.append(step)

    def enqueue_next(self, step: PacedStep) -> None:
        """Schedule ``step`` to run right after the current one."""
        self._queue.appendleft(step)

    async def pause(self, seconds: float) -> None:
        """Pause inside a step (e.g. between per-item provider calls)."""
        if seconds <= 0:
            return
        self.slept_seconds += seconds
        await self._sleep(seconds)

    async def run(self) -> int:
        """Drain the queue.

        Returns:
            Number of steps executed.
        """
        try:
            while self._queue:
                step = self._queue.popleft()
                if self._started:
                    await self.pause(step.delay_before)
                self._started = True
                logger.debug("scheduler.step_started", extra={"step": step.name})
                await step.run()
                self.steps_run += 1
        finally:
            self._queue.clear()
        return self.steps_run
