"""Cancellable polls and one-shot timers tied to an invalidation token."""

import asyncio
from collections.abc import Awaitable, Callable

from spotify_explorer.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


class InvalidationToken:
    """Shared flag that stops every poll and timer created under it."""

    def __init__(self):
        self._invalidated = False

    @property
    def invalidated(self) -> bool:
        return self._invalidated

    def invalidate(self) -> None:
        self._invalidated = True


class TaskGroup:
    """Tracks background tasks so they can be awaited or cancelled together."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable[None], name: str | None = None) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def schedule(
        self,
        delay: float,
        action: Callable[[], Awaitable[None]],
        token: InvalidationToken,
        name: str | None = None,
    ) -> asyncio.Task:
        """Run ``action`` once after ``delay`` seconds unless ``token`` is invalidated first."""

        async def _fire() -> None:
            await asyncio.sleep(delay)
            if token.invalidated:
                return
            await action()

        return self.spawn(_fire(), name=name)

    @property
    def pending(self) -> list[asyncio.Task]:
        return [t for t in self._tasks if not t.done()]

    async def join(self) -> None:
        """Wait until no task is pending, including tasks spawned while waiting."""
        current = asyncio.current_task()
        while True:
            waiting = [t for t in self.pending if t is not current]
            if not waiting:
                return
            await asyncio.gather(*waiting, return_exceptions=True)

    def cancel_all(self) -> None:
        """Cancel pending tasks, leaving the calling task alone."""
        current = asyncio.current_task()
        for task in self.pending:
            if task is not current:
                task.cancel()


class PollingTask:
    """Re-check ``condition`` every ``interval`` seconds, then run ``on_ready`` once.

    Stops when the condition holds, when ``max_attempts`` is exhausted, or
    when ``token`` is invalidated. The token is checked at every tick.
    """

    def __init__(
        self,
        condition: Callable[[], bool],
        on_ready: Callable[[], Awaitable[None]],
        token: InvalidationToken,
        interval: float = 0.5,
        max_attempts: int = 120,
        name: str = "poll",
    ):
        self._condition = condition
        self._on_ready = on_ready
        self._token = token
        self._interval = interval
        self._max_attempts = max_attempts
        self.name = name
        self.attempts = 0
        self._stopped = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, group: TaskGroup) -> asyncio.Task:
        if self.running:
            return self._task
        self._task = group.spawn(self._run(), name=self.name)
        return self._task

    def stop(self) -> None:
        self._stopped = True
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()

    async def _run(self) -> None:
        while self.attempts < self._max_attempts:
            if self._stopped or self._token.invalidated:
                return
            self.attempts += 1
            if self._condition():
                log_with_context(
                    logger,
                    "debug",
                    "Poll condition met",
                    poll=self.name,
                    attempts=self.attempts,
                    event_type="poll_ready",
                )
                await self._on_ready()
                return
            await asyncio.sleep(self._interval)
        log_with_context(
            logger,
            "warning",
            "Poll gave up",
            poll=self.name,
            attempts=self.attempts,
            event_type="poll_exhausted",
        )
