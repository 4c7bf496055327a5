from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


async def run_refresh_loop(
    refresh: Callable[[], Awaitable[object]],
    interval_s: float,
    *,
    stop_event: asyncio.Event,
    immediate: bool = True,
) -> None:
    """Start a refresh every ``interval_s`` seconds until ``stop_event`` is set.

    Ticks are scheduled against a monotonic deadline and run as their own
    tasks, so a slow refresh neither stretches the period nor blocks the next
    tick. Ticks still running at stop are awaited, not cancelled.
    """
    loop = asyncio.get_running_loop()
    ticks: set[asyncio.Task[None]] = set()

    def _start_tick() -> None:
        task = loop.create_task(_tick(refresh))
        ticks.add(task)
        task.add_done_callback(ticks.discard)

    next_at = loop.time()
    if immediate:
        _start_tick()
    next_at += interval_s
    try:
        while not stop_event.is_set():
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=max(0.0, next_at - loop.time()))
            if stop_event.is_set():
                break
            _start_tick()
            next_at += interval_s
            # Missed deadlines are skipped rather than fired in a burst.
            now = loop.time()
            while next_at <= now:
                next_at += interval_s
    finally:
        if ticks:
            await asyncio.gather(*ticks, return_exceptions=True)


async def _tick(refresh: Callable[[], Awaitable[object]]) -> None:
    try:
        await refresh()
    except Exception:
        logger.exception("refresh tick failed")


class RefreshLoop:
    def __init__(self, refresh: Callable[[], Awaitable[object]], interval_s: float) -> None:
        self.refresh = refresh
        self.interval_s = interval_s
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, *, immediate: bool = True) -> None:
        if self.running:
            return
        self._stop = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(
            run_refresh_loop(
                self.refresh, self.interval_s, stop_event=self._stop, immediate=immediate
            )
        )

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None
