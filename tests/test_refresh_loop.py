from __future__ import annotations

import asyncio

from domaindash.sync.daemon import RefreshLoop


def test_slow_refresh_does_not_stretch_period() -> None:
    async def _run() -> list[float]:
        loop = asyncio.get_running_loop()
        starts: list[float] = []

        async def _slow_refresh() -> None:
            starts.append(loop.time())
            await asyncio.sleep(0.3)

        refresher = RefreshLoop(_slow_refresh, 0.2)
        refresher.start()
        await asyncio.sleep(1.05)
        await refresher.stop()
        return starts

    starts = asyncio.run(_run())

    assert len(starts) >= 5
    gaps = [later - earlier for earlier, later in zip(starts, starts[1:])]
    assert all(0.1 < gap < 0.3 for gap in gaps), gaps


def test_stop_waits_for_running_tick() -> None:
    async def _run() -> list[str]:
        events: list[str] = []

        async def _refresh() -> None:
            events.append("start")
            await asyncio.sleep(0.05)
            events.append("end")

        refresher = RefreshLoop(_refresh, 10)
        refresher.start()
        await asyncio.sleep(0.01)
        await refresher.stop()
        assert refresher.running is False
        return events

    assert asyncio.run(_run()) == ["start", "end"]


def test_failing_tick_keeps_loop_running() -> None:
    async def _run() -> int:
        calls = 0

        async def _broken() -> None:
            nonlocal calls
            calls += 1
            raise RuntimeError("boom")

        refresher = RefreshLoop(_broken, 0.02)
        refresher.start()
        await asyncio.sleep(0.1)
        await refresher.stop()
        return calls

    assert asyncio.run(_run()) >= 3
