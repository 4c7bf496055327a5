from __future__ import annotations

import asyncio

import pytest
from conftest import FakeTransport

from domaindash.errors import TransportFailure
from domaindash.sync import http_client, transport as transport_mod
from domaindash.sync.transport import HttpTransport, InstrumentedTransport, Response


class _Recorder:
    def __init__(self) -> None:
        self.events: list[str] = []

    def on_start(self) -> None:
        self.events.append("start")

    def on_end(self) -> None:
        self.events.append("end")


def test_instrumented_emits_start_and_end_on_success(transport: FakeTransport) -> None:
    transport.add("GET", "/api", Response(200, "{}"))
    wrapped = InstrumentedTransport(transport)
    recorder = _Recorder()
    wrapped.subscribe(recorder)

    response = asyncio.run(wrapped.request("GET", "/api"))

    assert response.ok
    assert recorder.events == ["start", "end"]


def test_instrumented_emits_single_end_on_failure(transport: FakeTransport) -> None:
    transport.add("GET", "/api", TransportFailure("refused"))
    wrapped = InstrumentedTransport(transport)
    recorder = _Recorder()
    wrapped.subscribe(recorder)

    with pytest.raises(TransportFailure):
        asyncio.run(wrapped.request("GET", "/api"))

    assert recorder.events == ["start", "end"]


def test_spawned_calls_balance_without_being_awaited(transport: FakeTransport) -> None:
    transport.add("DELETE", "/api/a.com", Response(500, "nope"))
    wrapped = InstrumentedTransport(transport)
    recorder = _Recorder()
    wrapped.subscribe(recorder)

    async def _run() -> None:
        wrapped.spawn(wrapped.request("DELETE", "/api/a.com"))
        wrapped.spawn(wrapped.request("DELETE", "/api/a.com"))
        assert wrapped.pending_tasks == 2
        for _ in range(3):
            await asyncio.sleep(0)

    asyncio.run(_run())

    assert recorder.events.count("start") == 2
    assert recorder.events.count("end") == 2
    assert wrapped.pending_tasks == 0


def test_failing_listener_does_not_break_call_or_others(transport: FakeTransport) -> None:
    transport.add("GET", "/api", Response(200, "{}"))
    wrapped = InstrumentedTransport(transport)

    class _Broken:
        def on_start(self) -> None:
            raise RuntimeError("listener bug")

        def on_end(self) -> None:
            raise RuntimeError("listener bug")

    recorder = _Recorder()
    wrapped.subscribe(_Broken())
    wrapped.subscribe(recorder)

    response = asyncio.run(wrapped.request("GET", "/api"))

    assert response.status == 200
    assert recorder.events == ["start", "end"]


def test_unsubscribe_stops_delivery(transport: FakeTransport) -> None:
    transport.add("GET", "/api", Response(200, "{}"))
    wrapped = InstrumentedTransport(transport)
    recorder = _Recorder()
    unsubscribe = wrapped.subscribe(recorder)
    unsubscribe()
    unsubscribe()

    asyncio.run(wrapped.request("GET", "/api"))

    assert recorder.events == []


def test_http_transport_wraps_network_errors(monkeypatch) -> None:
    def _refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(http_client, "request", _refuse)
    client = HttpTransport("127.0.0.1:9")

    with pytest.raises(TransportFailure, match="connection refused"):
        asyncio.run(client.request("GET", "/api"))


def test_http_transport_returns_status_and_text(monkeypatch) -> None:
    seen: list[tuple] = []

    def _fake(method, url, *, body=None, timeout_s=3.0):
        seen.append((method, url, body, timeout_s))
        return 503, "maintenance"

    monkeypatch.setattr(transport_mod.http_client, "request", _fake)
    client = HttpTransport("dash.local:8080/", timeout_s=1.5)

    response = asyncio.run(client.request("PUT", "/api/a.com", body={"domain": "b.com"}))

    assert response == Response(503, "maintenance")
    assert not response.ok
    assert seen == [("PUT", "http://dash.local:8080/api/a.com", {"domain": "b.com"}, 1.5)]
