from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest

from domaindash.sync.transport import Response

Scripted = Response | BaseException | Callable[[], Awaitable[Response]]


def list_response(items: list[dict[str, Any]]) -> Response:
    return Response(status=200, text=json.dumps({"list": items}))


class FakeTransport:
    """Replays scripted results per (method, path); the last one repeats."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []
        self._scripts: dict[tuple[str, str], list[Scripted]] = {}

    def add(self, method: str, path: str, *results: Scripted) -> FakeTransport:
        self._scripts.setdefault((method, path), []).extend(results)
        return self

    def count(self, method: str, path: str) -> int:
        return sum(1 for call in self.calls if call[:2] == (method, path))

    async def request(
        self, method: str, path: str, *, body: dict[str, Any] | None = None
    ) -> Response:
        self.calls.append((method, path, body))
        script = self._scripts.get((method, path))
        if not script:
            raise AssertionError(f"unexpected request {method} {path}")
        result = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(result, BaseException):
            raise result
        if isinstance(result, Response):
            return result
        return await result()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DOMAINDASH_CONFIG", str(tmp_path / "config.json"))
    for env_var in (
        "DOMAINDASH_BASE_URL",
        "DOMAINDASH_REFRESH_INTERVAL_S",
        "DOMAINDASH_ALERT_TTL_S",
        "DOMAINDASH_TIMEOUT_S",
        "DOMAINDASH_DROP_STALE",
    ):
        monkeypatch.delenv(env_var, raising=False)
