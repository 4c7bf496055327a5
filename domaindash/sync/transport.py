from __future__ import annotations

import asyncio
import http.client
import json
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any, Protocol

from ..errors import TransportFailure
from . import http_client

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    status: int
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.text)


class Transport(Protocol):
    async def request(
        self, method: str, path: str, *, body: dict[str, Any] | None = None
    ) -> Response: ...


class TransportListener(Protocol):
    def on_start(self) -> None: ...

    def on_end(self) -> None: ...


class HttpTransport:
    def __init__(self, base_url: str, *, timeout_s: float = 3.0) -> None:
        self.base_url = http_client.build_base_url(base_url)
        self.timeout_s = timeout_s

    async def request(
        self, method: str, path: str, *, body: dict[str, Any] | None = None
    ) -> Response:
        url = http_client.join_url(self.base_url, path)
        try:
            status, text = await asyncio.to_thread(
                http_client.request, method, url, body=body, timeout_s=self.timeout_s
            )
        except (OSError, http.client.HTTPException, ValueError) as exc:
            raise TransportFailure(f"{method} {url}: {exc}") from exc
        return Response(status=status, text=text)


class InstrumentedTransport:
    """Wraps a transport and broadcasts start/end for every call.

    Each call emits exactly one ``on_start`` before the inner request begins
    and exactly one ``on_end`` once it settles, whatever the outcome. Calls
    spawned with :meth:`spawn` balance the same way even though nobody awaits
    their result.
    """

    def __init__(self, inner: Transport) -> None:
        self.inner = inner
        self._listeners: list[TransportListener] = []
        self._background: set[asyncio.Task[Any]] = set()

    def subscribe(self, listener: TransportListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def request(
        self, method: str, path: str, *, body: dict[str, Any] | None = None
    ) -> Response:
        self._emit("on_start")
        try:
            return await self.inner.request(method, path, body=body)
        finally:
            self._emit("on_end")

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    @property
    def pending_tasks(self) -> int:
        return len(self._background)

    def _emit(self, hook: str) -> None:
        for listener in list(self._listeners):
            try:
                getattr(listener, hook)()
            except Exception:
                logger.exception("transport listener %s failed", hook)
