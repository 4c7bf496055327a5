from __future__ import annotations

import asyncio
import datetime as dt
import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_ALERT_TTL_S = 5.0

AlertMessage = str | dict[str, Any]


class AlertKind(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def format_message(message: AlertMessage) -> str:
    """Render an alert message for display.

    Strings that decode to a JSON object are shown as ``[code] message``;
    anything else is shown verbatim.
    """
    if isinstance(message, dict):
        parsed: Any = message
    else:
        try:
            parsed = json.loads(message)
        except (json.JSONDecodeError, TypeError):
            return str(message)
    if not isinstance(parsed, dict):
        return str(message)
    code = parsed.get("code")
    if code is None:
        code = "Unknown"
    text = parsed.get("message")
    if text is None:
        text = json.dumps(parsed, ensure_ascii=False)
    return f"[{code}] {text}"


@dataclass(frozen=True)
class Alert:
    id: int
    kind: AlertKind
    message: AlertMessage
    created_at: dt.datetime = field(default_factory=lambda: dt.datetime.now(dt.UTC))

    @property
    def text(self) -> str:
        return format_message(self.message)


class NotificationQueue:
    def __init__(
        self,
        *,
        ttl_s: float = DEFAULT_ALERT_TTL_S,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.ttl_s = ttl_s
        self._loop = loop
        self._alerts: dict[int, Alert] = {}
        self._timers: dict[int, asyncio.TimerHandle] = {}
        self._last_id = 0
        self._closed = False

    def __len__(self) -> int:
        return len(self._alerts)

    def _next_id(self) -> int:
        # Wall-clock nanoseconds, bumped so ids stay strictly increasing.
        self._last_id = max(time.time_ns(), self._last_id + 1)
        return self._last_id

    def push(self, kind: AlertKind | str, message: AlertMessage) -> int:
        alert_id = self._next_id()
        if self._closed:
            logger.debug("dropping alert %s on closed queue", alert_id)
            return alert_id
        alert = Alert(id=alert_id, kind=AlertKind(kind), message=message)
        loop = self._loop or asyncio.get_running_loop()
        self._alerts[alert_id] = alert
        self._timers[alert_id] = loop.call_later(self.ttl_s, self.dismiss, alert_id)
        if alert.kind is AlertKind.FAILURE:
            logger.info("alert %s: %s", alert.kind.value, alert.text)
        return alert_id

    def dismiss(self, alert_id: int) -> None:
        self._alerts.pop(alert_id, None)
        timer = self._timers.pop(alert_id, None)
        if timer is not None:
            timer.cancel()

    def render(self) -> list[Alert]:
        return list(self._alerts.values())

    def close(self) -> None:
        self._closed = True
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._alerts.clear()
