from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

from .alerts import AlertKind, NotificationQueue
from .errors import ServerFailure, TransportFailure
from .sync.synchronizer import LIST_PATH, RecordSynchronizer
from .sync.transport import Transport

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]


def _record_path(name: str) -> str:
    return f"{LIST_PATH}/{quote(name, safe='')}"


def _is_name(value: str | None) -> bool:
    return bool(value and value.strip())


def _always_confirm(_name: str) -> bool:
    return True


class RecordMutations:
    def __init__(
        self,
        transport: Transport,
        synchronizer: RecordSynchronizer,
        alerts: NotificationQueue,
        *,
        confirm: ConfirmFn | None = None,
    ) -> None:
        self.transport = transport
        self.synchronizer = synchronizer
        self.alerts = alerts
        self.confirm = confirm or _always_confirm

    async def create(self, name: str) -> bool:
        name = (name or "").strip()
        if not name:
            return False
        return await self._submit("POST", LIST_PATH, {"domain": name}, f"created {name}")

    async def update(self, old_name: str, new_name: str | None) -> bool:
        new_name = (new_name or "").strip()
        if not _is_name(old_name) or not new_name:
            return False
        return await self._submit(
            "PUT", _record_path(old_name), {"domain": new_name}, f"renamed {old_name} -> {new_name}"
        )

    async def remove(self, name: str) -> bool:
        if not _is_name(name) or not self.confirm(name):
            return False
        return await self._submit("DELETE", _record_path(name), None, f"removed {name}")

    async def _submit(
        self, method: str, path: str, body: dict[str, Any] | None, success_message: str
    ) -> bool:
        try:
            response = await self.transport.request(method, path, body=body)
            if not response.ok:
                raise ServerFailure(response.status, response.text)
        except (TransportFailure, ServerFailure) as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            self.alerts.push(AlertKind.FAILURE, str(exc))
            return False
        self.alerts.push(AlertKind.SUCCESS, success_message)
        await self.synchronizer.refresh()
        return True
