from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from types import TracebackType

from .alerts import Alert, AlertKind, NotificationQueue
from .busy import InFlightCounter
from .config import DashboardConfig
from .errors import ServerFailure, ShapeMismatch, TransportFailure
from .mutations import ConfirmFn, RecordMutations
from .records import Record, Snapshot, export_names, filter_records, sort_records
from .sync.daemon import RefreshLoop
from .sync.synchronizer import RecordSynchronizer, SyncOutcome
from .sync.transport import HttpTransport, InstrumentedTransport, Transport

logger = logging.getLogger(__name__)


class Dashboard:
    """View-facing state: snapshot, alerts, busy flag, and the operator actions.

    Every network call goes through one :class:`InstrumentedTransport`, so the
    busy flag counts calls made by the periodic loop, manual refreshes, and
    mutations alike.
    """

    def __init__(
        self,
        config: DashboardConfig | None = None,
        *,
        transport: Transport | None = None,
        confirm: ConfirmFn | None = None,
    ) -> None:
        self.config = config or DashboardConfig()
        inner = transport or HttpTransport(self.config.base_url, timeout_s=self.config.timeout_s)
        self.transport = InstrumentedTransport(inner)
        self.counter = InFlightCounter()
        self.queue = NotificationQueue(ttl_s=self.config.alert_ttl_s)
        self.synchronizer = RecordSynchronizer(
            self.transport, self.queue, drop_stale=self.config.drop_stale
        )
        self.mutations = RecordMutations(
            self.transport, self.synchronizer, self.queue, confirm=confirm
        )
        self._filter = ""
        self._loop = RefreshLoop(self.refresh, self.config.refresh_interval_s)
        self._unsubscribe: list[Callable[[], None]] = [self.counter.attach(self.transport)]

    async def __aenter__(self) -> Dashboard:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def snapshot(self) -> Snapshot:
        return self.synchronizer.snapshot

    @property
    def alerts(self) -> list[Alert]:
        return self.queue.render()

    @property
    def busy(self) -> bool:
        return self.counter.is_busy()

    @property
    def filter_text(self) -> str:
        return self._filter

    @property
    def visible_records(self) -> list[Record]:
        return filter_records(self.snapshot.records, self._filter)

    def set_filter(self, text: str | None) -> list[Record]:
        self._filter = text or ""
        return self.visible_records

    def start(self) -> None:
        self._loop.start(immediate=True)

    async def close(self) -> None:
        await self._loop.stop()
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()
        self.queue.close()

    async def refresh(self) -> SyncOutcome:
        return await self.synchronizer.refresh()

    def request_refresh(self) -> asyncio.Task[SyncOutcome]:
        """Start a refresh without waiting for it, as a refresh button would."""
        return self.transport.spawn(self.refresh())

    async def create(self, name: str) -> bool:
        return await self.mutations.create(name)

    async def update(self, old_name: str, new_name: str | None) -> bool:
        return await self.mutations.update(old_name, new_name)

    async def remove(self, name: str) -> bool:
        return await self.mutations.remove(name)

    async def export(self) -> str | None:
        """Fetch the current list and return its names comma-joined."""
        try:
            records = await self.synchronizer.fetch_records()
        except (TransportFailure, ServerFailure) as exc:
            logger.warning("export failed: %s", exc)
            self.queue.push(AlertKind.FAILURE, str(exc))
            return None
        except ShapeMismatch:
            records = None
        if records is None:
            self.queue.push(AlertKind.FAILURE, "no data")
            return None
        return export_names(sort_records(records))
