from __future__ import annotations

import json
import logging
from enum import Enum

from ..alerts import AlertKind, NotificationQueue
from ..errors import ServerFailure, ShapeMismatch, TransportFailure
from ..records import Record, Snapshot, build_snapshot, parse_record_list
from .transport import Transport

logger = logging.getLogger(__name__)

LIST_PATH = "/api"


class SyncState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SyncOutcome(str, Enum):
    PUBLISHED = "published"
    SKIPPED = "skipped"
    FAILED = "failed"
    STALE = "stale"


class RecordSynchronizer:
    """Fetches the full record list and publishes derived snapshots.

    Overlapping cycles are not serialized. With ``drop_stale`` set, a cycle
    that finishes after a later-started cycle has already published is
    discarded instead of overwriting the newer snapshot.
    """

    def __init__(
        self,
        transport: Transport,
        alerts: NotificationQueue,
        *,
        drop_stale: bool = True,
    ) -> None:
        self.transport = transport
        self.alerts = alerts
        self.drop_stale = drop_stale
        self._snapshot = Snapshot.EMPTY
        self._last_state = SyncState.IDLE
        self._in_flight = 0
        self._issued = 0
        self._published_seq = 0

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def state(self) -> SyncState:
        if self._in_flight:
            return SyncState.FETCHING
        return self._last_state

    async def fetch_records(self) -> list[Record] | None:
        response = await self.transport.request("GET", LIST_PATH)
        if not response.ok:
            raise ServerFailure(response.status, response.text)
        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise ShapeMismatch("list response is not json") from exc
        return parse_record_list(payload)

    async def refresh(self) -> SyncOutcome:
        self._issued += 1
        seq = self._issued
        self._in_flight += 1
        try:
            records = await self.fetch_records()
        except (TransportFailure, ServerFailure) as exc:
            logger.warning("sync cycle %s failed: %s", seq, exc)
            self._last_state = SyncState.FAILED
            self.alerts.push(AlertKind.FAILURE, str(exc))
            return SyncOutcome.FAILED
        except ShapeMismatch as exc:
            logger.debug("sync cycle %s ignored response: %s", seq, exc)
            self._last_state = SyncState.SUCCEEDED
            return SyncOutcome.SKIPPED
        finally:
            self._in_flight -= 1
        if records is None:
            self._last_state = SyncState.SUCCEEDED
            return SyncOutcome.SKIPPED
        if self.drop_stale and seq < self._published_seq:
            logger.debug("dropping stale sync cycle %s (published %s)", seq, self._published_seq)
            return SyncOutcome.STALE
        snapshot = build_snapshot(records)
        self._snapshot = snapshot
        self._published_seq = seq
        self._last_state = SyncState.SUCCEEDED
        return SyncOutcome.PUBLISHED
