from __future__ import annotations

import datetime as dt
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar

from .errors import ShapeMismatch


def _parse_expiry(value: Any) -> dt.datetime | None:
    raw = str(value or "").strip()
    if not raw:
        return None
    normalized = raw.replace("Z", "+00:00")
    try:
        ts = dt.datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=dt.UTC)
    return ts


@dataclass(frozen=True)
class Record:
    name: str
    values: tuple[str, ...] | None = None
    expires_at: dt.datetime | None = None

    @property
    def value_count(self) -> int:
        return len(self.values) if self.values else 0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Record:
        name = payload.get("domain")
        if not isinstance(name, str):
            raise ShapeMismatch(f"record without domain: {payload!r}")
        raw_values = payload.get("record")
        values = None
        if isinstance(raw_values, list):
            values = tuple(str(value) for value in raw_values)
        return cls(name=name, values=values, expires_at=_parse_expiry(payload.get("expire")))


def parse_record_list(payload: Any) -> list[Record] | None:
    """Return the records of a ``GET /api`` body, or None when it has no list."""
    if not isinstance(payload, dict):
        return None
    items = payload.get("list")
    if not isinstance(items, list):
        return None
    records: list[Record] = []
    for item in items:
        if not isinstance(item, dict):
            raise ShapeMismatch(f"unexpected list item: {type(item).__name__}")
        records.append(Record.from_payload(item))
    return records


def sort_records(records: Iterable[Record]) -> list[Record]:
    # Most values first, then by name.
    return sorted(records, key=lambda record: (-record.value_count, record.name))


@dataclass(frozen=True)
class Snapshot:
    records: tuple[Record, ...] = ()
    total_value_count: int = 0
    unique_value_count: int = 0
    domain_count: int = 0
    value_occurrence: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    EMPTY: ClassVar[Snapshot]

    @property
    def record_count(self) -> int:
        return len(self.records)

    def unique_values_in(self, record: Record) -> int:
        if not record.values:
            return 0
        return sum(1 for value in record.values if self.value_occurrence.get(value, 0) <= 1)


Snapshot.EMPTY = Snapshot()


def build_snapshot(records: Iterable[Record]) -> Snapshot:
    ordered = sort_records(records)
    total = 0
    occurrence: Counter[str] = Counter()
    names: set[str] = set()
    for record in ordered:
        names.add(record.name)
        if not record.values:
            continue
        total += len(record.values)
        occurrence.update(record.values)
    return Snapshot(
        records=tuple(ordered),
        total_value_count=total,
        unique_value_count=len(occurrence),
        domain_count=len(names),
        value_occurrence=MappingProxyType(dict(occurrence)),
    )


def filter_records(records: Sequence[Record], predicate: str) -> list[Record]:
    if not predicate:
        return list(records)
    return [record for record in records if predicate in record.name]


def export_names(records: Iterable[Record]) -> str:
    seen: dict[str, None] = {}
    for record in records:
        seen.setdefault(record.name, None)
    return ",".join(seen)
