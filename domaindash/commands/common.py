from __future__ import annotations

import asyncio
import datetime as dt
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer
from rich import print
from rich.markup import escape
from rich.table import Table

from domaindash.alerts import Alert, AlertKind
from domaindash.config import DashboardConfig, load_config
from domaindash.dashboard import Dashboard
from domaindash.mutations import ConfirmFn
from domaindash.records import Record, Snapshot

T = TypeVar("T")


def config_or_exit(base_url: str | None, config_path: str | None = None) -> DashboardConfig:
    try:
        cfg = load_config(Path(config_path) if config_path else None)
    except OSError as exc:
        print(f"[red]Failed to read config: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    if base_url:
        cfg.base_url = base_url
    return cfg


def run_with_dashboard(
    cfg: DashboardConfig,
    action: Callable[[Dashboard], Awaitable[T]],
    *,
    confirm: ConfirmFn | None = None,
) -> tuple[T, list[Alert]]:
    async def _run() -> tuple[T, list[Alert]]:
        dashboard = Dashboard(cfg, confirm=confirm)
        try:
            result = await action(dashboard)
            return result, dashboard.alerts
        finally:
            await dashboard.close()

    return asyncio.run(_run())


def format_expiry(value: dt.datetime | None) -> str:
    if value is None:
        return "-"
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def stats_line(snapshot: Snapshot, shown: int) -> str:
    return (
        f"unique values {snapshot.unique_value_count} / {snapshot.total_value_count}"
        f" | domains {snapshot.domain_count} / {snapshot.record_count}"
        f" | shown {shown}"
    )


def records_table(snapshot: Snapshot, records: list[Record], *, busy: bool = False) -> Table:
    title = "Domains" + (" [dim](syncing)[/dim]" if busy else "")
    table = Table(title=title)
    table.add_column("Domain", overflow="ellipsis")
    table.add_column("Expires", justify="center")
    table.add_column("Values (u / a)", justify="center")
    for record in records:
        table.add_row(
            escape(record.name),
            format_expiry(record.expires_at),
            f"{snapshot.unique_values_in(record)} / {record.value_count}",
        )
    return table


def print_alerts(alerts: list[Alert]) -> None:
    for alert in alerts:
        color = "green" if alert.kind is AlertKind.SUCCESS else "red"
        print(f"[{color}]{escape(alert.text)}[/{color}]")
