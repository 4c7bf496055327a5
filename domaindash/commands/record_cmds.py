from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich import print
from rich.console import Group
from rich.live import Live
from rich.markup import escape
from rich.text import Text

from domaindash.alerts import AlertKind
from domaindash.config import DashboardConfig
from domaindash.dashboard import Dashboard
from domaindash.sync.synchronizer import SyncOutcome

from .common import print_alerts, records_table, run_with_dashboard, stats_line


def list_cmd(*, cfg: DashboardConfig, filter_text: str | None) -> None:
    async def _action(dashboard: Dashboard) -> SyncOutcome:
        outcome = await dashboard.refresh()
        dashboard.set_filter(filter_text)
        visible = dashboard.visible_records
        print(records_table(dashboard.snapshot, visible))
        print(stats_line(dashboard.snapshot, len(visible)))
        return outcome

    outcome, alerts = run_with_dashboard(cfg, _action)
    print_alerts(alerts)
    if outcome is SyncOutcome.FAILED:
        raise typer.Exit(code=1)


def add_cmd(*, cfg: DashboardConfig, name: str) -> None:
    ok, alerts = run_with_dashboard(cfg, lambda dashboard: dashboard.create(name))
    _finish_mutation(ok, alerts, skipped_hint="name must not be empty")


def rename_cmd(*, cfg: DashboardConfig, old_name: str, new_name: str) -> None:
    ok, alerts = run_with_dashboard(cfg, lambda dashboard: dashboard.update(old_name, new_name))
    _finish_mutation(ok, alerts, skipped_hint="new name must not be empty")


def remove_cmd(*, cfg: DashboardConfig, name: str, yes: bool) -> None:
    def _confirm(target: str) -> bool:
        return yes or typer.confirm(f"Remove {target}?", default=False)

    ok, alerts = run_with_dashboard(
        cfg, lambda dashboard: dashboard.remove(name), confirm=_confirm
    )
    _finish_mutation(ok, alerts, skipped_hint="not removed")


def _finish_mutation(ok: bool, alerts: list, *, skipped_hint: str) -> None:
    print_alerts(alerts)
    if ok:
        return
    if not any(alert.kind is AlertKind.FAILURE for alert in alerts):
        print(f"[yellow]{skipped_hint}[/yellow]")
    raise typer.Exit(code=1)


def export_cmd(*, cfg: DashboardConfig, output: str | None) -> None:
    text, alerts = run_with_dashboard(cfg, lambda dashboard: dashboard.export())
    if text is None:
        print_alerts(alerts)
        raise typer.Exit(code=1)
    if output is None:
        print(escape(text))
        return
    path = Path(output).expanduser()
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        print(f"[red]Failed to write {path}: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    print(f"[green]Wrote {path}[/green]")


def watch_cmd(
    *,
    cfg: DashboardConfig,
    filter_text: str | None,
    iterations: int | None,
) -> None:
    async def _watch() -> None:
        async with Dashboard(cfg) as dashboard:
            dashboard.set_filter(filter_text)
            with Live(_render(dashboard), refresh_per_second=4) as live:
                count = 0
                while iterations is None or count < iterations:
                    await asyncio.sleep(0.25)
                    live.update(_render(dashboard))
                    count += 1

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        return


def _render(dashboard: Dashboard) -> Group:
    visible = dashboard.visible_records
    parts: list = [
        records_table(dashboard.snapshot, visible, busy=dashboard.busy),
        Text(stats_line(dashboard.snapshot, len(visible)), style="dim"),
    ]
    for alert in dashboard.alerts:
        style = "green" if alert.kind is AlertKind.SUCCESS else "red"
        parts.append(Text(alert.text, style=style))
    return Group(*parts)
