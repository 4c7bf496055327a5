from __future__ import annotations

import logging

import typer
from rich import print

from . import __version__
from .commands.common import config_or_exit
from .commands.record_cmds import (
    add_cmd,
    export_cmd,
    list_cmd,
    remove_cmd,
    rename_cmd,
    watch_cmd,
)
from .config import DashboardConfig

app = typer.Typer(help="domaindash: live view and editing of resolver domains")

_state: dict[str, str | None] = {"base_url": None, "config": None}


@app.callback()
def main(
    base_url: str = typer.Option(None, "--base-url", help="API base URL"),
    config: str = typer.Option(None, "--config", help="Path to config.json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Talk to a domain resolver's management API."""

    _state["base_url"] = base_url
    _state["config"] = config
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )


def _cfg() -> DashboardConfig:
    return config_or_exit(_state["base_url"], _state["config"])


@app.command("version")
def version() -> None:
    """Print the installed version."""

    print(__version__)


@app.command("list")
def list_records(
    filter_text: str = typer.Option(None, "--filter", "-f", help="Substring of the domain"),
) -> None:
    """Fetch and show all domains with their statistics."""

    list_cmd(cfg=_cfg(), filter_text=filter_text)


@app.command("add")
def add(name: str = typer.Argument(..., help="Domain to add")) -> None:
    """Add a domain."""

    add_cmd(cfg=_cfg(), name=name)


@app.command("rename")
def rename(
    old_name: str = typer.Argument(..., help="Existing domain"),
    new_name: str = typer.Argument(..., help="Replacement domain"),
) -> None:
    """Rename a domain."""

    rename_cmd(cfg=_cfg(), old_name=old_name, new_name=new_name)


@app.command("remove")
def remove(
    name: str = typer.Argument(..., help="Domain to remove"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Remove a domain."""

    remove_cmd(cfg=_cfg(), name=name, yes=yes)


@app.command("export")
def export(
    output: str = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
) -> None:
    """Export all domain names as a comma-separated list."""

    export_cmd(cfg=_cfg(), output=output)


@app.command("watch")
def watch(
    filter_text: str = typer.Option(None, "--filter", "-f", help="Substring of the domain"),
    interval: float = typer.Option(None, "--interval", help="Refresh period in seconds"),
    iterations: int = typer.Option(None, "--iterations", help="Stop after N redraws"),
) -> None:
    """Keep a live table refreshed on a fixed period."""

    cfg = _cfg()
    if interval is not None and interval > 0:
        cfg.refresh_interval_s = interval
    watch_cmd(cfg=cfg, filter_text=filter_text, iterations=iterations)


if __name__ == "__main__":
    app()
