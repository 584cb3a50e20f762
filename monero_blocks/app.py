"""Typer CLI entrypoint for monero-blocks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Sequence

import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, GlobalConfig, PoolConfig
from .engine.block import OwnershipShare, TimelineEntry
from .errors import SnapshotWriteError
from .logging_conf import (
    APP_LOG,
    ERROR_LOG,
    available_pool_logs,
    configure_logging,
    log_dir,
    pool_log_path,
    tail_log,
)
from .orchestrator import Orchestrator, RefreshSummary
from .scheduler import APSchedulerAdapter

app = typer.Typer(
    help="Track blocks found by Monero mining pools",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: GlobalConfig
    orchestrator: Orchestrator


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    config = repository.load()
    orchestrator = Orchestrator.from_config(config)
    return AppState(repository=repository, config=config, orchestrator=orchestrator)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
        ctx.call_on_close(state.orchestrator.close)
    return state


def _output_path(state: AppState, output: Optional[Path]) -> Path:
    if output is not None:
        return output
    return state.repository.resolve(state.config.output)


def _parse_listen(value: str) -> tuple[str, int]:
    host, sep, port = value.rpartition(":")
    if not sep or not port.isdigit():
        raise typer.BadParameter("--listen expects host:port")
    return host or "0.0.0.0", int(port)


def _format_timestamp(timestamp: int) -> str:
    if not timestamp:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _format_reward(reward: int) -> str:
    if not reward:
        return "-"
    return f"{reward / 1e12:.6f}"


def _render_summaries_table(summaries: Iterable[RefreshSummary]) -> Table:
    table = Table(title="Refresh summary", box=box.SIMPLE_HEAD)
    table.add_column("Pool", style="cyan", no_wrap=True)
    table.add_column("Pages", justify="right")
    table.add_column("Fetched", justify="right")
    table.add_column("New", justify="right", style="green")
    table.add_column("Updated", justify="right", style="yellow")
    table.add_column("Stopped at", justify="right")
    table.add_column("Reason", style="magenta")
    for summary in summaries:
        table.add_row(
            summary.pool,
            str(summary.pages),
            str(summary.fetched),
            str(summary.inserted),
            str(summary.updated),
            "-" if summary.last_height is None else str(summary.last_height),
            summary.reason if summary.error is None else f"{summary.reason}: {summary.error}",
        )
    return table


def _render_blocks_table(entries: Sequence[TimelineEntry]) -> Table:
    table = Table(title=f"Latest blocks · {len(entries)}", box=box.SIMPLE_HEAD)
    table.add_column("Height", justify="right", style="cyan")
    table.add_column("Pool", style="magenta")
    table.add_column("Found (UTC)")
    table.add_column("Reward (XMR)", justify="right")
    table.add_column("Valid")
    table.add_column("Id", overflow="fold", style="dim")
    for entry in entries:
        block = entry.block
        table.add_row(
            str(block.height),
            entry.pool,
            _format_timestamp(block.timestamp),
            _format_reward(block.reward),
            "yes" if block.valid else "no",
            block.id_hex if block.has_id else "-",
        )
    return table


def _render_ownership_table(shares: Sequence[OwnershipShare]) -> Table:
    table = Table(title="Ownership", box=box.SIMPLE_HEAD)
    table.add_column("Pool", style="cyan", no_wrap=True)
    table.add_column("Blocks", justify="right")
    table.add_column("Share", justify="right", style="green")
    for share in shares:
        table.add_row(share.pool, str(share.count), f"{share.percentage:.2f}%")
    return table


def _render_pools_table(pools: Sequence[PoolConfig]) -> Table:
    table = Table(title=f"Pools · {len(pools)}", box=box.SIMPLE_HEAD)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Kind", style="magenta")
    table.add_column("API", overflow="fold")
    table.add_column("Interval", justify="right")
    table.add_column("Enabled")
    for pool in pools:
        table.add_row(
            pool.name,
            pool.kind.value,
            pool.api_url,
            f"{pool.interval:g}s",
            "yes" if pool.enabled else "no",
        )
    return table


def _load_snapshot_or_warn(state: AppState, path: Path) -> int:
    loaded = state.orchestrator.load_snapshot(path)
    if not path.exists():
        console.print(f"No snapshot at {path}, starting from scratch.", style="yellow")
    return loaded


app.add_typer(log_app, name="log", help="View log files")


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging")
) -> None:
    try:
        ctx.obj = build_state(verbose)
    except ValidationError as exc:
        console.print(f"Invalid configuration:\n{exc}", style="red", markup=False)
        raise typer.Exit(code=2) from exc
    # every command, including the offline ones, releases clients and workers
    ctx.call_on_close(ctx.obj.orchestrator.close)


@app.command("scan", help="Fetch new blocks from every pool and rewrite the snapshot.")
def scan(
    ctx: typer.Context,
    height: Optional[int] = typer.Option(
        None, "--height", min=0, help="Height a first scan of a pool stops at."
    ),
    output: Optional[Path] = typer.Option(None, "--output", help="CSV snapshot file."),
    only_valid: Optional[bool] = typer.Option(
        None, "--only-valid/--all", help="Leave out blocks marked invalid by their pool."
    ),
) -> None:
    state = _get_state(ctx)
    orchestrator = state.orchestrator
    if height is not None:
        orchestrator.floor_height = height
    path = _output_path(state, output)
    hide_invalid = state.config.only_valid if only_valid is None else only_valid
    try:
        _load_snapshot_or_warn(state, path)
        summaries = orchestrator.refresh_all() or {}
        console.print(_render_summaries_table(summaries.values()))
        try:
            written = orchestrator.export_snapshot(path, only_valid=hide_invalid)
        except SnapshotWriteError as exc:
            console.print(f"Cannot write snapshot: {exc}", style="red", markup=False)
            raise typer.Exit(code=1) from exc
        console.print(f"Wrote {written} blocks to {path}", style="green")
    finally:
        orchestrator.close()


@app.command("serve", help="Serve the HTTP API and refresh in the background.")
def serve(
    ctx: typer.Context,
    listen: Optional[str] = typer.Option(None, "--listen", help="Address to listen on, host:port."),
    tls_cert: Optional[Path] = typer.Option(None, "--tls-cert", help="TLS certificate file."),
    tls_key: Optional[Path] = typer.Option(None, "--tls-key", help="TLS private key file."),
    interval: Optional[float] = typer.Option(
        None, "--interval", min=1.0, help="Seconds between refresh rounds."
    ),
    output: Optional[Path] = typer.Option(None, "--output", help="CSV snapshot to start from."),
) -> None:
    from .server import create_app, run_server

    state = _get_state(ctx)
    updates: dict = {}
    if listen:
        updates["host"], updates["port"] = _parse_listen(listen)
    if tls_cert is not None or tls_key is not None:
        if tls_cert is None or tls_key is None:
            raise typer.BadParameter("--tls-cert and --tls-key must be given together")
        updates["tls_cert"], updates["tls_key"] = tls_cert, tls_key
    if interval is not None:
        updates["refresh_interval"] = interval
    serve_config = state.config.serve.model_copy(update=updates)

    orchestrator = state.orchestrator
    _load_snapshot_or_warn(state, _output_path(state, output))
    scheduler = APSchedulerAdapter()
    orchestrator.register_refresh(scheduler, serve_config.refresh_interval, run_immediately=True)
    scheduler.start()
    try:
        run_server(create_app(orchestrator, serve_config), serve_config)
    finally:
        scheduler.shutdown()
        orchestrator.close()


@app.command("latest", help="Show the most recent heights from the snapshot.")
def latest(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", min=1, help="Number of heights to show."),
    only_valid: bool = typer.Option(False, "--only-valid", help="Skip invalid blocks."),
    since: int = typer.Option(0, "--since", min=0, help="Only blocks found at or after this Unix time."),
    output: Optional[Path] = typer.Option(None, "--output", help="CSV snapshot file."),
) -> None:
    state = _get_state(ctx)
    _load_snapshot_or_warn(state, _output_path(state, output))
    entries = state.orchestrator.latest(limit, only_valid=only_valid, since=since)
    if not entries:
        console.print("No blocks known yet, run `monero-blocks scan` first.", style="yellow")
        raise typer.Exit(code=0)
    console.print(_render_blocks_table(entries))


@app.command("ownership", help="Show which pools found recent blocks.")
def ownership(
    ctx: typer.Context,
    last_n: int = typer.Option(1000, "--last", min=1, help="Number of recent heights."),
    since: int = typer.Option(0, "--since", min=0, help="Use a time window instead, from this Unix time."),
    only_valid: bool = typer.Option(False, "--only-valid", help="Skip invalid blocks."),
    output: Optional[Path] = typer.Option(None, "--output", help="CSV snapshot file."),
) -> None:
    state = _get_state(ctx)
    _load_snapshot_or_warn(state, _output_path(state, output))
    shares = state.orchestrator.ownership(last_n, since=since, only_valid=only_valid)
    if not shares:
        console.print("No blocks known yet, run `monero-blocks scan` first.", style="yellow")
        raise typer.Exit(code=0)
    console.print(_render_ownership_table(shares))


@app.command("pools", help="List configured pools.")
def pools(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    console.print(_render_pools_table(state.config.pools))
    console.print(f"Configuration: {state.repository.path}", style="dim")


@log_app.command("list", help="List available log files.")
def log_list() -> None:
    root = log_dir()
    files = [root / APP_LOG, root / ERROR_LOG, *available_pool_logs()]
    table = Table(title="Log files", box=box.SIMPLE_HEAD)
    table.add_column("File", style="cyan", overflow="fold")
    table.add_column("Size", justify="right")
    for path in files:
        if path.exists():
            table.add_row(str(path.relative_to(root)), f"{path.stat().st_size} B")
    console.print(table)


@log_app.command("show", help="Print the tail of a log file.")
def log_show(
    pool: Optional[str] = typer.Argument(None, help="Pool name; the main log when omitted."),
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="Number of lines."),
    errors: bool = typer.Option(False, "--errors", help="Show the error log."),
) -> None:
    root = log_dir()
    if errors:
        path = root / ERROR_LOG
    elif pool:
        path = pool_log_path(pool)
    else:
        path = root / APP_LOG
    content = tail_log(path, lines)
    if not content:
        console.print(f"No log entries in {path}", style="yellow")
        raise typer.Exit(code=0)
    for line in content:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


__all__ = ["AppState", "app", "build_state", "cli"]
