"""Click-based CLI for coinfolio.

Thin wrapper around library modules. No business logic: every operation
delegates to the failover client or the portfolio service.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import NoReturn

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from coinfolio.core.exceptions import CoinfolioError

console = Console(stderr=True)

_TIME_RANGES = ["1D", "7D", "30D", "90D", "1Y"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _exit_with_error(e: CoinfolioError) -> NoReturn:
    """Print a coinfolio error in red and exit with status 1."""
    console.print(f"[red]{type(e).__name__}: {escape(str(e))}[/red]")
    raise SystemExit(1) from e


def _run_async(coro):
    """Run an async coroutine from synchronous Click code."""
    try:
        return asyncio.run(coro)
    except CoinfolioError as e:
        _exit_with_error(e)


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from coinfolio.core import load_config

        try:
            ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
        except CoinfolioError as e:
            _exit_with_error(e)
    return ctx.obj["config"]


def _create_client(ctx: click.Context):
    from coinfolio.providers import FailoverClient

    return FailoverClient.from_config(_load_config(ctx))


def _parse_allocations(pairs: tuple[str, ...]) -> dict[str, float]:
    """Parse ``id=percent`` pairs into an allocation mapping."""
    allocations: dict[str, float] = {}
    for pair in pairs:
        asset_id, sep, raw = pair.partition("=")
        if not sep or not asset_id.strip():
            raise click.BadParameter(f"expected ID=PERCENT, got {pair!r}", param_hint="--alloc")
        try:
            allocations[asset_id.strip().lower()] = float(raw)
        except ValueError:
            raise click.BadParameter(
                f"allocation for {asset_id!r} is not a number: {raw!r}",
                param_hint="--alloc",
            ) from None
    return allocations


def _fmt_pct(value: float | None) -> str:
    if value is None:
        return "-"
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}%"


def _fmt_usd(value: float) -> str:
    return f"${value:,.2f}"


def _echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="COINFOLIO_CONFIG",
    default=None,
    help="Path to coinfolio.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Log provider attempts and failovers.",
)
@click.version_option(package_name="coinfolio")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """coinfolio: crypto portfolio market data and analytics."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


# ---------------------------------------------------------------------------
# top
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--limit", "-n", type=click.IntRange(min=1), default=20, help="Number of assets.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.pass_context
def top(ctx: click.Context, limit: int, output_format: str) -> None:
    """List the top assets by market cap."""

    async def _run():
        async with _create_client(ctx) as client:
            return await client.get_top_assets(limit)

    assets = _run_async(_run())

    if output_format == "json":
        _echo_json([a.model_dump(mode="json", exclude={"sparkline_7d"}) for a in assets])
        return

    table = Table(title=f"Top {limit} Assets")
    table.add_column("#", justify="right")
    table.add_column("Asset", style="bold")
    table.add_column("Price", justify="right")
    table.add_column("24h", justify="right")
    table.add_column("7d", justify="right")
    table.add_column("Market Cap", justify="right")
    for rank, a in enumerate(assets, start=1):
        table.add_row(
            str(rank),
            f"{a.name} ({a.symbol.upper()})",
            _fmt_usd(a.current_price),
            _fmt_pct(a.price_change_24h),
            _fmt_pct(a.price_change_7d),
            _fmt_usd(a.market_cap),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("query")
@click.pass_context
def search(ctx: click.Context, query: str) -> None:
    """Search assets by name or symbol."""

    async def _run():
        async with _create_client(ctx) as client:
            return await client.search_assets(query)

    results = _run_async(_run())
    if not results:
        console.print(f"[yellow]No assets match {query!r}.[/yellow]")
        return

    table = Table(title=f"Search: {query}")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Symbol")
    for r in results:
        table.add_row(r.id, r.name, r.symbol.upper())
    console.print(table)


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("asset_id")
@click.option(
    "--range",
    "time_range",
    type=click.Choice(_TIME_RANGES, case_sensitive=False),
    default="7D",
    help="Time range.",
)
@click.pass_context
def history(ctx: click.Context, asset_id: str, time_range: str) -> None:
    """Print USD price history for ASSET_ID as JSON."""
    from coinfolio.core import time_range_days

    days = time_range_days(time_range.upper())

    async def _run():
        async with _create_client(ctx) as client:
            return await client.get_price_history(asset_id.lower(), days)

    series = _run_async(_run())
    _echo_json(series.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------


@cli.command()
@click.option(
    "--alloc",
    "-a",
    "allocs",
    multiple=True,
    required=True,
    help="Allocation as ID=PERCENT (repeatable), e.g. -a bitcoin=60.",
)
@click.option("--total", "-t", type=float, default=10_000.0, help="Portfolio value in USD.")
@click.option(
    "--range",
    "time_range",
    type=click.Choice(_TIME_RANGES, case_sensitive=False),
    default="7D",
    help="Time range for returns.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.pass_context
def analyze(
    ctx: click.Context,
    allocs: tuple[str, ...],
    total: float,
    time_range: str,
    output_format: str,
) -> None:
    """Compute portfolio return and volatility for a set of allocations."""
    from coinfolio.analytics import PortfolioService
    from coinfolio.core import TimeRange

    allocations = _parse_allocations(allocs)

    async def _run():
        async with _create_client(ctx) as client:
            return await PortfolioService(client).analyze(
                allocations, total, TimeRange(time_range.upper())
            )

    snapshot = _run_async(_run())

    if output_format == "json":
        _echo_json(snapshot.model_dump(mode="json"))
        return

    if not snapshot.allocation_balanced:
        console.print(
            f"[yellow]Allocation imbalance: total is "
            f"{snapshot.total_allocation:.1f}% (should be 100%)[/yellow]"
        )

    m = snapshot.metrics
    table = Table(title=f"Portfolio ({snapshot.time_range})")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Total Value", _fmt_usd(m.total_value))
    table.add_row("Total Return", _fmt_usd(m.total_return))
    table.add_row("Return %", _fmt_pct(m.total_return_percentage))
    table.add_row("Volatility", f"{m.volatility:.1f}%")
    table.add_row("Risk", snapshot.risk_level.value.title())
    table.add_row("Chart Points", str(len(snapshot.chart)))
    console.print(table)

    holdings = Table(title="Holdings")
    holdings.add_column("Asset", style="bold")
    holdings.add_column("Allocation", justify="right")
    holdings.add_column("Value", justify="right")
    holdings.add_column("24h", justify="right")
    for a in snapshot.assets:
        holdings.add_row(
            a.name, f"{a.allocation:.1f}%", _fmt_usd(a.value), _fmt_pct(a.price_change_24h)
        )
    console.print(holdings)


# ---------------------------------------------------------------------------
# providers
# ---------------------------------------------------------------------------


@cli.command()
@click.pass_context
def providers(ctx: click.Context) -> None:
    """Show configured providers in priority order."""
    config = _load_config(ctx)

    table = Table(title="Providers")
    table.add_column("Priority", justify="right")
    table.add_column("Provider", style="bold")
    table.add_column("Base URL")
    table.add_column("Enabled")
    table.add_column("API Key")
    for priority, name in enumerate(config.providers.order, start=1):
        settings = config.providers.get(name)
        table.add_row(
            str(priority),
            name.value,
            settings.base_url,
            "yes" if settings.enabled else "no",
            "set" if settings.api_key else "-",
        )
    console.print(table)
    console.print(
        f"Failover delay: {config.failover.delay}s  |  "
        f"Health reset: {config.failover.reset_interval:.0f}s"
    )


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", type=str, default=None, help="Bind address (default from config).")
@click.option("--port", "-p", type=int, default=None, help="Port number (default from config).")
@click.option("--reload", is_flag=True, default=False, help="Auto-reload on code changes.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool) -> None:
    """Start the REST API server."""
    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]uvicorn not installed. Install with: "
            "pip install coinfolio[api][/red]"
        )
        raise SystemExit(1)

    config = _load_config(ctx)
    host = host or config.api.host
    port = port or config.api.port

    console.print(f"Starting coinfolio API on [bold]{host}:{port}[/bold]")
    console.print(f"API docs: http://{host}:{port}/docs")

    uvicorn.run(
        "coinfolio.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
