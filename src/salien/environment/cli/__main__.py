"""Command line entry point.

Usage:
    STEAM_TOKEN=abc123... uv run salien run
    uv run salien run --token tok1,tok2 --verbose
    uv run salien planets
    uv run python -m salien.environment.cli run
"""

import asyncio
import logging
import signal
from typing import Annotated

import typer

from salien.bot.config import Settings, settings
from salien.bot.core import BotContext, run_bot
from salien.bot.errors import SalienError
from salien.bot.selector import pick_best
from salien.lib.logs import configure_logging
from salien.lib.metrics import log_metrics_summary
from salien.lib.realtime import Scheduler
from salien.version import BOT_VERSION

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="salien",
    help="Territory-control minigame bot",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def callback(ctx: typer.Context) -> None:
    """Territory-control minigame bot."""
    if ctx.invoked_subcommand is None:
        raise typer.Exit()


def _resolve_settings(token: str | None) -> Settings:
    if token is None:
        return settings
    return settings.model_copy(update={"steam_token": token})


def _install_signal_handlers(scheduler: Scheduler) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, scheduler.stop, f"Signal {sig.name}")


async def serve(config: Settings) -> str | None:
    """Run every configured account until SIGINT/SIGTERM."""
    scheduler = Scheduler()
    _install_signal_handlers(scheduler)
    logger.info("%s Listening to terminate signal ctrl-c...", BOT_VERSION)

    context = BotContext(config, scheduler=scheduler)
    async with context.client:
        return await run_bot(context, config.tokens)


async def scan_planets(config: Settings) -> None:
    context = BotContext(config)
    async with context.client:
        ranks = await context.selector.scan()

    for rank in sorted(ranks, key=lambda r: (-r.difficulty, r.progress)):
        typer.echo(
            f"{rank.planet_id:>4}  {rank.name:<40} "
            f"difficulty {rank.difficulty}  {rank.progress:7.2%}"
        )
    best = pick_best(ranks)
    typer.echo(f"\nBest planet: {best.name if best else 'none available'}")


@app.command()
def run(
    token: Annotated[
        str | None,
        typer.Option(
            "--token",
            "-t",
            help="Token(s) from https://steamcommunity.com/saliengame/gettoken, "
            "comma-separated (overrides STEAM_TOKEN)",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
) -> None:
    """Play with every configured account until interrupted."""
    configure_logging(verbose)
    config = _resolve_settings(token)
    if not config.tokens:
        logger.critical(
            "[STEAM_TOKEN MISSING] Please set env STEAM_TOKEN or pass --token first"
        )
        raise typer.Exit(code=1)

    try:
        reason = asyncio.run(serve(config))
    except SalienError as e:
        logger.critical("[FATAL ERROR] Cannot get planets info: %s", e)
        raise typer.Exit(code=1) from e

    logger.info("%s Terminated - %s", BOT_VERSION, reason)
    log_metrics_summary()


@app.command()
def planets(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
) -> None:
    """Rank the active planets once and exit."""
    configure_logging(verbose)
    try:
        asyncio.run(scan_planets(settings))
    except SalienError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


if __name__ == "__main__":
    app()
