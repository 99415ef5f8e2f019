"""slackhello command line interface."""

from __future__ import annotations

import asyncio

import typer
from loguru import logger

from slackhello.app import build_application
from slackhello.config import Settings, load_settings
from slackhello.errors import ConfigurationError, SessionStartError
from slackhello.logging_utils import configure_logging

app = typer.Typer(name="slackhello", help="Socket Mode bot that replies in thread.", add_completion=False)


def _load(**overrides: object) -> Settings:
    try:
        return load_settings(**overrides)
    except ConfigurationError as exc:
        logger.error(str(exc))
        raise typer.Exit(1) from None


async def _serve(settings: Settings) -> None:
    # The socket client needs a running event loop at construction time.
    application = build_application(settings)
    await application.run()


@app.command()
def run(
    debug: bool | None = typer.Option(None, "--debug/--no-debug", help="Enable slack_sdk debug logging"),
    log_format: str | None = typer.Option(None, "--log-format", help="text, json or rich"),
) -> None:
    """Connect with Socket Mode and serve events until interrupted."""

    overrides: dict[str, object] = {}
    if debug is not None:
        overrides["debug"] = debug
    if log_format is not None:
        overrides["log_format"] = log_format

    configure_logging()
    settings = _load(**overrides)
    configure_logging(settings.log_level, settings.log_format, debug=settings.debug)

    try:
        asyncio.run(_serve(settings))
    except SessionStartError as exc:
        logger.error("app.start.failed error={error}", error=str(exc))
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        logger.info("app.interrupted")


@app.command()
def check() -> None:
    """Validate the Slack tokens without connecting."""

    configure_logging()
    _load()
    typer.echo("credentials ok")


if __name__ == "__main__":
    app()
