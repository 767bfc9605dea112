#!/usr/bin/env python3
"""Main CLI entry point for the trade interceptor using Typer.

Commands:
    serve    run the HTTP server
    fetch    run a single interception and print the result as JSON
    version  show version information
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from typing_extensions import Annotated

from .. import __version__
from ..capture.engine import InterceptionEngine
from ..config import InterceptorSettings, configure_logging, load_settings
from ..models.capture import TradeApiResponse
from ..utils.trade_url import EXPECTED_FORMAT, is_valid_trade_url


app = typer.Typer(
    name="trade-interceptor",
    help="PoE2 trade interceptor - capture the trade API exchange of a search page",
    add_completion=False,
    rich_markup_mode="rich"
)


@app.callback()
def main():
    """
    PoE2 trade interceptor.

    Opens trade search pages in an isolated headless browser and reports the
    search submission and result listings the page requested.
    """
    pass


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"Trade Interceptor v{__version__}")


def _load(config: Optional[Path], overrides: Dict[str, Any]) -> InterceptorSettings:
    try:
        settings = load_settings(config_file=config, overrides=overrides)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(code=2)

    configure_logging(settings.log_level)
    return settings


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="Interface to bind")
    ] = None,

    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to listen on")
    ] = None,

    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file")
    ] = None,
):
    """Run the HTTP server."""
    import uvicorn

    from ..api.main import create_app

    server_overrides: Dict[str, Any] = {}
    if host is not None:
        server_overrides['host'] = host
    if port is not None:
        server_overrides['port'] = port
    overrides = {'server': server_overrides} if server_overrides else {}

    settings = _load(config, overrides)
    typer.echo(f"🚀 Serving on http://{settings.server.host}:{settings.server.port} ({settings.environment})")

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.log_level.lower(),
    )


async def _fetch(settings: InterceptorSettings, url: str, cookies: Optional[str]) -> TradeApiResponse:
    engine = InterceptionEngine(settings.to_engine_config())
    await engine.initialize()
    try:
        return await engine.run_interception(url, cookies)
    finally:
        await engine.shutdown()


@app.command()
def fetch(
    url: Annotated[
        str,
        typer.Argument(help="Trade search page URL")
    ],

    cookies: Annotated[
        Optional[str],
        typer.Option("--cookies", envvar="POE_COOKIES", help="Cookie string (name=value; name2=value2)")
    ] = None,

    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file")
    ] = None,

    pretty: Annotated[
        bool,
        typer.Option("--pretty/--compact", help="Indent the JSON output")
    ] = True,
):
    """Intercept a single trade search page and print the result as JSON."""
    if not is_valid_trade_url(url):
        typer.echo(f"❌ Invalid URL. Expected: {EXPECTED_FORMAT}", err=True)
        raise typer.Exit(code=2)

    settings = _load(config, {})
    result = asyncio.run(_fetch(settings, url, cookies))

    typer.echo(json.dumps(result.to_payload(), indent=2 if pretty else None, ensure_ascii=False))

    if result.is_error:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
