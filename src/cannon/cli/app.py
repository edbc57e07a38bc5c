"""Main Typer application — entry point for the ``cannon`` CLI."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.panel import Panel

from cannon import __version__
from cannon._internal.config import Configuration, load_body, parse_duration
from cannon._internal.errors import CannonError, ConfigError
from cannon._internal.logging import setup_logging
from cannon.engine.runner import run
from cannon.metrics.counters import format_summary

console = Console(stderr=True)

app = typer.Typer(
    name="cannon",
    help="Fire repeated HTTP requests at a URL from many concurrent workers.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"cannon {__version__}")
        raise typer.Exit


def _parse_timeout(value: str) -> float:
    try:
        return parse_duration(value)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _print_banner(config: Configuration) -> None:
    limits = []
    if config.time_limit > 0:
        limits.append(f"{config.time_limit:g}s")
    if config.requests > 0:
        limits.append(f"{config.requests} requests")
    console.print(
        Panel(
            f"[bold]Target:[/bold]  {config.method} {config.url}\n"
            f"[bold]Workers:[/bold] {config.pool_size}\n"
            f"[bold]Limits:[/bold]  {', '.join(limits) or 'until interrupted'}",
            title="cannon",
            border_style="cyan",
        )
    )


@app.command()
def main(
    ctx: typer.Context,
    url: str | None = typer.Argument(None, metavar="URL", help="Target URL.", show_default=False),
    concurrency: int = typer.Option(1, "-c", "--concurrency", help="Number of parallel requests."),
    cpus: int = typer.Option(
        1, "-x", "--cpus", help="Multiplier for number of CPUs used for concurrency."
    ),
    time_limit: int = typer.Option(
        0, "-t", "--time-limit", help="Test duration in seconds (0 = unbounded)."
    ),
    requests: int = typer.Option(
        0, "-n", "--requests", help="Total number of requests (0 = unbounded)."
    ),
    wait: int = typer.Option(0, "-w", "--wait", help="Waiting time between requests in ms."),
    method: str = typer.Option("GET", "-X", "--method", help="HTTP method."),
    headers: str = typer.Option("", "-H", "--headers", help="HTTP headers separated by ';'."),
    data: str = typer.Option(
        "",
        "-d",
        "--data",
        help="Data to send in the request body (or '@<file>' to load from file).",
    ),
    timeout: float = typer.Option(
        "1s",
        "-timeout",
        "--timeout",
        help="Timeout for HTTP requests (e.g. 1s, 500ms).",
        parser=_parse_timeout,
    ),
    insecure: bool = typer.Option(
        False, "-k", "--insecure", help="Ignore SSL certificate validation."
    ),
    multipart: bool = typer.Option(
        False, "-multipart", "--multipart", help="Send request as multipart/form-data."
    ),
    form_file: str = typer.Option(
        "",
        "-F",
        "--form-file",
        help="File to upload as multipart/form-data (field 'file').",
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable verbose (DEBUG) logging."),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Fire repeated HTTP requests at URL and report success/error counts."""
    if url is None:
        # Rich help prints itself and returns an empty string.
        help_text = ctx.get_help()
        if help_text:
            typer.echo(help_text)
        return

    setup_logging(verbose=verbose)

    try:
        config = Configuration(
            url=url,
            concurrency=concurrency,
            cpu_multiplier=cpus,
            time_limit=float(time_limit),
            requests=requests,
            wait=wait / 1000,
            method=method,
            headers=headers,
            body=load_body(data),
            timeout=timeout,
            insecure=insecure,
            multipart=multipart,
            multipart_file=form_file,
        )
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _print_banner(config)

    try:
        snapshot = run(config)
    except CannonError as exc:
        console.print(f"[red]Load test failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(format_summary(snapshot))
