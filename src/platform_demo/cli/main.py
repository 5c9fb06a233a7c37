"""CLI entry point for platform-demo.

Invoked as::

    platform-demo [OPTIONS] COMMAND NAMESPACE

or during development::

    python -m platform_demo.cli.main

Commands
--------
- bootstrap        Create org, user, buckets and authorizations for a namespace
- list             List the entities created for a namespace
- write            Write to the input bucket (forever, or --count points)
- read-in          Read recent data from the input bucket
- read-out         Read recent data from the output bucket
- downsample-once  Downsample once from the input bucket to the output bucket
- create-task      Create a task that downsamples continuously
- destroy          Destroy everything in the namespace
- version          Show version information

Typical workflow: run ``bootstrap``; run ``write`` in another window and
leave it running; ``read-in`` to check writes; ``downsample-once`` then
``read-out`` to confirm one downsampled point; ``create-task`` to
downsample continuously; ``destroy`` when done.

The operator token is read from ``BOOTSTRAP_TOKEN`` (or ``token`` in the
config file).
"""
from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from platform_demo.client.base import PlatformClient
from platform_demo.client.errors import PlatformAPIError
from platform_demo.config import (
    DEFAULT_CONFIG_PATH,
    TOKEN_ENV_VAR,
    ConfigError,
    ConfigLoader,
    DemoConfig,
)
from platform_demo.demo import DemoError, DemoRunner, PlatformServices, QueryOutput
from platform_demo.naming import Namespace
from platform_demo.permissions.matcher import PermissionNotSatisfied

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

_namespace_argument = click.argument("namespace")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(console=err_console, show_path=verbose)],
        force=True,
    )
    # Request-level debug lines from httpx are noise unless asked for.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _load_config(config_path: str | None, api: str | None) -> DemoConfig:
    loader = ConfigLoader()
    if config_path is not None:
        config = loader.load(Path(config_path))
    elif DEFAULT_CONFIG_PATH.exists():
        config = loader.load(DEFAULT_CONFIG_PATH)
    else:
        config = loader.defaults()
    config = loader.apply_env(config, os.environ)
    if api:
        config = DemoConfig.model_validate({**config.model_dump(), "api": api})
    return config


@contextmanager
def _failures_exit() -> Iterator[None]:
    """Turn operation failures into a red message and exit status 1."""
    try:
        yield
    except PermissionNotSatisfied as exc:
        err_console.print(f"[red]Giving up:[/red] {exc}")
        sys.exit(1)
    except (DemoError, PlatformAPIError, ConfigError) as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


def _runner(ctx: click.Context, namespace: str) -> DemoRunner:
    """Build a DemoRunner from the group options stored on the context."""
    config: DemoConfig = ctx.obj["config"]
    if not config.token:
        raise click.UsageError(
            f"Environment variable {TOKEN_ENV_VAR} must be set to do anything with this demo.",
            ctx=ctx,
        )
    try:
        ns = Namespace(namespace)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="NAMESPACE") from exc

    client = PlatformClient(
        config.api,
        config.token,
        http_client=ctx.obj.get("http_client"),
        timeout_seconds=config.timeout_seconds,
        user_agent=config.user_agent,
    )
    ctx.call_on_close(client.close)
    return DemoRunner(ns, PlatformServices.from_client(client), config)


def _emit_csv(output: QueryOutput) -> None:
    click.echo(output.csv, nl=not output.csv.endswith("\n"))


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="platform-demo")
@click.option(
    "--api",
    default=None,
    help="HTTP endpoint of the API server [default: http://localhost:9999].",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help=f"Path to a demo config YAML file [default: ./{DEFAULT_CONFIG_PATH}].",
)
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level.")
@click.pass_context
def cli(ctx: click.Context, api: str | None, config_path: str | None, verbose: bool) -> None:
    """Drive the platform API to provision, exercise and destroy demo resources."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = _load_config(config_path, api)
    except (ConfigError, ValueError) as exc:
        raise click.UsageError(str(exc), ctx=ctx) from exc


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from platform_demo import __version__

    console.print(
        Panel(
            f"[bold]platform-demo[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Demo driver for the time-series platform HTTP API.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# bootstrap / list / destroy
# ---------------------------------------------------------------------------


@cli.command(name="bootstrap")
@_namespace_argument
@click.pass_context
def bootstrap_command(ctx: click.Context, namespace: str) -> None:
    """Create org, user, buckets, and authorizations using the given namespace."""
    runner = _runner(ctx, namespace)
    with _failures_exit():
        result = runner.bootstrap()

    console.print(
        Panel(
            f"[green]Bootstrapped[/green] namespace [bold]{namespace}[/bold]\n"
            f"  User:    {result.user.name} ({result.user.id})\n"
            f"  Org:     {result.org.name} ({result.org.id})\n"
            f"  Buckets: {result.bucket_in.name}, {result.bucket_out.name}\n"
            f"  Authorizations: {len(result.authorizations)}",
            title="Bootstrap",
            border_style="green",
        )
    )


@cli.command(name="list")
@_namespace_argument
@click.pass_context
def list_command(ctx: click.Context, namespace: str) -> None:
    """List the entities created for the namespace."""
    runner = _runner(ctx, namespace)
    with _failures_exit():
        listing = runner.list_entities()

    table = Table(title=f"Namespace {namespace}", box=box.SIMPLE)
    table.add_column("Kind", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("ID")
    for kind, entity in (
        ("User", listing.user),
        ("Org", listing.org),
        ("Bucket", listing.bucket_in),
        ("Bucket", listing.bucket_out),
    ):
        if entity is None:
            continue
        table.add_row(kind, entity.name, entity.id)
    console.print(table)

    if not listing.authorizations:
        console.print("[yellow]No authorizations found.[/yellow]")
        return

    auth_table = Table(title="Authorizations", box=box.SIMPLE)
    auth_table.add_column("ID", style="cyan", no_wrap=True)
    auth_table.add_column("Token", style="dim")
    auth_table.add_column("Status")
    auth_table.add_column("Permissions")
    for authorization in listing.authorizations:
        auth_table.add_row(
            authorization.id,
            authorization.token,
            authorization.status.value,
            "\n".join(str(p) for p in authorization.permissions),
        )
    console.print(auth_table)


@cli.command(name="destroy")
@_namespace_argument
@click.pass_context
def destroy_command(ctx: click.Context, namespace: str) -> None:
    """Destroy everything in the namespace."""
    runner = _runner(ctx, namespace)
    report = runner.destroy()

    console.print(f"  Deleted: [green]{len(report.deleted)}[/green]")
    if report.missing:
        console.print(f"  Not found: [yellow]{', '.join(report.missing)}[/yellow]")
    if report.failed:
        console.print(f"  Failed: [red]{', '.join(report.failed)}[/red]")


# ---------------------------------------------------------------------------
# write / read / downsample / task
# ---------------------------------------------------------------------------


@cli.command(name="write")
@_namespace_argument
@click.option(
    "--count",
    "-n",
    type=click.IntRange(min=0),
    default=None,
    help="Number of points to write (default: write until interrupted).",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds between points (default: from config, 0.1).",
)
@click.pass_context
def write_command(
    ctx: click.Context, namespace: str, count: int | None, interval: float | None
) -> None:
    """Write to the input bucket forever, or for --count points."""
    runner = _runner(ctx, namespace)
    with _failures_exit():
        written = runner.write(count=count, interval=interval)
    logger.info("Wrote %d point(s)", written)


@cli.command(name="read-in")
@_namespace_argument
@click.pass_context
def read_in_command(ctx: click.Context, namespace: str) -> None:
    """Read recent data from the input bucket."""
    runner = _runner(ctx, namespace)
    with _failures_exit():
        output = runner.read_in()
    _emit_csv(output)


@cli.command(name="read-out")
@_namespace_argument
@click.pass_context
def read_out_command(ctx: click.Context, namespace: str) -> None:
    """Read recent data from the output bucket."""
    runner = _runner(ctx, namespace)
    with _failures_exit():
        output = runner.read_out()
    _emit_csv(output)


@cli.command(name="downsample-once")
@_namespace_argument
@click.pass_context
def downsample_once_command(ctx: click.Context, namespace: str) -> None:
    """Manually downsample once from the input bucket to the output bucket."""
    runner = _runner(ctx, namespace)
    with _failures_exit():
        output = runner.downsample_once()
    _emit_csv(output)


@cli.command(name="create-task")
@_namespace_argument
@click.pass_context
def create_task_command(ctx: click.Context, namespace: str) -> None:
    """Create a task that downsamples from the input bucket to the output bucket."""
    runner = _runner(ctx, namespace)
    with _failures_exit():
        task = runner.create_task()
    console.print(f"[green]Created[/green] task [bold]{task.id}[/bold]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
