"""Shared plumbing for the server-facing commands."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any, TypeVar

import click

from mcpcli.client.session import McpClient
from mcpcli.config.models import CliConfig
from mcpcli.config.store import ConfigError, load_config, load_env, resolve_server
from mcpcli.constants import DEFAULT_CALL_TIMEOUT
from mcpcli.formatting.arguments import parse_server_command
from mcpcli.formatting.output import format_error
from mcpcli.protocol.errors import McpError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")

_HANDLER_NAME = "mcpcli-stderr"


def server_options(*, output: bool = True) -> Callable[[F], F]:
    """Attach ``--timeout/--verbose/--quiet`` (and ``--output``) to a command."""

    def decorator(func: F) -> F:
        if output:
            func = click.option(
                "--output",
                type=click.Choice(["text", "json"]),
                default="text",
                show_default=True,
                help="Output format.",
            )(func)
        func = click.option(
            "-q", "--quiet", is_flag=True, help="Minimal output, suitable for scripting."
        )(func)
        func = click.option(
            "-v",
            "--verbose",
            is_flag=True,
            help="Show server lifecycle and raw JSON-RPC traffic on stderr.",
        )(func)
        func = click.option(
            "--timeout",
            type=click.IntRange(min=1),
            default=None,
            help=f"Timeout in seconds for tool calls [default: {DEFAULT_CALL_TIMEOUT:g}].",
        )(func)
        return func

    return decorator


def configure_logging(verbose: bool) -> None:
    """Route ``mcpcli`` logs to stderr; DEBUG with --verbose, else WARNING."""
    package_logger = logging.getLogger("mcpcli")
    for handler in list(package_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False


def load_settings() -> CliConfig:
    try:
        return load_config()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def resolve_command(server: str, config: CliConfig) -> tuple[str, list[str]]:
    """Expand an alias and split the server command line."""
    resolved = resolve_server(server, config)
    try:
        return parse_server_command(resolved)
    except ValueError as exc:
        raise click.BadParameter(
            f"Invalid server command {resolved!r}: {exc}", param_hint="SERVER"
        ) from exc


@contextlib.asynccontextmanager
async def open_session(server: str, timeout: int | None) -> AsyncIterator[McpClient]:
    """Start and initialize a server; tear it down on exit.

    Raises:
        click.ClickException: The server could not be started.
        McpError: The handshake failed.
    """
    config = load_settings()
    command, args = resolve_command(server, config)
    load_env()

    call_timeout = timeout or config.defaults.timeout or DEFAULT_CALL_TIMEOUT
    async with McpClient(call_timeout=call_timeout) as client:
        logger.debug("Starting MCP server: %s %s", command, " ".join(args))
        if not await client.start_server(command, args):
            msg = f"Failed to start server: {server}"
            raise click.ClickException(msg)

        logger.debug("Initializing MCP protocol...")
        await client.initialize()
        yield client


def run_client_command(coro: Coroutine[Any, Any, T]) -> T:
    """Run *coro* and return its result; report protocol failures and exit 1."""
    try:
        return asyncio.run(coro)
    except McpError as exc:
        click.echo(format_error(exc), err=True)
        raise SystemExit(1) from exc
