"""mcp-cli batch — several tool calls over one server connection."""

from __future__ import annotations

import json

import click

from mcpcli.client.batch import BatchRunner, Invoke, Skip
from mcpcli.commands.helpers import (
    configure_logging,
    open_session,
    run_client_command,
    server_options,
)
from mcpcli.formatting.output import format_error, format_tool_result
from mcpcli.protocol.errors import McpError
from mcpcli.protocol.models import ToolCallResult

_USAGE = """\
Usage: mcp-cli batch <server> <command1> [command2] ...

Each command is: tool_name [key=value ...]
Use wait:<ms> to pause between commands."""


class EchoSink:
    """Batch sink that prints progress with ``click.echo``."""

    def __init__(self, *, quiet: bool = False, verbose: bool = False) -> None:
        self.quiet = quiet
        self.verbose = verbose

    def waiting(self, index: int, duration_ms: int) -> None:
        if self.verbose:
            click.echo(f"  Waiting {duration_ms}ms...", err=True)

    def step_started(self, index: int, step: Invoke) -> None:
        if not self.quiet:
            click.echo()
            click.echo(f"--- [{step.tool_name}] ---")
        if self.verbose:
            click.echo(
                f"Calling: {step.tool_name} {json.dumps(step.arguments)}", err=True
            )

    def step_result(self, index: int, step: Invoke, result: ToolCallResult) -> None:
        click.echo(format_tool_result(result))

    def step_failed(self, index: int, step: Invoke, error: McpError) -> None:
        click.echo(format_error(error), err=True)

    def step_skipped(self, index: int, step: Skip) -> None:
        if not self.quiet:
            click.echo(f"  Skipping command {index}: {step.reason}", err=True)


@click.command("batch")
@click.argument("server")
@click.argument("commands", nargs=-1)
@server_options(output=False)
def batch(
    server: str,
    commands: tuple[str, ...],
    timeout: int | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Run COMMANDS in order against one SERVER process.

    \b
    Example:
      mcp-cli batch my-server "search query=foo" wait:500 "get_status"
    """
    if not commands:
        click.echo(format_error("No commands specified for batch mode."), err=True)
        click.echo(_USAGE, err=True)
        raise SystemExit(1)

    configure_logging(verbose)
    run_client_command(_run_batch(server, list(commands), timeout, quiet, verbose))


async def _run_batch(
    server: str,
    commands: list[str],
    timeout: int | None,
    quiet: bool,
    verbose: bool,
) -> None:
    sink = EchoSink(quiet=quiet, verbose=verbose)
    async with open_session(server, timeout) as client:
        if not quiet:
            click.echo(f"Batch mode: {len(commands)} command(s)")
        await BatchRunner(client, sink).run(commands)

    if not quiet:
        click.echo()
        click.echo("--- Batch complete ---")
