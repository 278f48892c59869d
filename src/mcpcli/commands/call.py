"""mcp-cli call — invoke a single tool."""

from __future__ import annotations

import json
import logging

import click

from mcpcli.commands.helpers import (
    configure_logging,
    open_session,
    run_client_command,
    server_options,
)
from mcpcli.formatting.arguments import parse_tool_arguments
from mcpcli.formatting.output import format_tool_result, to_json

logger = logging.getLogger(__name__)


@click.command(
    "call",
    context_settings={"ignore_unknown_options": True},
)
@click.argument("server")
@click.argument("tool")
@click.argument("tool_args", metavar="[ARGS]...", nargs=-1, type=click.UNPROCESSED)
@server_options()
def call_tool(
    server: str,
    tool: str,
    tool_args: tuple[str, ...],
    timeout: int | None,
    verbose: bool,
    quiet: bool,
    output: str,
) -> None:
    """Call TOOL on SERVER with key=value ARGS.

    Values are typed automatically: numbers, true/false, null, and JSON
    arrays/objects.  A bare first argument becomes ``query``; ``--some-flag``
    becomes ``someFlag=true``.
    """
    configure_logging(verbose)
    arguments = parse_tool_arguments(tool_args)
    run_client_command(_call_tool(server, tool, arguments, timeout, output))


async def _call_tool(
    server: str,
    tool: str,
    arguments: dict[str, object],
    timeout: int | None,
    output: str,
) -> None:
    async with open_session(server, timeout) as client:
        logger.debug("Calling: %s %s", tool, json.dumps(arguments))
        result = await client.call_tool(tool, arguments)

    if output == "json":
        click.echo(
            to_json(result.model_dump(mode="json", by_alias=True, exclude_none=True))
        )
    else:
        click.echo(format_tool_result(result))
