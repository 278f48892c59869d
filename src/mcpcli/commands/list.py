"""mcp-cli list — show every tool a server advertises."""

from __future__ import annotations

import click

from mcpcli.commands.helpers import (
    configure_logging,
    open_session,
    run_client_command,
    server_options,
)
from mcpcli.formatting.output import format_tool_list, to_json


@click.command("list")
@click.argument("server")
@server_options()
def list_tools(
    server: str, timeout: int | None, verbose: bool, quiet: bool, output: str
) -> None:
    """List all available tools from SERVER (a command line or an alias)."""
    configure_logging(verbose)
    run_client_command(_list_tools(server, timeout, quiet, output))


async def _list_tools(
    server: str, timeout: int | None, quiet: bool, output: str
) -> None:
    async with open_session(server, timeout) as client:
        tools = await client.list_tools()

    if output == "json":
        payload = [
            t.model_dump(mode="json", by_alias=True, exclude_none=True) for t in tools
        ]
        click.echo(to_json({"tools": payload}))
    else:
        click.echo(format_tool_list(tools, quiet=quiet))
