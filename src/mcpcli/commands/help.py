"""mcp-cli help — detailed help for one tool."""

from __future__ import annotations

import click

from mcpcli.commands.helpers import (
    configure_logging,
    open_session,
    run_client_command,
    server_options,
)
from mcpcli.formatting.output import format_tool_help, to_json
from mcpcli.protocol.models import ToolDescriptor


@click.command("help")
@click.argument("server")
@click.argument("tool")
@server_options()
def tool_help(
    server: str,
    tool: str,
    timeout: int | None,
    verbose: bool,
    quiet: bool,
    output: str,
) -> None:
    """Show parameters and usage for TOOL on SERVER."""
    configure_logging(verbose)
    tools = run_client_command(_fetch_tools(server, timeout))

    wanted = tool.casefold()
    found = next((t for t in tools if t.name.casefold() == wanted), None)
    if found is None:
        click.echo(f"Error: Tool not found: {tool}", err=True)
        if tools:
            click.echo("\nAvailable tools:", err=True)
            for name in sorted(t.name for t in tools):
                click.echo(f"  {name}", err=True)
        raise SystemExit(1)

    if output == "json":
        click.echo(
            to_json(found.model_dump(mode="json", by_alias=True, exclude_none=True))
        )
    else:
        click.echo(format_tool_help(found, quiet=quiet))


async def _fetch_tools(server: str, timeout: int | None) -> list[ToolDescriptor]:
    async with open_session(server, timeout) as client:
        return await client.list_tools()
