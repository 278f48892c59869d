"""Root CLI group and version flag."""

import signal

import click

# Writing to a closed stdout pipe (e.g. ``mcp-cli list srv | head``) should
# raise BrokenPipeError rather than kill the process mid-shutdown.
if hasattr(signal, "SIGPIPE"):
    signal.signal(signal.SIGPIPE, signal.SIG_IGN)

from mcpcli import __version__  # noqa: E402
from mcpcli.commands.alias import alias  # noqa: E402
from mcpcli.commands.batch import batch  # noqa: E402
from mcpcli.commands.call import call_tool  # noqa: E402
from mcpcli.commands.help import tool_help  # noqa: E402
from mcpcli.commands.list import list_tools  # noqa: E402


@click.group()
@click.version_option(version=__version__, prog_name="mcp-cli")
def cli() -> None:
    """mcp-cli — call MCP server tools from the command line."""


cli.add_command(list_tools)
cli.add_command(tool_help)
cli.add_command(call_tool)
cli.add_command(batch)
cli.add_command(alias)
