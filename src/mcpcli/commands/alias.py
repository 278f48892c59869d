"""mcp-cli alias — manage server aliases in the config file."""

from __future__ import annotations

import click

from mcpcli.config.store import (
    ConfigError,
    config_path,
    get_aliases,
    remove_alias,
    set_alias,
)


@click.group("alias")
def alias() -> None:
    """Manage server aliases (short names for server commands)."""


@alias.command("list")
def list_aliases() -> None:
    """Show all configured aliases."""
    try:
        aliases = get_aliases()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if not aliases:
        click.echo("No aliases configured.")
        click.echo()
        click.echo("Add an alias with:")
        click.echo("  mcp-cli alias set <name> <server-command>")
        click.echo()
        click.echo("Example:")
        click.echo('  mcp-cli alias set files "npx server-filesystem ."')
        return

    width = max(len(name) for name in aliases)
    click.echo("Server Aliases:")
    click.echo()
    for name in sorted(aliases):
        click.echo(f"  {name:<{width}}  →  {aliases[name]}")
    click.echo()
    click.echo(f"Config: {config_path()}")


@alias.command("set")
@click.argument("name")
@click.argument("server_command")
def set_alias_command(name: str, server_command: str) -> None:
    """Point alias NAME at SERVER_COMMAND (quote it if it has spaces)."""
    try:
        existed = set_alias(name, server_command)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    verb = "Updated" if existed else "Created"
    click.echo(f"{verb} alias '{name}' → {server_command}")


@alias.command("remove")
@click.argument("name")
def remove_alias_command(name: str) -> None:
    """Delete alias NAME."""
    try:
        removed = remove_alias(name)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if not removed:
        click.echo(f"Error: Alias '{name}' not found.", err=True)
        raise SystemExit(1)
    click.echo(f"Removed alias '{name}'")
