"""Pydantic v2 models for ``~/.mcp-cli/config.yaml``."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_WHITESPACE_RE = re.compile(r"\s")


class ConfigDefaults(BaseModel):
    """Defaults applied when a command-line option is omitted."""

    model_config = ConfigDict(extra="forbid")

    timeout: int | None = Field(
        default=None,
        gt=0,
        description="Tool-call timeout in seconds",
    )


class CliConfig(BaseModel):
    """Top-level mcp-cli configuration."""

    model_config = ConfigDict(extra="forbid")

    servers: dict[str, str] = Field(
        default_factory=dict,
        description="Server aliases mapping short names to full commands",
    )
    defaults: ConfigDefaults = Field(
        default_factory=ConfigDefaults,
        description="Default option values",
    )

    @field_validator("servers")
    @classmethod
    def _validate_aliases(cls, servers: dict[str, str]) -> dict[str, str]:
        for alias, command in servers.items():
            validate_alias(alias, command)
        return servers

    def find_alias(self, name: str) -> str | None:
        """Return the stored spelling of alias *name* (case-insensitive)."""
        folded = name.casefold()
        for alias in self.servers:
            if alias.casefold() == folded:
                return alias
        return None


def validate_alias(alias: str, command: str) -> None:
    """Raise ``ValueError`` for an unusable alias name or command."""
    if not alias or not alias.strip():
        msg = "Alias name cannot be empty"
        raise ValueError(msg)
    if _WHITESPACE_RE.search(alias):
        msg = f"Alias name cannot contain spaces: {alias!r}"
        raise ValueError(msg)
    if not command or not command.strip():
        msg = f"Server command for alias '{alias}' cannot be empty"
        raise ValueError(msg)
