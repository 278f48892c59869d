"""Command-string splitting and ``key=value`` argument coercion."""

from __future__ import annotations

import json
import re
import shlex
from collections.abc import Iterable
from typing import Any

_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+$")

#: Key that receives the first bare (non ``key=value``) token.
DEFAULT_POSITIONAL_KEY = "query"


def split_command(text: str) -> list[str]:
    """Split on whitespace, honouring single and double quotes.

    Backslashes are kept literally so Windows paths survive.

    Raises:
        ValueError: On an unterminated quote.
    """
    lexer = shlex.shlex(text, posix=True)
    lexer.whitespace_split = True
    lexer.escape = ""
    lexer.commenters = ""
    return list(lexer)


def parse_server_command(server: str) -> tuple[str, list[str]]:
    """Split a server command line into (executable, args)."""
    parts = split_command(server)
    if not parts:
        return server, []
    return parts[0], parts[1:]


def parse_batch_command(command: str) -> tuple[str | None, dict[str, Any]]:
    """Split ``"tool_name key=value ..."`` into the tool name and its arguments."""
    parts = split_command(command)
    if not parts:
        return None, {}
    return parts[0], parse_tool_arguments(parts[1:])


def parse_tool_arguments(
    tokens: Iterable[str], first_positional_key: str | None = DEFAULT_POSITIONAL_KEY
) -> dict[str, Any]:
    """Turn CLI tokens into a tool ``arguments`` mapping.

    * ``key=value`` -> ``{key: coerce_value(value)}``
    * ``--some-flag`` -> ``{"someFlag": True}``
    * the first bare token -> ``{first_positional_key: ...}`` unless that key
      was given explicitly.

    Keys compare case-insensitively; a later spelling overwrites the value
    but keeps the first spelling of the key.
    """
    result: dict[str, Any] = {}
    positional: list[str] = []

    for token in tokens:
        if token.startswith("--") and "=" not in token:
            _set_key(result, kebab_to_camel(token[2:]), True)
            continue

        key, sep, value = token.partition("=")
        if sep and key:
            _set_key(result, key, coerce_value(value))
        else:
            positional.append(token)

    if (
        positional
        and first_positional_key
        and _find_key(result, first_positional_key) is None
    ):
        result[first_positional_key] = coerce_value(positional[0])

    return result


def coerce_value(value: str) -> Any:
    """Best-effort conversion of a CLI string into a JSON value."""
    lowered = value.lower()
    if lowered in ("null", "$null"):
        return None
    if lowered in ("true", "$true"):
        return True
    if lowered in ("false", "$false"):
        return False

    if _INT_RE.match(value):
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)

    if (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    ):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    return value


def kebab_to_camel(name: str) -> str:
    """``show-details`` -> ``showDetails``."""
    if "-" not in name:
        return name
    head, *rest = name.split("-")
    return head + "".join(part[:1].upper() + part[1:] for part in rest if part)


def _find_key(mapping: dict[str, Any], key: str) -> str | None:
    folded = key.casefold()
    for existing in mapping:
        if existing.casefold() == folded:
            return existing
    return None


def _set_key(mapping: dict[str, Any], key: str, value: Any) -> None:
    mapping[_find_key(mapping, key) or key] = value
