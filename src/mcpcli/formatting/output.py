"""Human-readable rendering of tool lists, tool help, results, and errors."""

from __future__ import annotations

import json
import re
import shutil
from typing import Any

from mcpcli.protocol.errors import ProtocolError
from mcpcli.protocol.models import (
    ImageContent,
    TextContent,
    ToolCallResult,
    ToolDescriptor,
)

_WHITESPACE_RE = re.compile(r"\s+")

#: Minimum width of the tool-name column.
_MIN_NAME_WIDTH = 30

#: Minimum width of the description column.
_MIN_DESC_WIDTH = 30

_FALLBACK_COLUMNS = 100


def format_tool_list(
    tools: list[ToolDescriptor], quiet: bool = False, width: int | None = None
) -> str:
    """Render tools as a two-column table sorted by name.

    In quiet mode only the names are printed, one per line.
    """
    ordered = sorted(tools, key=lambda t: t.name)
    if not ordered:
        return "" if quiet else "No tools available."

    if quiet:
        return "\n".join(t.name for t in ordered)

    name_width = max(max(len(t.name) for t in ordered) + 2, _MIN_NAME_WIDTH)
    columns = width or shutil.get_terminal_size((_FALLBACK_COLUMNS, 24)).columns
    desc_width = max(columns - name_width - 4, _MIN_DESC_WIDTH)

    lines = [
        "",
        "  " + "Tool".ljust(name_width) + "Description",
        "  " + "-" * (name_width - 1) + " " + "-" * desc_width,
    ]
    for tool in ordered:
        desc = collapse_whitespace(tool.description or "")
        if len(desc) > desc_width:
            desc = desc[: desc_width - 3] + "..."
        lines.append("  " + tool.name.ljust(name_width) + desc)

    lines.append("")
    lines.append("Use 'mcp-cli help <server> <tool>' for detailed help")
    return "\n".join(lines)


def format_tool_help(tool: ToolDescriptor, quiet: bool = False) -> str:
    """Render the description, parameters, and a usage example for one tool."""
    schema = tool.input_schema
    properties = (schema.properties if schema else None) or {}
    required = schema.required_names if schema else set()

    if quiet:
        lines = [tool.name]
        for name, prop in properties.items():
            mark = "*" if name in required else ""
            lines.append(f"  {name}{mark}:{prop.type_label or 'any'}")
        return "\n".join(lines)

    lines = [tool.name, "=" * len(tool.name), ""]

    if tool.description:
        lines += [tool.description, ""]

    if properties:
        lines.append("Parameters:")
        for name, prop in properties.items():
            type_str = f"[{prop.type_label}]" if prop.type_label else ""
            req_mark = " (required)" if name in required else ""
            lines.append(f"  {name} {type_str}{req_mark}".rstrip())
            if prop.description:
                lines.append(f"    {collapse_whitespace(prop.description)}")
            if prop.default is not None:
                lines.append(f"    Default: {_render_value(prop.default)}")
            if prop.enum:
                values = ", ".join(_render_value(v) for v in prop.enum)
                lines.append(f"    Values: {values}")
            lines.append("")

    example_args = ""
    if properties:
        first = next(iter(properties))
        example_args = f' {first}="value"'
    lines.append("Example:")
    lines.append(f"  mcp-cli call <server> {tool.name}{example_args}")
    return "\n".join(lines)


def format_tool_result(result: ToolCallResult) -> str:
    """Render result content; ``isError`` results get an ``Error:`` prefix."""
    parts: list[str] = []
    for item in result.content:
        if isinstance(item, TextContent):
            if item.text:
                parts.append(item.text)
        elif isinstance(item, ImageContent):
            parts.append(f"[Image: {item.mime_type or 'unknown'}]")
        else:
            parts.append(f"[{item.type} content]")

    text = "\n".join(parts).rstrip()
    if result.is_error and not text.lower().startswith("error"):
        return f"Error: {text}"
    return text


def format_error(error: Exception | str) -> str:
    """One-line error message for stderr."""
    if isinstance(error, ProtocolError):
        return f"MCP Error [{error.code}]: {error.message}"
    return f"Error: {error}"


def to_json(payload: Any) -> str:
    """Pretty JSON for ``--output json``."""
    return json.dumps(payload, indent=2, ensure_ascii=False)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _render_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)
