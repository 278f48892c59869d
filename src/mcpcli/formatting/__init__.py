"""Argument coercion and terminal output formatting."""

from mcpcli.formatting.arguments import (
    coerce_value,
    parse_batch_command,
    parse_server_command,
    parse_tool_arguments,
    split_command,
)
from mcpcli.formatting.output import (
    format_error,
    format_tool_help,
    format_tool_list,
    format_tool_result,
    to_json,
)

__all__ = [
    "coerce_value",
    "format_error",
    "format_tool_help",
    "format_tool_list",
    "format_tool_result",
    "parse_batch_command",
    "parse_server_command",
    "parse_tool_arguments",
    "split_command",
    "to_json",
]
