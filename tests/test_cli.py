"""Tests for the mcp-cli command surface."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from mcpcli import __version__
from mcpcli.cli import cli
from mcpcli.protocol.errors import CorrelationError, ProtocolError, RequestTimeoutError
from mcpcli.protocol.models import ToolCallResult, ToolDescriptor

# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture(autouse=True)
def _config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    monkeypatch.setenv("MCP_CLI_CONFIG_DIR", str(tmp_path))
    yield tmp_path
    # configure_logging() binds a handler to the runner's temporary stderr.
    package_logger = logging.getLogger("mcpcli")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _make_tools() -> list[ToolDescriptor]:
    return [
        ToolDescriptor.model_validate(
            {
                "name": "echo",
                "description": "Echo the input text",
                "inputSchema": {
                    "type": "object",
                    "properties": {"text": {"type": "string"}},
                    "required": ["text"],
                },
            }
        ),
        ToolDescriptor(name="status", description="Server status"),
    ]


def _make_text_result(text: str) -> ToolCallResult:
    return ToolCallResult.model_validate({"content": [{"type": "text", "text": text}]})


def _make_fake_client(
    started: bool = True,
    tools: list[ToolDescriptor] | None = None,
    call_result: Any = None,
) -> MagicMock:
    """A stand-in McpClient usable as an async context manager."""
    client = MagicMock()
    client.__aenter__.return_value = client
    client.start_server = AsyncMock(return_value=started)
    client.initialize = AsyncMock()
    client.list_tools = AsyncMock(return_value=tools if tools is not None else [])
    if isinstance(call_result, list):
        client.call_tool = AsyncMock(side_effect=call_result)
    else:
        client.call_tool = AsyncMock(
            return_value=call_result or _make_text_result("ok")
        )
    return client


def _invoke(args: list[str], client: MagicMock | None = None) -> Any:
    runner = CliRunner()
    if client is None:
        return runner.invoke(cli, args)
    with patch("mcpcli.commands.helpers.McpClient", return_value=client) as factory:
        result = runner.invoke(cli, args)
    result.factory = factory
    return result


# ------------------------------------------------------------------ #
# Smoke tests
# ------------------------------------------------------------------ #


def test_help() -> None:
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("list", "help", "call", "batch", "alias"):
        assert command in result.output


def test_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert f"mcp-cli, version {__version__}" in result.output


def test_common_options() -> None:
    result = CliRunner().invoke(cli, ["call", "--help"])
    assert result.exit_code == 0
    for option in ("--timeout", "--verbose", "--quiet", "--output"):
        assert option in result.output


# ------------------------------------------------------------------ #
# Server commands
# ------------------------------------------------------------------ #


class TestList:
    def test_table(self) -> None:
        client = _make_fake_client(tools=_make_tools())
        result = _invoke(["list", "my-server --stdio"], client)

        assert result.exit_code == 0, result.output
        assert "echo" in result.output
        assert "Echo the input text" in result.output
        client.start_server.assert_awaited_once_with("my-server", ["--stdio"])
        client.initialize.assert_awaited_once()

    def test_quiet(self) -> None:
        client = _make_fake_client(tools=_make_tools())
        result = _invoke(["list", "srv", "-q"], client)
        assert result.output.splitlines() == ["echo", "status"]

    def test_json(self) -> None:
        client = _make_fake_client(tools=_make_tools())
        result = _invoke(["list", "srv", "--output", "json"], client)

        payload = json.loads(result.output)
        assert [t["name"] for t in payload["tools"]] == ["echo", "status"]
        assert payload["tools"][0]["inputSchema"]["required"] == ["text"]

    def test_start_failure_exits_1(self) -> None:
        client = _make_fake_client(started=False)
        result = _invoke(["list", "broken-server"], client)

        assert result.exit_code == 1
        assert "Failed to start server: broken-server" in result.output
        client.initialize.assert_not_awaited()

    def test_real_start_failure(self) -> None:
        result = _invoke(["list", "/nonexistent/mcp-server-binary"])
        assert result.exit_code == 1
        assert "Failed to start server" in result.output

    def test_handshake_timeout_exits_1(self) -> None:
        client = _make_fake_client()
        client.initialize.side_effect = RequestTimeoutError("initialize", 10)
        result = _invoke(["list", "srv"], client)

        assert result.exit_code == 1
        assert "Timeout waiting for response to initialize" in result.output

    def test_alias_is_resolved(self, _config_dir: Path) -> None:
        (_config_dir / "config.yaml").write_text(
            "servers:\n  fs: npx server-fs .\ndefaults:\n  timeout: 7\n",
            encoding="utf-8",
        )
        client = _make_fake_client(tools=_make_tools())
        result = _invoke(["list", "FS"], client)

        assert result.exit_code == 0, result.output
        client.start_server.assert_awaited_once_with("npx", ["server-fs", "."])
        result.factory.assert_called_once_with(call_timeout=7)

    def test_timeout_option_wins(self, _config_dir: Path) -> None:
        (_config_dir / "config.yaml").write_text(
            "defaults:\n  timeout: 7\n", encoding="utf-8"
        )
        client = _make_fake_client()
        result = _invoke(["list", "srv", "--timeout", "3"], client)

        assert result.exit_code == 0, result.output
        result.factory.assert_called_once_with(call_timeout=3)

    def test_bad_config_exits_1(self, _config_dir: Path) -> None:
        (_config_dir / "config.yaml").write_text("servers: [", encoding="utf-8")
        result = _invoke(["list", "srv"], _make_fake_client())

        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


class TestHelp:
    def test_tool_help_case_insensitive(self) -> None:
        client = _make_fake_client(tools=_make_tools())
        result = _invoke(["help", "srv", "ECHO"], client)

        assert result.exit_code == 0, result.output
        assert "Parameters:" in result.output
        assert "text [string] (required)" in result.output

    def test_unknown_tool_lists_available(self) -> None:
        client = _make_fake_client(tools=_make_tools())
        result = _invoke(["help", "srv", "nope"], client)

        assert result.exit_code == 1
        assert "Tool not found: nope" in result.output
        assert "Available tools:" in result.output
        assert "  status" in result.output


class TestCall:
    def test_arguments_are_coerced(self) -> None:
        client = _make_fake_client(call_result=_make_text_result("hi there"))
        result = _invoke(
            ["call", "srv", "echo", "text=hi there", "count=2", "--show-all"], client
        )

        assert result.exit_code == 0, result.output
        assert "hi there" in result.output
        client.call_tool.assert_awaited_once_with(
            "echo", {"text": "hi there", "count": 2, "showAll": True}
        )

    def test_positional_becomes_query(self) -> None:
        client = _make_fake_client()
        _invoke(["call", "srv", "search", "needle"], client)
        client.call_tool.assert_awaited_once_with("search", {"query": "needle"})

    def test_json_output(self) -> None:
        client = _make_fake_client(call_result=_make_text_result("hi"))
        result = _invoke(["call", "srv", "echo", "--output", "json"], client)

        payload = json.loads(result.output)
        assert payload["content"] == [{"type": "text", "text": "hi"}]

    def test_protocol_error_exits_1(self) -> None:
        client = _make_fake_client(call_result=[ProtocolError(-32602, "Bad params")])
        result = _invoke(["call", "srv", "echo"], client)

        assert result.exit_code == 1
        assert "MCP Error [-32602]: Bad params" in result.output


class TestBatch:
    def test_no_commands_exits_1(self) -> None:
        result = _invoke(["batch", "srv"])
        assert result.exit_code == 1
        assert "No commands specified" in result.output
        assert "Usage: mcp-cli batch" in result.output

    def test_runs_all_steps(self) -> None:
        client = _make_fake_client(
            call_result=[
                _make_text_result("first"),
                ProtocolError(-32601, "Unknown tool"),
                _make_text_result("third"),
            ]
        )
        result = _invoke(
            ["batch", "srv", "one a=1", "wait:10", "missing", "three"], client
        )

        assert result.exit_code == 0, result.output
        assert "Batch mode: 4 command(s)" in result.output
        assert "--- [one] ---" in result.output
        assert "first" in result.output
        assert "MCP Error [-32601]: Unknown tool" in result.output
        assert "third" in result.output
        assert "--- Batch complete ---" in result.output
        assert client.call_tool.await_count == 3
        client.call_tool.assert_any_await("one", {"a": 1}, timeout=None)

    def test_quiet_prints_results_only(self) -> None:
        client = _make_fake_client(call_result=_make_text_result("only this"))
        result = _invoke(["batch", "srv", "one", "-q"], client)

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "only this"

    def test_connection_error_aborts(self) -> None:
        client = _make_fake_client(call_result=[CorrelationError(2, 9)])
        result = _invoke(["batch", "srv", "one", "two"], client)

        assert result.exit_code == 1
        assert "Response ID mismatch" in result.output
        assert client.call_tool.await_count == 1


# ------------------------------------------------------------------ #
# Aliases
# ------------------------------------------------------------------ #


class TestAlias:
    def test_list_empty(self) -> None:
        result = _invoke(["alias", "list"])
        assert result.exit_code == 0
        assert "No aliases configured." in result.output

    def test_set_list_remove(self, _config_dir: Path) -> None:
        created = _invoke(["alias", "set", "fs", "npx server-fs ."])
        assert created.exit_code == 0
        assert "Created alias 'fs' → npx server-fs ." in created.output

        updated = _invoke(["alias", "set", "fs", "npx server-fs /tmp"])
        assert "Updated alias 'fs' → npx server-fs /tmp" in updated.output

        listed = _invoke(["alias", "list"])
        assert "Server Aliases:" in listed.output
        assert "fs  →  npx server-fs /tmp" in listed.output
        assert str(_config_dir / "config.yaml") in listed.output

        removed = _invoke(["alias", "remove", "fs"])
        assert removed.exit_code == 0
        assert "Removed alias 'fs'" in removed.output

    def test_remove_missing_exits_1(self) -> None:
        result = _invoke(["alias", "remove", "ghost"])
        assert result.exit_code == 1
        assert "Alias 'ghost' not found." in result.output

    def test_set_invalid_exits_1(self) -> None:
        result = _invoke(["alias", "set", "two words", "cmd"])
        assert result.exit_code == 1
        assert "cannot contain spaces" in result.output
