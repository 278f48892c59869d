"""Tests for ProcessTransport against real child processes."""

from __future__ import annotations

import asyncio
import json
import signal
import sys
import textwrap

import pytest

from mcpcli.client.session import McpClient
from mcpcli.client.transport import ProcessTransport, Transport
from mcpcli.protocol.errors import InvalidStateError, TransportError

# A tiny MCP server: answers initialize, tools/list, and tools/call (echo).
_ECHO_SERVER = textwrap.dedent(
    """
    import json, sys
    for line in sys.stdin:
        msg = json.loads(line)
        if "id" not in msg:
            continue
        method = msg["method"]
        if method == "initialize":
            result = {"protocolVersion": "2024-11-05", "capabilities": {},
                      "serverInfo": {"name": "echo-server", "version": "0.1"}}
        elif method == "tools/list":
            result = {"tools": [{"name": "echo", "description": "Echo text",
                       "inputSchema": {"type": "object",
                       "properties": {"text": {"type": "string"}}}}]}
        elif method == "tools/call":
            text = msg["params"]["arguments"].get("text", "")
            result = {"content": [{"type": "text", "text": text}]}
        else:
            print(json.dumps({"jsonrpc": "2.0", "id": msg["id"],
                  "error": {"code": -32601, "message": "Method not found"}}),
                  flush=True)
            continue
        print("server log line", file=sys.stderr, flush=True)
        print(json.dumps({"jsonrpc": "2.0", "id": msg["id"], "result": result}),
              flush=True)
    """
)

_IGNORE_STDIN = "import time\nwhile True:\n    time.sleep(0.1)\n"


class TestProcessTransport:
    async def test_satisfies_transport_protocol(self) -> None:
        assert isinstance(ProcessTransport(), Transport)

    async def test_line_round_trip(self) -> None:
        transport = ProcessTransport()
        assert await transport.start(sys.executable, ["-c", _ECHO_SERVER])
        try:
            assert transport.is_connected
            await transport.send_line(
                json.dumps({"jsonrpc": "2.0", "id": 1, "method": "initialize"})
            )
            line = await transport.read_line()
            assert line is not None
            assert json.loads(line)["result"]["serverInfo"]["name"] == "echo-server"
        finally:
            await transport.close()
        assert not transport.is_connected

    async def test_missing_executable_is_start_failure(self) -> None:
        transport = ProcessTransport()
        assert await transport.start("/nonexistent/mcp-server-binary", []) is False
        assert not transport.is_connected

    async def test_immediate_exit_is_start_failure(self) -> None:
        transport = ProcessTransport(start_grace=1.0)
        started = await transport.start(sys.executable, ["-c", "raise SystemExit(3)"])
        assert started is False
        assert not transport.is_connected

    async def test_start_twice_is_invalid(self) -> None:
        transport = ProcessTransport()
        assert await transport.start(sys.executable, ["-c", _ECHO_SERVER])
        try:
            with pytest.raises(InvalidStateError):
                await transport.start(sys.executable, ["-c", _ECHO_SERVER])
        finally:
            await transport.close()

    async def test_close_is_idempotent(self) -> None:
        transport = ProcessTransport()
        assert await transport.start(sys.executable, ["-c", _ECHO_SERVER])
        await transport.close()
        await transport.close()
        with pytest.raises(TransportError):
            await transport.send_line("{}")

    async def test_eof_after_server_exits(self) -> None:
        transport = ProcessTransport()
        script = "import sys, time\nprint('hello', flush=True)\ntime.sleep(0.3)\n"
        assert await transport.start(sys.executable, ["-c", script])
        try:
            assert await transport.read_line() == "hello"
            assert await transport.read_line() is None
            assert await transport.read_line() is None
        finally:
            await transport.close()

    async def test_stubborn_server_is_killed(self) -> None:
        transport = ProcessTransport(
            start_grace=0.5, close_grace=0.1, sigterm_wait=0.1
        )
        script = (
            "import signal, time\n"
            "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n" + _IGNORE_STDIN
        )
        assert await transport.start(sys.executable, ["-c", script])
        proc = transport._process
        assert proc is not None

        await transport.close()

        assert proc.returncode == -signal.SIGKILL

    async def test_cancelled_read_keeps_buffered_lines(self) -> None:
        transport = ProcessTransport()
        script = (
            "import time\n"
            "time.sleep(0.3)\n"
            "print('a', flush=True)\n"
            "print('b', flush=True)\n" + _IGNORE_STDIN
        )
        assert await transport.start(sys.executable, ["-c", script])
        try:
            with pytest.raises(TimeoutError):
                await asyncio.wait_for(transport.read_line(), 0.05)

            assert await asyncio.wait_for(transport.read_line(), 5) == "a"
            assert await asyncio.wait_for(transport.read_line(), 5) == "b"
        finally:
            await transport.close()


class TestEndToEnd:
    async def test_full_session(self) -> None:
        async with McpClient(init_timeout=10, call_timeout=10) as client:
            assert await client.start_server(sys.executable, ["-c", _ECHO_SERVER])
            info = await client.initialize()
            tools = await client.list_tools()
            result = await client.call_tool("echo", {"text": "hello"})

        assert info.server_info is not None
        assert info.server_info.name == "echo-server"
        assert [t.name for t in tools] == ["echo"]
        assert result.content[0].text == "hello"
        assert not client.is_connected
