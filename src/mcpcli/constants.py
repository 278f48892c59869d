"""Shared protocol constants and default timeouts."""

from __future__ import annotations

from mcpcli import __version__

#: JSON-RPC protocol tag carried by every message.
JSONRPC_VERSION = "2.0"

#: MCP protocol revision announced during the handshake.
PROTOCOL_VERSION = "2024-11-05"

#: Client identity announced during the handshake.
CLIENT_NAME = "mcp-cli"
CLIENT_VERSION = __version__

#: Seconds to wait for the ``initialize`` response (servers may warm up).
DEFAULT_INIT_TIMEOUT = 10.0

#: Seconds to wait for any other response.
DEFAULT_CALL_TIMEOUT = 30.0
