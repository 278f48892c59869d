"""Error taxonomy for the protocol client layer.

Every exception carries an :class:`ErrorKind` so callers can ``match`` on
``exc.kind`` instead of relying on subclass identity.  Failing to *start* a
server is not an exception: ``McpClient.start_server`` returns ``False``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Closed set of failure kinds surfaced by the client."""

    PROTOCOL = "protocol"
    DECODE = "decode"
    CORRELATION = "correlation"
    TIMEOUT = "timeout"
    INVALID_STATE = "invalid_state"
    TRANSPORT = "transport"


class McpError(Exception):
    """Base class for all client-side protocol failures."""

    kind: ErrorKind


class ProtocolError(McpError):
    """The server answered with a JSON-RPC error object."""

    kind = ErrorKind.PROTOCOL

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def __str__(self) -> str:
        return f"MCP Error {self.code}: {self.message}"


class DecodeError(McpError):
    """A response line was malformed or its result had the wrong shape."""

    kind = ErrorKind.DECODE


class CorrelationError(McpError):
    """A response id did not match the outstanding request id."""

    kind = ErrorKind.CORRELATION

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Response ID mismatch: expected {expected}, got {received}"
        )
        self.expected = expected
        self.received = received


class RequestTimeoutError(McpError, TimeoutError):
    """No response arrived before the call's deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, method: str, timeout: float) -> None:
        super().__init__(
            f"Timeout waiting for response to {method} (after {timeout:g}s)"
        )
        self.method = method
        self.timeout = timeout


class InvalidStateError(McpError):
    """An operation was invoked in the wrong lifecycle state."""

    kind = ErrorKind.INVALID_STATE


class TransportError(McpError):
    """The connection to the server process is broken."""

    kind = ErrorKind.TRANSPORT
