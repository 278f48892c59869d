"""McpClient: handshake, request correlation, and typed tool operations."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Sequence
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel

from mcpcli.client.transport import ProcessTransport, Transport
from mcpcli.constants import DEFAULT_CALL_TIMEOUT, DEFAULT_INIT_TIMEOUT
from mcpcli.protocol.codec import (
    decode_message,
    encode_request,
    encode_response,
    extract_result,
)
from mcpcli.protocol.errors import (
    CorrelationError,
    InvalidStateError,
    RequestTimeoutError,
    TransportError,
)
from mcpcli.protocol.models import (
    InitializeParams,
    InitializeResult,
    JsonRpcNotification,
    JsonRpcResponse,
    ToolCallParams,
    ToolCallResult,
    ToolDescriptor,
    ToolListResult,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

#: JSON-RPC "method not found", returned for server requests we don't serve.
_METHOD_NOT_FOUND = -32601


class ClientState(StrEnum):
    """Lifecycle of an :class:`McpClient`."""

    NOT_STARTED = "not_started"
    STARTED = "started"
    READY = "ready"
    CALLING = "calling"
    DISPOSED = "disposed"


class McpClient:
    """Client for one MCP server connection.

    Lifecycle::

        NOT_STARTED --start_server--> STARTED --initialize--> READY
        READY --request--> CALLING --response/failure--> READY
        any state --close--> DISPOSED

    Requests are strictly sequential: one id is outstanding at a time and
    every call completes before the next request is written.  Use as an
    async context manager so the server process is always torn down::

        async with McpClient(call_timeout=5) as client:
            if await client.start_server("my-server", []):
                await client.initialize()
                tools = await client.list_tools()

    A request whose deadline expires, or whose caller cancels it, is
    *abandoned*: if its response turns up later it is discarded while
    waiting for the next one, so a late answer can never be taken for the
    answer to a newer request.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        init_timeout: float = DEFAULT_INIT_TIMEOUT,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
    ) -> None:
        self.init_timeout = init_timeout
        self.call_timeout = call_timeout

        self._transport = transport
        self._state = (
            ClientState.STARTED if transport is not None else ClientState.NOT_STARTED
        )

        self._ids = itertools.count(1)
        self._call_lock = asyncio.Lock()
        self._abandoned_ids: set[int] = set()

        self.server_info: InitializeResult | None = None

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return (
            self._state is not ClientState.DISPOSED
            and self._transport is not None
            and self._transport.is_connected
        )

    async def __aenter__(self) -> McpClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def start_server(
        self, command: str, args: Sequence[str] = (), cwd: str | None = None
    ) -> bool:
        """Spawn the server process.

        Returns False if the process could not be spawned or exited
        immediately.  The client is then unusable and should be closed;
        starting again on the same instance is an ``InvalidStateError``.
        """
        if self._state is ClientState.DISPOSED:
            msg = "Client is closed"
            raise InvalidStateError(msg)
        if self._transport is not None:
            msg = "Server already started"
            raise InvalidStateError(msg)

        transport = ProcessTransport()
        # Owned from here on, so close() reaps it whatever start() returns.
        self._transport = transport
        logger.debug("Starting MCP server: %s %s", command, " ".join(args))
        started = await transport.start(command, list(args), cwd)
        if started:
            self._state = ClientState.STARTED
        return started

    async def initialize(self) -> InitializeResult:
        """Perform the ``initialize`` handshake using ``init_timeout``."""
        self._require_state(ClientState.STARTED, "initialize")
        result = await self._request(
            "initialize", InitializeParams(), InitializeResult, self.init_timeout
        )
        self.server_info = result
        self._state = ClientState.READY
        if result.server_info is not None:
            logger.debug(
                "Server: %s v%s", result.server_info.name, result.server_info.version
            )
        return result

    async def close(self) -> None:
        """Tear down the server process.  Idempotent."""
        if self._state is ClientState.DISPOSED:
            return
        self._state = ClientState.DISPOSED

        transport, self._transport = self._transport, None
        if transport is None:
            return
        try:
            await transport.close()
        except Exception:
            logger.exception("Error closing transport")

    # ------------------------------------------------------------------ #
    # Tool operations
    # ------------------------------------------------------------------ #

    async def list_tools(self) -> list[ToolDescriptor]:
        """Return every tool the server advertises, following pagination."""
        self._require_ready("list tools")
        tools: list[ToolDescriptor] = []
        params: dict[str, Any] | None = None
        while True:
            page = await self._request(
                "tools/list", params, ToolListResult, self.call_timeout
            )
            tools.extend(page.tools)
            if not page.next_cursor:
                return tools
            params = {"cursor": page.next_cursor}

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> ToolCallResult:
        """Invoke *name* with *arguments*.

        Args:
            name: Tool name as advertised by ``tools/list``.
            arguments: JSON-compatible argument mapping (defaults to ``{}``).
            timeout: Per-call override of ``call_timeout`` in seconds.
        """
        self._require_ready("call tools")
        params = ToolCallParams(name=name, arguments=arguments or {})
        return await self._request(
            "tools/call",
            params,
            ToolCallResult,
            self.call_timeout if timeout is None else timeout,
        )

    # ------------------------------------------------------------------ #
    # Request/response plumbing
    # ------------------------------------------------------------------ #

    async def _request(
        self, method: str, params: Any, model: type[ModelT], timeout: float
    ) -> ModelT:
        async with self._call_lock:
            transport = self._connected_transport()
            request_id = next(self._ids)

            previous = self._state
            self._state = ClientState.CALLING
            try:
                line = encode_request(request_id, method, params)
                logger.debug(">>> %s", line)
                await transport.send_line(line)

                try:
                    response = await asyncio.wait_for(
                        self._await_response(transport, request_id), timeout=timeout
                    )
                except TimeoutError:
                    self._abandoned_ids.add(request_id)
                    logger.warning(
                        "%s (id %d) timed out after %gs", method, request_id, timeout
                    )
                    raise RequestTimeoutError(method, timeout) from None

                return extract_result(response, model)
            except asyncio.CancelledError:
                # Cancelled by the caller: a reply may still arrive later.
                self._abandoned_ids.add(request_id)
                raise
            finally:
                if self._state is ClientState.CALLING:
                    self._state = previous

    async def _await_response(
        self, transport: Transport, request_id: int
    ) -> JsonRpcResponse:
        """Read lines until the response for *request_id* arrives."""
        while True:
            line = await transport.read_line()
            if line is None:
                msg = "Server closed the connection"
                raise TransportError(msg)
            if not line.strip():
                continue

            logger.debug("<<< %s", line)
            message = decode_message(line)

            if isinstance(message, JsonRpcNotification):
                await self._handle_server_message(transport, message)
                continue

            if message.id == request_id:
                return message

            if message.id in self._abandoned_ids:
                self._abandoned_ids.discard(message.id)
                logger.warning(
                    "Discarding late response for abandoned request %d", message.id
                )
                continue

            raise CorrelationError(request_id, message.id)

    async def _handle_server_message(
        self, transport: Transport, message: JsonRpcNotification
    ) -> None:
        request_id = message.id
        if request_id is None:
            logger.debug("Ignoring server notification '%s'", message.method)
            return

        if message.method == "ping":
            reply = encode_response(request_id, {})
        else:
            logger.debug("Rejecting server request '%s'", message.method)
            reply = encode_response(
                request_id,
                error={
                    "code": _METHOD_NOT_FOUND,
                    "message": f"Method not found: {message.method}",
                },
            )
        logger.debug(">>> %s", reply)
        await transport.send_line(reply)

    # ------------------------------------------------------------------ #
    # State guards
    # ------------------------------------------------------------------ #

    def _connected_transport(self) -> Transport:
        if self._state is ClientState.DISPOSED:
            msg = "Client is closed"
            raise InvalidStateError(msg)
        transport = self._transport
        if transport is None or not transport.is_connected:
            msg = "Server not started or has exited"
            raise InvalidStateError(msg)
        return transport

    def _require_state(self, expected: ClientState, action: str) -> None:
        if self._state is ClientState.DISPOSED:
            msg = "Client is closed"
            raise InvalidStateError(msg)
        if self._state is not expected:
            msg = f"Cannot {action} in state '{self._state}'"
            raise InvalidStateError(msg)

    def _require_ready(self, action: str) -> None:
        if self._state is ClientState.DISPOSED:
            msg = "Client is closed"
            raise InvalidStateError(msg)
        if self._state not in (ClientState.READY, ClientState.CALLING):
            msg = f"Cannot {action} before initialize() (state '{self._state}')"
            raise InvalidStateError(msg)
