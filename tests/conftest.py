"""Shared fixtures: an in-memory transport standing in for a server process."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from mcpcli.protocol.errors import TransportError


class MemoryTransport:
    """Transport that records sent lines and replays queued server lines.

    ``read_line`` blocks until something is queued, so a test that queues
    nothing models a server that never answers.
    """

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.connected = True
        self.close_calls = 0
        self._incoming: asyncio.Queue[str | None] = asyncio.Queue()

    @property
    def is_connected(self) -> bool:
        return self.connected

    @property
    def sent_messages(self) -> list[dict[str, Any]]:
        return [json.loads(line) for line in self.sent]

    def queue(self, *messages: dict[str, Any] | str) -> None:
        for message in messages:
            line = message if isinstance(message, str) else json.dumps(message)
            self._incoming.put_nowait(line)

    def queue_eof(self) -> None:
        self._incoming.put_nowait(None)

    async def send_line(self, line: str) -> None:
        if not self.connected:
            msg = "Server input stream is closed"
            raise TransportError(msg)
        self.sent.append(line)

    async def read_line(self) -> str | None:
        return await self._incoming.get()

    async def close(self) -> None:
        self.close_calls += 1
        self.connected = False


def make_result(request_id: int, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def make_error(request_id: int, code: int, message: str) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": code, "message": message},
    }


def make_init_result(request_id: int = 1, name: str = "test-server") -> dict[str, Any]:
    return make_result(
        request_id,
        {
            "protocolVersion": "2024-11-05",
            "capabilities": {"tools": {}},
            "serverInfo": {"name": name, "version": "1.0.0"},
        },
    )


def make_text_result(request_id: int, text: str) -> dict[str, Any]:
    return make_result(request_id, {"content": [{"type": "text", "text": text}]})


@pytest.fixture
def transport() -> MemoryTransport:
    return MemoryTransport()
