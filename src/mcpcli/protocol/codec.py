"""Stateless translation between JSON-RPC messages and single text lines."""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from mcpcli.constants import JSONRPC_VERSION
from mcpcli.protocol.errors import DecodeError, ProtocolError
from mcpcli.protocol.models import (
    Failure,
    JsonRpcNotification,
    JsonRpcResponse,
    Success,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

#: Characters of an offending line quoted back in decode errors.
_MAX_PREVIEW_CHARS = 200


def encode_request(request_id: int, method: str, params: Any = None) -> str:
    """Serialize a request to one line of compact JSON.

    ``params`` is omitted entirely when ``None``.  Pydantic models are
    dumped by alias with unset optional fields dropped.
    """
    message: dict[str, Any] = {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "method": method,
    }
    if params is not None:
        if isinstance(params, BaseModel):
            params = params.model_dump(mode="json", by_alias=True, exclude_none=True)
        message["params"] = params
    # json.dumps escapes newlines inside strings, so the output is one line.
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False)


def encode_response(
    request_id: int | str, result: Any = None, error: dict[str, Any] | None = None
) -> str:
    """Serialize our answer to a server-initiated request."""
    message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": request_id}
    if error is not None:
        message["error"] = error
    else:
        message["result"] = result if result is not None else {}
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False)


def decode_message(line: str) -> JsonRpcResponse | JsonRpcNotification:
    """Parse one line into a response, or a server message if it has a method."""
    try:
        raw = json.loads(line)
    except json.JSONDecodeError as exc:
        msg = f"Invalid JSON from server: {_preview(line)}"
        raise DecodeError(msg) from exc

    if not isinstance(raw, dict):
        msg = f"Expected a JSON-RPC object, got {type(raw).__name__}"
        raise DecodeError(msg)

    if "method" in raw:
        try:
            return JsonRpcNotification.model_validate(raw)
        except ValidationError as exc:
            msg = f"Malformed notification: {_preview(line)}"
            raise DecodeError(msg) from exc

    try:
        return JsonRpcResponse.model_validate(raw)
    except ValidationError as exc:
        msg = f"Malformed JSON-RPC response: {_preview(line)}"
        raise DecodeError(msg) from exc


def decode_response(line: str) -> JsonRpcResponse:
    """Parse one line that must be a response."""
    message = decode_message(line)
    if isinstance(message, JsonRpcNotification):
        msg = f"Expected a response, got notification '{message.method}'"
        raise DecodeError(msg)
    return message


def extract_result(response: JsonRpcResponse, model: type[ModelT]) -> ModelT:
    """Return the response's result decoded as *model*.

    Raises:
        ProtocolError: The server returned an error object.
        DecodeError: There is no result or it does not fit *model*.
    """
    match response.outcome:
        case Failure(error=error):
            raise ProtocolError(error.code, error.message, error.data)
        case Success(value=None):
            msg = "Response has no result"
            raise DecodeError(msg)
        case Success(value=value):
            try:
                return model.model_validate(value)
            except ValidationError as exc:
                msg = f"Failed to decode result as {model.__name__}: {exc}"
                raise DecodeError(msg) from exc
    msg = "Unrecognized response outcome"
    raise DecodeError(msg)


def _preview(line: str) -> str:
    return line[:_MAX_PREVIEW_CHARS]
