"""JSON-RPC codec, MCP payload models, and the client error taxonomy."""

from mcpcli.protocol.codec import (
    decode_message,
    decode_response,
    encode_request,
    encode_response,
    extract_result,
)
from mcpcli.protocol.errors import (
    CorrelationError,
    DecodeError,
    ErrorKind,
    InvalidStateError,
    McpError,
    ProtocolError,
    RequestTimeoutError,
    TransportError,
)
from mcpcli.protocol.models import (
    ContentItem,
    ImageContent,
    InitializeResult,
    JsonRpcNotification,
    JsonRpcResponse,
    OtherContent,
    TextContent,
    ToolCallResult,
    ToolDescriptor,
    ToolListResult,
)

__all__ = [
    "ContentItem",
    "CorrelationError",
    "DecodeError",
    "ErrorKind",
    "ImageContent",
    "InitializeResult",
    "InvalidStateError",
    "JsonRpcNotification",
    "JsonRpcResponse",
    "McpError",
    "OtherContent",
    "ProtocolError",
    "RequestTimeoutError",
    "TextContent",
    "ToolCallResult",
    "ToolDescriptor",
    "ToolListResult",
    "TransportError",
    "decode_message",
    "decode_response",
    "encode_request",
    "encode_response",
    "extract_result",
]
