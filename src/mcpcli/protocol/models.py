"""Pydantic v2 models for JSON-RPC messages and MCP payloads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from mcpcli.constants import CLIENT_NAME, CLIENT_VERSION, PROTOCOL_VERSION

# ------------------------------------------------------------------ #
# JSON-RPC envelope
# ------------------------------------------------------------------ #


class JsonRpcError(BaseModel):
    """JSON-RPC 2.0 error object."""

    model_config = ConfigDict(extra="ignore")

    code: StrictInt
    message: str
    data: Any = None


@dataclass(frozen=True)
class Success:
    """Response outcome carrying the raw ``result`` value."""

    value: Any


@dataclass(frozen=True)
class Failure:
    """Response outcome carrying the server's error object."""

    error: JsonRpcError


Outcome = Success | Failure


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response message."""

    model_config = ConfigDict(extra="ignore")

    jsonrpc: str = "2.0"
    id: StrictInt
    result: Any = None
    error: JsonRpcError | None = None

    @property
    def outcome(self) -> Outcome:
        """Tagged view of the response: the error wins over any result."""
        if self.error is not None:
            return Failure(self.error)
        return Success(self.result)


class JsonRpcNotification(BaseModel):
    """Server-initiated message (log, progress, ping).

    Plain notifications carry no id; a server *request* such as ``ping``
    carries one and expects an answer.
    """

    model_config = ConfigDict(extra="ignore")

    jsonrpc: str = "2.0"
    id: StrictInt | str | None = None
    method: str
    params: Any = None


# ------------------------------------------------------------------ #
# initialize
# ------------------------------------------------------------------ #


class Implementation(BaseModel):
    """Name/version pair identifying a client or a server."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    version: str | None = None


class InitializeParams(BaseModel):
    """Parameters of the ``initialize`` request."""

    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    capabilities: dict[str, Any] = Field(default_factory=dict)
    client_info: Implementation = Field(
        default_factory=lambda: Implementation(name=CLIENT_NAME, version=CLIENT_VERSION),
        alias="clientInfo",
    )


class InitializeResult(BaseModel):
    """Result of the ``initialize`` request; every field is optional on the wire."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    protocol_version: str | None = Field(default=None, alias="protocolVersion")
    capabilities: dict[str, Any] | None = None
    server_info: Implementation | None = Field(default=None, alias="serverInfo")


# ------------------------------------------------------------------ #
# tools/list
# ------------------------------------------------------------------ #


class SchemaProperty(BaseModel):
    """One property of a tool's input schema."""

    model_config = ConfigDict(extra="allow")

    type: str | list[str] | None = None
    description: str | None = None
    default: Any = None
    enum: list[Any] | None = None

    @property
    def type_label(self) -> str | None:
        if isinstance(self.type, list):
            return "|".join(self.type)
        return self.type


class InputSchema(BaseModel):
    """JSON-Schema-like description of a tool's arguments."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    properties: dict[str, SchemaProperty] | None = None
    required: list[str] | None = None

    @property
    def required_names(self) -> set[str]:
        return set(self.required or [])


class ToolDescriptor(BaseModel):
    """A tool advertised by the server."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    description: str | None = None
    input_schema: InputSchema | None = Field(default=None, alias="inputSchema")


class ToolListResult(BaseModel):
    """Result of the ``tools/list`` request."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    tools: list[ToolDescriptor] = Field(default_factory=list)
    next_cursor: str | None = Field(default=None, alias="nextCursor")


# ------------------------------------------------------------------ #
# tools/call
# ------------------------------------------------------------------ #


class ToolCallParams(BaseModel):
    """Parameters of the ``tools/call`` request."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class TextContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["text"] = "text"
    text: str = ""


class ImageContent(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: Literal["image"] = "image"
    mime_type: str | None = Field(default=None, alias="mimeType")
    data: str = ""


class OtherContent(BaseModel):
    """Any content type this client does not interpret; kept verbatim."""

    model_config = ConfigDict(extra="allow")

    type: str


ContentItem = Annotated[
    TextContent | ImageContent | OtherContent,
    Field(union_mode="left_to_right"),
]


class ToolCallResult(BaseModel):
    """Result of the ``tools/call`` request."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    content: list[ContentItem] = Field(default_factory=list)
    is_error: bool | None = Field(default=None, alias="isError")
