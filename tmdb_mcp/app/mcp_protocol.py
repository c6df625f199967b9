from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

JSONRPC_VERSION = "2.0"
MCP_PROTOCOL_VERSION = "2025-11-25"
SUPPORTED_PROTOCOL_VERSIONS = (
    "2025-11-25",
    "2025-06-18",
    "2025-03-26",
    "2024-11-05",
)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

RESOURCE_URI_PREFIX = "tmdb:///movie/"
RESOURCE_MIME_TYPE = "application/json"


class RequestKind(str, Enum):
    LIST_RESOURCES = "resources/list"
    READ_RESOURCE = "resources/read"
    LIST_TOOLS = "tools/list"
    CALL_TOOL = "tools/call"


@dataclass(slots=True, frozen=True)
class ServerInfo:
    name: str
    version: str


class McpModel(BaseModel):
    """와이어에서는 camelCase 키를 쓰고 파이썬에서는 snake_case 이름을 써요."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ── Requests ──────────────────────────────────────────────────────────────────


class ListResourcesRequest(McpModel):
    cursor: str | None = None


class ReadResourceRequest(McpModel):
    uri: str


class ListToolsRequest(McpModel):
    cursor: str | None = None


class CallToolRequest(McpModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


# ── Results ───────────────────────────────────────────────────────────────────


class ResourceDescriptor(McpModel):
    uri: str
    mime_type: str = RESOURCE_MIME_TYPE
    name: str


class ListResourcesResult(McpModel):
    resources: list[ResourceDescriptor]
    next_cursor: str | None = None


class ResourceContents(McpModel):
    uri: str
    mime_type: str = RESOURCE_MIME_TYPE
    text: str


class ReadResourceResult(McpModel):
    contents: list[ResourceContents]


class ToolDescriptor(McpModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    input_schema: dict[str, Any]


class ListToolsResult(McpModel):
    tools: list[ToolDescriptor]


class TextContent(McpModel):
    type: Literal["text"] = "text"
    text: str


class CallToolResult(McpModel):
    content: list[TextContent]
    is_error: bool = False

    @classmethod
    def text(cls, text: str, *, is_error: bool = False) -> "CallToolResult":
        return cls(content=[TextContent(text=text)], is_error=is_error)


# ── JSON-RPC envelopes ────────────────────────────────────────────────────────


def result_response(request_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(
    request_id: Any,
    code: int,
    message: str,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}
