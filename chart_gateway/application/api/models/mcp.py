"""
MCP API Models

JSON-RPC 2.0 envelopes for the ``/mcp`` surface, plus the content blocks
returned by tool calls.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from chart_gateway.core.config.constants import JSONRPC_VERSION


class JsonRpcRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    jsonrpc: str = JSONRPC_VERSION
    id: str | int | None = None
    method: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)


class JsonRpcError(BaseModel):
    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    jsonrpc: str = JSONRPC_VERSION
    id: str | int | None = None
    result: Any = None
    error: JsonRpcError | None = None


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["image"] = "image"
    data: str
    mime_type: str = Field(default="image/png", alias="mimeType")


class ToolResult(BaseModel):
    content: list[TextContent | ImageContent]

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
