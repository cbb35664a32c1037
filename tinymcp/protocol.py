"""
MCP Protocol definitions.

JSON-RPC 2.0 envelopes, method names, error codes and the payloads
exchanged by the built-in methods.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, StrictStr, field_validator


JSONRPC_VERSION = "2.0"

INITIALIZE = "initialize"
SHUTDOWN = "shutdown"
LIST_TOOLS = "tools/list"
CALL_TOOL = "tools/call"
LIST_RESOURCES = "resources/list"
READ_RESOURCE = "resources/read"


class ErrorCode(Enum):
    """JSON-RPC error codes."""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    # Server-defined
    SERVER_ERROR = -32000
    ACCESS_DENIED = -32001
    NOT_FOUND = -32002


def to_wire(value: Any) -> Any:
    """Convert payload objects into plain JSON-compatible structures."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(v) for v in value]
    return value


@dataclass
class JSONRPCError:
    """JSON-RPC error object."""
    code: int
    message: str
    data: Optional[Any] = None

    @classmethod
    def from_code(cls, code: ErrorCode, message: str, data: Any = None) -> "JSONRPCError":
        return cls(code=code.value, message=message, data=data)

    def to_dict(self) -> dict:
        result = {"code": self.code, "message": self.message}
        if self.data is not None:
            result["data"] = to_wire(self.data)
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "JSONRPCError":
        return cls(
            code=data["code"],
            message=data.get("message", ""),
            data=data.get("data"),
        )


@dataclass
class JSONRPCRequest:
    """JSON-RPC request envelope."""
    id: str = ""
    method: str = ""
    params: Optional[Any] = None
    jsonrpc: str = JSONRPC_VERSION

    def to_dict(self) -> dict:
        result = {"jsonrpc": self.jsonrpc, "id": self.id, "method": self.method}
        if self.params is not None:
            result["params"] = to_wire(self.params)
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), allow_nan=False)

    @classmethod
    def from_dict(cls, data: dict) -> "JSONRPCRequest":
        return cls(
            jsonrpc=data.get("jsonrpc", JSONRPC_VERSION),
            id=data.get("id") or "",
            method=data.get("method") or "",
            params=data.get("params"),
        )

    @classmethod
    def from_json(cls, json_str: str) -> "JSONRPCRequest":
        return cls.from_dict(json.loads(json_str))


@dataclass
class JSONRPCResponse:
    """JSON-RPC response envelope.

    Exactly one of ``result`` and ``error`` goes on the wire: ``result`` is
    written (possibly as ``null``) whenever ``error`` is absent.
    """
    id: str = ""
    result: Optional[Any] = None
    error: Optional[JSONRPCError] = None
    jsonrpc: str = JSONRPC_VERSION

    def to_dict(self) -> dict:
        result = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            result["error"] = self.error.to_dict()
        else:
            result["result"] = to_wire(self.result)
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), allow_nan=False)

    @classmethod
    def from_dict(cls, data: dict) -> "JSONRPCResponse":
        error = data.get("error")
        return cls(
            jsonrpc=data.get("jsonrpc", JSONRPC_VERSION),
            id=data.get("id") or "",
            result=data.get("result"),
            error=JSONRPCError.from_dict(error) if error is not None else None,
        )

    @classmethod
    def from_json(cls, json_str: str) -> "JSONRPCResponse":
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def success(cls, id: str, result: Any) -> "JSONRPCResponse":
        return cls(id=id, result=result)

    @classmethod
    def failure(cls, id: str, error: JSONRPCError) -> "JSONRPCResponse":
        return cls(id=id, error=error)


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


@dataclass
class OperationContent:
    """One unit of content returned by a tool or resource.

    ``type`` is advisory (text, markdown, json, uri, ...); any combination of
    the optional fields may be set.
    """
    type: str
    text: Optional[str] = None
    data: Optional[Any] = None
    uri: Optional[str] = None

    @classmethod
    def from_text(cls, text: str, type: str = "text") -> "OperationContent":
        return cls(type=type, text=text)

    def to_dict(self) -> dict:
        result = {"type": self.type}
        if self.text is not None:
            result["text"] = self.text
        if self.data is not None:
            result["data"] = to_wire(self.data)
        if self.uri is not None:
            result["uri"] = self.uri
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "OperationContent":
        return cls(
            type=data.get("type", ""),
            text=data.get("text"),
            data=data.get("data"),
            uri=data.get("uri"),
        )


@dataclass
class ToolResult:
    """Result from tool execution."""
    content: List[OperationContent] = field(default_factory=list)

    @classmethod
    def from_text(cls, *texts: str) -> "ToolResult":
        return cls(content=[OperationContent.from_text(t) for t in texts])

    def to_dict(self) -> dict:
        return {"content": [to_wire(c) for c in self.content]}


# ---------------------------------------------------------------------------
# Params
# ---------------------------------------------------------------------------


class ClientInfo(BaseModel):
    name: str = ""
    version: str = ""


class InitializeParams(BaseModel):
    """Parameters of ``initialize``."""

    model_config = {"populate_by_name": True}

    client_info: Optional[ClientInfo] = Field(default=None, alias="clientInfo")


class ShutdownParams(BaseModel):
    """Parameters of ``shutdown`` (none)."""


class CallToolParams(BaseModel):
    """Parameters of ``tools/call``."""

    name: StrictStr
    arguments: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("arguments", mode="before")
    @classmethod
    def _null_arguments(cls, value: Any) -> Any:
        return {} if value is None else value


class ReadResourceParams(BaseModel):
    """Parameters of ``resources/read``."""

    uri: StrictStr


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class InitializeResult:
    name: str
    version: str
    tools: bool = False
    resources: bool = False

    def to_dict(self) -> dict:
        return {
            "serverInfo": {"name": self.name, "version": self.version},
            "capabilities": {"tools": self.tools, "resources": self.resources},
        }


@dataclass
class ShutdownResult:
    message: str

    def to_dict(self) -> dict:
        return {"message": self.message}


@dataclass
class ListToolsResult:
    tools: List[Any] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"tools": [to_wire(t) for t in self.tools]}


@dataclass
class ListResourcesResult:
    resources: List[Any] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"resources": [to_wire(r) for r in self.resources]}


@dataclass
class ReadResourceResult:
    content: List[OperationContent] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"content": [to_wire(c) for c in self.content]}


def parse_request(raw: str) -> JSONRPCRequest:
    """Parse raw text into a request envelope.

    Raises ValueError when the text is not a JSON object of the envelope
    shape.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ValueError(f"Invalid JSON: {e}")

    if not isinstance(data, dict):
        raise ValueError("Message must be a JSON object")

    request_id = data.get("id")
    if request_id is not None and not isinstance(request_id, str):
        raise ValueError(f"Invalid id: expected string, got {type(request_id).__name__}")

    method = data.get("method")
    if method is not None and not isinstance(method, str):
        raise ValueError(f"Invalid method: expected string, got {type(method).__name__}")

    params = data.get("params")
    if params is not None and not isinstance(params, dict):
        raise ValueError(f"Invalid params: expected object, got {type(params).__name__}")

    return JSONRPCRequest.from_dict(data)
