"""
tinymcp - Minimal MCP server framework.

Register tools and resources on an MCPServer, attach a transport (stdio or
HTTP) and serve JSON-RPC 2.0 requests.
"""

from .adapter import HandlerAdapter, generate_schema
from .errors import (
    EnvelopeEncodeError,
    HandlerArgNotStruct,
    HandlerError,
    HandlerNotFunction,
    HandlerWrongArgs,
    HandlerWrongReturns,
    MCPServerError,
    ResourceReadError,
    ToolExecutionError,
)
from .protocol import (
    CALL_TOOL,
    INITIALIZE,
    LIST_RESOURCES,
    LIST_TOOLS,
    READ_RESOURCE,
    SHUTDOWN,
    CallToolParams,
    ErrorCode,
    InitializeParams,
    JSONRPCError,
    JSONRPCRequest,
    JSONRPCResponse,
    OperationContent,
    ReadResourceParams,
    ShutdownParams,
    ToolResult,
    parse_request,
)
from .registry import Registry, Resource, Tool
from .server import MCPServer, ServerConfig, create_server
from .transport import HttpTransport, StdioTransport, Transport

__version__ = "0.1.0"

__all__ = [
    # Protocol
    "CALL_TOOL",
    "INITIALIZE",
    "LIST_RESOURCES",
    "LIST_TOOLS",
    "READ_RESOURCE",
    "SHUTDOWN",
    "CallToolParams",
    "ErrorCode",
    "InitializeParams",
    "JSONRPCError",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "OperationContent",
    "ReadResourceParams",
    "ShutdownParams",
    "ToolResult",
    "parse_request",
    # Errors
    "EnvelopeEncodeError",
    "HandlerArgNotStruct",
    "HandlerError",
    "HandlerNotFunction",
    "HandlerWrongArgs",
    "HandlerWrongReturns",
    "MCPServerError",
    "ResourceReadError",
    "ToolExecutionError",
    # Registration
    "HandlerAdapter",
    "generate_schema",
    "Registry",
    "Resource",
    "Tool",
    # Server
    "MCPServer",
    "ServerConfig",
    "create_server",
    # Transport
    "Transport",
    "StdioTransport",
    "HttpTransport",
]
