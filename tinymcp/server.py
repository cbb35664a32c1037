"""
MCP Server implementation.

Registers tools and resources, dispatches JSON-RPC requests to the built-in
methods and turns every outcome into a response envelope.
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .adapter import HandlerAdapter
from .errors import EnvelopeEncodeError, RequestError
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
    InitializeResult,
    JSONRPCError,
    JSONRPCRequest,
    JSONRPCResponse,
    ListResourcesResult,
    ListToolsResult,
    ReadResourceParams,
    ReadResourceResult,
    ShutdownResult,
    parse_request,
)
from .registry import Registry, Resource, ResourceReader, Tool
from .transport import StdioTransport, Transport


logger = logging.getLogger(__name__)

SHUTDOWN_MESSAGE = "MCP Session terminated"

P = TypeVar("P", bound=BaseModel)


@dataclass
class ServerConfig:
    """Configuration for MCP server."""
    name: str = "tinymcp"
    version: str = "0.1.0"
    shutdown_message: str = SHUTDOWN_MESSAGE

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "shutdown_message": self.shutdown_message,
        }


class MCPServer:
    """
    MCP Server that handles tool and resource registration and request
    dispatch.

    The server keeps no per-client state; ``shutdown`` only acknowledges,
    stopping the loop is up to the transport.
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        registry: Optional[Registry] = None,
    ):
        self.config = config or ServerConfig()
        self.registry = registry or Registry()
        self._transport: Optional[Transport] = None
        self._handlers: Dict[str, Callable[[JSONRPCRequest], Awaitable[Any]]] = {}

        self._register_default_handlers()

    def _register_default_handlers(self) -> None:
        """Register built-in MCP method handlers."""
        self._handlers[INITIALIZE] = self._handle_initialize
        self._handlers[SHUTDOWN] = self._handle_shutdown
        self._handlers[LIST_TOOLS] = self._handle_list_tools
        self._handlers[CALL_TOOL] = self._handle_call_tool
        self._handlers[LIST_RESOURCES] = self._handle_list_resources
        self._handlers[READ_RESOURCE] = self._handle_read_resource

    @property
    def transport(self) -> Optional[Transport]:
        return self._transport

    # -- registration -----------------------------------------------------

    def add_tool(self, tool: Tool) -> None:
        """Register a tool, replacing any tool with the same name."""
        self.registry.add_tool(tool)

    def add_tool_func(self, name: str, description: str, handler: Callable) -> Tool:
        """
        Register a typed handler as a tool.

        Args:
            name: Tool name
            description: Tool description
            handler: Function taking one pydantic model or dataclass argument

        Returns:
            The registered Tool

        Raises:
            HandlerError: If the handler shape is not supported
        """
        adapter = HandlerAdapter(handler, name=name)
        tool = Tool(
            name=name,
            description=description,
            input_schema=adapter.schema,
            handler=adapter,
        )
        self.add_tool(tool)
        return tool

    def add_resource(self, resource: Resource) -> None:
        """Register a resource, replacing any resource with the same URI."""
        self.registry.add_resource(resource)

    def add_resource_func(
        self,
        name: str,
        description: str,
        uri: str,
        reader: ResourceReader,
    ) -> Resource:
        resource = Resource(name=name, description=description, uri=uri, reader=reader)
        self.add_resource(resource)
        return resource

    def tool(self, name: Optional[str] = None, description: Optional[str] = None):
        """Decorator registering a typed handler as a tool.

        Name defaults to the function name, description to the first line of
        its docstring.
        """
        def decorator(func: Callable) -> Callable:
            self.add_tool_func(
                name or func.__name__,
                description if description is not None else _first_line(func.__doc__),
                func,
            )
            return func
        return decorator

    def resource(
        self,
        uri: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ):
        """Decorator registering a reader function as a resource."""
        def decorator(func: ResourceReader) -> ResourceReader:
            self.add_resource_func(
                name or func.__name__,
                description if description is not None else _first_line(func.__doc__),
                uri,
                func,
            )
            return func
        return decorator

    def tools(self) -> List[Tool]:
        return self.registry.tools()

    def resources(self) -> List[Resource]:
        return self.registry.resources()

    # -- method handlers --------------------------------------------------

    def _params(self, request: JSONRPCRequest, model: Type[P]) -> P:
        """Check that the request carries params of the method's shape."""
        params = request.params
        if isinstance(params, model):
            return params
        if isinstance(params, Mapping):
            try:
                return model.model_validate(params)
            except ValidationError as e:
                logger.debug(f"Invalid params for {request.method}: {e}")
        raise RequestError(ErrorCode.INVALID_PARAMS, "Invalid parameters", request.method)

    async def _handle_initialize(self, request: JSONRPCRequest) -> InitializeResult:
        """Handle initialize request."""
        if isinstance(request.params, Mapping):
            try:
                client = InitializeParams.model_validate(request.params).client_info
            except ValidationError:
                client = None
            if client is not None:
                logger.info(f"Client {client.name} {client.version} initializing")

        return InitializeResult(
            name=self.config.name,
            version=self.config.version,
            tools=self.registry.has_tools,
            resources=self.registry.has_resources,
        )

    async def _handle_shutdown(self, request: JSONRPCRequest) -> ShutdownResult:
        """Handle shutdown request."""
        logger.info("Shutdown requested")
        return ShutdownResult(self.config.shutdown_message)

    async def _handle_list_tools(self, request: JSONRPCRequest) -> ListToolsResult:
        return ListToolsResult(self.registry.tools())

    async def _handle_list_resources(self, request: JSONRPCRequest) -> ListResourcesResult:
        return ListResourcesResult(self.registry.resources())

    async def _handle_call_tool(self, request: JSONRPCRequest) -> Any:
        """Handle tools/call request."""
        params = self._params(request, CallToolParams)

        tool = self.registry.get_tool(params.name)
        if tool is None:
            raise RequestError(ErrorCode.METHOD_NOT_FOUND, "Unknown Tool", request.method)

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, tool.run, params.arguments)
        except Exception as e:
            logger.warning(f"Tool {tool.name} failed: {e}")
            raise RequestError(
                ErrorCode.SERVER_ERROR,
                f"Error executing tool {tool.name}",
                str(e),
            ) from e

    async def _handle_read_resource(self, request: JSONRPCRequest) -> ReadResourceResult:
        """Handle resources/read request."""
        params = self._params(request, ReadResourceParams)

        resource = self.registry.get_resource(params.uri)
        if resource is None:
            raise RequestError(ErrorCode.METHOD_NOT_FOUND, "Unknown Resource", request.method)

        loop = asyncio.get_running_loop()
        try:
            content = await loop.run_in_executor(None, resource.read, params.uri)
        except Exception as e:
            logger.warning(f"Resource {resource.name} failed: {e}")
            raise RequestError(
                ErrorCode.SERVER_ERROR,
                f"Error reading resource {resource.name}",
                str(e),
            ) from e

        return ReadResourceResult(content)

    # -- dispatch ---------------------------------------------------------

    async def handle_request(self, request: JSONRPCRequest) -> JSONRPCResponse:
        """Process a single request envelope."""
        logger.debug(f"Handling request: {request.method}")

        handler = self._handlers.get(request.method)
        if handler is None:
            error = JSONRPCError.from_code(
                ErrorCode.METHOD_NOT_FOUND,
                "Method Not Found",
                request.method,
            )
            return JSONRPCResponse.failure(request.id, error)

        try:
            result = await handler(request)
        except RequestError as e:
            error = JSONRPCError.from_code(e.code, e.message, e.data)
            return JSONRPCResponse.failure(request.id, error)
        except Exception as e:
            logger.exception(f"Error processing request: {e}")
            error = JSONRPCError.from_code(ErrorCode.INTERNAL_ERROR, "Internal error", str(e))
            return JSONRPCResponse.failure(request.id, error)

        return JSONRPCResponse.success(request.id, result)

    async def handle(self, raw: str) -> str:
        """
        Handle one raw message and return the encoded response.

        Raises:
            EnvelopeEncodeError: If the response cannot be encoded
        """
        try:
            request = parse_request(raw)
        except ValueError as e:
            logger.error(f"Parse error: {e}")
            response = JSONRPCResponse.failure(
                "",
                JSONRPCError.from_code(ErrorCode.PARSE_ERROR, "Parse error", str(e)),
            )
        else:
            response = await self.handle_request(request)

        try:
            return response.to_json()
        except (TypeError, ValueError) as e:
            raise EnvelopeEncodeError(f"Failed to encode response {response.id!r}: {e}") from e

    # -- lifecycle --------------------------------------------------------

    def with_transport(self, transport: Transport) -> "MCPServer":
        """Attach a transport and return the server."""
        transport.set_server(self)
        self._transport = transport
        return self

    async def run(self) -> None:
        """Run the attached transport until it returns."""
        if self._transport is None:
            self.with_transport(StdioTransport())

        logger.info(f"MCP Server {self.config.name} v{self.config.version} starting")
        try:
            await self._transport.start()
        finally:
            logger.info("Server stopped")

    def serve(self) -> None:
        """Blocking entry point for scripts."""
        asyncio.run(self.run())


def _first_line(doc: Optional[str]) -> str:
    if not doc:
        return ""
    return doc.strip().splitlines()[0].strip()


def create_server(
    name: str = "tinymcp",
    version: str = "0.1.0",
    transport: Optional[Transport] = None,
) -> MCPServer:
    """
    Create an MCP server.

    Args:
        name: Server name reported by initialize
        version: Server version reported by initialize
        transport: Optional transport to attach

    Returns:
        Configured MCPServer instance
    """
    server = MCPServer(ServerConfig(name=name, version=version))
    if transport is not None:
        server.with_transport(transport)
    return server
