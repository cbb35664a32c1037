"""Error types raised by the server."""


class MCPServerError(Exception):
    """Base error for all server failures."""


class HandlerError(MCPServerError, TypeError):
    """A tool handler does not have a supported shape."""


class HandlerNotFunction(HandlerError):
    """Handler is not a function."""

    def __init__(self, handler: object) -> None:
        super().__init__(f"handler must be a function, got {type(handler).__name__}")


class HandlerWrongArgs(HandlerError):
    """Handler does not accept exactly one argument."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"handler must accept exactly 1 argument, got {count}")


class HandlerArgNotStruct(HandlerError):
    """Handler argument is not a pydantic model or dataclass."""

    def __init__(self, annotation: object) -> None:
        self.annotation = annotation
        super().__init__(
            f"handler argument must be a pydantic model or dataclass, got {annotation!r}"
        )


class HandlerWrongReturns(HandlerError):
    """Handler does not declare (ToolResult, error) outputs."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"handler must return (ToolResult, error): {detail}")


class ToolExecutionError(MCPServerError):
    """A tool invocation failed."""

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail
        super().__init__(detail or f"Tool execution failed: {name}")


class ResourceReadError(MCPServerError):
    """A resource could not be read."""

    def __init__(self, uri: str, detail: str = "") -> None:
        self.uri = uri
        self.detail = detail
        super().__init__(detail or f"Resource read failed: {uri}")


class EnvelopeEncodeError(MCPServerError):
    """A response envelope could not be encoded."""


class RequestError(MCPServerError):
    """A request cannot be served; carries the JSON-RPC error to reply with."""

    def __init__(self, code, message: str, data=None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)
