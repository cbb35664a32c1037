"""
Tool and resource registry.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from .protocol import OperationContent, ToolResult


ToolHandler = Callable[[Mapping[str, Any]], Optional[ToolResult]]
ResourceReader = Callable[[str], List[OperationContent]]


@dataclass
class Tool:
    """A named, schema-described operation invocable via ``tools/call``.

    ``handler`` receives the raw argument bag and raises on failure.
    """
    name: str
    description: str
    input_schema: Dict[str, Any] = field(default_factory=dict)
    handler: Optional[ToolHandler] = field(default=None, repr=False, compare=False)

    def run(self, arguments: Optional[Mapping[str, Any]]) -> Optional[ToolResult]:
        if self.handler is None:
            raise RuntimeError(f"Tool {self.name} has no handler")
        return self.handler(arguments if arguments is not None else {})

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass
class Resource:
    """A URI-keyed readable content source invocable via ``resources/read``."""
    name: str
    description: str
    uri: str
    reader: Optional[ResourceReader] = field(default=None, repr=False, compare=False)

    def read(self, uri: Optional[str] = None) -> List[OperationContent]:
        if self.reader is None:
            raise RuntimeError(f"Resource {self.name} has no reader")
        return list(self.reader(uri or self.uri))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "uri": self.uri,
        }


class Registry:
    """
    Registered tools (by name) and resources (by URI).

    Registering under an existing key replaces the previous entry. Both maps
    share one lock, so registration is safe while requests are being served.
    """

    def __init__(self):
        self._tools: Dict[str, Tool] = {}
        self._resources: Dict[str, Resource] = {}
        self._lock = threading.RLock()

    def add_tool(self, tool: Tool) -> None:
        with self._lock:
            self._tools[tool.name] = tool

    def add_resource(self, resource: Resource) -> None:
        with self._lock:
            self._resources[resource.uri] = resource

    def get_tool(self, name: str) -> Optional[Tool]:
        with self._lock:
            return self._tools.get(name)

    def get_resource(self, uri: str) -> Optional[Resource]:
        with self._lock:
            return self._resources.get(uri)

    def tools(self) -> List[Tool]:
        with self._lock:
            return list(self._tools.values())

    def resources(self) -> List[Resource]:
        with self._lock:
            return list(self._resources.values())

    @property
    def has_tools(self) -> bool:
        with self._lock:
            return len(self._tools) > 0

    @property
    def has_resources(self) -> bool:
        with self._lock:
            return len(self._resources) > 0
