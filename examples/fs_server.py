#!/usr/bin/env python3
"""
Filesystem MCP Server Example

Provides ``ls``, ``cd`` and ``pwd`` tools plus a ``file://`` resource for a
single file. With ``--demo`` a scripted session is run in-process and every
response is printed; otherwise requests are served over stdio.
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from tinymcp import (
    CALL_TOOL,
    INITIALIZE,
    LIST_RESOURCES,
    LIST_TOOLS,
    READ_RESOURCE,
    SHUTDOWN,
    CallToolParams,
    InitializeParams,
    JSONRPCRequest,
    MCPServer,
    OperationContent,
    ReadResourceParams,
    ResourceReadError,
    ServerConfig,
    StdioTransport,
    ToolResult,
)


logger = logging.getLogger("fs_server")


@dataclass
class FSReaderParams:
    path: str


@dataclass
class NoParams:
    pass


def ls(params: FSReaderParams) -> Tuple[Optional[ToolResult], Optional[Exception]]:
    """List information about FILEs."""
    path = params.path or "."
    if not os.path.isdir(path):
        return None, NotADirectoryError(f"the specified path is not a directory: {path}")

    try:
        names = sorted(os.listdir(path))
    except OSError as e:
        return None, e

    return ToolResult([OperationContent.from_text(name) for name in names]), None


def cd(params: FSReaderParams) -> ToolResult:
    """Change the current directory."""
    os.chdir(params.path)
    return ToolResult.from_text(os.getcwd())


def pwd(params: NoParams) -> ToolResult:
    """Print the current working directory."""
    return ToolResult.from_text(os.getcwd())


def file_reader(path: Path):
    def read(uri: str) -> List[OperationContent]:
        if not path.is_file():
            raise ResourceReadError(uri, f"not a file: {path}")
        return [OperationContent(type="text", text=path.read_text(encoding="utf-8"), uri=uri)]
    return read


def create_fs_server(resource_path: Optional[str] = None) -> MCPServer:
    server = MCPServer(ServerConfig(name="tinymcp-fs", version="1.0.0"))
    server.add_tool_func("ls", "list information about FILEs", ls)
    server.add_tool_func("cd", "change the current directory", cd)
    server.add_tool_func("pwd", "print the current working directory", pwd)

    if resource_path:
        path = Path(resource_path).resolve()
        server.add_resource_func(path.name, f"Contents of {path}", path.as_uri(), file_reader(path))

    return server


async def run_demo(server: MCPServer) -> None:
    requests = [
        JSONRPCRequest("id1", INITIALIZE, InitializeParams(clientInfo={"name": "demo", "version": "0.0.1"})),
        JSONRPCRequest("id2", LIST_RESOURCES),
        JSONRPCRequest("id3", LIST_TOOLS),
        JSONRPCRequest("pwd1", CALL_TOOL, CallToolParams(name="pwd")),
        JSONRPCRequest("ls1", CALL_TOOL, CallToolParams(name="ls", arguments={"path": "../"})),
        JSONRPCRequest("cd1", CALL_TOOL, CallToolParams(name="cd", arguments={"path": "../"})),
        JSONRPCRequest("pwd2", CALL_TOOL, CallToolParams(name="pwd")),
    ]
    for resource in server.resources():
        requests.append(JSONRPCRequest("read1", READ_RESOURCE, ReadResourceParams(uri=resource.uri)))
    requests.append(JSONRPCRequest("finish", SHUTDOWN))

    for request in requests:
        response = await server.handle_request(request)
        print(f"res: {response.to_json()}")


def main():
    parser = argparse.ArgumentParser(description="Filesystem MCP server")
    parser.add_argument("--resource", help="File exposed as a file:// resource")
    parser.add_argument("--demo", action="store_true", help="Run a scripted session and exit")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    server = create_fs_server(args.resource)
    if args.demo:
        asyncio.run(run_demo(server))
    else:
        server.with_transport(StdioTransport()).serve()


if __name__ == "__main__":
    main()
