#!/usr/bin/env python3
"""
Calculator MCP Server Example

Serves ``plus`` and ``minus`` tools over HTTP (POST /mcp) or stdio.

Run:
  python examples/calculator.py --port 8080
Then:
  curl -X POST localhost:8080/mcp -d '{"jsonrpc":"2.0","id":"1","method":"tools/call",
    "params":{"name":"plus","arguments":{"a":2,"b":3}}}'
"""

import argparse
import logging
import os
import sys

from pydantic import BaseModel

from tinymcp import HttpTransport, MCPServer, ServerConfig, StdioTransport, ToolResult


logger = logging.getLogger("calculator")


class CalculatorParams(BaseModel):
    a: int
    b: int


def create_calculator() -> MCPServer:
    server = MCPServer(ServerConfig(name="tinymcp-calculator", version="1.0.0"))

    @server.tool("plus", "Sum operator for 2 int parameters")
    def plus(params: CalculatorParams) -> ToolResult:
        logger.info(f"plus {params.a} {params.b}")
        return ToolResult.from_text(str(params.a + params.b))

    @server.tool("minus", "Minus operator for 2 int parameters")
    def minus(params: CalculatorParams) -> ToolResult:
        logger.info(f"minus {params.a} {params.b}")
        return ToolResult.from_text(str(params.a - params.b))

    return server


def main():
    parser = argparse.ArgumentParser(description="Calculator MCP server")
    parser.add_argument("--transport", choices=["http", "stdio"], default="http")
    parser.add_argument("--host", default=os.environ.get("TINYMCP_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("TINYMCP_PORT", "8080")))
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    if args.transport == "http":
        transport = HttpTransport(host=args.host, port=args.port)
    else:
        transport = StdioTransport()

    create_calculator().with_transport(transport).serve()


if __name__ == "__main__":
    main()
