"""Tests for tinymcp.transport module."""

import pytest
import io
import json

from fastapi.testclient import TestClient
from pydantic import BaseModel

from tinymcp.protocol import OperationContent, ToolResult
from tinymcp.server import MCPServer, ServerConfig
from tinymcp.transport import HttpTransport, StdioTransport


class PlusParams(BaseModel):
    A: int
    B: int


def plus(params: PlusParams) -> ToolResult:
    return ToolResult.from_text(str(params.A + params.B))


def opaque(params: PlusParams) -> ToolResult:
    return ToolResult([OperationContent(type="json", data=object())])


@pytest.fixture
def server():
    server = MCPServer(ServerConfig(name="test-server", version="1.0"))
    server.add_tool_func("plus", "Sum operator", plus)
    server.add_tool_func("opaque", "Unencodable result", opaque)
    return server


def request_line(id, method, params=None):
    message = {"jsonrpc": "2.0", "id": id, "method": method}
    if params is not None:
        message["params"] = params
    return json.dumps(message) + "\n"


class BrokenStream:
    def readline(self):
        raise OSError("device error")


class TestStdioTransport:
    def test_create_with_streams(self):
        input_stream = io.StringIO()
        output_stream = io.StringIO()
        transport = StdioTransport(input_stream=input_stream, output_stream=output_stream)
        assert transport.input is input_stream
        assert transport.output is output_stream

    def test_server_required(self):
        transport = StdioTransport()
        with pytest.raises(RuntimeError):
            transport.server

    @pytest.mark.asyncio
    async def test_one_response_per_line(self, server):
        input_stream = io.StringIO(
            request_line("1", "initialize")
            + request_line("2", "tools/call", {"name": "plus", "arguments": {"A": 2, "B": 3}})
            + request_line("3", "shutdown")
            + request_line("4", "tools/list")
        )
        output = io.StringIO()
        transport = StdioTransport(input_stream=input_stream, output_stream=output)
        server.with_transport(transport)

        await transport.start()

        lines = output.getvalue().splitlines()
        responses = [json.loads(line) for line in lines]
        assert [r["id"] for r in responses] == ["1", "2", "3", "4"]
        assert responses[0]["result"]["capabilities"]["tools"] is True
        assert responses[1]["result"]["content"] == [{"type": "text", "text": "5"}]
        # shutdown only acknowledges; the loop keeps serving
        assert "message" in responses[2]["result"]
        assert len(responses[3]["result"]["tools"]) == 2

    @pytest.mark.asyncio
    async def test_parse_error_does_not_stop_loop(self, server):
        input_stream = io.StringIO("garbage\n" + request_line("2", "initialize"))
        output = io.StringIO()
        transport = StdioTransport(input_stream=input_stream, output_stream=output)
        server.with_transport(transport)

        await transport.start()

        first, second = [json.loads(line) for line in output.getvalue().splitlines()]
        assert first["id"] == ""
        assert first["error"]["code"] == -32700
        assert second["id"] == "2"

    @pytest.mark.asyncio
    async def test_deeply_nested_line_does_not_stop_loop(self, server):
        input_stream = io.StringIO("[" * 100000 + "]" * 100000 + "\n" + request_line("2", "initialize"))
        output = io.StringIO()
        transport = StdioTransport(input_stream=input_stream, output_stream=output)
        server.with_transport(transport)

        await transport.start()

        first, second = [json.loads(line) for line in output.getvalue().splitlines()]
        assert first["id"] == ""
        assert first["error"]["code"] == -32700
        assert second["id"] == "2"

    @pytest.mark.asyncio
    async def test_blank_lines_skipped(self, server):
        input_stream = io.StringIO("\n   \n" + request_line("1", "initialize"))
        output = io.StringIO()
        transport = StdioTransport(input_stream=input_stream, output_stream=output)
        server.with_transport(transport)

        await transport.start()

        assert len(output.getvalue().splitlines()) == 1

    @pytest.mark.asyncio
    async def test_eof(self, server):
        output = io.StringIO()
        transport = StdioTransport(input_stream=io.StringIO(""), output_stream=output)
        server.with_transport(transport)

        await transport.start()
        assert output.getvalue() == ""

    @pytest.mark.asyncio
    async def test_read_error_stops_loop(self, server):
        output = io.StringIO()
        transport = StdioTransport(input_stream=BrokenStream(), output_stream=output)
        server.with_transport(transport)

        await transport.start()
        assert output.getvalue() == ""

    @pytest.mark.asyncio
    async def test_encode_failure_skips_exchange(self, server):
        input_stream = io.StringIO(
            request_line("1", "tools/call", {"name": "opaque", "arguments": {}})
            + request_line("2", "initialize")
        )
        output = io.StringIO()
        transport = StdioTransport(input_stream=input_stream, output_stream=output)
        server.with_transport(transport)

        await transport.start()

        responses = [json.loads(line) for line in output.getvalue().splitlines()]
        assert [r["id"] for r in responses] == ["2"]


class TestHttpTransport:
    @pytest.fixture
    def client(self, server):
        transport = HttpTransport(port=0)
        server.with_transport(transport)
        return TestClient(transport.app)

    def test_defaults(self):
        transport = HttpTransport()
        assert transport.host == "127.0.0.1"
        assert transport.port == 8080
        assert transport.path == "/mcp"

    def test_post(self, client):
        response = client.post(
            "/mcp",
            content=request_line("1", "tools/call", {"name": "plus", "arguments": {"A": 2, "B": 3}}),
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {
            "jsonrpc": "2.0",
            "id": "1",
            "result": {"content": [{"type": "text", "text": "5"}]},
        }

    def test_parse_error(self, client):
        response = client.post("/mcp", content="{broken")
        assert response.status_code == 200
        assert response.json()["error"]["code"] == -32700
        assert response.json()["id"] == ""

    def test_get_not_allowed(self, client):
        response = client.get("/mcp")
        assert response.status_code == 405

    def test_encode_failure(self, client):
        response = client.post(
            "/mcp",
            content=request_line("1", "tools/call", {"name": "opaque", "arguments": {}}),
        )
        assert response.status_code == 500

    def test_custom_path(self, server):
        transport = HttpTransport(path="/rpc")
        server.with_transport(transport)
        client = TestClient(transport.app)

        assert client.post("/rpc", content=request_line("1", "initialize")).status_code == 200
        assert client.post("/mcp", content=request_line("1", "initialize")).status_code == 404
