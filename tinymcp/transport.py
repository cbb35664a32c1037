"""
MCP Transport layer implementations.

Transports frame raw messages and hand them to the server:
- StdioTransport: line-delimited JSON over stdin/stdout
- HttpTransport: JSON POSTed to a single HTTP endpoint
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from .errors import EnvelopeEncodeError

if TYPE_CHECKING:
    from .server import MCPServer


logger = logging.getLogger(__name__)


class Transport(ABC):
    """Abstract base class for MCP transports."""

    def __init__(self):
        self._server: Optional["MCPServer"] = None

    def set_server(self, server: "MCPServer") -> None:
        """Attach the server that handles incoming messages."""
        self._server = server

    @property
    def server(self) -> "MCPServer":
        if self._server is None:
            raise RuntimeError("Transport has no server")
        return self._server

    @abstractmethod
    async def start(self) -> None:
        """Serve messages until the transport is exhausted."""
        pass


class StdioTransport(Transport):
    """
    Transport using stdin/stdout for communication.

    Each request is one line of JSON; each response is written as one line.
    Requests are processed strictly one at a time.
    """

    def __init__(self, input_stream=None, output_stream=None):
        super().__init__()
        self.input = input_stream or sys.stdin
        self.output = output_stream or sys.stdout

    async def start(self) -> None:
        server = self.server

        while True:
            try:
                line = self.input.readline()
            except (OSError, ValueError) as e:
                logger.error(f"Error reading input: {e}")
                break

            if not line:
                logger.info("EOF received, stopping")
                break

            if not line.strip():
                continue

            try:
                response = await server.handle(line)
            except EnvelopeEncodeError as e:
                logger.error(f"Dropping response: {e}")
                continue

            self.output.write(response + "\n")
            self.output.flush()


class HttpTransport(Transport):
    """
    Transport accepting JSON-RPC messages via HTTP POST.

    Serves a FastAPI app with uvicorn; every POST to ``path`` carries one
    request and gets one response.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 8080, path: str = "/mcp"):
        super().__init__()
        self.host = host
        self.port = port
        self.path = path
        self._app: Optional[FastAPI] = None

    @property
    def app(self) -> FastAPI:
        if self._app is None:
            self._app = self._create_app()
        return self._app

    def _create_app(self) -> FastAPI:
        app = FastAPI(title="tinymcp")

        @app.post(self.path)
        async def handle_message(request: Request) -> Response:
            body = await request.body()
            try:
                text = body.decode("utf-8")
            except UnicodeDecodeError:
                return PlainTextResponse("Error reading the request body", status_code=400)

            try:
                payload = await self.server.handle(text)
            except EnvelopeEncodeError as e:
                logger.error(f"Failed to encode response: {e}")
                return PlainTextResponse("Internal Server Error", status_code=500)

            logger.debug(f"Response: {payload}")
            return Response(
                content=payload + "\n",
                media_type="application/json; charset=utf-8",
            )

        return app

    async def start(self) -> None:
        config = uvicorn.Config(self.app, host=self.host, port=self.port, log_level="info")
        logger.info(f"Server started and listening on http://{self.host}:{self.port}{self.path}")
        await uvicorn.Server(config).serve()
