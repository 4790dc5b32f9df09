"""MCP server exposing Sumo Logic log search over stdio."""

import asyncio
import json
from typing import Dict, Any, List, Optional, Callable

import structlog
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .config import SumoSearchConfig
from .auth import SumoLogicAuth
from .api_client import SumoLogicAPIClient
from .tools.search_tools import SearchTools
from .exceptions import SumoLogicError, ValidationError
from .error_handler import ErrorHandler
from .masking import MaskingPolicy, set_masking_policy

logger = structlog.get_logger(__name__)


class SumoSearchMCPServer:
    """Owns the MCP ``Server`` and the objects behind its tools.

    Nothing talks to Sumo Logic until ``start()`` has run; use the server as
    an async context manager to pair ``start()`` with ``shutdown()``.
    """

    def __init__(self, config: SumoSearchConfig):
        self.config = config
        self.logger = logger.bind(server_name=config.server_name)
        self.mcp_server = Server(config.server_name)
        self.error_handler = ErrorHandler(config.server_name)

        self.auth: Optional[SumoLogicAuth] = None
        self.api_client: Optional[SumoLogicAPIClient] = None
        self.search_tools: Optional[SearchTools] = None

        self.tool_handlers: Dict[str, Callable] = {}
        self.tool_definitions: List[Dict[str, Any]] = []

    async def start(self) -> None:
        self.logger.info(
            "Server starting",
            version=self.config.server_version,
            endpoint=self.config.endpoint,
            time_zone=self.config.time_zone,
            fail_soft=self.config.fail_soft
        )
        try:
            self.auth = SumoLogicAuth(self.config)
            self.api_client = SumoLogicAPIClient(self.config, self.auth)
            set_masking_policy(MaskingPolicy.default().with_patterns(self.config.mask_patterns))
            self.search_tools = SearchTools(self.api_client, self.config)
            self.register_tools()
        except Exception as e:
            self.logger.error("Server failed to start", error=str(e), error_type=type(e).__name__)
            raise
        self.logger.info("Server ready", tools=sorted(self.tool_handlers))

    def register_tools(self) -> None:
        """Map tool names to ``SearchTools`` methods and install ``list_tools``."""
        if self.search_tools is None:
            raise SumoLogicError("Search tools not initialized")

        self.tool_definitions = self.search_tools.get_tool_definitions()
        self.tool_handlers = {
            definition["name"]: getattr(self.search_tools, definition["name"])
            for definition in self.tool_definitions
        }
        tools = [
            Tool(name=d["name"], description=d["description"], inputSchema=d["inputSchema"])
            for d in self.tool_definitions
        ]

        @self.mcp_server.list_tools()
        async def list_tools_handler() -> List[Tool]:
            return tools

    async def handle_tool_call(self, tool_name: str, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Run one tool call and wrap the outcome as MCP content.

        Failures, including unknown tool names, come back as error results
        built by ``ErrorHandler`` rather than as exceptions.

        Returns:
            Dict with ``content`` (a list of text parts) and ``isError``
        """
        arguments = arguments or {}
        loop = asyncio.get_running_loop()
        started = loop.time()
        self.error_handler.log_request(tool_name, arguments)

        def elapsed_ms() -> float:
            return (loop.time() - started) * 1000

        try:
            handler = self.tool_handlers.get(tool_name)
            if handler is None:
                raise ValidationError(
                    f"Unknown tool: {tool_name}. Available tools: {', '.join(self.tool_handlers)}",
                    field_name="name"
                )
            result = await handler(**arguments)
        except Exception as e:
            self.error_handler.log_response(tool_name, success=False, execution_time_ms=elapsed_ms())
            return self.error_handler.handle_tool_error(e, tool_name, arguments, elapsed_ms())

        text = json.dumps(result, indent=2, default=str)
        self.error_handler.log_response(
            tool_name, success=True, execution_time_ms=elapsed_ms(), response_size=len(text)
        )
        return {"content": [{"type": "text", "text": text}], "isError": False}

    async def run_stdio(self) -> None:
        """Serve MCP requests on stdin/stdout until the client disconnects."""

        @self.mcp_server.call_tool()
        async def handle_call_tool(name: str, arguments: dict) -> List[TextContent]:
            result = await self.handle_tool_call(name, arguments)
            text = "\n".join(part["text"] for part in result["content"])
            # The SDK reports a raised exception as an error result with its text
            if result["isError"]:
                raise SumoLogicError(text)
            return [TextContent(type="text", text=text)]

        self.logger.info("Serving over stdio")
        async with stdio_server() as (read_stream, write_stream):
            await self.mcp_server.run(
                read_stream,
                write_stream,
                self.mcp_server.create_initialization_options()
            )

    async def shutdown(self) -> None:
        """Close the HTTP client; errors are logged and re-raised."""
        if self.api_client is None:
            return
        try:
            await self.api_client.close()
        except Exception as e:
            self.logger.error("Closing the API client failed", error=str(e), error_type=type(e).__name__)
            raise
        self.logger.info("Server shut down")

    async def __aenter__(self) -> "SumoSearchMCPServer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()
