"""Knowledge MCP Server implementation."""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
import mcp.server.stdio
import mcp.types as types

from . import __version__
from .articles import ArticleService
from .config import KnowledgeConfig, load_config
from .exceptions import KnowledgeError
from .logging_config import setup_logging


logger = logging.getLogger(__name__)

SERVER_NAME = "knowledge-mcp"


class KnowledgeMCPServer:
    """MCP Server exposing Salesforce Knowledge search and retrieval tools."""

    def __init__(
        self,
        config: Optional[KnowledgeConfig] = None,
        service: Optional[ArticleService] = None
    ):
        self.server = Server(SERVER_NAME)
        self.config = config or KnowledgeConfig()
        self.service = service or ArticleService.from_config(self.config)

        # Register handlers
        self._register_handlers()

    def _register_handlers(self):
        """Register all tool handlers."""
        self.server.list_tools()(self.list_tools)
        # Arguments are validated by the article service so failures keep the
        # tool error payload shape.
        self.server.call_tool(validate_input=False)(self.call_tool)

    async def list_tools(self) -> List[types.Tool]:
        """Return list of available tools."""
        max_limit = self.config.max_search_limit
        default_limit = self.config.default_search_limit
        return [
            types.Tool(
                name="search_articles",
                description=(
                    "Search Salesforce Knowledge articles by title. Returns published "
                    "articles matching the search term in the configured language."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "q": {"type": "string", "description": "Search term to match against article titles"},
                        "limit": {
                            "type": "number",
                            "description": f"Maximum number of results to return (1-{max_limit}, default {default_limit})",
                            "minimum": 1,
                            "maximum": max_limit
                        }
                    },
                    "required": ["q"]
                }
            ),
            types.Tool(
                name="get_article",
                description=(
                    "Fetch a single Salesforce Knowledge article by its ID. Returns the full "
                    "article details if found and published."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "id": {
                            "type": "string",
                            "description": "Salesforce article ID (15-18 alphanumeric characters)",
                            "pattern": "^[A-Za-z0-9]{15,18}$"
                        }
                    },
                    "required": ["id"]
                }
            )
        ]

    async def call_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None
    ) -> types.CallToolResult:
        """Handle tool execution; failures are returned, never raised."""
        try:
            result = await self._execute_tool(name, arguments or {})
            return types.CallToolResult(
                content=[types.TextContent(type="text", text=json.dumps(result, indent=2))]
            )

        except KnowledgeError as e:
            logger.error(f"MCP error in {name}: {e.message}")
            return self._error_result(name, e.message)

        except Exception as e:
            logger.exception(f"Unexpected error in tool {name}")
            return self._error_result(name, str(e) or type(e).__name__)

    def _error_result(self, name: str, message: str) -> types.CallToolResult:
        error_response = {
            "success": False,
            "error": {
                "message": message,
                "tool": name
            }
        }
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=json.dumps(error_response, indent=2))],
            isError=True
        )

    async def _execute_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a specific tool."""
        if name == "search_articles":
            q = arguments.get("q")
            limit = arguments.get("limit")
            logger.info(f'MCP: Searching articles with q="{q}", limit={limit or self.config.default_search_limit}')
            records = await self.service.search_articles(q, limit)
            return {"success": True, "count": len(records), "data": records}

        elif name == "get_article":
            article_id = arguments.get("id")
            logger.info(f'MCP: Fetching article with id="{article_id}"')
            article = await self.service.get_article_by_id(article_id)
            return {"success": True, "data": article}

        else:
            raise ValueError(f"Unknown tool: {name}")

    async def run(self):
        """Run the MCP server over stdio until the client disconnects."""
        try:
            async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                logger.info("MCP server started on stdio")
                await self.server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name=SERVER_NAME,
                        server_version=__version__,
                        capabilities=self.server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={}
                        )
                    )
                )
        finally:
            await self.service.aclose()


def main():
    """Main entry point."""
    try:
        config = load_config()
    except KnowledgeError as e:
        setup_logging()
        logger.error(f"Failed to start MCP server: {e.message}")
        sys.exit(1)

    setup_logging(config.log_level)
    server = KnowledgeMCPServer(config)

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("MCP server shutting down...")


if __name__ == "__main__":
    main()
