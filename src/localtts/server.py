"""MCP stdio server exposing the local TTS tools.

Usage:
    local-tts serve
"""

import logging
from typing import Any, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from localtts import __version__
from localtts.audio.player import AudioPlayer
from localtts.core.config import AppConfig
from localtts.tools import registry
from localtts.tools.base import ToolContext
from localtts.tts.factory import cleanup_engines, create_engines, start_engines

logger = logging.getLogger(__name__)

SERVER_NAME = "local-tts"


async def build_context(config: AppConfig) -> ToolContext:
    """Create and start the engines and the playback controller."""
    logger.info(f"Output directory: {config.output_dir}")
    logger.info(f"Temp directory: {config.temp_dir}")
    engines = create_engines(config)
    await start_engines(engines)
    return ToolContext(
        config=config,
        engines=engines,
        player=AudioPlayer(config.playback.command),
    )


async def shutdown_context(context: ToolContext) -> None:
    context.player.cleanup()
    await cleanup_engines(context.engines)


def tool_definitions() -> list[types.Tool]:
    return [
        types.Tool(
            name=meta.name,
            description=meta.description,
            inputSchema=meta.input_schema(),
        )
        for meta in registry.list_tools()
    ]


def create_server(context: ToolContext) -> Server:
    """Wire the tool registry into an MCP server bound to ``context``."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return tool_definitions()

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[dict[str, Any]]) -> list[types.TextContent]:
        logger.debug(f"call_tool {name}")
        result = await registry.execute(name, arguments, context)
        return [types.TextContent(type="text", text=result.to_text())]

    return server


async def run_server(config: AppConfig) -> None:
    """Serve over stdio until the client disconnects."""
    context = await build_context(config)
    server = create_server(context)
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("TTS MCP server running on stdio")
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        logger.info("Shutting down...")
        await shutdown_context(context)
