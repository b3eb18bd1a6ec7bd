import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server.fastmcp import FastMCP

from managers.defaults_manager import DefaultsManager
from managers.emoji_store import EmojiStore
from managers.export_manager import ExportManager
from tools.configuration import register_configuration_tools
from tools.emoji import register_emoji_tools
from tools.export import register_export_tools

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("MCP_Server")

# One editing session per server process
emoji_store = EmojiStore()
defaults_manager = DefaultsManager()
export_manager = ExportManager(emoji_store)


class AppContext:
    def __init__(self, emoji_store: EmojiStore, export_manager: ExportManager):
        self.emoji_store = emoji_store
        self.export_manager = export_manager


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage application lifecycle"""
    logger.info("Starting MCP server lifecycle...")
    try:
        yield AppContext(emoji_store=emoji_store, export_manager=export_manager)
    finally:
        live = len(emoji_store.live_records())
        if live:
            logger.info(f"Shutting down MCP server, discarding {live} unsaved emojis")
        else:
            logger.info("Shutting down MCP server")


mcp = FastMCP("MCEmoji_MCP_Server", lifespan=app_lifespan)

register_emoji_tools(mcp, emoji_store, defaults_manager)
register_export_tools(mcp, export_manager, defaults_manager)
register_configuration_tools(mcp, defaults_manager)

if __name__ == "__main__":
    mcp.run(transport="streamable-http")
