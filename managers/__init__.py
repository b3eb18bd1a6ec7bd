"""Manager classes for MCEmoji MCP Server"""

from managers.defaults_manager import DefaultsManager
from managers.emoji_store import EmojiStore
from managers.export_manager import ExportManager

__all__ = ["DefaultsManager", "EmojiStore", "ExportManager"]
