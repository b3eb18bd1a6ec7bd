"""Data models for MCEmoji MCP Server"""

from models.emoji import EmojiRecord, FormatVariant

__all__ = ["EmojiRecord", "FormatVariant"]
