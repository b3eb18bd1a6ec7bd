"""Shared helper functions for tool implementations"""

from typing import Any, Dict

from models.emoji import EmojiRecord


def emoji_summary(index: int, record: EmojiRecord) -> Dict[str, Any]:
    """Build the response dict describing one live emoji"""
    return {
        "index": index,
        "name": record.name,
        "ascent": record.ascent,
        "height": record.height,
        "permission": record.permission,
        "image_bytes": record.image_size,
        "filename": record.filename,
    }
