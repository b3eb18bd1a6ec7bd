"""Emoji editing tools for MCEmoji MCP Server"""

import logging
from typing import Any, List, Optional

from mcp.server.fastmcp import FastMCP

from image_loader import ImageRejectedError, decode_image_data, inspect_png, load_image_files
from managers.emoji_store import EDITABLE_FIELDS
from tools.helpers import emoji_summary

logger = logging.getLogger("MCP_Server")


def register_emoji_tools(
    mcp: FastMCP,
    emoji_store,
    defaults_manager
):
    """Register emoji editing tools with the MCP server"""

    @mcp.tool()
    def add_emoji_files(paths: List[str]) -> dict:
        """Add emojis from PNG files on disk.

        Each file becomes one emoji named after the file (without ".png"), with the
        default ascent and height. Files that are not PNG are skipped and reported;
        the rest of the batch is still added. A name already in use is replaced by a
        random one.

        Args:
            paths: Paths to .png files

        Returns:
            Dict with:
            - added: Summaries of the added emojis (index, name, metrics, image size)
            - errors: One message per rejected file
        """
        loaded, errors = load_image_files(paths)
        ascent = defaults_manager.get_default("ascent")
        height = defaults_manager.get_default("height")

        added = []
        for image in loaded:
            index = emoji_store.add(image.name, image.data, ascent=ascent, height=height)
            added.append(emoji_summary(index, emoji_store.get(index)))

        if errors:
            logger.info(f"{len(errors)} errors occurred while adding emojis")
        return {"added": added, "errors": errors}

    @mcp.tool()
    def add_emoji(
        name: str,
        image_base64: str,
        ascent: Optional[int] = None,
        height: Optional[int] = None,
        permission: Optional[str] = None
    ) -> dict:
        """Add one emoji from base64 PNG data.

        Args:
            name: Emoji name; replaced by a random one if already in use
            image_base64: PNG bytes as base64 (a "data:image/png;base64," prefix is accepted)
            ascent: Vertical offset (default from configuration, 8)
            height: Vertical size (default from configuration, 9)
            permission: Optional permission node, e.g. "emojis.vip"

        Returns:
            Summary of the added emoji, or an error dict if the image is not a PNG
        """
        try:
            data = decode_image_data(image_base64)
            inspect_png(data)
        except ImageRejectedError as e:
            return {"error": str(e), "error_code": "IMAGE_REJECTED"}

        index = emoji_store.add(
            name,
            data,
            ascent=defaults_manager.get_default("ascent", ascent),
            height=defaults_manager.get_default("height", height),
            permission=permission
        )
        return emoji_summary(index, emoji_store.get(index))

    @mcp.tool()
    def update_emoji(index: int, field: str, value: Any) -> dict:
        """Edit one field of an emoji.

        Valid values:
        - name: 1-14 letters or underscores, not used by another emoji
        - ascent, height: non-negative integers
        - permission: lowercase letters, digits, "_" and "." (empty clears it)

        Invalid edits are rejected and leave the emoji unchanged.

        Args:
            index: Emoji index from add or list tools
            field: One of name, ascent, height, permission
            value: New value

        Returns:
            Updated emoji summary, or an error dict with error_code
            EMOJI_NOT_FOUND or VALIDATION_REJECTED
        """
        if emoji_store.get(index) is None:
            return {"error": f"Emoji {index} not found", "error_code": "EMOJI_NOT_FOUND"}

        if not emoji_store.update(index, field, value):
            return {
                "error": f"Rejected {field}={value!r} for emoji {index}. Editable fields: {', '.join(EDITABLE_FIELDS)}",
                "error_code": "VALIDATION_REJECTED"
            }
        return emoji_summary(index, emoji_store.get(index))

    @mcp.tool()
    def remove_emoji(index: int) -> dict:
        """Remove an emoji. Other emojis keep their indices; removing twice is harmless."""
        emoji_store.remove(index)
        return {"success": True, "index": index}

    @mcp.tool()
    def list_emojis() -> dict:
        """List the current emojis in export order"""
        emojis = [emoji_summary(index, record) for index, record in emoji_store.live_items()]
        return {"emojis": emojis, "count": len(emojis)}
