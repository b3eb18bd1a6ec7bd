"""Export tools: save emoji archives locally or upload them for the game server"""

import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from managers.export_manager import (
    DEFAULT_ARCHIVE_FILENAME,
    START_SORT_KEY,
    EmojiExportError,
    export_all,
)
from upload_client import TempfilesClient, UploadError

logger = logging.getLogger("MCP_Server")


def _export_error(e: EmojiExportError) -> dict:
    return {
        "error": str(e),
        "error_code": "EXPORT_FAILED",
        "index": e.index,
        "name": e.name,
    }


def register_export_tools(
    mcp: FastMCP,
    export_manager,
    defaults_manager,
    upload_client_factory=TempfilesClient
):
    """Register export tools with the MCP server"""

    @mcp.tool()
    def preview_export(format_variant: Optional[str] = None) -> dict:
        """Show what an export would contain without building the archive.

        Args:
            format_variant: "current" (default) or "legacy"

        Returns:
            Dict with entries (filename, sort_key, bytes_size) in export order
        """
        try:
            variant = defaults_manager.get_format_variant(format_variant)
        except ValueError as e:
            return {"error": str(e), "error_code": "VALIDATION_REJECTED"}

        try:
            entries = export_all(export_manager.store, variant)
        except EmojiExportError as e:
            return _export_error(e)

        return {
            "format_variant": variant.value,
            "entries": [
                {"filename": filename, "sort_key": START_SORT_KEY - position, "bytes_size": len(data)}
                for position, (filename, data) in enumerate(entries)
            ],
            "count": len(entries),
        }

    @mcp.tool()
    def save_emojis(
        output_dir: Optional[str] = None,
        filename: str = DEFAULT_ARCHIVE_FILENAME,
        overwrite: bool = True,
        format_variant: Optional[str] = None
    ) -> dict:
        """Save all emojis as a zip of .mcemoji files.

        Args:
            output_dir: Directory for the archive (default from configuration)
            filename: Archive filename (default: "emojis.zip")
            overwrite: Whether to replace an existing archive (default: True)
            format_variant: "current" (default) or "legacy"

        Returns:
            Dict with dest_path, bytes_size, entry_count and entries, or an error dict
            with error_code NO_EMOJIS, EXPORT_FAILED or SAVE_FAILED
        """
        is_ready, error_code, error_info = export_manager.ensure_ready()
        if not is_ready:
            return {
                "error": "No emojis to save, first add some emojis!",
                "error_code": error_code
            }

        try:
            variant = defaults_manager.get_format_variant(format_variant)
            return export_manager.save_archive(
                output_dir=defaults_manager.get_default("output_dir", output_dir),
                filename=filename,
                overwrite=overwrite,
                variant=variant
            )
        except EmojiExportError as e:
            return _export_error(e)
        except ValueError as e:
            return {"error": str(e), "error_code": "SAVE_FAILED"}
        except Exception as e:
            logger.exception("Failed to save emojis")
            return {"error": f"Failed to save emojis: {str(e)}", "error_code": "SAVE_FAILED"}

    @mcp.tool()
    def upload_emojis(format_variant: Optional[str] = None) -> dict:
        """Upload all emojis so a Minecraft server can load them.

        Returns:
            Dict with:
            - id: Identifier assigned by the upload host
            - command: Command to run in the Minecraft server, e.g. "/emojis update <id>"
            - entry_count: Number of emojis uploaded
            Or an error dict with error_code NO_EMOJIS, EXPORT_FAILED or UPLOAD_FAILED
        """
        is_ready, error_code, error_info = export_manager.ensure_ready()
        if not is_ready:
            return {
                "error": "No emojis to upload, first add some emojis!",
                "error_code": error_code
            }

        try:
            variant = defaults_manager.get_format_variant(format_variant)
            archive, entries = export_manager.build_archive(variant)
        except EmojiExportError as e:
            return _export_error(e)
        except ValueError as e:
            return {"error": str(e), "error_code": "VALIDATION_REJECTED"}

        client = upload_client_factory(defaults_manager.get_default("upload_url"))
        try:
            result = client.upload(archive, filename=DEFAULT_ARCHIVE_FILENAME)
        except UploadError as e:
            return {"error": str(e), "error_code": "UPLOAD_FAILED"}

        return {
            "id": result.file_id,
            "command": result.command,
            "entry_count": len(entries),
            "message": "Successfully uploaded the emojis, execute this command in your Minecraft server to load them."
        }
