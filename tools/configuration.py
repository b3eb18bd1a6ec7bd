"""Configuration tools for MCEmoji MCP Server"""

from typing import Any, Dict

from mcp.server.fastmcp import FastMCP


def register_configuration_tools(
    mcp: FastMCP,
    defaults_manager
):
    """Register configuration tools with the MCP server"""

    @mcp.tool()
    def get_defaults() -> dict:
        """Get current effective defaults (ascent, height, format_variant, upload_url, output_dir).

        Returns merged defaults from all sources (runtime, config, env, hardcoded).
        """
        return defaults_manager.get_all_defaults()

    @mcp.tool()
    def set_defaults(defaults: Dict[str, Any], persist: bool = False) -> dict:
        """Set runtime defaults.

        Args:
            defaults: Values to set, e.g. {"ascent": 7, "height": 7} or {"format_variant": "legacy"}
            persist: If True, also write them to ~/.config/mcemoji/config.json. Otherwise, changes are ephemeral.

        Returns:
            Success status and any validation errors.
        """
        result = defaults_manager.set_defaults(defaults)
        if "errors" in result:
            return {"success": False, "errors": result["errors"]}

        if persist:
            persist_result = defaults_manager.persist_defaults(result["updated"])
            if "error" in persist_result:
                return {"success": False, "errors": [f"Failed to persist defaults: {persist_result['error']}"]}

        return {"success": True, "updated": result["updated"]}
