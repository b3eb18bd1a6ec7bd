"""MCP tool registration for MCEmoji MCP Server"""
