"""MCP (Model Context Protocol) server for ImpactLens.

Exposes change-impact analysis to any MCP-compatible client.

Usage:
    impactlens serve              # Start the MCP server on stdio
"""

from impactlens.mcp.server import MCPServer

__all__ = ["MCPServer"]
