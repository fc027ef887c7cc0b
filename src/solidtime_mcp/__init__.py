"""Solidtime MCP server: Solidtime time tracking as Model Context Protocol tools."""

__version__ = "1.0.0"
