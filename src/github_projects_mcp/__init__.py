"""MCP server exposing GitHub Projects (v2) tools."""

__version__ = "0.1.0"
