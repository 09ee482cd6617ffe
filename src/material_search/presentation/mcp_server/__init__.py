"""
Material Search MCP Server

Exposes the unified raw-material search to AI agents over MCP.
"""

from .server import create_server, main

__all__ = ["create_server", "main"]
