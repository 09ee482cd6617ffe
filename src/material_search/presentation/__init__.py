"""
Presentation Layer - MCP server and tools.
"""
