"""Command-line client for MCP tool servers spoken to over stdio."""

__version__ = "0.3.1"
