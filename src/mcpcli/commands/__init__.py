"""Click commands for the mcp-cli entry point."""
