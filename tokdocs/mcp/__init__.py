"""MCP server exposing search over the indexed documentation."""
