"""tokdocs: TikTok Business API documentation tooling.

This package provides:
- **Extraction**: metric catalog extraction from ``xtable`` markdown tables,
  with grouped, active-only and option-group views.
- **Ingestion**: documentation tree download, markdown chunking and indexing
  into LanceDB.
- **MCP Server**: search and fetch tools over the indexed documentation.

Entry points:
- CLI: ``tokdocs`` command (see tokdocs.cli)
- MCP server: ``python -m tokdocs.mcp.http_wrapper``
"""
