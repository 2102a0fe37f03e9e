"""MCP tool definitions for the documentation server.

Tools return JSON strings. Failures are reported inside the JSON payload
rather than raised, so clients always get a parseable answer.
"""

import json

from mcp.server.fastmcp import FastMCP

from tokdocs.mcp.search import DocsSearchService
from tokdocs.shared.config import get_config
from tokdocs.shared.embedder import Embedder
from tokdocs.shared.utils.logger import setup_logger
from tokdocs.shared.vector_store import VectorStore

logger = setup_logger(__name__)

mcp = FastMCP("TikTokDocsServer")

# Initialized lazily on first tool call
_search_service: DocsSearchService | None = None


def get_search_service() -> DocsSearchService:
    """Get or initialize the search service from configuration."""
    global _search_service  # noqa: PLW0603
    if _search_service is None:
        config = get_config()
        logger.info("Initializing VectorStore for %s", config.get("vector_store.collection"))
        vector_store = VectorStore(
            persist_directory=config.get("vector_store.path"),
            collection_name=config.get("vector_store.collection"),
            embedder=Embedder(model_name=config.get("vector_store.model_name")),
        )
        _search_service = DocsSearchService(vector_store, url_base=config.get("search.url_base"))
        logger.info("Loaded %d chunks", vector_store.get_document_count())
    return _search_service


@mcp.tool()
def search(query: str) -> str:
    """Search TikTok API documentation for relevant information.

    Args:
        query: Search query string

    Returns:
        JSON object with a ``results`` list of {id, title, text, url}
    """
    try:
        service = get_search_service()
        max_results = int(get_config().get("search.max_results", 10))
        results = service.search(query, max_results=max_results)
        return json.dumps({"results": [result.to_dict() for result in results]})
    except Exception as e:
        logger.exception("Search failed")
        return json.dumps({"error": str(e) or "Search failed", "results": []})


@mcp.tool()
def fetch(id: str) -> str:  # noqa: A002
    """Fetch the full content of a TikTok API documentation document by ID.

    Args:
        id: Document id as returned by search

    Returns:
        JSON object {id, title, text, url, metadata}
    """
    try:
        return json.dumps(get_search_service().fetch(id).to_dict())
    except Exception as e:
        logger.exception("Fetch failed for %s", id)
        return json.dumps(
            {
                "error": str(e) or "Fetch failed",
                "id": id,
                "title": "Error",
                "text": "Failed to fetch document",
                "url": "",
            }
        )


@mcp.tool()
def vector_store_status() -> str:
    """Check the status of the vector store configuration."""
    try:
        status = get_search_service().status()
    except Exception as e:
        logger.exception("Status check failed")
        return json.dumps({"configured": False, "error": str(e) or "Status check failed"})
    status["message"] = (
        "Vector store is configured and ready"
        if status["configured"]
        else "Vector store not configured. Run 'tokdocs upload' first."
    )
    return json.dumps(status)
