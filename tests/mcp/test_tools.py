"""Unit tests for the MCP tools."""

import json
import unittest
from unittest.mock import MagicMock, patch

import tokdocs.mcp.tools as tools_module
from tokdocs.mcp.search import (
    DocumentNotFoundError,
    FetchResult,
    SearchResult,
    VectorStoreNotConfiguredError,
)
from tokdocs.mcp.tools import fetch, mcp, search, vector_store_status
from tokdocs.shared.config import get_config


class TestSearchTool(unittest.TestCase):
    """Test suite for the search tool."""

    @patch("tokdocs.mcp.tools.get_search_service")
    def test_search_returns_results(self, mock_get_service):
        """Test that results are returned as a JSON results list."""
        mock_get_service.return_value.search.return_value = [
            SearchResult(id="auth.md", title="Auth", text="Use a token", url="https://x/auth"),
        ]

        payload = json.loads(search("how to authenticate"))

        self.assertEqual(
            payload,
            {"results": [{"id": "auth.md", "title": "Auth", "text": "Use a token", "url": "https://x/auth"}]},
        )
        mock_get_service.return_value.search.assert_called_once_with("how to authenticate", max_results=10)

    @patch("tokdocs.mcp.tools.get_search_service")
    def test_search_error_payload(self, mock_get_service):
        """Test that failures become an error payload with empty results."""
        mock_get_service.return_value.search.side_effect = VectorStoreNotConfiguredError("not configured")

        payload = json.loads(search("q"))

        self.assertEqual(payload, {"error": "not configured", "results": []})


class TestFetchTool(unittest.TestCase):
    """Test suite for the fetch tool."""

    @patch("tokdocs.mcp.tools.get_search_service")
    def test_fetch_returns_document(self, mock_get_service):
        """Test that the document is serialized with its metadata."""
        mock_get_service.return_value.fetch.return_value = FetchResult(
            id="auth.md", title="Auth", text="# Auth", url="https://x/auth", metadata={"chunks": 1}
        )

        payload = json.loads(fetch("auth.md"))

        self.assertEqual(payload["text"], "# Auth")
        self.assertEqual(payload["metadata"], {"chunks": 1})

    @patch("tokdocs.mcp.tools.get_search_service")
    def test_fetch_error_payload(self, mock_get_service):
        """Test the error document for unknown ids."""
        mock_get_service.return_value.fetch.side_effect = DocumentNotFoundError("Document not found: x.md")

        payload = json.loads(fetch("x.md"))

        self.assertEqual(payload["error"], "Document not found: x.md")
        self.assertEqual(payload["id"], "x.md")
        self.assertEqual(payload["title"], "Error")
        self.assertEqual(payload["url"], "")


class TestStatusTool(unittest.TestCase):
    """Test suite for the vector_store_status tool."""

    @patch("tokdocs.mcp.tools.get_search_service")
    def test_configured(self, mock_get_service):
        """Test status of a populated store."""
        mock_get_service.return_value.status.return_value = {
            "configured": True,
            "collection": "tiktok_docs",
            "documents": 12,
        }

        payload = json.loads(vector_store_status())

        self.assertTrue(payload["configured"])
        self.assertEqual(payload["documents"], 12)
        self.assertIn("ready", payload["message"])

    @patch("tokdocs.mcp.tools.get_search_service")
    def test_initialization_failure(self, mock_get_service):
        """Test that an initialization error is reported, not raised."""
        mock_get_service.side_effect = OSError("cannot open database")

        payload = json.loads(vector_store_status())

        self.assertEqual(payload, {"configured": False, "error": "cannot open database"})


class TestGetSearchService(unittest.TestCase):
    """Test suite for lazy service initialization."""

    def setUp(self):
        """Reset the cached service."""
        tools_module._search_service = None
        self.addCleanup(setattr, tools_module, "_search_service", None)

    @patch("tokdocs.mcp.tools.Embedder")
    @patch("tokdocs.mcp.tools.VectorStore")
    def test_created_once_from_config(self, mock_store_cls, mock_embedder_cls):
        """Test that the store is built from configuration and cached."""
        mock_store_cls.return_value = MagicMock(get_document_count=MagicMock(return_value=0))

        first = tools_module.get_search_service()
        second = tools_module.get_search_service()

        self.assertIs(first, second)
        mock_store_cls.assert_called_once()
        kwargs = mock_store_cls.call_args[1]
        self.assertEqual(kwargs["collection_name"], "tiktok_docs")
        self.assertEqual(first.url_base, "https://platform.tiktok.com/docs/")

    @patch("tokdocs.mcp.tools.Embedder")
    @patch("tokdocs.mcp.tools.VectorStore")
    def test_uses_configured_embedding_model(self, mock_store_cls, mock_embedder_cls):
        """Test that queries are embedded with the model the chunks were stored with."""
        mock_store_cls.return_value = MagicMock(get_document_count=MagicMock(return_value=0))
        get_config().set("vector_store.model_name", "all-mpnet-base-v2")

        tools_module.get_search_service()

        mock_embedder_cls.assert_called_once_with(model_name="all-mpnet-base-v2")
        self.assertIs(mock_store_cls.call_args[1]["embedder"], mock_embedder_cls.return_value)


class TestMCPInstance(unittest.TestCase):
    """Test suite for the FastMCP instance."""

    def test_server_name(self):
        """Test the FastMCP server name."""
        self.assertEqual(mcp.name, "TikTokDocsServer")


if __name__ == "__main__":
    unittest.main()
