"""Tests for the documentation API client."""

import time
import unittest
from unittest.mock import Mock, patch

import requests

from tokdocs.ingestion.docs_api import (
    NODE_ENDPOINT,
    TREE_ENDPOINT,
    CacheEntry,
    DocNode,
    DocsAPIClient,
    DocsAPIError,
    RateLimitError,
)

TREE_DATA = {
    "doc_platform_name": "TikTok API for Business",
    "main_language": "ENGLISH",
    "primary_doc_list": [
        {
            "doc_id": 1,
            "title": "Getting started",
            "parent_id": 0,
            "status": True,
            "type": "MARKDOWN",
            "child_docs": [
                {"doc_id": 2, "title": "Authentication", "parent_id": 1, "type": "MARKDOWN"},
            ],
        },
        {"doc_id": 3, "title": "Folder", "parent_id": 0, "type": "FOLDER", "child_docs": None},
    ],
}


def make_response(payload=None, status_code=200, headers=None):
    """Create a mock HTTP response."""
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = payload
    if status_code >= 400 and status_code != 429:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    return response


class TestCacheEntry(unittest.TestCase):
    """Tests for CacheEntry class."""

    def test_cache_entry_not_expired(self):
        """Test cache entry is not expired within TTL."""
        entry = CacheEntry({"data": "test"}, ttl=60)
        self.assertFalse(entry.is_expired())

    def test_cache_entry_expired(self):
        """Test cache entry expires after TTL."""
        entry = CacheEntry({"data": "test"}, ttl=0)
        time.sleep(0.01)
        self.assertTrue(entry.is_expired())


class TestDocNode(unittest.TestCase):
    """Tests for DocNode parsing."""

    def test_from_dict_recursive(self):
        """Test that child nodes are parsed recursively."""
        node = DocNode.from_dict(TREE_DATA["primary_doc_list"][0])

        self.assertEqual(node.doc_id, 1)
        self.assertTrue(node.is_markdown)
        self.assertTrue(node.has_children)
        self.assertEqual(node.child_docs[0].title, "Authentication")
        self.assertFalse(node.child_docs[0].has_children)

    def test_null_children(self):
        """Test that a null child list is treated as empty."""
        node = DocNode.from_dict(TREE_DATA["primary_doc_list"][1])

        self.assertFalse(node.is_markdown)
        self.assertEqual(node.child_docs, [])

    def test_to_dict(self):
        """Test serialization back to the API shape."""
        node = DocNode.from_dict(TREE_DATA["primary_doc_list"][0])

        data = node.to_dict()
        self.assertEqual(data["doc_id"], 1)
        self.assertEqual(data["child_docs"][0]["doc_id"], 2)


class TestDocsAPIClient(unittest.TestCase):
    """Tests for DocsAPIClient class."""

    def setUp(self):
        """Set up test fixtures."""
        self.client = DocsAPIClient(identify_key="test-key", base_url="https://docs.example.com/api/")
        self.client.session = Mock()

    def test_client_initialization(self):
        """Test client initializes correctly."""
        client = DocsAPIClient(identify_key="k", base_url="https://docs.example.com/api/", timeout=10)

        self.assertEqual(client.base_url, "https://docs.example.com/api")
        self.assertEqual(client.language, "ENGLISH")
        self.assertEqual(client.timeout, 10)
        self.assertIn("https://", client.session.adapters)

    def test_get_doc_tree(self):
        """Test fetching and parsing the tree."""
        self.client.session.get.return_value = make_response({"code": 0, "msg": "OK", "data": TREE_DATA})

        tree = self.client.get_doc_tree()

        self.assertEqual(tree.platform_name, "TikTok API for Business")
        self.assertEqual([n.doc_id for n in tree.nodes], [1, 3])
        url = self.client.session.get.call_args[0][0]
        params = self.client.session.get.call_args[1]["params"]
        self.assertEqual(url, f"https://docs.example.com/api/{TREE_ENDPOINT}")
        self.assertEqual(params["identify_key"], "test-key")
        self.assertEqual(params["is_need_content"], "false")

    def test_get_doc_node(self):
        """Test fetching one node with content."""
        self.client.session.get.return_value = make_response(
            {"code": 0, "data": {"title": "Metrics", "content": "# Body"}}
        )

        content = self.client.get_doc_node(1751443967255553)

        self.assertEqual(content.title, "Metrics")
        self.assertEqual(content.content, "# Body")
        params = self.client.session.get.call_args[1]["params"]
        self.assertTrue(self.client.session.get.call_args[0][0].endswith(NODE_ENDPOINT))
        self.assertEqual(params["doc_id"], "1751443967255553")
        self.assertEqual(params["is_need_content"], "true")

    def test_non_zero_code_raises(self):
        """Test that an error envelope becomes DocsAPIError."""
        self.client.session.get.return_value = make_response({"code": 40001, "msg": "invalid key"})

        with self.assertRaises(DocsAPIError) as ctx:
            self.client.get_doc_node(1)
        self.assertIn("invalid key", str(ctx.exception))

    def test_missing_envelope_raises(self):
        """Test that a response without a code is rejected."""
        self.client.session.get.return_value = make_response(["not", "an", "envelope"])

        with self.assertRaises(DocsAPIError):
            self.client.get_doc_tree()

    def test_invalid_json_raises(self):
        """Test that an unparseable body becomes DocsAPIError."""
        response = make_response()
        response.json.side_effect = ValueError("No JSON")
        self.client.session.get.return_value = response

        with self.assertRaises(DocsAPIError):
            self.client.get_doc_tree()

    def test_http_error_raises(self):
        """Test that HTTP errors become DocsAPIError."""
        self.client.session.get.return_value = make_response({}, status_code=404)
        self.client.session.adapters = {"https://": Mock(max_retries=Mock(total=3))}

        with self.assertRaises(DocsAPIError) as ctx:
            self.client.get_doc_tree()
        self.assertIn("4 attempts", str(ctx.exception))

    @patch("tokdocs.ingestion.docs_api.time.sleep")
    def test_rate_limit_retry(self, mock_sleep):
        """Test that a 429 waits for Retry-After and retries."""
        self.client.session.get.side_effect = [
            make_response(status_code=429, headers={"Retry-After": "2"}),
            make_response({"code": 0, "data": {"title": "T", "content": "C"}}),
        ]

        content = self.client.get_doc_node(1)

        self.assertEqual(content.title, "T")
        mock_sleep.assert_called_once_with(2)

    @patch("tokdocs.ingestion.docs_api.time.sleep")
    def test_rate_limit_exhausted(self, mock_sleep):
        """Test that persistent 429s raise RateLimitError."""
        self.client.session.get.return_value = make_response(status_code=429, headers={"Retry-After": "1"})

        with self.assertRaises(RateLimitError):
            self.client.get_doc_node(1)
        self.assertEqual(mock_sleep.call_count, 3)

    def test_responses_cached(self):
        """Test that repeated calls are served from the cache."""
        self.client.session.get.return_value = make_response({"code": 0, "data": {"title": "T", "content": "C"}})

        self.client.get_doc_node(1)
        self.client.get_doc_node(1)

        self.assertEqual(self.client.session.get.call_count, 1)

    def test_cache_bypass_and_clear(self):
        """Test use_cache=False and clear_cache."""
        self.client.session.get.return_value = make_response({"code": 0, "data": {"title": "T", "content": "C"}})

        self.client.get_doc_node(1)
        self.client.get_doc_node(1, use_cache=False)
        self.client.clear_cache()
        self.client.get_doc_node(1)

        self.assertEqual(self.client.session.get.call_count, 3)


if __name__ == "__main__":
    unittest.main()
