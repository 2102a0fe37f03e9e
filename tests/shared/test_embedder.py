"""Unit tests for the Embedder class."""

import unittest
from unittest.mock import MagicMock, patch

import numpy as np

from tokdocs.shared.embedder import Embedder


class TestEmbedder(unittest.TestCase):
    """Test cases for Embedder with a mocked sentence-transformers model."""

    def setUp(self):
        """Patch SentenceTransformer before each test."""
        patcher = patch("tokdocs.shared.embedder.SentenceTransformer")
        self.mock_st = patcher.start()
        self.addCleanup(patcher.stop)

        self.mock_model = MagicMock()
        self.mock_model.device = "cpu"
        self.mock_model.max_seq_length = 256
        self.mock_model.get_sentence_embedding_dimension.return_value = 384
        self.mock_model.encode.side_effect = lambda texts, **kwargs: np.ones((len(texts), 384))
        self.mock_st.return_value = self.mock_model

        self.embedder = Embedder(model_name="all-MiniLM-L6-v2", batch_size=16)

    def test_initialization(self):
        """Test that the model is loaded by name."""
        self.mock_st.assert_called_once_with("all-MiniLM-L6-v2", device=None)
        self.assertEqual(self.embedder.batch_size, 16)

    def test_embed(self):
        """Test batch embedding returns plain lists."""
        embeddings = self.embedder.embed(["first text", "second text"])

        self.assertEqual(len(embeddings), 2)
        self.assertEqual(len(embeddings[0]), 384)
        self.assertIsInstance(embeddings[0], list)
        kwargs = self.mock_model.encode.call_args[1]
        self.assertEqual(kwargs["batch_size"], 16)
        self.assertTrue(kwargs["normalize_embeddings"])

    def test_embed_empty_list(self):
        """Test that an empty list is rejected."""
        with self.assertRaises(ValueError):
            self.embedder.embed([])

    def test_embed_blank_text(self):
        """Test that blank entries are rejected with their indices."""
        with self.assertRaises(ValueError) as ctx:
            self.embedder.embed(["ok", "   "])
        self.assertIn("[1]", str(ctx.exception))

    def test_embed_single(self):
        """Test single text embedding."""
        self.assertEqual(len(self.embedder.embed_single("hello")), 384)

    def test_embed_single_empty(self):
        """Test that an empty string is rejected."""
        with self.assertRaises(ValueError):
            self.embedder.embed_single("")

    def test_model_info(self):
        """Test model info reporting."""
        info = self.embedder.get_model_info()

        self.assertEqual(info["embedding_dimension"], 384)
        self.assertEqual(info["device"], "cpu")
        self.assertEqual(info["max_seq_length"], 256)


if __name__ == "__main__":
    unittest.main()
