"""Download and indexing of the TikTok Business API documentation."""

from tokdocs.ingestion.chunker import Chunk, ChunkMetadata, MarkdownChunker
from tokdocs.ingestion.docs_api import DocNode, DocsAPIClient, DocsAPIError, RateLimitError
from tokdocs.ingestion.downloader import DocTreeDownloader, sanitize_filename
from tokdocs.ingestion.indexer import DocsIndexer, IndexStats

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "DocNode",
    "DocTreeDownloader",
    "DocsAPIClient",
    "DocsAPIError",
    "DocsIndexer",
    "IndexStats",
    "MarkdownChunker",
    "RateLimitError",
    "sanitize_filename",
]
