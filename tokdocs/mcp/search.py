"""Search and fetch over the indexed documentation.

Hits are reported per documentation page: the page's file path (relative
to the docs directory) is its id, and ``fetch`` rebuilds the page from
its chunks.
"""

from dataclasses import asdict, dataclass, field
import logging
from pathlib import PurePosixPath
from typing import Any

from tokdocs.shared.utils.logger import setup_logger
from tokdocs.shared.vector_store import VectorStore

logger = setup_logger(__name__)

DEFAULT_URL_BASE = "https://platform.tiktok.com/docs/"
MAX_SNIPPET_LENGTH = 500

# Chunks requested per wanted page, since several hits may share a page
CANDIDATE_FACTOR = 3


class DocumentNotFoundError(Exception):
    """Raised when fetch is given an id with no stored chunks."""


class VectorStoreNotConfiguredError(Exception):
    """Raised when searching before any documentation has been indexed."""


@dataclass
class SearchResult:
    id: str
    title: str
    text: str
    url: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FetchResult:
    id: str
    title: str
    text: str
    url: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _strip_overlap(text: str, metadata: dict[str, Any]) -> str:
    overlap = int(metadata.get("overlap_chars") or 0)
    return text[overlap:]


class DocsSearchService:
    """Page-level search and fetch on top of a VectorStore."""

    def __init__(
        self,
        vector_store: VectorStore,
        url_base: str = DEFAULT_URL_BASE,
        logger_instance: logging.Logger | None = None,
    ):
        self.vector_store = vector_store
        self.url_base = url_base
        self.logger = logger_instance or logger

    def url_for(self, doc_id: str) -> str:
        return f"{self.url_base}{PurePosixPath(doc_id).stem}"

    def _title_for(self, doc_id: str, metadata: dict[str, Any]) -> str:
        return str(metadata.get("title") or PurePosixPath(doc_id).name)

    def search(self, query: str, max_results: int = 10) -> list[SearchResult]:
        """Find the pages most relevant to a query.

        Args:
            query: Natural language query
            max_results: Maximum number of pages returned

        Returns:
            One result per page, best match first, with a snippet of the
            best matching chunk

        Raises:
            VectorStoreNotConfiguredError: If nothing has been indexed
        """
        if self.vector_store.get_document_count() == 0:
            msg = "Vector store not configured. Run 'tokdocs upload' first."
            raise VectorStoreNotConfiguredError(msg)

        hits = self.vector_store.search_similar(query=query, n_results=max_results * CANDIDATE_FACTOR)

        results: list[SearchResult] = []
        seen: set[str] = set()
        for text, metadata in zip(hits["documents"], hits["metadatas"], strict=True):
            doc_id = metadata.get("file_path") or ""
            if not doc_id or doc_id in seen:
                continue
            seen.add(doc_id)
            results.append(
                SearchResult(
                    id=doc_id,
                    title=self._title_for(doc_id, metadata),
                    text=_strip_overlap(text, metadata)[:MAX_SNIPPET_LENGTH],
                    url=self.url_for(doc_id),
                )
            )
            if len(results) >= max_results:
                break

        self.logger.info("Search returned %d results for %r", len(results), query)
        return results

    def fetch(self, doc_id: str) -> FetchResult:
        """Rebuild a whole page from its stored chunks.

        Raises:
            DocumentNotFoundError: If no chunks are stored for doc_id
        """
        stored = self.vector_store.get_documents(file_path=doc_id)
        if not stored["ids"]:
            msg = f"Document not found: {doc_id}"
            raise DocumentNotFoundError(msg)

        chunks = sorted(
            zip(stored["documents"], stored["metadatas"], strict=True),
            key=lambda pair: pair[1].get("chunk_index", 0),
        )
        first_meta = chunks[0][1]
        text = "\n".join(_strip_overlap(chunk_text, meta) for chunk_text, meta in chunks)

        return FetchResult(
            id=doc_id,
            title=self._title_for(doc_id, first_meta),
            text=text,
            url=self.url_for(doc_id),
            metadata={
                "chunks": len(chunks),
                "full_path": first_meta.get("full_path") or "",
                "source": first_meta.get("source") or "",
            },
        )

    def status(self) -> dict[str, Any]:
        count = self.vector_store.get_document_count()
        return {
            "configured": count > 0,
            "collection": self.vector_store.collection_name,
            "documents": count,
        }
