"""Index downloaded documentation into the vector store.

Every markdown file under the docs directory is parsed (frontmatter split
off), chunked, embedded and upserted. A file's previous chunks are removed
before its new chunks are written, so re-indexing after a fresh download
never leaves stale chunks behind.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
import time
from typing import Any

from tokdocs.ingestion.chunker import Chunk, MarkdownChunker
from tokdocs.ingestion.markdown import MarkdownParser
from tokdocs.shared.utils.logger import setup_logger
from tokdocs.shared.vector_store import VectorStore

logger = setup_logger(__name__)

CONFIG_FILENAME = "vector-store-config.json"

# Files written by the downloader that are not documentation pages
SKIPPED_FILES = {"README.md"}


@dataclass
class IndexStats:
    """Statistics from an indexing run.

    Attributes:
        total_files: Markdown files discovered
        processed_files: Files indexed successfully
        failed_files: file path -> error message for files that failed
        total_chunks: Chunks written to the store
        duration_seconds: Elapsed time in seconds
    """

    total_files: int = 0
    processed_files: int = 0
    failed_files: dict[str, str] = field(default_factory=dict)
    total_chunks: int = 0
    duration_seconds: float = 0.0


def find_markdown_files(root: Path) -> list[Path]:
    """Discover documentation pages under a directory, sorted by path."""
    return sorted(path for path in Path(root).rglob("*.md") if path.name not in SKIPPED_FILES)


class DocsIndexer:
    """Chunk, embed and store a directory of downloaded documentation."""

    def __init__(
        self,
        vector_store: VectorStore,
        chunker: MarkdownChunker | None = None,
        parser: MarkdownParser | None = None,
        source: str = "tiktok-docs",
        logger_instance: logging.Logger | None = None,
    ):
        self.vector_store = vector_store
        self.logger = logger_instance or logger
        self.chunker = chunker or MarkdownChunker(logger=self.logger)
        self.parser = parser or MarkdownParser()
        self.source = source

    def find_markdown_files(self, root: Path) -> list[Path]:
        self.logger.info("Discovering markdown files in %s", root)
        files = find_markdown_files(root)
        self.logger.info("Found %d markdown files", len(files))
        return files

    def _chunk_file(self, file_path: Path, relative_path: str) -> tuple[list[Chunk], str]:
        document = self.parser.parse(file_path)
        chunks = self.chunker.chunk_text(
            document.content,
            source_path=relative_path,
            title=document.title,
            source=self.source,
        )
        return chunks, str(document.metadata.get("full_path") or document.title)

    def index_file(self, file_path: Path, root: Path) -> int:
        """Replace the stored chunks of one file.

        Args:
            file_path: Markdown file to index
            root: Docs directory; stored file paths are relative to it

        Returns:
            Number of chunks written
        """
        relative_path = file_path.relative_to(root).as_posix()
        chunks, full_path = self._chunk_file(file_path, relative_path)

        removed = self.vector_store.delete_by_file_path(relative_path)
        if removed:
            self.logger.debug("Removed %d stale chunks for %s", removed, relative_path)

        if not chunks:
            self.logger.warning("No chunks generated from %s", relative_path)
            return 0

        self.vector_store.add_documents(
            documents=[chunk.content for chunk in chunks],
            metadatas=[{**chunk.metadata.to_dict(), "full_path": full_path} for chunk in chunks],
            ids=[f"{relative_path}#{chunk.metadata.chunk_index}" for chunk in chunks],
        )
        return len(chunks)

    def index_directory(self, root: Path) -> IndexStats:
        """Index every documentation page under ``root``.

        A file that fails to parse or store is logged and counted in
        ``failed_files``; the run continues with the next file.

        Args:
            root: Docs directory written by the downloader

        Returns:
            IndexStats for the run

        Raises:
            FileNotFoundError: If root does not exist
        """
        root = Path(root)
        if not root.is_dir():
            msg = f"Docs directory not found: {root}"
            raise FileNotFoundError(msg)

        start = time.time()
        files = self.find_markdown_files(root)
        stats = IndexStats(total_files=len(files))

        for i, file_path in enumerate(files, start=1):
            relative_path = file_path.relative_to(root).as_posix()
            try:
                chunk_count = self.index_file(file_path, root)
            except Exception as e:
                self.logger.exception("Failed to index file %s", relative_path)
                stats.failed_files[relative_path] = str(e)
                continue
            stats.processed_files += 1
            stats.total_chunks += chunk_count
            self.logger.debug("[%d/%d] Indexed %s (%d chunks)", i, len(files), relative_path, chunk_count)

        stats.duration_seconds = time.time() - start
        self.write_config(root, stats)
        self.logger.info(
            "Indexing complete: %d/%d files, %d chunks, %d failed",
            stats.processed_files,
            stats.total_files,
            stats.total_chunks,
            len(stats.failed_files),
            extra={"files_processed": stats.processed_files, "duration_ms": int(stats.duration_seconds * 1000)},
        )
        return stats

    def write_config(self, root: Path, stats: IndexStats) -> Path:
        """Record where the docs were indexed to, next to the docs themselves."""
        config: dict[str, Any] = {
            "collection": self.vector_store.collection_name,
            "path": self.vector_store.uri,
            "indexedAt": datetime.now(timezone.utc).isoformat(),
            "files": stats.processed_files,
            "chunks": stats.total_chunks,
        }
        config_path = Path(root) / CONFIG_FILENAME
        config_path.write_text(json.dumps(config, indent=2), encoding="utf-8")
        self.logger.info("Configuration saved to %s", config_path)
        return config_path
