"""Header-aware chunking of documentation pages.

Pages are split at markdown headings, grouped into chunks within a size
window, and oversize sections are split at line boundaries. Lines inside
fenced blocks (xtable blocks included) are never treated as headings, so
a table is only split when it alone exceeds the maximum chunk size.

Sizes are estimated tokens (~4 characters per token).
"""

from dataclasses import dataclass, field
from datetime import datetime
import hashlib
import logging
from pathlib import Path
import re
from typing import Any

from tokdocs.shared.utils.logger import setup_logger

# Constants
DEFAULT_MIN_CHUNK_SIZE = 300  # Minimum tokens per chunk
DEFAULT_MAX_CHUNK_SIZE = 800  # Maximum tokens per chunk
DEFAULT_OVERLAP_SIZE = 100  # Overlap size in tokens
APPROX_TOKENS_PER_CHAR = 0.25

# Error messages
MSG_INVALID_FILE = "Invalid file path: {path}"
MSG_INVALID_OVERLAP = "Overlap size must be less than minimum chunk size"

_HEADER = re.compile(r"^(#{1,6})\s+(.+)$")


@dataclass
class ChunkMetadata:
    """Metadata for a document chunk."""

    chunk_id: str
    file_path: str
    chunk_index: int
    total_chunks: int
    headers: list[str] = field(default_factory=list)
    start_line: int = 0
    end_line: int = 0
    token_count: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().astimezone().isoformat())
    overlap_with_previous: bool = False
    overlap_chars: int = 0
    source: str = ""
    title: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to store-compatible metadata (lists become ``" > "``-joined strings)."""
        return {
            "chunk_id": self.chunk_id,
            "file_path": self.file_path,
            "chunk_index": self.chunk_index,
            "total_chunks": self.total_chunks,
            "section": " > ".join(self.headers),
            "start_line": self.start_line,
            "end_line": self.end_line,
            "token_count": self.token_count,
            "timestamp": self.timestamp,
            "overlap_with_previous": self.overlap_with_previous,
            "overlap_chars": self.overlap_chars,
            "source": self.source,
            "title": self.title,
        }


@dataclass
class Chunk:
    """A chunk of markdown content with metadata."""

    content: str
    metadata: ChunkMetadata


@dataclass
class _Section:
    headers: list[str]
    lines: list[str]
    start_line: int
    end_line: int = 0

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class MarkdownChunker:
    """Markdown-aware chunking with overlap between neighbouring chunks."""

    def __init__(
        self,
        min_chunk_size: int = DEFAULT_MIN_CHUNK_SIZE,
        max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
        overlap_size: int = DEFAULT_OVERLAP_SIZE,
        logger: logging.Logger | None = None,
    ):
        """Initialize the chunker.

        Args:
            min_chunk_size: Minimum chunk size in tokens
            max_chunk_size: Maximum chunk size in tokens
            overlap_size: Tokens of the previous chunk repeated at the start of the next

        Raises:
            ValueError: If overlap_size is not below min_chunk_size
        """
        if overlap_size >= min_chunk_size:
            raise ValueError(MSG_INVALID_OVERLAP)
        self.min_chunk_size = min_chunk_size
        self.max_chunk_size = max_chunk_size
        self.overlap_size = overlap_size
        self.logger = logger or setup_logger(__name__)

    def chunk_file(self, file_path: Path) -> list[Chunk]:
        """Chunk a markdown file.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        if not file_path.exists():
            raise FileNotFoundError(MSG_INVALID_FILE.format(path=file_path))
        return self.chunk_text(file_path.read_text(encoding="utf-8"), str(file_path))

    def chunk_text(self, text: str, source_path: str = "", title: str = "", source: str = "") -> list[Chunk]:
        """Chunk markdown text.

        Args:
            text: Markdown text to chunk
            source_path: Source file path for metadata
            title: Document title for metadata
            source: Source identifier for metadata

        Returns:
            List of chunks with metadata (empty for blank text)
        """
        if not text.strip():
            return []

        sections = self._split_by_headers(text)
        groups = self._group_into_chunks(sections)
        chunks = self._create_chunks(groups, source_path, title, source)
        self.logger.debug("Created %d chunks for %s", len(chunks), source_path)
        return self._add_overlaps(chunks)

    def _split_by_headers(self, text: str) -> list[_Section]:
        sections: list[_Section] = []
        header_stack: list[tuple[int, str]] = []
        current = _Section(headers=[], lines=[], start_line=1)
        in_fence = False

        for line_num, line in enumerate(text.split("\n"), start=1):
            if line.lstrip().startswith("```"):
                in_fence = not in_fence
                current.lines.append(line)
                continue

            match = None if in_fence else _HEADER.match(line)
            if match is None:
                current.lines.append(line)
                continue

            if any(existing.strip() for existing in current.lines):
                current.end_line = line_num - 1
                sections.append(current)

            level = len(match.group(1))
            while header_stack and header_stack[-1][0] >= level:
                header_stack.pop()
            header_stack.append((level, match.group(2).strip()))

            current = _Section(headers=[h for _, h in header_stack], lines=[line], start_line=line_num)

        if any(existing.strip() for existing in current.lines):
            current.end_line = current.start_line + len(current.lines) - 1
            sections.append(current)
        return sections

    def _group_into_chunks(self, sections: list[_Section]) -> list[list[_Section]]:
        groups: list[list[_Section]] = []
        current: list[_Section] = []
        current_tokens = 0

        for section in sections:
            section_tokens = self._estimate_tokens(section.text)

            if section_tokens > self.max_chunk_size:
                if current:
                    groups.append(current)
                    current, current_tokens = [], 0
                groups.extend([part] for part in self._split_large_section(section))
                continue

            if current_tokens + section_tokens > self.max_chunk_size and current_tokens >= self.min_chunk_size:
                groups.append(current)
                current, current_tokens = [section], section_tokens
            else:
                current.append(section)
                current_tokens += section_tokens

        if current:
            groups.append(current)
        return groups

    def _split_large_section(self, section: _Section) -> list[_Section]:
        parts: list[_Section] = []
        lines: list[str] = []
        tokens = 0
        start_line = section.start_line

        for line in section.lines:
            line_tokens = self._estimate_tokens(line)
            if tokens + line_tokens > self.max_chunk_size and lines:
                parts.append(_Section(section.headers, lines, start_line, start_line + len(lines) - 1))
                start_line += len(lines)
                lines, tokens = [line], line_tokens
            else:
                lines.append(line)
                tokens += line_tokens

        if lines:
            parts.append(_Section(section.headers, lines, start_line, start_line + len(lines) - 1))
        return parts

    def _create_chunks(
        self,
        groups: list[list[_Section]],
        source_path: str,
        title: str,
        source: str,
    ) -> list[Chunk]:
        chunks = []
        for idx, group in enumerate(groups):
            content = "\n".join(section.text for section in group)
            headers = next((section.headers for section in group if section.headers), [])
            metadata = ChunkMetadata(
                chunk_id=self._generate_chunk_id(source_path, idx, content),
                file_path=source_path,
                chunk_index=idx,
                total_chunks=len(groups),
                headers=headers,
                start_line=group[0].start_line,
                end_line=group[-1].end_line,
                token_count=self._estimate_tokens(content),
                source=source,
                title=title,
            )
            chunks.append(Chunk(content=content, metadata=metadata))
        return chunks

    def _add_overlaps(self, chunks: list[Chunk]) -> list[Chunk]:
        """Prefix each chunk with the tail of the previous one."""
        for i in range(len(chunks) - 1, 0, -1):
            overlap = self._get_overlap_text(chunks[i - 1].content)
            if overlap:
                chunk = chunks[i]
                prefix = f"{overlap}\n\n"
                chunk.content = prefix + chunk.content
                chunk.metadata.overlap_with_previous = True
                chunk.metadata.overlap_chars = len(prefix)
                chunk.metadata.token_count = self._estimate_tokens(chunk.content)
        return chunks

    def _get_overlap_text(self, text: str) -> str:
        overlap_lines: list[str] = []
        tokens = 0
        for line in reversed(text.split("\n")):
            line_tokens = self._estimate_tokens(line)
            if tokens + line_tokens > self.overlap_size and overlap_lines:
                break
            overlap_lines.append(line)
            tokens += line_tokens
        return "\n".join(reversed(overlap_lines))

    def _estimate_tokens(self, text: str) -> int:
        return int(len(text) * APPROX_TOKENS_PER_CHAR)

    def _generate_chunk_id(self, file_path: str, index: int, content: str) -> str:
        hash_input = f"{file_path}:{index}:{content[:100]}"
        digest = hashlib.sha256(hash_input.encode()).hexdigest()
        return f"chunk_{index}_{digest[:8]}"
