"""Markdown document reader with frontmatter extraction.

Downloaded documentation files start with a frontmatter block (title,
doc_id, breadcrumbs, full_path) that is split off here and carried as
metadata while the body goes on to chunking.
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
import re
from typing import Any

import yaml

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = [".md", ".markdown", ".mdown"]

_FRONTMATTER = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)


@dataclass
class ParsedDocument:
    """Result of parsing a document.

    Attributes:
        content: Document body without frontmatter
        metadata: Frontmatter values plus ``source_path``
        source_path: Original file path or identifier
        format: Document format identifier
    """

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    source_path: str = ""
    format: str = "markdown"

    @property
    def title(self) -> str:
        return str(self.metadata.get("title") or Path(self.source_path).stem)


class MarkdownParser:
    """Parser for Markdown files."""

    @property
    def supported_extensions(self) -> list[str]:
        return SUPPORTED_EXTENSIONS

    def can_parse(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in self.supported_extensions

    def parse(self, file_path: Path) -> ParsedDocument:
        """Parse a Markdown file.

        Args:
            file_path: Path to the Markdown file

        Returns:
            ParsedDocument with content and metadata

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        if not file_path.exists():
            msg = f"File not found: {file_path}"
            raise FileNotFoundError(msg)

        return self.parse_content(file_path.read_bytes(), str(file_path))

    def parse_content(self, content: bytes, source_path: str) -> ParsedDocument:
        """Parse Markdown content from bytes.

        Args:
            content: Raw file content as bytes
            source_path: Original source path for metadata

        Returns:
            ParsedDocument with content and extracted metadata
        """
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError:
            text = content.decode("latin-1")
            logger.warning("File %s not valid UTF-8, used latin-1 fallback", source_path)

        metadata = self._extract_frontmatter(text)
        metadata["source_path"] = source_path

        return ParsedDocument(
            content=_FRONTMATTER.sub("", text, count=1),
            metadata=metadata,
            source_path=source_path,
        )

    def _extract_frontmatter(self, text: str) -> dict[str, Any]:
        """Extract frontmatter key/value pairs if present.

        The block is read as YAML; titles containing ``: `` are not valid
        YAML, so those blocks fall back to line-wise ``key: value`` parsing.

        Args:
            text: Full document text

        Returns:
            Dictionary of frontmatter values
        """
        match = _FRONTMATTER.match(text)
        if not match:
            return {}

        frontmatter_text = match.group(1)
        try:
            loaded = yaml.safe_load(frontmatter_text)
        except yaml.YAMLError:
            loaded = None
        if isinstance(loaded, dict):
            return {str(k): v for k, v in loaded.items() if v is not None}

        metadata: dict[str, Any] = {}
        for raw_line in frontmatter_text.split("\n"):
            if raw_line.startswith((" ", "\t", "-")):
                continue
            line = raw_line.strip()
            if ":" in line and not line.startswith("#"):
                key, _, value = line.partition(":")
                key = key.strip()
                value = value.strip().strip('"').strip("'")
                if key and value:
                    metadata[key] = value
        return metadata
