"""Recursive download of the documentation tree into markdown files.

The tree is mirrored on disk: a node with children becomes a directory
(its own content, if any, goes to ``index.md``) and a leaf node becomes
``<title>.md`` in its parent's directory. A README with a table of
contents and a ``manifest.json`` describing the tree are written at the
root of the output directory.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
import re
import time
from typing import Any

from tokdocs.ingestion.docs_api import DocContent, DocNode, DocsAPIClient, DocsAPIError
from tokdocs.shared.utils.logger import setup_logger

MAX_FILENAME_LENGTH = 255

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')


def sanitize_filename(filename: str) -> str:
    """Make a document title safe to use as a file or directory name.

    Args:
        filename: Raw document title

    Returns:
        Title with reserved characters replaced by ``-``, whitespace runs
        replaced by ``_``, leading/trailing dots removed, at most 255 chars
    """
    name = _INVALID_FILENAME_CHARS.sub("-", filename)
    name = re.sub(r"\s+", "_", name)
    name = re.sub(r"^\.+", "", name)
    name = re.sub(r"\.+$", "", name)
    return name[:MAX_FILENAME_LENGTH]


def count_docs(nodes: list[DocNode]) -> int:
    """Count markdown documents in a (sub)tree."""
    return sum((1 if node.is_markdown else 0) + count_docs(node.child_docs) for node in nodes)


def generate_table_of_contents(nodes: list[DocNode], depth: int = 0) -> str:
    """Render a nested markdown list linking to the downloaded files."""
    toc = ""
    for node in nodes:
        indent = "  " * depth
        filename = sanitize_filename(node.title)
        link = f"./{filename}/index.md" if node.has_children else f"./{filename}.md"
        toc += f"{indent}- [{node.title}]({link})\n"
        if node.has_children:
            toc += generate_table_of_contents(node.child_docs, depth + 1)
    return toc


def render_document(
    node: DocNode,
    content: DocContent,
    breadcrumbs: list[str],
    include_metadata: bool = True,
) -> str:
    """Render a downloaded node as a markdown file body.

    Args:
        node: Tree node being written
        content: Fetched title and body
        breadcrumbs: Titles of the node's ancestors, root first
        include_metadata: Prepend a frontmatter block

    Returns:
        File content
    """
    parts: list[str] = []

    if include_metadata:
        parts.append("---\n")
        parts.append(f"title: {content.title}\n")
        parts.append(f"doc_id: {node.doc_id}\n")
        parts.append(f"parent_id: {node.parent_id}\n")
        parts.append(f"type: {node.type}\n")
        parts.append(f"status: {str(node.status).lower()}\n")
        if breadcrumbs:
            parts.append("breadcrumbs:\n")
            parts.extend(f'  - "{crumb}"\n' for crumb in breadcrumbs)
            parts.append(f'full_path: "{" > ".join(breadcrumbs)} > {content.title}"\n')
        else:
            parts.append(f'full_path: "{content.title}"\n')
        parts.append("---\n\n")

    if breadcrumbs:
        parts.append("## Navigation\n\n")
        parts.append("**Path:** ")
        parts.append(" → ".join(f"`{crumb}`" for crumb in breadcrumbs))
        parts.append(f" → **{content.title}**\n\n")
        parts.append("---\n\n")

    parts.append(f"# {content.title}\n\n")
    parts.append(content.content)
    return "".join(parts)


@dataclass
class DownloadStats:
    """Statistics from a download run."""

    platform: str = ""
    total_docs: int = 0
    saved_files: list[Path] = field(default_factory=list)
    failed_docs: dict[int, str] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def saved_count(self) -> int:
        return len(self.saved_files)


class DocTreeDownloader:
    """Mirror the documentation tree into a local directory."""

    def __init__(
        self,
        client: DocsAPIClient,
        output_dir: Path,
        language: str | None = None,
        include_metadata: bool = True,
        delay: float = 0.5,
        logger: logging.Logger | None = None,
    ):
        """Initialize the downloader.

        Args:
            client: Documentation API client
            output_dir: Root directory for downloaded files
            language: Document language (defaults to the client language)
            include_metadata: Write a frontmatter block into each file
            delay: Seconds to wait before each document request
            logger: Logger instance
        """
        self.client = client
        self.output_dir = Path(output_dir)
        self.language = language or client.language
        self.include_metadata = include_metadata
        self.delay = delay
        self.logger = logger or setup_logger(__name__)

    def _fetch_content(self, node: DocNode, stats: DownloadStats) -> DocContent:
        """Fetch a node body, substituting a placeholder on failure."""
        try:
            return self.client.get_doc_node(node.doc_id, language=self.language)
        except DocsAPIError as e:
            self.logger.error("Failed to fetch content for doc %s: %s", node.doc_id, e)
            stats.failed_docs[node.doc_id] = str(e)
            return DocContent(
                title=f"Error loading doc {node.doc_id}",
                content=f"Failed to load content: {e}",
            )

    def process_node(
        self,
        node: DocNode,
        parent_path: Path,
        stats: DownloadStats,
        breadcrumbs: list[str] | None = None,
    ) -> None:
        """Download a node and, recursively, its children.

        Args:
            node: Node to process
            parent_path: Directory of the node's parent
            stats: Run statistics, updated in place
            breadcrumbs: Titles of the node's ancestors
        """
        breadcrumbs = breadcrumbs or []
        indent = "  " * len(breadcrumbs)
        self.logger.info("%sProcessing: %s (ID: %s)", indent, node.title, node.doc_id)

        node_path = parent_path / sanitize_filename(node.title)
        if node.has_children:
            node_path.mkdir(parents=True, exist_ok=True)

        if node.is_markdown:
            if self.delay > 0:
                time.sleep(self.delay)
            content = self._fetch_content(node, stats)
            file_path = node_path / "index.md" if node.has_children else parent_path / f"{node_path.name}.md"
            file_path.write_text(
                render_document(node, content, breadcrumbs, self.include_metadata),
                encoding="utf-8",
            )
            stats.saved_files.append(file_path)
            self.logger.debug("%sSaved: %s", indent, file_path)

        for child in node.child_docs:
            self.process_node(child, node_path, stats, [*breadcrumbs, node.title])

    def download_all(self) -> DownloadStats:
        """Download the whole tree plus README and manifest.

        Returns:
            DownloadStats for the run

        Raises:
            DocsAPIError: If the tree itself can't be fetched
        """
        start = time.time()
        self.logger.info("Fetching documentation tree...")
        tree = self.client.get_doc_tree(language=self.language)
        self.logger.info("Found %d top-level documents on %s", len(tree.nodes), tree.platform_name)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        stats = DownloadStats(platform=tree.platform_name, total_docs=count_docs(tree.nodes))

        for node in tree.nodes:
            self.process_node(node, self.output_dir, stats)

        downloaded_at = datetime.now(timezone.utc).isoformat()
        self._write_readme(tree.platform_name, tree.nodes, downloaded_at)
        self._write_manifest(tree.platform_name, tree.nodes, downloaded_at)

        stats.duration_seconds = time.time() - start
        self.logger.info(
            "Documentation download complete: %d files in %s",
            stats.saved_count,
            self.output_dir,
            extra={"files_processed": stats.saved_count, "duration_ms": int(stats.duration_seconds * 1000)},
        )
        return stats

    def _write_readme(self, platform: str, nodes: list[DocNode], downloaded_at: str) -> None:
        readme = (
            f"# {platform} Documentation\n\n"
            "This documentation was automatically downloaded from the TikTok Business API.\n\n"
            "## Table of Contents\n\n"
            f"{generate_table_of_contents(nodes)}"
            "\n---\n\n"
            f"*Downloaded on: {downloaded_at}*\n"
            f"*Language: {self.language}*\n"
        )
        (self.output_dir / "README.md").write_text(readme, encoding="utf-8")

    def _write_manifest(self, platform: str, nodes: list[DocNode], downloaded_at: str) -> None:
        manifest: dict[str, Any] = {
            "platform": platform,
            "language": self.language,
            "identifyKey": self.client.identify_key,
            "downloadedAt": downloaded_at,
            "totalDocs": count_docs(nodes),
            "structure": [node.to_dict() for node in nodes],
        }
        (self.output_dir / "manifest.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")

    def download_doc(self, doc_id: int | str, output_path: Path) -> Path:
        """Download a single document without frontmatter.

        Args:
            doc_id: Document ID
            output_path: File to write

        Returns:
            The written path

        Raises:
            DocsAPIError: If the document can't be fetched
        """
        self.logger.info("Downloading document %s...", doc_id)
        content = self.client.get_doc_node(doc_id, language=self.language)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(f"# {content.title}\n\n{content.content}", encoding="utf-8")
        self.logger.info("Saved to: %s", output_path)
        return output_path
