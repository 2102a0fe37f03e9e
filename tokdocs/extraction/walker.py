"""Heading-aware walk over a markdown document collecting metrics.

The walker scans a document line by line, tracking the heading context
(category / subcategory / sub-subcategory) and the inline header set by
label-only table rows, and hands every xtable block to the table parser
and metric extractor.

Context updates cascade downwards only:

- ``# X`` sets the category and resets everything below it
- ``## X`` sets the subcategory and resets the sub-subcategory and inline header
- ``### X`` sets the sub-subcategory and resets the inline header

The inline header is scoped to "since the last heading of any level", not
to a single table block: it carries over into later tables under the same
heading until another label-only row replaces it.
"""

from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path

from tokdocs.extraction.metrics import extract_metric, resolve_columns
from tokdocs.extraction.models import (
    DEFAULT_SUBCATEGORY,
    MISSING_COLUMN,
    Metric,
    ParsedTable,
    WalkerContext,
)
from tokdocs.extraction.xtable import FENCE, XTABLE_FENCE, cell_at, parse_table
from tokdocs.shared.utils.logger import setup_logger

logger = setup_logger(__name__)

SUBCATEGORY_SEPARATOR = " - "


def apply_heading(context: WalkerContext, line: str) -> WalkerContext | None:
    """Return the context after ``line`` if it is a heading, else None.

    Args:
        context: Context before the line
        line: Raw document line

    Returns:
        Updated context, or None when the line is not a category heading
    """
    if line.startswith("# "):
        return WalkerContext(category=line[2:].strip())
    if line.startswith("## "):
        return replace(context, subcategory=line[3:].strip(), sub_subcategory="", inline_header="")
    if line.startswith("### "):
        return replace(context, sub_subcategory=line[4:].strip(), inline_header="")
    return None


def inline_header_of(row: list[str], headers: list[str]) -> str | None:
    """Return the label if ``row`` is an inline header row.

    An inline header has a non-empty field value that doesn't start with
    ``#`` and an empty (or absent) type value.

    Args:
        row: Row cells
        headers: Header list of the row's table

    Returns:
        The header label, or None for ordinary rows
    """
    columns = resolve_columns(headers)
    if columns.field == MISSING_COLUMN:
        return None

    field_name = cell_at(row, columns.field).strip()
    type_value = cell_at(row, columns.type).strip()
    if field_name and not type_value and not field_name.startswith("#"):
        return field_name
    return None


def effective_subcategory(context: WalkerContext) -> str:
    """Compose the subcategory label for a metric row.

    Args:
        context: Current walker context

    Returns:
        ``subcategory[ - sub_subcategory][ - inline_header]``, with the inline
        header replacing a bare default subcategory instead of extending it
    """
    label = context.subcategory
    if context.sub_subcategory:
        label = f"{label}{SUBCATEGORY_SEPARATOR}{context.sub_subcategory}"
    if context.inline_header:
        if label == DEFAULT_SUBCATEGORY:
            label = context.inline_header
        else:
            label = f"{label}{SUBCATEGORY_SEPARATOR}{context.inline_header}"
    return label


def walk_table(context: WalkerContext, table: ParsedTable) -> tuple[WalkerContext, list[Metric]]:
    """Extract metrics from one parsed table.

    Args:
        context: Context when the table starts
        table: Parsed xtable block

    Returns:
        Tuple of (context after the table, metrics found in it)
    """
    metrics: list[Metric] = []
    for index, row in enumerate(table.rows):
        # "#" rows never become inline headers but may still hold a metric
        label = None if table.is_heading_row(index) else inline_header_of(row, table.headers)
        if label is not None:
            logger.debug("Found inline header: %s", label)
            context = replace(context, inline_header=label)
            continue

        metric = extract_metric(row, table.headers, context.category, effective_subcategory(context))
        if metric is not None:
            metrics.append(metric)

    logger.debug("Added %d metrics (of %d rows)", len(metrics), len(table.rows))
    return context, metrics


def _read_block(lines: list[str], start: int) -> tuple[str, int]:
    """Collect block lines from ``start`` up to the closing fence.

    Returns:
        Tuple of (block text, index of the closing fence line or len(lines))
    """
    end = start
    while end < len(lines) and FENCE not in lines[end]:
        end += 1
    return "".join(f"{line}\n" for line in lines[start:end]), end


def iter_metrics(content: str) -> Iterator[Metric]:
    """Yield metrics in document order.

    Args:
        content: Full markdown document

    Yields:
        Metric records, duplicates included
    """
    lines = content.split("\n")
    context = WalkerContext()
    i = 0
    while i < len(lines):
        line = lines[i]
        heading_context = apply_heading(context, line)
        if heading_context is not None:
            context = heading_context
            logger.debug(
                "Context: %s / %s / %s",
                context.category,
                context.subcategory,
                context.sub_subcategory,
            )
        elif XTABLE_FENCE in line:
            block_text, i = _read_block(lines, i + 1)
            if block_text.strip():
                context, metrics = walk_table(context, parse_table(block_text))
                yield from metrics
        i += 1


def extract_metrics(content: str) -> list[Metric]:
    """Extract every metric from a markdown document.

    Example:
        >>> doc = "# Engagement\\n```xtable\\nField | Type | Description\\n---\\nlikes | number | Likes\\n```"
        >>> [m.name for m in extract_metrics(doc)]
        ['likes']

    Args:
        content: Full markdown document

    Returns:
        Metrics in order of appearance
    """
    metrics = list(iter_metrics(content))
    logger.info("Extracted %d metrics", len(metrics), extra={"metrics_count": len(metrics)})
    return metrics


def extract_metrics_from_file(path: Path) -> list[Metric]:
    """Read a UTF-8 markdown file and extract its metrics.

    Raises:
        FileNotFoundError: If the file doesn't exist
        UnicodeDecodeError: If the file is not UTF-8
    """
    if not path.exists():
        msg = f"File not found: {path}"
        raise FileNotFoundError(msg)
    return extract_metrics(path.read_text(encoding="utf-8"))
