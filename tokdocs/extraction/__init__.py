"""Metric catalog extraction from xtable markdown documents.

Example:
    >>> from tokdocs.extraction import extract_metrics
    >>> metrics = extract_metrics(markdown_text)
    >>> [m.name for m in metrics if m.is_active]
"""

from tokdocs.extraction.metrics import extract_metric, parse_deprecation_status, resolve_columns
from tokdocs.extraction.models import (
    ColumnIndices,
    DeprecationInfo,
    DeprecationStatus,
    Metric,
    ParsedTable,
    WalkerContext,
)
from tokdocs.extraction.walker import extract_metrics, extract_metrics_from_file
from tokdocs.extraction.xtable import parse_table

__all__ = [
    "ColumnIndices",
    "DeprecationInfo",
    "DeprecationStatus",
    "Metric",
    "ParsedTable",
    "WalkerContext",
    "extract_metric",
    "extract_metrics",
    "extract_metrics_from_file",
    "parse_deprecation_status",
    "parse_table",
    "resolve_columns",
]
