"""Conversion of xtable rows into Metric records.

Column positions are resolved by fuzzy, case-insensitive matching of
header text, so tables with headers like ``Field name`` or ``Metric details``
still resolve. Rows that cannot be a metric (sub-heading rows, malformed
rows) are rejected with ``None`` rather than an exception.
"""

import re

from tokdocs.extraction.models import (
    MISSING_COLUMN,
    ColumnIndices,
    DeprecationInfo,
    DeprecationStatus,
    Metric,
)
from tokdocs.extraction.xtable import cell_at
from tokdocs.shared.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_METRIC_TYPE = "string"
MIN_METRIC_CELLS = 3

# Checked in this order: "to be deprecated" wins over "deprecated"
_DEPRECATION_MARKERS: list[tuple[re.Pattern[str], DeprecationStatus]] = [
    (re.compile(r"\{-To be deprecated\}", re.IGNORECASE), DeprecationStatus.TO_BE_DEPRECATED),
    (re.compile(r"\{-deprecated\}", re.IGNORECASE), DeprecationStatus.DEPRECATED),
]


def _find_column(headers: list[str], fragment: str, exact: str) -> int:
    """Index of the first header containing ``fragment`` or equal to ``exact``."""
    for index, header in enumerate(headers):
        lowered = header.lower()
        if fragment in lowered or lowered == exact:
            return index
    return MISSING_COLUMN


def resolve_columns(headers: list[str]) -> ColumnIndices:
    """Resolve the field/type/description/detail columns of a header list.

    Matching is first-match left to right, so a header named ``Subtype``
    placed before ``Type`` wins the type column.

    Args:
        headers: Header texts from a ParsedTable

    Returns:
        ColumnIndices with MISSING_COLUMN for unresolved columns
    """
    return ColumnIndices(
        field=_find_column(headers, "field", "field"),
        type=_find_column(headers, "type", "type"),
        description=_find_column(headers, "description", "description"),
        detail=_find_column(headers, "detail", "details"),
    )


def parse_deprecation_status(field_name: str) -> DeprecationInfo:
    """Strip an inline deprecation marker from a raw field name.

    Example:
        >>> parse_deprecation_status("Spend {-deprecated}")
        DeprecationInfo(clean_name='Spend', status=<DeprecationStatus.DEPRECATED: 'deprecated'>)

    Args:
        field_name: Raw field cell text

    Returns:
        DeprecationInfo with the cleaned name and status
    """
    for pattern, status in _DEPRECATION_MARKERS:
        if pattern.search(field_name):
            return DeprecationInfo(clean_name=pattern.sub("", field_name, count=1).strip(), status=status)
    return DeprecationInfo(clean_name=field_name.strip(), status=DeprecationStatus.ACTIVE)


def extract_metric(
    row: list[str],
    headers: list[str],
    category: str,
    subcategory: str,
) -> Metric | None:
    """Build a Metric from one table row.

    Args:
        row: Row cells
        headers: Header list of the table the row belongs to
        category: Current category
        subcategory: Effective subcategory for this row

    Returns:
        Metric, or None when the row is not a metric row
    """
    columns = resolve_columns(headers)

    if columns.field == MISSING_COLUMN or len(row) <= columns.field:
        logger.debug("Skipping row without a field column: %s", row)
        return None

    field_name = row[columns.field].strip()
    if field_name.startswith("#") or not field_name or len(row) < MIN_METRIC_CELLS:
        logger.debug("Skipping row with unusable field name: %s", row)
        return None

    info = parse_deprecation_status(field_name)
    if not info.clean_name:
        # The cell held nothing but a marker
        logger.debug("Skipping row with empty name after marker removal: %s", row)
        return None

    return Metric(
        name=info.clean_name,
        category=category,
        subcategory=subcategory,
        type=cell_at(row, columns.type) or DEFAULT_METRIC_TYPE,
        description=cell_at(row, columns.description),
        commentary=cell_at(row, columns.detail),
        deprecation_status=info.status,
    )
