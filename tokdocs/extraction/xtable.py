"""Parser for ``xtable`` pseudo-table blocks.

An xtable block is the text between a ```` ```xtable ```` fence and its
closing fence::

    Field{20%} | Type{10%} | Description{50%} | Detail{20%}
    ---
    field_name | string | a description | extra detail
    #sub_heading_row

The first non-blank line holds the headers (with optional width
annotations), the second is a separator and is ignored, and every further
line is a pipe-delimited data row.
"""

import re

from tokdocs.extraction.models import MISSING_COLUMN, ParsedTable

XTABLE_FENCE = "```xtable"
FENCE = "```"

# Column width annotations such as {20%} or {120}
_WIDTH_ANNOTATION = re.compile(r"\{[\d%]+\}")

HEADING_ROW_PREFIX = "#"


def _parse_header_line(line: str) -> list[str]:
    return [_WIDTH_ANNOTATION.sub("", segment).strip() for segment in line.split("|") if segment.strip()]


def _parse_row_line(line: str) -> tuple[list[str], bool]:
    """Split one data line into cells.

    Only truly empty segments (from leading or trailing pipes) are dropped;
    whitespace-only cells are kept as ``""`` so column positions survive.

    Returns:
        Tuple of (cells, was_heading_row)
    """
    is_heading = line.startswith(HEADING_ROW_PREFIX)
    if is_heading:
        line = line[len(HEADING_ROW_PREFIX) :]
    cells = [segment.strip() for segment in line.split("|") if segment != ""]
    return cells, is_heading


def parse_table(block_text: str) -> ParsedTable:
    """Parse the body of an xtable block.

    Args:
        block_text: Raw text between the opening and closing fences

    Returns:
        ParsedTable with headers, rows and the indices of sub-heading rows.
        An empty block yields an empty table.
    """
    lines = [line for line in block_text.split("\n") if line.strip()]
    if not lines:
        return ParsedTable()

    headers = _parse_header_line(lines[0])

    rows: list[list[str]] = []
    heading_rows: set[int] = set()
    # lines[1] is the separator
    for line in lines[2:]:
        cells, is_heading = _parse_row_line(line)
        if not cells:
            continue
        if is_heading:
            heading_rows.add(len(rows))
        rows.append(cells)

    return ParsedTable(headers=headers, rows=rows, heading_rows=frozenset(heading_rows))


def cell_at(row: list[str], index: int) -> str:
    """Return the cell at ``index``, or ``""`` when the column is absent.

    Args:
        row: Row cells
        index: Column index, possibly MISSING_COLUMN

    Returns:
        Cell text, or an empty string for missing or out-of-range columns
    """
    if index == MISSING_COLUMN or index < 0 or index >= len(row):
        return ""
    return row[index]
