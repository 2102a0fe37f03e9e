"""Data structures for the metric extraction pipeline.

This module defines the records that flow through the xtable pipeline:
the intermediate ParsedTable, the resolved column positions, the walker
context threaded through the line scan, and the final Metric record.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_CATEGORY = "General"
DEFAULT_SUBCATEGORY = "General"

# Index value for a column that could not be resolved
MISSING_COLUMN = -1


class DeprecationStatus(str, Enum):
    """Lifecycle status parsed from inline markers in a field name."""

    ACTIVE = "active"
    DEPRECATED = "deprecated"
    TO_BE_DEPRECATED = "to_be_deprecated"


@dataclass(frozen=True)
class DeprecationInfo:
    """Result of parsing deprecation markers out of a raw field name.

    Attributes:
        clean_name: Field name with the marker removed and whitespace trimmed
        status: Status implied by the marker (ACTIVE when none is present)
    """

    clean_name: str
    status: DeprecationStatus


@dataclass(frozen=True)
class Metric:
    """One normalized metric from the catalog.

    Attributes:
        name: Field name, deprecation marker stripped
        category: Nearest preceding ``#`` heading
        subcategory: Composed ``##`` / ``###`` / inline header label
        type: Value type from the table, ``"string"`` when absent
        description: Description column value
        commentary: Detail column value
        deprecation_status: Lifecycle status
    """

    name: str
    category: str = DEFAULT_CATEGORY
    subcategory: str = DEFAULT_SUBCATEGORY
    type: str = "string"
    description: str = ""
    commentary: str = ""
    deprecation_status: DeprecationStatus = DeprecationStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.deprecation_status is DeprecationStatus.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape used by the metric catalog files."""
        return {
            "name": self.name,
            "category": self.category,
            "subcategory": self.subcategory,
            "type": self.type,
            "description": self.description,
            "commentary": self.commentary,
            "deprecationStatus": self.deprecation_status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Metric":
        """Build a Metric from its catalog JSON shape.

        Args:
            data: Dictionary as produced by ``to_dict``

        Returns:
            Metric instance

        Raises:
            KeyError: If ``name`` is missing
            ValueError: If ``deprecationStatus`` is not a known status
        """
        return cls(
            name=data["name"],
            category=data.get("category", DEFAULT_CATEGORY),
            subcategory=data.get("subcategory", DEFAULT_SUBCATEGORY),
            type=data.get("type", "string"),
            description=data.get("description", ""),
            commentary=data.get("commentary", ""),
            deprecation_status=DeprecationStatus(data.get("deprecationStatus", DeprecationStatus.ACTIVE.value)),
        )


@dataclass(frozen=True)
class ParsedTable:
    """Headers and rows parsed from an xtable block.

    Attributes:
        headers: Column headers with width annotations stripped
        rows: Data rows; a row may be shorter or longer than ``headers``
        heading_rows: Indices into ``rows`` whose raw line began with ``#``
    """

    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    heading_rows: frozenset[int] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.headers and not self.rows

    def is_heading_row(self, index: int) -> bool:
        return index in self.heading_rows


@dataclass(frozen=True)
class ColumnIndices:
    """Resolved column positions for one header list (-1 when absent)."""

    field: int = MISSING_COLUMN
    type: int = MISSING_COLUMN
    description: int = MISSING_COLUMN
    detail: int = MISSING_COLUMN


@dataclass(frozen=True)
class WalkerContext:
    """Heading context carried forward while scanning a document.

    Attributes:
        category: Text of the last ``#`` heading
        subcategory: Text of the last ``##`` heading
        sub_subcategory: Text of the last ``###`` heading
        inline_header: Label from the last inline-header table row
    """

    category: str = DEFAULT_CATEGORY
    subcategory: str = DEFAULT_SUBCATEGORY
    sub_subcategory: str = ""
    inline_header: str = ""
