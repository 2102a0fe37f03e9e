"""Derived views over an extracted metric list.

Provides the grouped JSON report, active-only and per-category exports,
and the label/value option groups consumed by presentation layers.
"""

from datetime import datetime, timezone
import json
from pathlib import Path
import re
from typing import Any

from tokdocs.extraction.models import DEFAULT_SUBCATEGORY, Metric
from tokdocs.shared.utils.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_SOURCE = "TikTok Business API Documentation"
DEFAULT_VERSION = "v1.3"
DEFAULT_EXPORT_CATEGORIES = ["Regular metrics", "SKAN metrics", "SAN metrics"]

GroupedMetrics = dict[str, dict[str, list[Metric]]]


def group_metrics(metrics: list[Metric]) -> GroupedMetrics:
    """Group metrics by category, then subcategory, in first-seen order."""
    grouped: GroupedMetrics = {}
    for metric in metrics:
        grouped.setdefault(metric.category, {}).setdefault(metric.subcategory, []).append(metric)
    return grouped


def export_active_metrics(metrics: list[Metric]) -> list[Metric]:
    return [m for m in metrics if m.is_active]


def export_by_category(metrics: list[Metric], category: str) -> list[Metric]:
    """Metrics whose category contains ``category`` (case-insensitive)."""
    needle = category.lower()
    return [m for m in metrics if needle in m.category.lower()]


def build_statistics(metrics: list[Metric]) -> dict[str, Any]:
    """Summary counts for a metric list.

    Returns:
        Dict with totalMetrics, activeMetrics, deprecatedMetrics (any
        non-active status), categoriesCount and a byCategory breakdown
    """
    grouped = group_metrics(metrics)
    deprecated_count = sum(1 for m in metrics if not m.is_active)
    return {
        "totalMetrics": len(metrics),
        "activeMetrics": len(metrics) - deprecated_count,
        "deprecatedMetrics": deprecated_count,
        "categoriesCount": len(grouped),
        "byCategory": [
            {
                "category": category,
                "count": sum(len(items) for items in subcategories.values()),
                "subcategories": len(subcategories),
            }
            for category, subcategories in grouped.items()
        ],
    }


def build_report(
    metrics: list[Metric],
    source: str = DEFAULT_SOURCE,
    version: str = DEFAULT_VERSION,
    extracted_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the full JSON report for a metric list.

    Args:
        metrics: Extracted metrics
        source: Human-readable source name for the metadata block
        version: API version label for the metadata block
        extracted_at: Extraction time (defaults to now, UTC)

    Returns:
        Dict with metadata, statistics, categorized and metrics keys
    """
    extracted_at = extracted_at or datetime.now(timezone.utc)
    return {
        "metadata": {
            "source": source,
            "extractedAt": extracted_at.isoformat(),
            "version": version,
        },
        "statistics": build_statistics(metrics),
        "categorized": {
            category: {subcategory: [m.to_dict() for m in items] for subcategory, items in subcategories.items()}
            for category, subcategories in group_metrics(metrics).items()
        },
        "metrics": [m.to_dict() for m in metrics],
    }


def format_as_option_groups(metrics: list[Metric]) -> list[dict[str, Any]]:
    """Flatten metrics into label/value option groups.

    One group per (category, subcategory). The group label is the category
    alone for the default subcategory, otherwise ``"category - subcategory"``.
    """
    groups = []
    for category, subcategories in group_metrics(metrics).items():
        for subcategory, items in subcategories.items():
            label = category if subcategory == DEFAULT_SUBCATEGORY else f"{category} - {subcategory}"
            groups.append(
                {
                    "label": label,
                    "options": [
                        {
                            "label": f"{m.name} - {m.description}" if m.description else m.name,
                            "value": m.name,
                        }
                        for m in items
                    ],
                }
            )
    return groups


def format_active_as_option_groups(metrics: list[Metric]) -> list[dict[str, Any]]:
    return format_as_option_groups(export_active_metrics(metrics))


def category_slug(category: str) -> str:
    """File-name slug for a category (``"SKAN metrics"`` -> ``"skan_metrics"``)."""
    return re.sub(r"\s+", "_", category.strip().lower())


def _write_json(path: Path, data: Any) -> Path:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def write_metric_files(
    metrics: list[Metric],
    output_dir: Path,
    categories: list[str] | None = None,
    prefix: str = "metrics",
) -> list[Path]:
    """Write the report and derived views as JSON files.

    Args:
        metrics: Extracted metrics
        output_dir: Directory to write into (created if missing)
        categories: Category names to export separately; categories with no
            matching metrics are skipped
        prefix: File name prefix

    Returns:
        Paths of the files written, in write order
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    active = export_active_metrics(metrics)

    written = [
        _write_json(output_dir / f"{prefix}.json", build_report(metrics)),
        _write_json(output_dir / f"{prefix}_active.json", [m.to_dict() for m in active]),
    ]

    for category in categories if categories is not None else DEFAULT_EXPORT_CATEGORIES:
        matching = export_by_category(metrics, category)
        if matching:
            path = output_dir / f"{prefix}_{category_slug(category)}.json"
            written.append(_write_json(path, [m.to_dict() for m in matching]))
            logger.info("%s (%d metrics) saved to %s", category, len(matching), path)

    written.append(_write_json(output_dir / f"{prefix}_option_groups.json", format_as_option_groups(metrics)))
    written.append(
        _write_json(output_dir / f"{prefix}_active_option_groups.json", format_active_as_option_groups(metrics))
    )

    logger.info("Wrote %d metric files to %s", len(written), output_dir)
    return written


def load_metrics(path: Path) -> list[Metric]:
    """Load metrics from a report file or a plain metric list file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the JSON holds neither shape
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict) and "metrics" in data:
        data = data["metrics"]
    if not isinstance(data, list):
        msg = f"No metric list found in {path}"
        raise ValueError(msg)
    return [Metric.from_dict(item) for item in data]
