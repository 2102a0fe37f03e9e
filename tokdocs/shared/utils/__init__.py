"""Utility modules for tokdocs."""

from tokdocs.shared.utils.logger import configure_root_logger, setup_logger

__all__ = ["configure_root_logger", "setup_logger"]
