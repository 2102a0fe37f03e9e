"""Pytest configuration and fixtures."""

import pytest

from tokdocs.shared.config import reset_config
from tokdocs.shared.utils import logger as logger_module


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep tokdocs environment overrides and cached config out of tests."""
    for name in ("TOKDOCS_DB_PATH", "TOKDOCS_COLLECTION", "TOKDOCS_OUTPUT_DIR", "TOKDOCS_URL_BASE", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(logger_module, "_configured_level", None)
    reset_config()
    yield
    reset_config()
