"""Version metadata for tokdocs."""

__version__ = "1.0.0"
