# src/__init__.py — v1
"""examExtractor: batch exam-question extraction from images."""

from examextractor.version import __version__

__all__ = ["__version__"]
