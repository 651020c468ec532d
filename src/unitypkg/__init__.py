"""Streaming extractor for Unity asset packages."""

__version__ = "0.1.0"
