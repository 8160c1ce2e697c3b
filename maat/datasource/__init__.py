"""
Data Sources — Producers of graph data

Each source is write-only from the store's point of view: it builds
Node/Edge values and the Loader upserts them.
"""

from .base import (
    DataSource, DataSourceError, Loader, IngestResult,
    sanitize_id, extract_issue_references, detect_language,
)
from .file_scanner import FileScanner
from .git_scanner import GitScanner
from .mock_source import MockSource, mock_graph

__all__ = [
    "DataSource", "DataSourceError", "Loader", "IngestResult",
    "sanitize_id", "extract_issue_references", "detect_language",
    "FileScanner", "GitScanner", "MockSource", "mock_graph",
]
