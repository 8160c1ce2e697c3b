"""
Data Sources — Ingestion collaborators feeding the graph store

A data source produces Node and Edge values; it never reads the store.
The Loader merges several sources and reconciles them into the store
through upserts, so re-running a load is always safe.
"""

import re
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from ..core.errors import Conflict, IntegrityViolation
from ..core.schema import Edge, Node
from ..core.store import GraphStore


class DataSourceError(Exception):
    """A source could not produce its graph data."""


class DataSource(ABC):
    """Abstract base for graph data sources."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Source identifier (e.g. 'git:maat', 'files:src')."""
        pass

    @property
    def supports_refresh(self) -> bool:
        """True if loading again can pick up new data."""
        return True

    @abstractmethod
    def load(self) -> Tuple[List[Node], List[Edge]]:
        """
        Produce nodes and edges.

        Raises:
            DataSourceError: source unavailable or unreadable
        """
        pass


@dataclass
class IngestResult:
    """Outcome of Loader.ingest()."""
    nodes: int = 0
    edges: int = 0
    skipped_edges: List[str] = field(default_factory=list)  # Dangling or clashing edge IDs
    errors: Dict[str, str] = field(default_factory=dict)    # Source name -> error

    @property
    def ok(self) -> bool:
        return not self.errors


class Loader:
    """Orchestrates loading from multiple data sources."""

    def __init__(self, *sources: DataSource):
        self.sources: List[DataSource] = list(sources)
        self.errors: Dict[str, str] = {}

    def add_source(self, source: DataSource):
        self.sources.append(source)

    def load_all(self) -> Tuple[List[Node], List[Edge]]:
        """
        Load every source and merge results.

        A failing source is reported to stderr and skipped; the others
        still load. Failures are kept in self.errors.
        """
        all_nodes: List[Node] = []
        all_edges: List[Edge] = []
        self.errors = {}

        for source in self.sources:
            try:
                nodes, edges = source.load()
            except DataSourceError as e:
                self.errors[source.name] = str(e)
                print(f"Error loading from {source.name}: {e}", file=sys.stderr)
                continue
            print(f"Loaded {len(nodes)} nodes from {source.name}", file=sys.stderr)
            all_nodes.extend(nodes)
            all_edges.extend(edges)

        return all_nodes, all_edges

    def ingest(self, store: GraphStore) -> IngestResult:
        """
        Load all sources and upsert into the store in one transaction.

        Nodes go first so edges between sources resolve. Edges whose
        endpoint never arrived (e.g. a commit mentioning an issue that
        was not loaded) are skipped and listed in the result.
        """
        nodes, edges = self.load_all()
        result = IngestResult(errors=dict(self.errors))

        with store.transaction():
            for node in nodes:
                store.upsert_node(node)
                result.nodes += 1

            for edge in edges:
                try:
                    store.upsert_edge(edge)
                except (IntegrityViolation, Conflict):
                    result.skipped_edges.append(edge.ensure_id())
                    continue
                result.edges += 1

        return result


# =============================================================================
# Helpers shared by scanners
# =============================================================================

def sanitize_id(value: str) -> str:
    """Make a path or branch name safe for use inside an ID."""
    return value.replace("/", "-").replace("\\", "-").replace(" ", "-")


_ISSUE_REF = re.compile(r"^#(\d+)$")


def extract_issue_references(message: str) -> List[int]:
    """
    Find issue numbers referenced as '#N' in a commit message.

    Surrounding punctuation is ignored: 'fixes #12.' and '(#7)' match.
    """
    refs = []
    for part in message.split():
        part = part.strip(".,;:!?()[]")
        match = _ISSUE_REF.match(part)
        if match and int(match.group(1)) > 0:
            refs.append(int(match.group(1)))
    return refs


LANGUAGES: Dict[str, str] = {
    '.go': 'Go',
    '.js': 'JavaScript',
    '.ts': 'TypeScript',
    '.tsx': 'TypeScript',
    '.jsx': 'JavaScript',
    '.py': 'Python',
    '.rb': 'Ruby',
    '.rs': 'Rust',
    '.java': 'Java',
    '.kt': 'Kotlin',
    '.c': 'C',
    '.cpp': 'C++',
    '.h': 'C',
    '.hpp': 'C++',
    '.md': 'Markdown',
    '.yaml': 'YAML',
    '.yml': 'YAML',
    '.json': 'JSON',
    '.toml': 'TOML',
    '.html': 'HTML',
    '.css': 'CSS',
    '.scss': 'SCSS',
}


def detect_language(extension: str) -> str:
    return LANGUAGES.get(extension.lower(), "Unknown")
