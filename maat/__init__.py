"""
MAAT — Typed knowledge graph for engineering work

Issues, pull requests, commits, files, projects and services as nodes;
their relationships (blocks, implements, modifies, ...) as edges.
Persisted in SQLite, fed by pluggable data sources.

Usage:
    from maat import GraphStore, Node, NodeType

    with GraphStore(".maat/graph.db") as store:
        store.upsert_node(Node(id="issue:1", type=NodeType.ISSUE, data={"title": "..."}))
        store.get_neighbors("issue:1")
"""

__version__ = "0.1.0"

# Core layer (data)
from .core.errors import (
    GraphError, NotFound, Conflict, ValidationError, InvalidType, InvalidRelation,
    IntegrityViolation, StorageFailure, StoreClosed,
)
from .core.schema import (
    NodeType, EdgeType, Role, Node, NodeMetadata, Edge, EdgeMetadata, NodeFilter,
    validate_node_type, validate_edge_type,
)
from .core.store import GraphStore
from .core.views import issue_dependencies, pr_file_map

# Ingestion
from .datasource import DataSource, DataSourceError, Loader, MockSource, FileScanner, GitScanner

# Configuration
from .config import Config, ConfigManager, get_config


__all__ = [
    '__version__',
    # Errors
    'GraphError', 'NotFound', 'Conflict', 'ValidationError', 'InvalidType',
    'InvalidRelation', 'IntegrityViolation', 'StorageFailure', 'StoreClosed',
    # Schema
    'NodeType', 'EdgeType', 'Role', 'Node', 'NodeMetadata', 'Edge', 'EdgeMetadata',
    'NodeFilter', 'validate_node_type', 'validate_edge_type',
    # Store and views
    'GraphStore', 'issue_dependencies', 'pr_file_map',
    # Ingestion
    'DataSource', 'DataSourceError', 'Loader', 'MockSource', 'FileScanner', 'GitScanner',
    # Configuration
    'Config', 'ConfigManager', 'get_config',
]
