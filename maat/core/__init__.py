"""
Core — Data layer for MAAT

Contains the foundational graph pieces:
- Schema: closed node/edge vocabularies, record shapes, payload accessors
- Store: SQLite persistence with integrity, upsert and cascade delete
- Views: read-time projections (issue blocks issue, PR modifies file)
- Errors: the store's error taxonomy
"""

from .errors import (
    GraphError, NotFound, Conflict, ValidationError, InvalidType, InvalidRelation,
    IntegrityViolation, StorageFailure, StoreClosed,
)
from .schema import (
    NodeType, EdgeType, Role, Node, NodeMetadata, Edge, EdgeMetadata, NodeFilter,
    validate_node_type, validate_edge_type, parse_node_type, parse_edge_type,
    derive_edge_id, ai_author, is_ai_author, HUMAN_AUTHOR,
)
from .store import GraphStore, MEMORY_PATH
from .views import IssueDependency, PRFileChange, issue_dependencies, pr_file_map

__all__ = [
    # Errors
    "GraphError", "NotFound", "Conflict", "ValidationError", "InvalidType", "InvalidRelation",
    "IntegrityViolation", "StorageFailure", "StoreClosed",
    # Schema
    "NodeType", "EdgeType", "Role", "Node", "NodeMetadata", "Edge", "EdgeMetadata", "NodeFilter",
    "validate_node_type", "validate_edge_type", "parse_node_type", "parse_edge_type",
    "derive_edge_id", "ai_author", "is_ai_author", "HUMAN_AUTHOR",
    # Store
    "GraphStore", "MEMORY_PATH",
    # Views
    "IssueDependency", "PRFileChange", "issue_dependencies", "pr_file_map",
]
