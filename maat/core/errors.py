"""
Errors — Graph store error taxonomy

Every failure the store reports is a GraphError subclass:
- NotFound: node/edge ID absent (get_*, delete_*)
- Conflict: duplicate ID on the non-idempotent insert path
- InvalidType / InvalidRelation: closed-enum validation (raised before any I/O)
- IntegrityViolation: missing edge endpoint, duplicate (from, to, relation)
- StorageFailure: underlying SQLite or schema-initialization failure
- StoreClosed: operation attempted after close()

The store raises these and never logs, retries, or swallows them.
"""

from typing import Optional


class GraphError(Exception):
    """Base class for all graph store errors."""


class NotFound(GraphError):
    """Requested node or edge does not exist."""

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} not found: {item_id}")


class Conflict(GraphError):
    """An item with this ID already exists."""

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} already exists: {item_id}")


class ValidationError(GraphError):
    """A value is outside its closed enumeration."""

    def __init__(self, value, message: str):
        self.value = value
        super().__init__(message)


class InvalidType(ValidationError):
    """Node type is not a NodeType."""

    def __init__(self, value):
        super().__init__(value, f"invalid node type: {value}")


class InvalidRelation(ValidationError):
    """Edge relation is not an EdgeType."""

    def __init__(self, value):
        super().__init__(value, f"invalid edge relation: {value}")


class IntegrityViolation(GraphError):
    """Edge would break referential integrity or the (from, to, relation) uniqueness."""

    def __init__(self, message: str, edge_id: Optional[str] = None):
        self.edge_id = edge_id
        super().__init__(message)


class StorageFailure(GraphError):
    """Underlying storage failed (I/O, schema setup, corrupt payload)."""


class StoreClosed(StorageFailure):
    """The store was closed; no further operations are legal."""

    def __init__(self):
        super().__init__("graph store is closed")
