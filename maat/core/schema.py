"""
Entity Schema — Closed vocabularies and record shapes for the graph

Nodes carry an opaque per-type payload (`data`) that comes from
heterogeneous external sources. Accessors read it as best-effort
structured data: a missing field or unparseable payload yields a
documented zero value, never an exception.

Title fallback order is fixed: title -> name -> path -> node ID.
Display code depends on it.
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import orjson

from .errors import InvalidType, InvalidRelation


class NodeType(Enum):
    ISSUE = "Issue"
    PR = "PR"
    COMMIT = "Commit"
    FILE = "File"
    PROJECT = "Project"
    SERVICE = "Service"


class EdgeType(Enum):
    BLOCKS = "blocks"
    RELATED = "related"
    IMPLEMENTS = "implements"
    CALLS = "calls"
    OWNS = "owns"
    MODIFIES = "modifies"
    MENTIONS = "mentions"
    PARENT_OF = "parent_of"


class Role(Enum):
    """Access level of a node."""
    EXEC = "exec"
    LEAD = "lead"
    IC = "ic"


NODE_TYPES = frozenset(t.value for t in NodeType)
EDGE_TYPES = frozenset(t.value for t in EdgeType)

# created_by values: "user" for a human, "ai:<session_id>" for an AI session
HUMAN_AUTHOR = "user"
AI_AUTHOR_PREFIX = "ai:"


def ai_author(session_id: str) -> str:
    """Tag an AI session as a writer identity."""
    return f"{AI_AUTHOR_PREFIX}{session_id}"


def is_ai_author(created_by: Optional[str]) -> bool:
    return bool(created_by) and created_by.startswith(AI_AUTHOR_PREFIX)


# =============================================================================
# Validation
# =============================================================================

def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def validate_node_type(value: Any) -> bool:
    """True if value names a NodeType. Pure membership test."""
    if isinstance(value, NodeType):
        return True
    return isinstance(value, str) and value in NODE_TYPES


def validate_edge_type(value: Any) -> bool:
    """True if value names an EdgeType. Pure membership test."""
    if isinstance(value, EdgeType):
        return True
    return isinstance(value, str) and value in EDGE_TYPES


def parse_node_type(value: Any) -> NodeType:
    """Parse a node type from serialized form. Raises InvalidType."""
    if isinstance(value, NodeType):
        return value
    if not validate_node_type(value):
        raise InvalidType(_enum_value(value))
    return NodeType(value)


def parse_edge_type(value: Any) -> EdgeType:
    """Parse an edge relation from serialized form. Raises InvalidRelation."""
    if isinstance(value, EdgeType):
        return value
    if not validate_edge_type(value):
        raise InvalidRelation(_enum_value(value))
    return EdgeType(value)


# =============================================================================
# Timestamps
# =============================================================================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """
    Fixed-width ISO-8601 in UTC.

    Always carries microseconds so stored timestamps compare
    chronologically as plain strings (used by updated_after filters).
    """
    if value is None:
        return None
    return as_utc(value).isoformat(timespec="microseconds")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return as_utc(datetime.fromisoformat(value))


# =============================================================================
# Records
# =============================================================================

@dataclass
class NodeMetadata:
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: str = ""            # user | ai:<session_id> | collaborator name
    access_level: Optional[Role] = None
    synced_at: Optional[datetime] = None  # Last reconciliation with the external source

    def __post_init__(self):
        self.created_at = as_utc(self.created_at)
        self.updated_at = as_utc(self.updated_at)
        self.synced_at = as_utc(self.synced_at)
        if isinstance(self.access_level, str):
            self.access_level = Role(self.access_level) if self.access_level else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "created_by": self.created_by,
            "access_level": self.access_level.value if self.access_level else None,
            "synced_at": format_timestamp(self.synced_at),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'NodeMetadata':
        return cls(
            created_at=parse_timestamp(d.get("created_at")),
            updated_at=parse_timestamp(d.get("updated_at")),
            created_by=d.get("created_by") or "",
            access_level=d.get("access_level") or None,
            synced_at=parse_timestamp(d.get("synced_at")),
        )


@dataclass
class Node:
    id: str
    type: NodeType
    source: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    metadata: NodeMetadata = field(default_factory=NodeMetadata)

    def __post_init__(self):
        # Valid strings become enum members; anything else is left for
        # the store boundary to reject with InvalidType.
        if not isinstance(self.type, NodeType) and validate_node_type(self.type):
            self.type = NodeType(self.type)
        if isinstance(self.metadata, dict):
            self.metadata = NodeMetadata.from_dict(self.metadata)

    def payload(self) -> Dict[str, Any]:
        """Best-effort mapping view of `data` ({} when not a JSON object)."""
        data = self.data
        if isinstance(data, (str, bytes, bytearray, memoryview)):
            try:
                data = orjson.loads(data)
            except orjson.JSONDecodeError:
                return {}
        return data if isinstance(data, dict) else {}

    def _string_field(self, key: str) -> Optional[str]:
        value = self.payload().get(key)
        return value if isinstance(value, str) else None

    @property
    def title(self) -> str:
        for key in ("title", "name", "path"):
            value = self._string_field(key)
            if value is not None:
                return value
        return self.id

    @property
    def description(self) -> str:
        return self._string_field("description") or ""

    @property
    def status(self) -> str:
        return self._string_field("status") or ""

    @property
    def priority(self) -> int:
        value = self.payload().get("priority")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return int(value)

    @property
    def labels(self) -> List[str]:
        raw = self.payload().get("labels")
        if not isinstance(raw, list):
            return []
        return [label for label in raw if isinstance(label, str)]

    def with_metadata(self, **changes) -> 'Node':
        """Copy of this node with metadata fields replaced."""
        return replace(self, metadata=replace(self.metadata, **changes))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": _enum_value(self.type),
            "source": self.source,
            "data": self.data,
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Node':
        return cls(
            id=d["id"],
            type=parse_node_type(d["type"]),
            source=d.get("source") or "",
            data=d.get("data") if d.get("data") is not None else {},
            metadata=NodeMetadata.from_dict(d.get("metadata") or {}),
        )


@dataclass
class EdgeMetadata:
    created_at: Optional[datetime] = None
    data: Dict[str, Any] = field(default_factory=dict)  # Relation-specific annex

    def __post_init__(self):
        self.created_at = as_utc(self.created_at)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created_at": format_timestamp(self.created_at),
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'EdgeMetadata':
        return cls(
            created_at=parse_timestamp(d.get("created_at")),
            data=d.get("data") or {},
        )


def derive_edge_id(from_id: str, relation: Any, to_id: str) -> str:
    """Stable identity for the logical edge (from, relation, to)."""
    return f"{from_id}-{_enum_value(relation)}-{to_id}"


@dataclass
class Edge:
    from_id: str
    to_id: str
    relation: EdgeType
    id: str = ""
    metadata: EdgeMetadata = field(default_factory=EdgeMetadata)

    def __post_init__(self):
        if not isinstance(self.relation, EdgeType) and validate_edge_type(self.relation):
            self.relation = EdgeType(self.relation)
        if isinstance(self.metadata, dict):
            self.metadata = EdgeMetadata.from_dict(self.metadata)

    def ensure_id(self) -> str:
        """Return the edge ID, deriving from-relation-to when empty."""
        return self.id or derive_edge_id(self.from_id, self.relation, self.to_id)

    def touches(self, node_id: str) -> bool:
        return node_id in (self.from_id, self.to_id)

    def other_end(self, node_id: str) -> str:
        """Endpoint opposite node_id (direction-agnostic traversal)."""
        return self.to_id if self.from_id == node_id else self.from_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.ensure_id(),
            "from_id": self.from_id,
            "to_id": self.to_id,
            "relation": _enum_value(self.relation),
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Edge':
        return cls(
            id=d.get("id") or "",
            from_id=d["from_id"],
            to_id=d["to_id"],
            relation=parse_edge_type(d["relation"]),
            metadata=EdgeMetadata.from_dict(d.get("metadata") or {}),
        )


@dataclass
class NodeFilter:
    """
    Optional, composable node query. All supplied predicates are ANDed;
    empty sequences and None are not applied.
    """
    types: Sequence[NodeType] = ()
    sources: Sequence[str] = ()
    updated_after: Optional[datetime] = None  # Strictly after

    def is_empty(self) -> bool:
        return not self.types and not self.sources and self.updated_after is None
