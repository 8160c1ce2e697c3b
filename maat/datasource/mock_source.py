"""
Mock Source — Static demo graph

A small but fully connected project graph for demos and tests:
two projects, issues with blocking and parent/child relations, a pull
request implementing an issue and modifying files, commits that mention
issues, and the services the code calls.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple

from ..core.schema import (
    HUMAN_AUTHOR, Edge, EdgeMetadata, EdgeType, Node, NodeMetadata, NodeType, Role,
)
from .base import DataSource


SOURCE = "mock"

# Fixed clock so repeated loads produce identical payloads
EPOCH = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


def _node(node_id: str, node_type: NodeType, data: Dict[str, Any], day: int,
          role: Role = Role.IC) -> Node:
    stamp = EPOCH + timedelta(days=day)
    return Node(
        id=node_id,
        type=node_type,
        source=SOURCE,
        data=data,
        metadata=NodeMetadata(
            created_at=stamp,
            updated_at=stamp,
            created_by=HUMAN_AUTHOR,
            access_level=role,
            synced_at=stamp,
        ),
    )


def _edge(from_id: str, relation: EdgeType, to_id: str, **data) -> Edge:
    return Edge(
        from_id=from_id,
        to_id=to_id,
        relation=relation,
        metadata=EdgeMetadata(created_at=EPOCH, data=data),
    )


def mock_graph() -> Tuple[List[Node], List[Edge]]:
    """Build the demo graph (fresh objects on every call)."""
    nodes = [
        _node("project:maat", NodeType.PROJECT, {
            "name": "MAAT",
            "description": "Knowledge graph workspace for engineering teams",
            "status": "active",
        }, 0, role=Role.EXEC),
        _node("project:infra", NodeType.PROJECT, {
            "name": "Infrastructure",
            "description": "Deployment and runtime services",
            "status": "active",
        }, 0, role=Role.LEAD),

        _node("issue:101", NodeType.ISSUE, {
            "title": "Graph store loses edges on node re-import",
            "description": "Re-importing a node drops every edge attached to it.",
            "status": "in_progress",
            "priority": 1,
            "labels": ["bug", "storage"],
        }, 1),
        _node("issue:102", NodeType.ISSUE, {
            "title": "Show blocking issues in detail pane",
            "status": "todo",
            "priority": 2,
            "labels": ["ui"],
        }, 2),
        _node("issue:103", NodeType.ISSUE, {
            "title": "Sync issues from tracker every 5 minutes",
            "status": "backlog",
            "priority": 3,
            "labels": ["sync"],
        }, 2),
        _node("issue:104", NodeType.ISSUE, {
            "title": "Persist graph between sessions",
            "status": "done",
            "priority": 2,
            "labels": ["storage"],
        }, 3),

        _node("pr:12", NodeType.PR, {
            "title": "Use upsert instead of replace for node import",
            "number": 12,
            "status": "open",
            "author": "dana",
        }, 4),

        _node("commit:a1b2c3d4", NodeType.COMMIT, {
            "title": "Preserve edges on re-import (#101)",
            "message": "Preserve edges on re-import (#101)",
            "author": "dana",
            "hash": "a1b2c3d4e5f6a7b8c9d0",
        }, 4),
        _node("commit:e5f6a7b8", NodeType.COMMIT, {
            "title": "Add sqlite persistence, closes #104",
            "message": "Add sqlite persistence, closes #104",
            "author": "lee",
            "hash": "e5f6a7b8c9d0a1b2c3d4",
        }, 3),

        _node("file:internal-graph-store.py", NodeType.FILE, {
            "path": "internal/graph/store.py",
            "language": "Python",
            "lines": 412,
        }, 3),
        _node("file:internal-graph-schema.py", NodeType.FILE, {
            "path": "internal/graph/schema.py",
            "language": "Python",
            "lines": 230,
        }, 3),

        _node("service:api", NodeType.SERVICE, {
            "name": "api",
            "description": "Read API for dashboards",
            "status": "healthy",
        }, 0, role=Role.LEAD),
        _node("service:tracker-sync", NodeType.SERVICE, {
            "name": "tracker-sync",
            "description": "Pulls issues from the tracker",
            "status": "degraded",
        }, 0, role=Role.LEAD),
    ]

    edges = [
        _edge("project:maat", EdgeType.OWNS, "issue:101"),
        _edge("project:maat", EdgeType.OWNS, "issue:102"),
        _edge("project:maat", EdgeType.OWNS, "issue:104"),
        _edge("project:infra", EdgeType.OWNS, "issue:103"),
        _edge("project:infra", EdgeType.OWNS, "service:tracker-sync"),
        _edge("project:infra", EdgeType.OWNS, "service:api"),

        _edge("issue:101", EdgeType.BLOCKS, "issue:102", reason="detail pane reads edges"),
        _edge("issue:104", EdgeType.BLOCKS, "issue:103"),
        _edge("issue:104", EdgeType.PARENT_OF, "issue:101"),
        _edge("issue:102", EdgeType.RELATED, "issue:103"),

        _edge("pr:12", EdgeType.IMPLEMENTS, "issue:101"),
        _edge("pr:12", EdgeType.MODIFIES, "file:internal-graph-store.py"),
        _edge("pr:12", EdgeType.MODIFIES, "file:internal-graph-schema.py"),

        _edge("commit:a1b2c3d4", EdgeType.MENTIONS, "issue:101"),
        _edge("commit:e5f6a7b8", EdgeType.MENTIONS, "issue:104"),
        _edge("commit:e5f6a7b8", EdgeType.PARENT_OF, "commit:a1b2c3d4"),

        _edge("service:api", EdgeType.CALLS, "service:tracker-sync"),
    ]

    return nodes, edges


class MockSource(DataSource):
    """Static demo data. Loading twice yields the same graph."""

    @property
    def name(self) -> str:
        return "mock"

    @property
    def supports_refresh(self) -> bool:
        return False

    def load(self) -> Tuple[List[Node], List[Edge]]:
        return mock_graph()
