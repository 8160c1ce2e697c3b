"""
Tests for Entity Schema — Closed vocabularies and payload accessors

These tests validate:
- Membership tests for node types and edge relations
- Parsing raises typed errors for unknown values
- Best-effort payload accessors never raise
- Timestamps normalize to fixed-width UTC
"""

from datetime import datetime, timedelta, timezone

import pytest

from maat.core.errors import InvalidRelation, InvalidType
from maat.core.schema import (
    Edge,
    EdgeType,
    Node,
    NodeMetadata,
    NodeType,
    Role,
    ai_author,
    derive_edge_id,
    format_timestamp,
    is_ai_author,
    parse_edge_type,
    parse_node_type,
    validate_edge_type,
    validate_node_type,
)


class TestValidation:
    """Closed enums: exact membership, no normalization."""

    @pytest.mark.parametrize("value", ["Issue", "PR", "Commit", "File", "Project", "Service"])
    def test_every_node_type_is_valid(self, value):
        assert validate_node_type(value)

    @pytest.mark.parametrize("value", ["issue", "Bug", "", None, 3])
    def test_unknown_node_types_rejected(self, value):
        assert not validate_node_type(value)

    def test_enum_members_are_valid(self):
        assert validate_node_type(NodeType.PR)
        assert validate_edge_type(EdgeType.PARENT_OF)

    def test_every_relation_is_valid(self):
        for relation in ("blocks", "related", "implements", "calls",
                         "owns", "modifies", "mentions", "parent_of"):
            assert validate_edge_type(relation)

    def test_unknown_relation_rejected(self):
        assert not validate_edge_type("depends_on")
        assert not validate_edge_type("Blocks")

    def test_parse_node_type_raises_invalid_type(self):
        with pytest.raises(InvalidType) as exc_info:
            parse_node_type("Epic")
        assert exc_info.value.value == "Epic"

    def test_parse_edge_type_raises_invalid_relation(self):
        with pytest.raises(InvalidRelation) as exc_info:
            parse_edge_type("depends")
        assert exc_info.value.value == "depends"

    def test_parse_returns_enum(self):
        assert parse_node_type("Commit") is NodeType.COMMIT
        assert parse_edge_type("owns") is EdgeType.OWNS


class TestNodeAccessors:
    """Accessors read the payload and fall back to documented zero values."""

    def test_title_prefers_title(self):
        node = Node(id="issue:1", type=NodeType.ISSUE,
                    data={"title": "T", "name": "N", "path": "P"})
        assert node.title == "T"

    def test_title_falls_back_to_name_then_path_then_id(self):
        assert Node(id="p", type=NodeType.PROJECT, data={"name": "N", "path": "P"}).title == "N"
        assert Node(id="f", type=NodeType.FILE, data={"path": "a/b.py"}).title == "a/b.py"
        assert Node(id="issue:9", type=NodeType.ISSUE, data={}).title == "issue:9"

    def test_non_string_title_is_skipped(self):
        node = Node(id="issue:1", type=NodeType.ISSUE, data={"title": 42, "name": "fallback"})
        assert node.title == "fallback"

    def test_unparseable_payload_yields_zero_values(self):
        node = Node(id="issue:1", type=NodeType.ISSUE, data="{not json")
        assert node.title == "issue:1"
        assert node.description == ""
        assert node.status == ""
        assert node.priority == 0
        assert node.labels == []

    def test_serialized_payload_is_parsed(self):
        node = Node(id="issue:1", type=NodeType.ISSUE, data='{"title": "From JSON", "priority": 2}')
        assert node.title == "From JSON"
        assert node.priority == 2

    def test_non_object_payload_yields_zero_values(self):
        node = Node(id="issue:1", type=NodeType.ISSUE, data=[1, 2, 3])
        assert node.title == "issue:1"
        assert node.labels == []

    def test_priority_rejects_non_numbers(self):
        assert Node(id="a", type=NodeType.ISSUE, data={"priority": "high"}).priority == 0
        assert Node(id="a", type=NodeType.ISSUE, data={"priority": True}).priority == 0
        assert Node(id="a", type=NodeType.ISSUE, data={"priority": 3.0}).priority == 3
        assert Node(id="a", type=NodeType.ISSUE, data={"priority": float("inf")}).priority == 0
        assert Node(id="a", type=NodeType.ISSUE, data={"priority": float("-inf")}).priority == 0
        assert Node(id="a", type=NodeType.ISSUE, data={"priority": float("nan")}).priority == 0

    def test_labels_keep_only_strings(self):
        node = Node(id="a", type=NodeType.ISSUE, data={"labels": ["bug", 7, None, "ui"]})
        assert node.labels == ["bug", "ui"]

    def test_labels_not_a_list(self):
        assert Node(id="a", type=NodeType.ISSUE, data={"labels": "bug"}).labels == []

    def test_string_type_coerced_to_enum(self):
        assert Node(id="a", type="Issue").type is NodeType.ISSUE

    def test_invalid_type_left_for_store(self):
        assert Node(id="a", type="Epic").type == "Epic"

    def test_with_metadata_returns_copy(self):
        node = Node(id="a", type=NodeType.ISSUE, metadata=NodeMetadata(created_by="user"))
        changed = node.with_metadata(created_by=ai_author("s1"))
        assert changed.metadata.created_by == "ai:s1"
        assert node.metadata.created_by == "user"


class TestEdges:

    def test_derived_id(self):
        assert derive_edge_id("issue:1", EdgeType.BLOCKS, "issue:2") == "issue:1-blocks-issue:2"

    def test_ensure_id_keeps_explicit_id(self):
        edge = Edge(id="e1", from_id="a", to_id="b", relation=EdgeType.OWNS)
        assert edge.ensure_id() == "e1"

    def test_ensure_id_derives_when_empty(self):
        edge = Edge(from_id="a", to_id="b", relation="calls")
        assert edge.relation is EdgeType.CALLS
        assert edge.ensure_id() == "a-calls-b"

    def test_other_end(self):
        edge = Edge(from_id="a", to_id="b", relation=EdgeType.RELATED)
        assert edge.other_end("a") == "b"
        assert edge.other_end("b") == "a"
        assert edge.touches("a") and not edge.touches("c")

    def test_from_dict_rejects_unknown_relation(self):
        with pytest.raises(InvalidRelation):
            Edge.from_dict({"from_id": "a", "to_id": "b", "relation": "depends"})


class TestMetadata:

    def test_naive_timestamps_taken_as_utc(self):
        meta = NodeMetadata(created_at=datetime(2025, 1, 1, 12, 0))
        assert meta.created_at.tzinfo == timezone.utc
        assert meta.created_at.hour == 12

    def test_offsets_normalized_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        meta = NodeMetadata(updated_at=datetime(2025, 1, 1, 12, 0, tzinfo=plus_two))
        assert meta.updated_at == datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
        assert meta.updated_at.utcoffset() == timedelta(0)

    def test_timestamps_fixed_width(self):
        whole = format_timestamp(datetime(2025, 1, 1, tzinfo=timezone.utc))
        fractional = format_timestamp(datetime(2025, 1, 1, 0, 0, 0, 5, tzinfo=timezone.utc))
        assert whole == "2025-01-01T00:00:00.000000+00:00"
        assert len(whole) == len(fractional)
        assert whole < fractional

    def test_dict_form_restores_role_and_times(self):
        meta = NodeMetadata(
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            created_by="user",
            access_level=Role.LEAD,
        )
        restored = NodeMetadata.from_dict(meta.to_dict())
        assert restored == meta
        assert restored.access_level is Role.LEAD
        assert restored.updated_at is None

    def test_ai_author_tagging(self):
        assert is_ai_author(ai_author("abc"))
        assert not is_ai_author("user")
        assert not is_ai_author("")
        assert not is_ai_author(None)
