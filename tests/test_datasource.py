"""
Tests for Data Sources — Scanners, demo data and the Loader

These tests validate:
- Sources produce nodes and edges without touching the store
- Loading is idempotent (upserts, stable IDs)
- A failing source does not stop the others
- Edges to nodes that never arrived are skipped, not fatal
"""

from typing import List, Tuple

import pytest

from maat.core.schema import HUMAN_AUTHOR, Edge, EdgeType, Node, NodeType
from maat.datasource import (
    DataSource,
    DataSourceError,
    FileScanner,
    GitScanner,
    Loader,
    MockSource,
    detect_language,
    extract_issue_references,
    mock_graph,
    sanitize_id,
)


class BrokenSource(DataSource):

    @property
    def name(self) -> str:
        return "broken"

    def load(self) -> Tuple[List[Node], List[Edge]]:
        raise DataSourceError("tracker unreachable")


class DanglingSource(DataSource):
    """A commit mentioning an issue nobody loaded."""

    @property
    def name(self) -> str:
        return "dangling"

    def load(self) -> Tuple[List[Node], List[Edge]]:
        commit = Node(id="commit:deadbeef", type=NodeType.COMMIT, source="git",
                      data={"title": "Fix #999"})
        mention = Edge(from_id="commit:deadbeef", to_id="issue:999", relation=EdgeType.MENTIONS)
        return [commit], [mention]


# =============================================================================
# Loader
# =============================================================================

class TestLoader:

    def test_mock_ingest_counts(self, store):
        result = Loader(MockSource()).ingest(store)

        assert result.ok
        assert result.nodes == 13
        assert result.edges == 17
        assert result.skipped_edges == []
        assert store.stats()["nodes"] == 13
        assert store.stats()["edges"] == 17

    def test_ingest_twice_is_idempotent(self, store):
        Loader(MockSource()).ingest(store)
        Loader(MockSource()).ingest(store)

        assert store.stats()["nodes"] == 13
        assert store.stats()["edges"] == 17

    def test_failing_source_does_not_block_others(self, store, capsys):
        loader = Loader(BrokenSource(), MockSource())

        result = loader.ingest(store)

        assert not result.ok
        assert result.errors == {"broken": "tracker unreachable"}
        assert result.nodes == 13
        err = capsys.readouterr().err
        assert "Error loading from broken: tracker unreachable" in err
        assert "Loaded 13 nodes from mock" in err

    def test_dangling_edge_skipped(self, store):
        result = Loader(DanglingSource()).ingest(store)

        assert result.nodes == 1
        assert result.edges == 0
        assert result.skipped_edges == ["commit:deadbeef-mentions-issue:999"]
        assert store.get_node("commit:deadbeef").title == "Fix #999"

    def test_load_all_merges_without_store(self):
        loader = Loader()
        loader.add_source(MockSource())
        loader.add_source(DanglingSource())

        nodes, edges = loader.load_all()

        assert len(nodes) == 14
        assert len(edges) == 18
        assert loader.errors == {}


class TestMockSource:

    def test_fresh_objects_each_call(self):
        first, _ = mock_graph()
        second, _ = mock_graph()
        first[0].data["name"] = "changed"
        assert second[0].data["name"] == "MAAT"

    def test_no_refresh(self):
        source = MockSource()
        assert source.name == "mock"
        assert source.supports_refresh is False

    def test_nodes_authored_by_human(self):
        nodes, _ = mock_graph()
        assert {n.metadata.created_by for n in nodes} == {HUMAN_AUTHOR}

    def test_every_edge_endpoint_is_a_node(self):
        nodes, edges = mock_graph()
        ids = {n.id for n in nodes}
        for edge in edges:
            assert edge.from_id in ids
            assert edge.to_id in ids


# =============================================================================
# File scanner
# =============================================================================

@pytest.fixture
def source_tree(tmp_path):
    root = tmp_path / "demo"
    (root / "src" / "util").mkdir(parents=True)
    (root / "src" / "app.py").write_text("print('hi')\n")
    (root / "src" / "util" / "helpers.py").write_text("def f():\n    return 1\n")
    (root / "README.md").write_text("# Demo\n")
    (root / "logo.png").write_bytes(b"\x89PNG")
    (root / ".hidden").mkdir()
    (root / ".hidden" / "secret.py").write_text("x = 1\n")
    (root / "node_modules").mkdir()
    (root / "node_modules" / "lib.js").write_text("module.exports = {}\n")
    return root


class TestFileScanner:

    def test_scans_recognized_files(self, source_tree):
        nodes, edges = FileScanner(source_tree).load()
        by_id = {n.id: n for n in nodes}

        assert sorted(by_id) == [
            "file:README.md",
            "file:src-app.py",
            "file:src-util-helpers.py",
            "project:demo",
            "service:dir:src",
            "service:dir:src-util",
        ]
        assert by_id["file:src-app.py"].data["language"] == "Python"
        assert by_id["file:README.md"].data["language"] == "Markdown"
        assert by_id["file:src-util-helpers.py"].title == "src/util/helpers.py"
        assert all(n.source == "filesystem" for n in nodes)

    def test_owns_edges(self, source_tree):
        _, edges = FileScanner(source_tree).load()
        pairs = {(e.from_id, e.to_id) for e in edges}

        assert ("project:demo", "file:src-app.py") in pairs
        assert ("project:demo", "service:dir:src") in pairs
        assert ("service:dir:src", "file:src-app.py") in pairs
        assert ("service:dir:src-util", "file:src-util-helpers.py") in pairs
        assert len(edges) == 7
        assert all(e.relation is EdgeType.OWNS for e in edges)

    def test_max_files(self, source_tree):
        nodes, _ = FileScanner(source_tree, max_files=1).load()
        files = [n for n in nodes if n.type is NodeType.FILE]
        assert [f.id for f in files] == ["file:README.md"]

    def test_external_project(self, source_tree):
        scanner = FileScanner(source_tree, project_id="project:maat", include_project=False)
        nodes, edges = scanner.load()

        assert not any(n.type is NodeType.PROJECT for n in nodes)
        assert ("project:maat", "file:src-app.py") in {(e.from_id, e.to_id) for e in edges}

    def test_missing_directory(self, tmp_path):
        with pytest.raises(DataSourceError):
            FileScanner(tmp_path / "nope").load()

    def test_ingest_resolves_every_edge(self, store, source_tree):
        result = Loader(FileScanner(source_tree)).ingest(store)

        assert result.skipped_edges == []
        assert result.nodes == 6
        assert result.edges == 7

    def test_rescan_keeps_creation_times(self, store, source_tree):
        Loader(FileScanner(source_tree)).ingest(store)
        before = {
            node_id: store.get_node(node_id).metadata.created_at
            for node_id in ("project:demo", "service:dir:src", "service:dir:src-util")
        }
        edge_before = store.get_edge("edge:project-dir:src").metadata.created_at

        Loader(FileScanner(source_tree)).ingest(store)

        for node_id, created_at in before.items():
            assert created_at is not None
            assert store.get_node(node_id).metadata.created_at == created_at
        assert store.get_edge("edge:project-dir:src").metadata.created_at == edge_before


# =============================================================================
# Git scanner
# =============================================================================

GIT_LOG = (
    "aaaaaaaa11112222|dana|2025-01-02T10:00:00+00:00|Fix crash (#12)\n"
    "bbbbbbbb33334444|lee|2025-01-01T09:00:00+00:00|Initial commit\n"
)


def _fake_git(responses):
    def run(args):
        return responses.get(args[0])
    return run


@pytest.fixture
def git_scanner(tmp_path):
    repo = tmp_path / "repo"
    repo.mkdir()
    scanner = GitScanner(repo)
    scanner._run_git = _fake_git({
        "rev-parse": ".git\n",
        "remote": "git@example.com:team/repo.git\n",
        "log": GIT_LOG,
        "branch": "main\nfeature/sync\norigin/HEAD\n",
    })
    return scanner


class TestGitScanner:

    def test_commits(self, git_scanner):
        nodes, _ = git_scanner.load()
        commits = {n.id: n for n in nodes if n.type is NodeType.COMMIT}

        assert set(commits) == {"commit:aaaaaaaa", "commit:bbbbbbbb"}
        newest = commits["commit:aaaaaaaa"]
        assert newest.title == "Fix crash (#12)"
        assert newest.data["author"] == "dana"
        assert newest.metadata.created_by == "dana"
        assert newest.metadata.created_at.day == 2

    def test_parent_points_older_to_newer(self, git_scanner):
        _, edges = git_scanner.load()
        parents = [(e.from_id, e.to_id) for e in edges if e.relation is EdgeType.PARENT_OF]
        assert parents == [("commit:bbbbbbbb", "commit:aaaaaaaa")]

    def test_mentions(self, git_scanner):
        _, edges = git_scanner.load()
        mentions = [e for e in edges if e.relation is EdgeType.MENTIONS]
        assert [(e.from_id, e.to_id) for e in mentions] == [("commit:aaaaaaaa", "issue:12")]

    def test_project_and_branches(self, git_scanner):
        nodes, _ = git_scanner.load()
        ids = {n.id for n in nodes}

        assert "project:repo" in ids
        assert {"service:branch:main", "service:branch:feature-sync"} <= ids
        assert not any("HEAD" in node_id for node_id in ids)
        project = next(n for n in nodes if n.id == "project:repo")
        assert project.data["remote"] == "git@example.com:team/repo.git"

    def test_not_a_repository(self, tmp_path):
        scanner = GitScanner(tmp_path)
        scanner._run_git = _fake_git({})
        with pytest.raises(DataSourceError):
            scanner.load()

    def test_empty_repository(self, git_scanner):
        git_scanner._run_git = _fake_git({"rev-parse": ".git\n"})
        nodes, edges = git_scanner.load()
        assert [n.id for n in nodes] == ["project:repo"]
        assert edges == []

    def test_dangling_mention_skipped_on_ingest(self, store, git_scanner):
        result = Loader(git_scanner).ingest(store)

        assert result.skipped_edges == ["edge:commit-mentions:aaaaaaaa-12"]
        assert store.get_node("commit:aaaaaaaa").data["hash"] == "aaaaaaaa11112222"

    def test_rescan_keeps_branch_creation_time(self, store, git_scanner):
        Loader(git_scanner).ingest(store)
        first = store.get_node("service:branch:main").metadata.created_at
        project_first = store.get_node("project:repo").metadata.created_at

        Loader(git_scanner).ingest(store)

        assert store.get_node("service:branch:main").metadata.created_at == first
        assert store.get_node("project:repo").metadata.created_at == project_first


# =============================================================================
# Helpers
# =============================================================================

class TestHelpers:

    def test_issue_references(self):
        assert extract_issue_references("Fix #12 and #7.") == [12, 7]
        assert extract_issue_references("Preserve edges (#101)") == [101]
        assert extract_issue_references("closes #3, refs #4;") == [3, 4]

    def test_issue_references_ignore_noise(self):
        assert extract_issue_references("abc#5 #12a #0 # 3") == []
        assert extract_issue_references("") == []

    def test_sanitize_id(self):
        assert sanitize_id("src/util helpers\\x.py") == "src-util-helpers-x.py"

    def test_detect_language(self):
        assert detect_language(".PY") == "Python"
        assert detect_language(".tsx") == "TypeScript"
        assert detect_language(".xyz") == "Unknown"
