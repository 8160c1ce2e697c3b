"""
Shared pytest fixtures for the MAAT test suite.

Usage in tests:
    def test_something(graph_factory):
        graph_factory.add_issue(1, "Fix login")
        cmd = graph_factory.create_command(ShowCommand)

    def test_with_data(graph_env):
        # graph_env comes pre-populated with the demo graph
        assert graph_env.graph.stats()["nodes"] > 0
"""

import pytest

from maat.core.store import GraphStore
from tests.factories import GraphTestFactory


@pytest.fixture
def store(tmp_path):
    """Empty file-backed store, closed after the test."""
    graph = GraphStore(tmp_path / "graph.db")
    yield graph
    graph.close()


@pytest.fixture
def graph_factory(tmp_path):
    """Empty GraphTestFactory for fine-grained test data."""
    factory = GraphTestFactory(tmp_path)
    yield factory
    factory.close()


@pytest.fixture
def graph_env(tmp_path):
    """
    GraphTestFactory pre-populated with the demo graph:
    projects, issues 101-104, pr:12, two commits, two files, two services.
    """
    factory = GraphTestFactory(tmp_path)
    factory.load_mock()
    yield factory
    factory.close()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep user config and environment overrides out of tests."""
    from maat.config import ConfigManager
    user_dir = tmp_path / "home" / ".maat"
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_DIR", user_dir)
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_FILE", user_dir / "config.yaml")
    for var in ("MAAT_DB_PATH", "MAAT_SYMBOLS", "MAAT_PROJECT_PATH", "MAAT_ASCII_ONLY"):
        monkeypatch.delenv(var, raising=False)
