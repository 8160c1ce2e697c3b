"""
Git Scanner — Local repository history as graph data

Uses the git CLI for broad compatibility. Emits:
- a Project node for the repository (owns everything below)
- Commit nodes for recent history, linked parent_of in log order
- mentions edges from commits to issue:<n> for '#n' references
- Service nodes for branches (no creation time; the store keeps the first-seen one)
"""

import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from ..core.schema import (
    Edge, EdgeMetadata, EdgeType, Node, NodeMetadata, NodeType, Role,
    parse_timestamp, utc_now,
)
from .base import DataSource, DataSourceError, extract_issue_references, sanitize_id


SOURCE = "git"
AUTHOR = "git-scanner"

# hash|author|date|subject, one commit per line
LOG_FORMAT = "--format=%H|%an|%aI|%s"


class GitScanner(DataSource):
    """Scans a local git repository for commits and branches."""

    def __init__(self, repo_path: Path, max_commits: int = 50):
        self.repo_path = Path(repo_path)
        self.max_commits = max_commits

    @property
    def name(self) -> str:
        return f"git:{self.repo_path.resolve().name}"

    @property
    def project_id(self) -> str:
        return f"project:{self.repo_path.resolve().name}"

    def _run_git(self, args: List[str]) -> Optional[str]:
        """Run a git command and return stdout, or None on failure."""
        try:
            result = subprocess.run(
                ["git", "-C", str(self.repo_path)] + args,
                capture_output=True,
                text=True,
                check=True
            )
        except (subprocess.CalledProcessError, OSError):
            return None
        return result.stdout

    @property
    def is_git_repo(self) -> bool:
        return self._run_git(["rev-parse", "--git-dir"]) is not None

    def load(self) -> Tuple[List[Node], List[Edge]]:
        if not self.is_git_repo:
            raise DataSourceError(f"not a git repository: {self.repo_path}")

        project = self._project_node()
        nodes: List[Node] = [project]
        edges: List[Edge] = []

        commits, commit_edges = self._load_commits(project.id)
        nodes.extend(commits)
        edges.extend(commit_edges)

        branches, branch_edges = self._load_branches(project.id)
        nodes.extend(branches)
        edges.extend(branch_edges)

        return nodes, edges

    def _project_node(self) -> Node:
        repo_name = self.repo_path.resolve().name
        remote = (self._run_git(["remote", "get-url", "origin"]) or "").strip()
        now = utc_now()

        return Node(
            id=self.project_id,
            type=NodeType.PROJECT,
            source=SOURCE,
            data={
                "name": repo_name,
                "description": f"Git repository at {self.repo_path}",
                "status": "active",
                "remote": remote,
                "path": str(self.repo_path),
            },
            metadata=NodeMetadata(
                created_by=AUTHOR,
                access_level=Role.EXEC,
                synced_at=now,
            ),
        )

    def _load_commits(self, project_id: str) -> Tuple[List[Node], List[Edge]]:
        output = self._run_git(["log", f"--max-count={self.max_commits}", LOG_FORMAT])
        if output is None:
            return [], []  # Empty repository: no HEAD yet

        nodes: List[Node] = []
        edges: List[Edge] = []
        prev_commit_id: Optional[str] = None

        for line in output.strip().splitlines():
            parts = line.split("|", 3)
            if len(parts) < 4:
                continue
            commit_hash, author, date_str, message = parts
            short = commit_hash[:8]
            commit_id = f"commit:{short}"

            try:
                committed = parse_timestamp(date_str)
            except ValueError:
                committed = None

            nodes.append(Node(
                id=commit_id,
                type=NodeType.COMMIT,
                source=SOURCE,
                data={
                    "title": message,
                    "message": message,
                    "author": author,
                    "hash": commit_hash,
                    "date": date_str,
                },
                metadata=NodeMetadata(
                    created_at=committed,
                    updated_at=committed,
                    created_by=author,
                    access_level=Role.IC,
                    synced_at=utc_now(),
                ),
            ))

            edges.append(Edge(
                id=f"edge:project-commit:{short}",
                from_id=project_id,
                to_id=commit_id,
                relation=EdgeType.OWNS,
                metadata=EdgeMetadata(created_at=committed),
            ))

            # git log is newest first: each commit is the parent of the previous line
            if prev_commit_id is not None:
                edges.append(Edge(
                    id=f"edge:commit-parent:{short}-{prev_commit_id.split(':', 1)[1]}",
                    from_id=commit_id,
                    to_id=prev_commit_id,
                    relation=EdgeType.PARENT_OF,
                    metadata=EdgeMetadata(created_at=committed),
                ))
            prev_commit_id = commit_id

            for issue_number in extract_issue_references(message):
                edges.append(Edge(
                    id=f"edge:commit-mentions:{short}-{issue_number}",
                    from_id=commit_id,
                    to_id=f"issue:{issue_number}",
                    relation=EdgeType.MENTIONS,
                    metadata=EdgeMetadata(created_at=committed),
                ))

        return nodes, edges

    def _load_branches(self, project_id: str) -> Tuple[List[Node], List[Edge]]:
        output = self._run_git(["branch", "-a", "--format=%(refname:short)"])
        if output is None:
            return [], []

        nodes: List[Node] = []
        edges: List[Edge] = []
        now = utc_now()

        for branch in output.strip().splitlines():
            branch = branch.strip()
            if not branch or "HEAD" in branch:
                continue
            branch_id = f"service:branch:{sanitize_id(branch)}"

            nodes.append(Node(
                id=branch_id,
                type=NodeType.SERVICE,
                source=SOURCE,
                data={"name": branch, "type": "branch"},
                metadata=NodeMetadata(
                    created_by=AUTHOR,
                    access_level=Role.IC,
                    synced_at=now,
                ),
            ))
            edges.append(Edge(
                id=f"edge:project-branch:{sanitize_id(branch)}",
                from_id=project_id,
                to_id=branch_id,
                relation=EdgeType.OWNS,
                metadata=EdgeMetadata(),
            ))

        return nodes, edges
