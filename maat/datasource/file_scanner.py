"""
File Scanner — Source files as File nodes

Walks a directory tree and emits:
- one File node per recognized source file (path, language, lines, size)
- one Service node per directory that contains scanned files
- owns edges: project -> file, project -> directory, directory -> file

Project and directory nodes have no creation time of their own and are
emitted without one, so a re-scan keeps the first-seen value.
"""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..core.schema import Edge, EdgeMetadata, EdgeType, Node, NodeMetadata, NodeType, Role, utc_now
from .base import DataSource, DataSourceError, LANGUAGES, detect_language, sanitize_id


SKIP_DIRS = frozenset({
    "node_modules", "vendor", "dist", "build", "target",
    "__pycache__", ".git", ".svn", ".hg",
    "coverage", ".next", ".nuxt", ".cache",
})

SOURCE = "filesystem"
AUTHOR = "file-scanner"


class FileScanner(DataSource):
    """Scans a directory for source code files."""

    def __init__(
        self,
        root_path: Path,
        project_id: Optional[str] = None,
        max_files: int = 200,
        include_project: bool = True
    ):
        self.root_path = Path(root_path)
        self.project_id = project_id or f"project:{self.root_path.resolve().name}"
        self.max_files = max_files
        self.include_project = include_project
        self.extensions = frozenset(LANGUAGES)

    @property
    def name(self) -> str:
        return f"files:{self.root_path.name}"

    def load(self) -> Tuple[List[Node], List[Edge]]:
        if not self.root_path.is_dir():
            raise DataSourceError(f"not a directory: {self.root_path}")

        nodes: List[Node] = []
        edges: List[Edge] = []
        dirs: Dict[str, str] = {}  # relative dir -> node ID
        file_count = 0

        if self.include_project:
            nodes.append(self._project_node())

        for current, subdirs, files in os.walk(self.root_path):
            # Prune in place; sorted for a stable scan order
            subdirs[:] = sorted(
                d for d in subdirs if not d.startswith(".") and d not in SKIP_DIRS
            )
            for filename in sorted(files):
                if file_count >= self.max_files:
                    return nodes, edges

                full_path = Path(current) / filename
                if full_path.suffix.lower() not in self.extensions:
                    continue

                try:
                    stat = full_path.stat()
                except OSError:
                    continue  # Vanished or unreadable mid-walk
                file_count += 1

                rel_path = full_path.relative_to(self.root_path).as_posix()
                node, edge = self._file_node(rel_path, full_path, stat.st_size, stat.st_mtime)
                nodes.append(node)
                edges.append(edge)

                rel_dir = Path(rel_path).parent.as_posix()
                if rel_dir not in (".", ""):
                    if rel_dir not in dirs:
                        dir_node, dir_edge = self._dir_node(rel_dir)
                        nodes.append(dir_node)
                        edges.append(dir_edge)
                        dirs[rel_dir] = dir_node.id
                    edges.append(Edge(
                        id=f"edge:dir-file:{sanitize_id(rel_path)}",
                        from_id=dirs[rel_dir],
                        to_id=node.id,
                        relation=EdgeType.OWNS,
                        metadata=EdgeMetadata(),
                    ))

        return nodes, edges

    def _project_node(self) -> Node:
        now = utc_now()
        return Node(
            id=self.project_id,
            type=NodeType.PROJECT,
            source=SOURCE,
            data={
                "name": self.root_path.resolve().name,
                "path": str(self.root_path),
                "status": "active",
            },
            metadata=NodeMetadata(
                created_by=AUTHOR,
                access_level=Role.EXEC,
                synced_at=now,
            ),
        )

    def _file_node(self, rel_path: str, full_path: Path, size: int, mtime: float) -> Tuple[Node, Edge]:
        try:
            with open(full_path, 'rb') as f:
                lines = f.read().count(b"\n") + 1
        except OSError:
            lines = 0

        modified = datetime.fromtimestamp(mtime, tz=timezone.utc)
        node_id = f"file:{sanitize_id(rel_path)}"

        node = Node(
            id=node_id,
            type=NodeType.FILE,
            source=SOURCE,
            data={
                "path": rel_path,
                "language": detect_language(full_path.suffix),
                "lines": lines,
                "size": size,
            },
            metadata=NodeMetadata(
                created_at=modified,
                updated_at=modified,
                created_by=AUTHOR,
                access_level=Role.IC,
                synced_at=utc_now(),
            ),
        )
        edge = Edge(
            id=f"edge:project-file:{sanitize_id(rel_path)}",
            from_id=self.project_id,
            to_id=node_id,
            relation=EdgeType.OWNS,
            metadata=EdgeMetadata(created_at=modified),
        )
        return node, edge

    def _dir_node(self, rel_dir: str) -> Tuple[Node, Edge]:
        now = utc_now()
        node_id = f"service:dir:{sanitize_id(rel_dir)}"

        node = Node(
            id=node_id,
            type=NodeType.SERVICE,
            source=SOURCE,
            data={
                "name": Path(rel_dir).name,
                "path": rel_dir,
                "type": "directory",
            },
            metadata=NodeMetadata(
                created_by=AUTHOR,
                access_level=Role.IC,
                synced_at=now,
            ),
        )
        edge = Edge(
            id=f"edge:project-dir:{sanitize_id(rel_dir)}",
            from_id=self.project_id,
            to_id=node_id,
            relation=EdgeType.OWNS,
            metadata=EdgeMetadata(),
        )
        return node, edge
