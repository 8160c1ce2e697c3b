"""
Graph Store — SQLite persistence for the typed project graph

The store is the sole mutator and source of truth for graph state.

Invariants:
- Node IDs are unique; add_node rejects duplicates, upsert_node reconciles
- Edge endpoints exist at write time (foreign keys, checked up front)
- Deleting a node cascades to every edge touching it, inside SQLite
- (from_id, to_id, relation) is unique
- Types and relations are validated before any I/O

Writes commit immediately unless grouped with transaction().
Returned nodes and edges are fresh copies, never live references.
"""

import copy
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import orjson

from .errors import (
    Conflict,
    IntegrityViolation,
    NotFound,
    StorageFailure,
    StoreClosed,
)
from .schema import (
    Edge,
    EdgeMetadata,
    Node,
    NodeFilter,
    NodeMetadata,
    format_timestamp,
    parse_edge_type,
    parse_node_type,
    utc_now,
)
from .views import VIEW_SCHEMA


MEMORY_PATH = ":memory:"

SCHEMA = """
    CREATE TABLE IF NOT EXISTS nodes (
        id TEXT PRIMARY KEY,
        type TEXT NOT NULL,
        source TEXT NOT NULL,
        data TEXT NOT NULL,
        metadata TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS edges (
        id TEXT PRIMARY KEY,
        from_id TEXT NOT NULL,
        to_id TEXT NOT NULL,
        relation TEXT NOT NULL,
        metadata TEXT,
        FOREIGN KEY (from_id) REFERENCES nodes(id) ON DELETE CASCADE,
        FOREIGN KEY (to_id) REFERENCES nodes(id) ON DELETE CASCADE,
        UNIQUE (from_id, to_id, relation)
    );

    CREATE INDEX IF NOT EXISTS idx_nodes_type ON nodes(type);
    CREATE INDEX IF NOT EXISTS idx_nodes_source ON nodes(source);
    CREATE INDEX IF NOT EXISTS idx_edges_from ON edges(from_id);
    CREATE INDEX IF NOT EXISTS idx_edges_to ON edges(to_id);
    CREATE INDEX IF NOT EXISTS idx_edges_relation ON edges(relation);
"""

NODE_COLUMNS = "id, type, source, data, metadata"
EDGE_COLUMNS = "id, from_id, to_id, relation, metadata"


def _placeholders(values: Sequence[Any]) -> str:
    return ",".join("?" for _ in values)


def _encode(value: Any, what: str) -> str:
    try:
        return orjson.dumps(value).decode()
    except orjson.JSONEncodeError as exc:
        raise StorageFailure(f"failed to encode {what}: {exc}") from exc


class GraphStore:
    """
    SQLite-backed node/edge repository.

    Single-writer and synchronous: callers serialize access. The store
    owns its connection until close(); any later call raises StoreClosed.

    Usage:
        with GraphStore(path) as store:
            store.upsert_node(node)
            store.get_neighbors(node.id)
    """

    def __init__(self, path: Union[str, Path]):
        self.path = MEMORY_PATH if str(path) == MEMORY_PATH else Path(path)
        self.conn: Optional[sqlite3.Connection] = None
        self._in_transaction = False

        try:
            if isinstance(self.path, Path):
                self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path), cached_statements=256)
        except (OSError, sqlite3.Error) as exc:
            raise StorageFailure(f"failed to open database {path}: {exc}") from exc

        conn.row_factory = sqlite3.Row
        try:
            self._configure_pragmas(conn)
            self._init_schema(conn)
        except (sqlite3.Error, StorageFailure) as exc:
            conn.close()
            if isinstance(exc, StorageFailure):
                raise
            raise StorageFailure(f"failed to initialize schema: {exc}") from exc

        self.conn = conn

    def _configure_pragmas(self, conn: sqlite3.Connection):
        """
        Foreign keys carry the cascade and referential integrity, so the
        store refuses to run on a build that cannot enforce them.
        """
        conn.executescript("""
            PRAGMA foreign_keys = ON;

            -- WAL: concurrent readers during the single writer's transactions
            PRAGMA journal_mode = WAL;

            -- FULL sync: the store is the source of truth, not a projection
            PRAGMA synchronous = FULL;

            PRAGMA temp_store = MEMORY;
        """)
        if conn.execute("PRAGMA foreign_keys").fetchone()[0] != 1:
            raise StorageFailure("SQLite build does not enforce foreign keys")

    def _init_schema(self, conn: sqlite3.Connection):
        conn.executescript(SCHEMA)
        conn.executescript(VIEW_SCHEMA)
        conn.commit()

    # -------------------------------------------------------------------------
    # Connection plumbing
    # -------------------------------------------------------------------------

    def _require_open(self) -> sqlite3.Connection:
        if self.conn is None:
            raise StoreClosed()
        return self.conn

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        """One write operation: commit on success, roll back on failure."""
        conn = self._require_open()
        try:
            yield conn
        except sqlite3.Error as exc:
            self._rollback_unless_batched(conn)
            if isinstance(exc, sqlite3.IntegrityError):
                raise IntegrityViolation(str(exc)) from exc
            raise StorageFailure(str(exc)) from exc
        except Exception:
            self._rollback_unless_batched(conn)
            raise
        else:
            if not self._in_transaction:
                try:
                    conn.commit()
                except sqlite3.Error as exc:
                    conn.rollback()
                    raise StorageFailure(f"failed to commit: {exc}") from exc

    def _rollback_unless_batched(self, conn: sqlite3.Connection):
        # Inside transaction() the caller decides; a failed statement
        # has already been undone by SQLite itself.
        if not self._in_transaction:
            conn.rollback()

    def _fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        conn = self._require_open()
        try:
            return conn.execute(query, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise StorageFailure(str(exc)) from exc

    def _fetch_one(self, query: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        conn = self._require_open()
        try:
            return conn.execute(query, tuple(params)).fetchone()
        except sqlite3.Error as exc:
            raise StorageFailure(str(exc)) from exc

    @contextmanager
    def transaction(self) -> Iterator['GraphStore']:
        """
        Group several writes into one atomic unit.

        Nested calls join the outermost transaction. Any exception rolls
        everything back and propagates.
        """
        conn = self._require_open()
        if self._in_transaction:
            yield self
            return

        self._in_transaction = True
        try:
            yield self
        except BaseException:
            conn.rollback()
            raise
        else:
            try:
                conn.commit()
            except sqlite3.Error as exc:
                raise StorageFailure(f"failed to commit transaction: {exc}") from exc
        finally:
            self._in_transaction = False

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    def _node_row(self, node: Node) -> tuple:
        return (
            node.id,
            node.type.value,
            node.source or "",
            _encode(node.data, f"data for node {node.id}"),
            _encode(node.metadata.to_dict(), f"metadata for node {node.id}"),
        )

    def _row_to_node(self, row: sqlite3.Row) -> Node:
        try:
            data = orjson.loads(row['data'])
            metadata = NodeMetadata.from_dict(orjson.loads(row['metadata']))
        except ValueError as exc:
            raise StorageFailure(f"corrupt node record {row['id']}: {exc}") from exc
        return Node(
            id=row['id'],
            type=parse_node_type(row['type']),
            source=row['source'],
            data=data,
            metadata=metadata,
        )

    def _edge_row(self, edge: Edge) -> tuple:
        return (
            edge.id,
            edge.from_id,
            edge.to_id,
            edge.relation.value,
            _encode(edge.metadata.to_dict(), f"metadata for edge {edge.id}"),
        )

    def _row_to_edge(self, row: sqlite3.Row) -> Edge:
        try:
            raw = orjson.loads(row['metadata']) if row['metadata'] else {}
            metadata = EdgeMetadata.from_dict(raw or {})
        except ValueError as exc:
            raise StorageFailure(f"corrupt edge record {row['id']}: {exc}") from exc
        return Edge(
            id=row['id'],
            from_id=row['from_id'],
            to_id=row['to_id'],
            relation=parse_edge_type(row['relation']),
            metadata=metadata,
        )

    @staticmethod
    def _node_exists(conn: sqlite3.Connection, node_id: str) -> bool:
        return conn.execute("SELECT 1 FROM nodes WHERE id = ?", (node_id,)).fetchone() is not None

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def add_node(self, node: Node) -> Node:
        """
        Insert a new node.

        Raises:
            InvalidType: type outside NodeType (nothing written)
            Conflict: a node with this ID already exists

        Returns:
            The persisted copy, with created/updated timestamps filled in.
        """
        node_type = parse_node_type(node.type)

        stored = copy.deepcopy(node)
        stored.type = node_type
        now = utc_now()
        if stored.metadata.created_at is None:
            stored.metadata.created_at = now
        if stored.metadata.updated_at is None:
            stored.metadata.updated_at = now
        row = self._node_row(stored)

        with self._write() as conn:
            if self._node_exists(conn, stored.id):
                raise Conflict("node", stored.id)
            conn.execute(f"INSERT INTO nodes ({NODE_COLUMNS}) VALUES (?, ?, ?, ?, ?)", row)
        return stored

    def upsert_node(self, node: Node) -> Node:
        """
        Insert or fully replace a node. Idempotent; last writer wins.

        updated_at always advances to now (never backwards relative to the
        stored value). created_at keeps the caller's value, else the stored
        one, else now.
        """
        node_type = parse_node_type(node.type)

        stored = copy.deepcopy(node)
        stored.type = node_type

        with self._write() as conn:
            existing = conn.execute(
                "SELECT id, metadata FROM nodes WHERE id = ?", (stored.id,)
            ).fetchone()
            previous = None
            if existing is not None:
                try:
                    previous = NodeMetadata.from_dict(orjson.loads(existing['metadata']))
                except ValueError as exc:
                    raise StorageFailure(f"corrupt node record {stored.id}: {exc}") from exc

            now = utc_now()
            if previous is not None and previous.updated_at is not None and previous.updated_at > now:
                now = previous.updated_at
            stored.metadata.updated_at = now
            if stored.metadata.created_at is None:
                if previous is not None and previous.created_at is not None:
                    stored.metadata.created_at = previous.created_at
                else:
                    stored.metadata.created_at = now

            conn.execute(f"""
                INSERT INTO nodes ({NODE_COLUMNS}) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    type = excluded.type,
                    source = excluded.source,
                    data = excluded.data,
                    metadata = excluded.metadata
            """, self._node_row(stored))
        return stored

    def get_node(self, node_id: str) -> Node:
        """Fetch a node by ID. Raises NotFound."""
        row = self._fetch_one(f"SELECT {NODE_COLUMNS} FROM nodes WHERE id = ?", (node_id,))
        if row is None:
            raise NotFound("node", node_id)
        return self._row_to_node(row)

    def list_nodes(self, node_filter: Optional[NodeFilter] = None) -> List[Node]:
        """
        List nodes, optionally filtered by type, source and updated_after.

        Ordered by ID so repeated calls against unchanged data agree.
        """
        query = f"SELECT {NODE_COLUMNS} FROM nodes WHERE 1=1"
        params: List[Any] = []

        if node_filter is not None:
            if node_filter.types:
                types = [parse_node_type(t).value for t in node_filter.types]
                query += f" AND type IN ({_placeholders(types)})"
                params.extend(types)
            if node_filter.sources:
                sources = list(node_filter.sources)
                query += f" AND source IN ({_placeholders(sources)})"
                params.extend(sources)
            if node_filter.updated_after is not None:
                # Fixed-width UTC timestamps compare chronologically as text
                query += " AND json_extract(metadata, '$.updated_at') > ?"
                params.append(format_timestamp(node_filter.updated_after))

        query += " ORDER BY id"
        return [self._row_to_node(r) for r in self._fetch_all(query, params)]

    def delete_node(self, node_id: str):
        """
        Delete a node and, via ON DELETE CASCADE, every edge touching it.

        Raises NotFound if the node does not exist.
        """
        with self._write() as conn:
            cursor = conn.execute("DELETE FROM nodes WHERE id = ?", (node_id,))
            if cursor.rowcount == 0:
                raise NotFound("node", node_id)

    # -------------------------------------------------------------------------
    # Edges
    # -------------------------------------------------------------------------

    def _prepare_edge(self, edge: Edge) -> Edge:
        relation = parse_edge_type(edge.relation)
        stored = copy.deepcopy(edge)
        stored.relation = relation
        stored.id = stored.ensure_id()
        return stored

    def _check_endpoints(self, conn: sqlite3.Connection, edge: Edge):
        missing = [
            node_id for node_id in dict.fromkeys((edge.from_id, edge.to_id))
            if not self._node_exists(conn, node_id)
        ]
        if missing:
            raise IntegrityViolation(
                f"edge {edge.id} references missing node(s): {', '.join(missing)}",
                edge_id=edge.id,
            )

    @staticmethod
    def _find_triple(conn: sqlite3.Connection, edge: Edge) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT {EDGE_COLUMNS} FROM edges WHERE from_id = ? AND to_id = ? AND relation = ?",
            (edge.from_id, edge.to_id, edge.relation.value)
        ).fetchone()

    def add_edge(self, edge: Edge) -> Edge:
        """
        Insert a new edge. ID defaults to from-relation-to.

        Raises:
            InvalidRelation: relation outside EdgeType (nothing written)
            IntegrityViolation: missing endpoint, or the (from, to, relation)
                triple already exists
            Conflict: the edge ID is taken by a different edge
        """
        stored = self._prepare_edge(edge)
        if stored.metadata.created_at is None:
            stored.metadata.created_at = utc_now()

        with self._write() as conn:
            self._check_endpoints(conn, stored)
            if self._find_triple(conn, stored) is not None:
                raise IntegrityViolation(
                    f"edge already exists: {stored.from_id} -{stored.relation.value}-> {stored.to_id}",
                    edge_id=stored.id,
                )
            if conn.execute("SELECT 1 FROM edges WHERE id = ?", (stored.id,)).fetchone():
                raise Conflict("edge", stored.id)
            conn.execute(f"INSERT INTO edges ({EDGE_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                         self._edge_row(stored))
        return stored

    def upsert_edge(self, edge: Edge) -> Edge:
        """
        Insert an edge, or replace the metadata of the edge with the same
        (from, to, relation) triple. The stored edge keeps its original ID.

        Raises InvalidRelation, IntegrityViolation (missing endpoint) or
        Conflict (ID taken by a different triple).
        """
        stored = self._prepare_edge(edge)

        with self._write() as conn:
            self._check_endpoints(conn, stored)
            existing = self._find_triple(conn, stored)
            if existing is not None:
                stored.id = existing['id']
                if stored.metadata.created_at is None:
                    stored.metadata.created_at = self._row_to_edge(existing).metadata.created_at
            elif conn.execute("SELECT 1 FROM edges WHERE id = ?", (stored.id,)).fetchone():
                raise Conflict("edge", stored.id)
            if stored.metadata.created_at is None:
                stored.metadata.created_at = utc_now()

            conn.execute(f"""
                INSERT INTO edges ({EDGE_COLUMNS}) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(from_id, to_id, relation) DO UPDATE SET
                    metadata = excluded.metadata
            """, self._edge_row(stored))
        return stored

    def get_edge(self, edge_id: str) -> Edge:
        """Fetch an edge by ID. Raises NotFound."""
        row = self._fetch_one(f"SELECT {EDGE_COLUMNS} FROM edges WHERE id = ?", (edge_id,))
        if row is None:
            raise NotFound("edge", edge_id)
        return self._row_to_edge(row)

    def get_edges(self, node_id: str) -> List[Edge]:
        """All edges where the node is either endpoint (both directions)."""
        rows = self._fetch_all(f"""
            SELECT {EDGE_COLUMNS} FROM edges
            WHERE from_id = ? OR to_id = ?
            ORDER BY id
        """, (node_id, node_id))
        return [self._row_to_edge(r) for r in rows]

    def get_neighbors(self, node_id: str) -> List[Node]:
        """
        Distinct nodes one hop away in either direction, excluding the
        node itself. The traversal primitive for walking the graph.
        """
        rows = self._fetch_all(f"""
            SELECT {NODE_COLUMNS} FROM nodes
            WHERE id != ?
            AND id IN (
                SELECT to_id FROM edges WHERE from_id = ?
                UNION
                SELECT from_id FROM edges WHERE to_id = ?
            )
            ORDER BY id
        """, (node_id, node_id, node_id))
        return [self._row_to_node(r) for r in rows]

    def delete_edge(self, edge_id: str):
        """Delete an edge by ID. Raises NotFound."""
        with self._write() as conn:
            cursor = conn.execute("DELETE FROM edges WHERE id = ?", (edge_id,))
            if cursor.rowcount == 0:
                raise NotFound("edge", edge_id)

    # -------------------------------------------------------------------------
    # Housekeeping
    # -------------------------------------------------------------------------

    def stats(self) -> Dict[str, Any]:
        """Node/edge counts, with nodes broken down by type."""
        nodes = self._fetch_one("SELECT COUNT(*) AS c FROM nodes")['c']
        edges = self._fetch_one("SELECT COUNT(*) AS c FROM edges")['c']
        by_type = {
            r['type']: r['c']
            for r in self._fetch_all("SELECT type, COUNT(*) AS c FROM nodes GROUP BY type ORDER BY type")
        }
        return {"nodes": nodes, "edges": edges, "by_type": by_type}

    @property
    def is_closed(self) -> bool:
        return self.conn is None

    def close(self):
        """
        Release the connection. Safe to call twice; every other
        operation fails with StoreClosed afterwards.

        Per SQLite docs: run PRAGMA optimize before closing long-lived
        connections to update query planner statistics.
        """
        if self.conn is None:
            return
        conn, self.conn = self.conn, None
        try:
            conn.execute("PRAGMA optimize")
        except sqlite3.Error as exc:
            raise StorageFailure(f"failed to optimize on close: {exc}") from exc
        finally:
            conn.close()

    def __enter__(self) -> 'GraphStore':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
