"""
Derived Views — Read-time projections over nodes and edges

Views are plain SQL views: the join runs on every read, so they can
never drift from the base tables.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Union

if TYPE_CHECKING:
    from .store import GraphStore


VIEW_SCHEMA = """
    -- Issue -> issue "blocks" relationships with both titles inlined
    CREATE VIEW IF NOT EXISTS issue_dependencies AS
    SELECT
        n1.id AS issue_id,
        json_extract(n1.data, '$.title') AS issue_title,
        n2.id AS blocks_id,
        json_extract(n2.data, '$.title') AS blocks_title
    FROM nodes n1
    JOIN edges e ON n1.id = e.from_id AND e.relation = 'blocks'
    JOIN nodes n2 ON e.to_id = n2.id
    WHERE n1.type = 'Issue';

    -- PR -> file "modifies" relationships with PR number and file path inlined
    CREATE VIEW IF NOT EXISTS pr_file_map AS
    SELECT
        n1.id AS pr_id,
        json_extract(n1.data, '$.number') AS pr_number,
        n2.id AS file_id,
        json_extract(n2.data, '$.path') AS file_path
    FROM nodes n1
    JOIN edges e ON n1.id = e.from_id AND e.relation = 'modifies'
    JOIN nodes n2 ON e.to_id = n2.id
    WHERE n1.type = 'PR' AND n2.type = 'File';
"""


@dataclass(frozen=True)
class IssueDependency:
    issue_id: str
    issue_title: Optional[str]
    blocks_id: str
    blocks_title: Optional[str]


@dataclass(frozen=True)
class PRFileChange:
    pr_id: str
    pr_number: Optional[Union[int, str]]
    file_id: str
    file_path: Optional[str]


def issue_dependencies(store: 'GraphStore', issue_id: Optional[str] = None) -> List[IssueDependency]:
    """Which issues block which. Optionally restricted to one blocking issue."""
    query = "SELECT issue_id, issue_title, blocks_id, blocks_title FROM issue_dependencies"
    params = []
    if issue_id is not None:
        query += " WHERE issue_id = ?"
        params.append(issue_id)
    query += " ORDER BY issue_id, blocks_id"

    return [
        IssueDependency(
            issue_id=r['issue_id'],
            issue_title=r['issue_title'],
            blocks_id=r['blocks_id'],
            blocks_title=r['blocks_title'],
        )
        for r in store._fetch_all(query, params)
    ]


def pr_file_map(
    store: 'GraphStore',
    pr_id: Optional[str] = None,
    file_id: Optional[str] = None
) -> List[PRFileChange]:
    """Which pull request touches which file, filterable from either side."""
    query = "SELECT pr_id, pr_number, file_id, file_path FROM pr_file_map WHERE 1=1"
    params = []
    if pr_id is not None:
        query += " AND pr_id = ?"
        params.append(pr_id)
    if file_id is not None:
        query += " AND file_id = ?"
        params.append(file_id)
    query += " ORDER BY pr_id, file_id"

    return [
        PRFileChange(
            pr_id=r['pr_id'],
            pr_number=r['pr_number'],
            file_id=r['file_id'],
            file_path=r['file_path'],
        )
        for r in store._fetch_all(query, params)
    ]
