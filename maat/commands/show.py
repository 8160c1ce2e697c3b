"""
ShowCommand — Node detail and one-hop traversal

Walks the graph one hop at a time through get_edges/get_neighbors.
A relationship whose far end cannot be resolved is omitted from the
view rather than aborting the whole render.
"""

from ..commands.base import BaseCommand
from ..core.errors import NotFound
from ..presentation.symbols import safe_print, sanitize_control_chars


class ShowCommand(BaseCommand):
    """Command for inspecting a node and its neighborhood."""

    def show_node(self, node_id: str):
        """Print node fields, metadata and every relationship."""
        try:
            node = self.graph.get_node(node_id)
        except NotFound:
            print(f"Node not found: {node_id}")
            return

        meta = node.metadata
        lines = [
            self.node_line(node, width=100),
            "",
            f"  Type:        {node.type.value}",
            f"  Source:      {node.source}",
        ]
        if node.description:
            lines.append(f"  Description: {sanitize_control_chars(node.description)}")
        if node.priority:
            lines.append(f"  Priority:    {node.priority}")
        if node.labels:
            lines.append(f"  Labels:      {', '.join(sanitize_control_chars(label) for label in node.labels)}")
        lines.extend([
            f"  Created:     {meta.created_at.isoformat() if meta.created_at else '-'}"
            + (f" by {meta.created_by}" if meta.created_by else ""),
            f"  Updated:     {meta.updated_at.isoformat() if meta.updated_at else '-'}",
            f"  Synced:      {meta.synced_at.isoformat() if meta.synced_at else '-'}",
            f"  Access:      {meta.access_level.value if meta.access_level else '-'}",
        ])
        for line in lines:
            safe_print(line)

        relations = self._relationship_lines(node.id)
        print(f"\nRelationships ({len(relations)}):")
        if not relations:
            print("  (none)")
        for line in relations:
            safe_print(f"  {line}")

    def _relationship_lines(self, node_id: str) -> list:
        symbols = self.symbols
        lines = []
        for edge in self.graph.get_edges(node_id):
            other_id = edge.other_end(node_id)
            try:
                other = self.graph.get_node(other_id)
            except NotFound:
                continue  # Stale reference: omit the relationship
            arrow = symbols.outgoing if edge.from_id == node_id else symbols.incoming
            lines.append(f"{arrow} {edge.relation.value:<10} {self.node_line(other)}")
        return lines

    def show_neighbors(self, node_id: str):
        """Print the distinct one-hop neighbors of a node."""
        try:
            self.graph.get_node(node_id)
        except NotFound:
            print(f"Node not found: {node_id}")
            return

        neighbors = self.graph.get_neighbors(node_id)
        if not neighbors:
            print(f"{node_id} has no neighbors.")
            return
        for node in neighbors:
            safe_print(self.node_line(node))
        print(f"\n{len(neighbors)} neighbor(s)")


# =============================================================================
# Command Registration (Self-Registration Pattern)
# =============================================================================

COMMAND_NAMES = ['show', 'neighbors']


def register_parser(subparsers):
    """Register show and neighbors command parsers."""
    p1 = subparsers.add_parser('show', help='Show a node with its relationships')
    p1.add_argument('node_id', help='Node ID (e.g. issue:101)')

    p2 = subparsers.add_parser('neighbors', help='List nodes one hop away (either direction)')
    p2.add_argument('node_id', help='Node ID')

    return p1, p2


def handle(cli, args):
    """Handle show or neighbors command dispatch."""
    cmd = ShowCommand(cli)
    if args.command == 'show':
        cmd.show_node(args.node_id)
    elif args.command == 'neighbors':
        cmd.show_neighbors(args.node_id)
