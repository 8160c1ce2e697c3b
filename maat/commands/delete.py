"""
DeleteCommand — Operator-confirmed destructive writes

Every delete passes an explicit confirmation gate before it reaches
the store. Failures are printed as non-fatal messages.
"""

from ..commands.base import BaseCommand
from ..core.errors import GraphError, NotFound


def confirm(prompt: str, assume_yes: bool = False) -> bool:
    """Ask a yes/no question. Anything but y/yes (or EOF) means no."""
    if assume_yes:
        return True
    try:
        response = input(f"{prompt} [y/N] ").strip().lower()
    except EOFError:
        return False
    return response in ('y', 'yes')


class DeleteCommand(BaseCommand):
    """Command for deleting nodes and edges."""

    def delete_node(self, node_id: str, assume_yes: bool = False) -> bool:
        """
        Delete a node; its edges go with it (cascade).

        Returns:
            True if the node was deleted
        """
        symbols = self.symbols
        try:
            node = self.graph.get_node(node_id)
        except NotFound:
            print(f"{symbols.check_fail} Node not found: {node_id}")
            return False

        edge_count = len(self.graph.get_edges(node_id))
        print(self.node_line(node))
        if not confirm(f"Delete {node_id} and {edge_count} connected edge(s)?", assume_yes):
            print("Cancelled.")
            return False

        try:
            self.graph.delete_node(node_id)
        except GraphError as e:
            print(f"{symbols.check_fail} Delete failed: {e}")
            return False

        print(f"{symbols.check_pass} Deleted {node_id} ({edge_count} edge(s) removed)")
        return True

    def delete_edge(self, edge_id: str, assume_yes: bool = False) -> bool:
        """Delete a single edge. Returns True if deleted."""
        symbols = self.symbols
        try:
            edge = self.graph.get_edge(edge_id)
        except NotFound:
            print(f"{symbols.check_fail} Edge not found: {edge_id}")
            return False

        description = f"{edge.from_id} -{edge.relation.value}-> {edge.to_id}"
        if not confirm(f"Delete edge {description}?", assume_yes):
            print("Cancelled.")
            return False

        try:
            self.graph.delete_edge(edge_id)
        except GraphError as e:
            print(f"{symbols.check_fail} Delete failed: {e}")
            return False

        print(f"{symbols.check_pass} Deleted edge {description}")
        return True


# =============================================================================
# Command Registration (Self-Registration Pattern)
# =============================================================================

COMMAND_NAME = 'delete'


def register_parser(subparsers):
    """Register delete command parser."""
    p = subparsers.add_parser('delete', help='Delete a node (with its edges) or an edge')
    p.add_argument('kind', choices=('node', 'edge'), help='What to delete')
    p.add_argument('item_id', help='Node or edge ID')
    p.add_argument('--yes', '-y', action='store_true', help='Skip the confirmation prompt')
    return p


def handle(cli, args):
    """Handle delete command dispatch."""
    cmd = DeleteCommand(cli)
    if args.kind == 'node':
        cmd.delete_node(args.item_id, assume_yes=args.yes)
    else:
        cmd.delete_edge(args.item_id, assume_yes=args.yes)
