"""
ListCommand — Node discovery and graph statistics

Read-only: lists nodes through the store's composable filter
(types, sources, updated-after) and reports counts by type.
"""

import argparse
from typing import List, Optional

from ..commands.base import BaseCommand
from ..core.schema import NodeFilter, NodeType, parse_node_type, parse_timestamp
from ..presentation.symbols import safe_print, symbol_for_type


class ListCommand(BaseCommand):
    """Command for listing nodes and graph statistics."""

    def list_nodes(
        self,
        types: Optional[List[str]] = None,
        sources: Optional[List[str]] = None,
        since: Optional[str] = None
    ):
        """
        List nodes matching every supplied filter.

        Args:
            types: Node type values to keep (e.g. ["Issue", "PR"])
            sources: Source names to keep (e.g. ["git"])
            since: ISO timestamp; keep nodes updated strictly after it
        """
        node_filter = NodeFilter(
            types=[parse_node_type(t) for t in types or []],
            sources=list(sources or []),
            updated_after=parse_timestamp(since) if since else None,
        )
        nodes = self.graph.list_nodes(None if node_filter.is_empty() else node_filter)

        if not nodes:
            print("No nodes found.")
            return

        for node in nodes:
            safe_print(self.node_line(node))
        print(f"\n{len(nodes)} node(s)")

    def show_stats(self):
        """Node and edge counts, nodes broken down by type."""
        stats = self.graph.stats()
        symbols = self.symbols

        print(f"Nodes: {stats['nodes']}")
        for node_type in NodeType:
            count = stats['by_type'].get(node_type.value, 0)
            if count:
                safe_print(f"  {symbol_for_type(symbols, node_type)} {node_type.value:<8} {count:>5}")
        print(f"Edges: {stats['edges']}")


def _iso_timestamp(value: str) -> str:
    try:
        parse_timestamp(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO-8601 timestamp: {value}")
    return value


# =============================================================================
# Command Registration (Self-Registration Pattern)
# =============================================================================

COMMAND_NAMES = ['list', 'stats']


def register_parser(subparsers):
    """Register list and stats command parsers."""
    p1 = subparsers.add_parser('list', help='List nodes (filter by type, source, update time)')
    p1.add_argument('--type', '-t', dest='types', action='append',
                    choices=[t.value for t in NodeType],
                    help='Keep only this node type (repeatable)')
    p1.add_argument('--source', '-s', dest='sources', action='append',
                    help='Keep only nodes from this source (repeatable)')
    p1.add_argument('--since', type=_iso_timestamp,
                    help='Keep nodes updated strictly after this ISO timestamp')

    p2 = subparsers.add_parser('stats', help='Show node and edge counts')

    return p1, p2


def handle(cli, args):
    """Handle list or stats command dispatch."""
    cmd = ListCommand(cli)
    if args.command == 'list':
        cmd.list_nodes(types=args.types, sources=args.sources, since=args.since)
    elif args.command == 'stats':
        cmd.show_stats()
