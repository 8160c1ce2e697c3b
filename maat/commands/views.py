"""
ViewsCommand — Derived views (issue blocks issue, PR modifies file)
"""

from typing import Optional

from ..commands.base import BaseCommand
from ..core.views import issue_dependencies, pr_file_map
from ..presentation.symbols import safe_print, sanitize_control_chars


VIEW_NAMES = ('blocks', 'modifies')


class ViewsCommand(BaseCommand):
    """Command for printing derived views."""

    def show_blocks(self, node_id: Optional[str] = None):
        rows = issue_dependencies(self.graph, issue_id=node_id)
        if not rows:
            print("No blocking issues.")
            return
        arrow = self.symbols.outgoing
        for row in rows:
            safe_print(
                f"{row.issue_id} ({sanitize_control_chars(row.issue_title or '?')}) "
                f"{arrow} blocks {arrow} "
                f"{row.blocks_id} ({sanitize_control_chars(row.blocks_title or '?')})"
            )

    def show_modifies(self, node_id: Optional[str] = None):
        rows = pr_file_map(self.graph, pr_id=node_id)
        if not rows:
            print("No pull request file changes.")
            return
        arrow = self.symbols.outgoing
        for row in rows:
            number = f"#{row.pr_number}" if row.pr_number is not None else row.pr_id
            safe_print(f"{number} {arrow} {sanitize_control_chars(row.file_path or row.file_id)}")


# =============================================================================
# Command Registration (Self-Registration Pattern)
# =============================================================================

COMMAND_NAME = 'views'


def register_parser(subparsers):
    """Register views command parser."""
    p = subparsers.add_parser('views', help='Show derived views (blocks, modifies)')
    p.add_argument('view', choices=VIEW_NAMES, help='View to show')
    p.add_argument('--id', dest='node_id',
                   help='Restrict to one blocking issue / pull request')
    return p


def handle(cli, args):
    """Handle views command dispatch."""
    cmd = ViewsCommand(cli)
    if args.view == 'blocks':
        cmd.show_blocks(args.node_id)
    else:
        cmd.show_modifies(args.node_id)
