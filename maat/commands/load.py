"""
LoadCommand — Run data sources and reconcile them into the store

Ingestion always goes through upserts, so loading the same sources
again refreshes the graph instead of failing on duplicates.
"""

from pathlib import Path
from typing import Optional

from ..commands.base import BaseCommand
from ..datasource import FileScanner, GitScanner, Loader, MockSource


class LoadCommand(BaseCommand):
    """Command for ingesting graph data from sources."""

    def load(
        self,
        mock: bool = False,
        files: Optional[Path] = None,
        git: Optional[Path] = None
    ):
        """
        Load the selected sources into the graph store.

        Args:
            mock: Include the static demo graph
            files: Directory to scan for source files
            git: Repository to scan for commits and branches
        """
        sources_config = self.config.sources
        loader = Loader()
        if mock:
            loader.add_source(MockSource())
        if files is not None:
            loader.add_source(FileScanner(files, max_files=sources_config.max_files))
        if git is not None:
            loader.add_source(GitScanner(git, max_commits=sources_config.max_commits))

        if not loader.sources:
            print("No sources selected. Use --mock, --files PATH or --git PATH.")
            return

        result = loader.ingest(self.graph)
        symbols = self.symbols

        print(f"{symbols.check_pass} Upserted {result.nodes} node(s), {result.edges} edge(s)")
        if result.skipped_edges:
            print(f"{symbols.check_warn} Skipped {len(result.skipped_edges)} edge(s) "
                  f"(unknown endpoint or clashing edge ID)")
        for source_name, error in result.errors.items():
            print(f"{symbols.check_fail} {source_name}: {error}")


# =============================================================================
# Command Registration (Self-Registration Pattern)
# =============================================================================

COMMAND_NAME = 'load'


def register_parser(subparsers):
    """Register load command parser."""
    p = subparsers.add_parser('load', help='Load graph data from sources (idempotent)')
    p.add_argument('--mock', action='store_true', help='Load the demo graph')
    p.add_argument('--files', type=Path, metavar='PATH', help='Scan a directory for source files')
    p.add_argument('--git', type=Path, metavar='PATH', help='Scan a git repository')
    return p


def handle(cli, args):
    """Handle load command dispatch."""
    LoadCommand(cli).load(mock=args.mock, files=args.files, git=args.git)
