"""
MAAT CLI — Command-line access to the project graph

Usage:
    maat load --mock
    maat load --files . --git .
    maat list --type Issue --since 2025-01-01T00:00:00+00:00
    maat show issue:101
    maat neighbors issue:101
    maat views blocks
    maat delete node issue:101
    maat stats
    maat config --set display.symbols=ascii
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import ConfigManager
from .core.errors import GraphError
from .core.store import GraphStore
from .presentation.symbols import get_symbols


class MaatCLI:
    """Shared resources for one CLI invocation."""

    def __init__(self, project_dir: Path, db_path: Optional[Path] = None):
        self.project_dir = Path(project_dir)
        self.config_manager = ConfigManager(self.project_dir)
        self.config = self.config_manager.load()
        self.symbols = get_symbols(self.config.display.symbols)
        self.db_path = Path(db_path) if db_path else self.config_manager.db_path

        # Opened on first use so config-only commands never touch the database
        self._graph: Optional[GraphStore] = None

    @property
    def graph(self) -> GraphStore:
        if self._graph is None:
            self._graph = GraphStore(self.db_path)
        return self._graph

    def close(self):
        if self._graph is not None:
            self._graph.close()
            self._graph = None


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the MAAT CLI.

    Parser definitions and dispatch logic live in the command modules.
    Returns the process exit code.
    """
    parser = argparse.ArgumentParser(
        description="MAAT -- Typed knowledge graph of issues, pull requests, commits and files",
        epilog="Load sources, then walk the graph with show and neighbors."
    )

    parser.add_argument(
        '--project', '-p',
        default=os.environ.get("MAAT_PROJECT_PATH", "."),
        help='Project directory (default: MAAT_PROJECT_PATH or current)'
    )

    parser.add_argument(
        '--db',
        type=Path,
        help='Graph database path (overrides store.path)'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'maat {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Register all commands from command modules (self-registration pattern)
    from .commands import register_all, dispatch
    register_all(subparsers)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    cli = MaatCLI(Path(args.project), db_path=args.db)

    try:
        dispatch(args.command, cli, args)
    except KeyError as e:
        print(f"Error: {e}")
        parser.print_help()
        return 2
    except GraphError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        cli.close()

    return 0


if __name__ == '__main__':
    sys.exit(main())
