"""
BaseCommand — Shared foundation for all CLI commands

Provides access to CLI resources via composition.
Commands receive the CLI instance and access its resources through properties.
"""

from typing import TYPE_CHECKING

from ..core.schema import Node
from ..presentation.symbols import sanitize_control_chars, symbol_for_type, truncate

if TYPE_CHECKING:
    from ..cli import MaatCLI


class BaseCommand:
    """
    Base class for CLI commands with access to shared resources.

    Commands don't open their own store; they use the CLI's.
    """

    def __init__(self, cli: 'MaatCLI'):
        self._cli = cli

    @property
    def project_dir(self):
        """Project root directory."""
        return self._cli.project_dir

    @property
    def graph(self):
        """Graph store (opened lazily by the CLI)."""
        return self._cli.graph

    @property
    def config(self):
        """Application configuration."""
        return self._cli.config

    @property
    def symbols(self):
        """Symbol set for display (Unicode/ASCII)."""
        return self._cli.symbols

    def node_line(self, node: Node, width: int = 60) -> str:
        """One-line summary: symbol, ID, title, status."""
        title = truncate(sanitize_control_chars(node.title), width)
        line = f"{symbol_for_type(self.symbols, node.type)} {node.id}  {title}"
        if node.status:
            line += f"  [{sanitize_control_chars(node.status)}]"
        return line
