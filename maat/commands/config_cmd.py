"""
ConfigCommand — Display and modify configuration
"""

from ..commands.base import BaseCommand


class ConfigCommand(BaseCommand):
    """Command for configuration display and modification."""

    def show_config(self):
        print(self._cli.config_manager.display())

    def set_config(self, key: str, value: str, scope: str = "project"):
        """Set a configuration value."""
        manager = self._cli.config_manager
        error = manager.set(key, value, scope)
        if error:
            print(f"Error: {error}")
            return

        path = manager.project_config_path if scope == "project" else manager.user_config_path
        print(f"{self.symbols.check_pass} Set {key} = {value}")
        print(f"  Saved to {path}")


# =============================================================================
# Command Registration (Self-Registration Pattern)
# =============================================================================

COMMAND_NAME = 'config'


def register_parser(subparsers):
    """Register config command parser."""
    p = subparsers.add_parser('config', help='View or set configuration')
    p.add_argument('--set', metavar='KEY=VALUE',
                   help='Set config value (e.g., display.symbols=ascii)')
    p.add_argument('--user', action='store_true',
                   help='Apply to user config instead of project')
    return p


def handle(cli, args):
    """Handle config command dispatch."""
    cmd = ConfigCommand(cli)
    if args.set:
        if '=' not in args.set:
            print("Error: Use format KEY=VALUE (e.g., display.symbols=ascii)")
        else:
            key, value = args.set.split('=', 1)
            cmd.set_config(key, value, "user" if args.user else "project")
    else:
        cmd.show_config()
