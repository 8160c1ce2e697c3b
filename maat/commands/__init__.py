"""
Commands — One module per command group, registered at startup

A command module provides:
- an XxxCommand(BaseCommand) class holding the behavior
- register_parser(subparsers): adds its argparse subcommand(s)
- handle(cli, args): routes parsed args to the command class
- COMMAND_NAMES (or COMMAND_NAME) when it serves several names or
  its name differs from the module name
"""

import importlib
import sys
from typing import Any, Callable, Dict, List

from .base import BaseCommand

# Listed in the order `maat --help` shows them
COMMAND_MODULES = [
    'list_cmd',
    'show',
    'views',
    'load',
    'delete',
    'config_cmd',
]

_registry: Dict[str, Callable[[Any, Any], Any]] = {}


def _names_for(module_name: str, module) -> List[str]:
    default = getattr(module, 'COMMAND_NAME', module_name[:-len('_cmd')]
                      if module_name.endswith('_cmd') else module_name)
    return list(getattr(module, 'COMMAND_NAMES', [default]))


def register_all(subparsers) -> None:
    """
    Import every command module and wire it into argparse.

    A module that fails to import is reported on stderr and left out;
    the remaining commands still work.
    """
    _registry.clear()

    for module_name in COMMAND_MODULES:
        try:
            module = importlib.import_module(f'.{module_name}', __package__)
        except ImportError as e:
            print(f"Warning: command module '{module_name}' unavailable: {e}", file=sys.stderr)
            continue

        register_parser = getattr(module, 'register_parser', None)
        if register_parser is not None:
            register_parser(subparsers)

        handler = getattr(module, 'handle', None)
        if handler is None:
            continue
        for name in _names_for(module_name, module):
            _registry[name] = handler


def dispatch(command: str, cli: Any, args: Any) -> Any:
    """
    Run the handler registered for a command name.

    Raises:
        KeyError: no module registered this command
    """
    handler = _registry.get(command)
    if handler is None:
        raise KeyError(f"Unknown command: {command}. Available: {', '.join(_registry)}")
    return handler(cli, args)


def get_registered_commands() -> List[str]:
    return list(_registry)


__all__ = ['BaseCommand', 'register_all', 'dispatch', 'get_registered_commands', 'COMMAND_MODULES']
