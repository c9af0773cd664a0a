"""CLI command registry.

Command names map to the module defining them. ``register_all_commands``
imports each module once and attaches its click command to the root group.
"""

import importlib
import logging
from typing import Optional

import click

from .base import (
    CommandContext,
    command_context,
    exit_with_error,
    render_output,
    report_error,
)

logger = logging.getLogger(__name__)

_LOADED_COMMANDS: dict[str, click.Command] = {}

_COMMAND_MODULES: dict[str, str] = {
    "get-vault-settings-file": "azure_cmdlets.commands.vault",
    "set-gateway-ipsec-parameters": "azure_cmdlets.commands.gateway",
    "set-gateway-key": "azure_cmdlets.commands.gateway",
    "config": "azure_cmdlets.commands.config",
}


def register_command(name: str, command: click.Command) -> None:
    """Record ``command`` under ``name``."""
    _LOADED_COMMANDS[name] = command
    logger.debug(f"Loaded command {name}")


def get_command(name: str) -> Optional[click.Command]:
    """
    Look up a command by its CLI name, importing its module on first use.

    The command object is the module attribute named after the command with
    dashes turned into underscores. Unknown names return None.
    """
    command = _LOADED_COMMANDS.get(name)
    if command is not None:
        return command

    module_path = _COMMAND_MODULES.get(name)
    if module_path is None:
        return None

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        logger.warning(f"Could not load {name} from {module_path}: {e}")
        return None

    command = getattr(module, name.replace("-", "_"), None)
    if isinstance(command, click.Command):
        register_command(name, command)
        return command
    return None


def list_commands() -> list[str]:
    """Names of all known commands, sorted."""
    return sorted(_COMMAND_MODULES)


def register_all_commands(cli_group: click.Group) -> None:
    """Attach every known command to ``cli_group``."""
    for name in _COMMAND_MODULES:
        command = get_command(name)
        if command is not None:
            cli_group.add_command(command, name)


__all__ = [
    "CommandContext",
    "command_context",
    "exit_with_error",
    "get_command",
    "list_commands",
    "register_all_commands",
    "register_command",
    "render_output",
    "report_error",
]
