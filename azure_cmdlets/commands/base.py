"""Base command infrastructure and shared utilities.

This module provides common utilities used across command modules:
- CommandContext for shared command execution context
- Output rendering (rich table or JSON)
- Error reporting helpers
"""

import json
import logging
import sys
from typing import Any, Optional

import click
from azure.core.exceptions import AzureError as AzureSDKError
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from azure_cmdlets.config_manager import (
    CmdletsConfig,
    create_config_from_env,
    setup_logging,
)
from azure_cmdlets.exceptions import AzureCmdletsError, wrap_azure_exception
from azure_cmdlets.logging_config import configure_logging
from azure_cmdlets.session import SessionContext, create_session_context

OUTPUT_FORMATS = ("table", "json")

logger = logging.getLogger(__name__)


class CommandContext:
    """Shared context for command execution."""

    def __init__(
        self,
        ctx: click.Context,
        debug: bool = False,
        log_level: str = "INFO",
        subscription_id: Optional[str] = None,
    ):
        self.click_ctx = ctx
        self.debug = debug
        self.log_level = log_level
        self.subscription_id = subscription_id

    def get_config(self) -> CmdletsConfig:
        """Get validated configuration from environment and global options."""
        config = create_config_from_env(
            subscription_id=self.subscription_id, log_level=self.log_level
        )
        setup_logging(config.logging)
        configure_logging()
        return config

    def get_session(self, config: CmdletsConfig) -> SessionContext:
        """Build the explicit Azure session for this invocation."""
        return create_session_context(config)


def command_context(ctx: click.Context) -> CommandContext:
    """Create CommandContext from click context."""
    obj = ctx.obj or {}
    return CommandContext(
        ctx=ctx,
        debug=obj.get("debug", False),
        log_level=obj.get("log_level", "INFO"),
        subscription_id=obj.get("subscription_id"),
    )


def exit_with_error(message: str, code: int = 1) -> None:
    """Exit with error message."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def report_error(exc: BaseException, debug: bool = False) -> None:
    """Report a command failure and exit.

    The failure is shown under its own type name. Project errors add their
    recovery suggestion; Azure SDK errors get the suggestion of the project
    error they map to.
    """
    if debug:
        logger.exception("Command failed")
    if isinstance(exc, AzureSDKError):
        message = f"{type(exc).__name__}: {exc}"
        suggestion = wrap_azure_exception(exc).recovery_suggestion
    elif isinstance(exc, AzureCmdletsError):
        message = f"{type(exc).__name__}: {exc.message}"
        suggestion = exc.recovery_suggestion
    else:
        message = f"{type(exc).__name__}: {exc}"
        suggestion = None
    if suggestion:
        message += f" ({suggestion})"
    exit_with_error(message)


def render_output(result: BaseModel, output_format: str = "table") -> None:
    """Print a result model as a two-column table or as JSON."""
    data: dict[str, Any] = result.model_dump(mode="json")
    if output_format == "json":
        click.echo(json.dumps(data, indent=2))
        return

    table = Table(title=type(result).__name__, show_header=True)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    for key, value in data.items():
        table.add_row(key, "" if value is None else str(value))
    Console().print(table)


output_option = click.option(
    "--output",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default="table",
    show_default=True,
    help="Output format",
)
