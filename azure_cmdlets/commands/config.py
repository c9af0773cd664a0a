"""Configuration display command.

This module provides the 'config' command for displaying current
configuration settings without sensitive data.
"""

from typing import Any

import click

from azure_cmdlets.config_manager import CmdletsConfig


@click.command("config")
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration (without sensitive data)."""
    try:
        obj = ctx.obj or {}
        config_obj = CmdletsConfig.from_environment(
            subscription_id=obj.get("subscription_id")
        )

        click.echo("Current Configuration:")
        click.echo("=" * 60)

        def print_dict(d: Any, indent: int = 0) -> None:
            for key, value in d.items():
                if isinstance(value, dict):
                    click.echo("  " * indent + f"{key}:")
                    print_dict(value, indent + 1)
                else:
                    click.echo("  " * indent + f"{key}: {value}")

        print_dict(config_obj.to_dict())
        click.echo("=" * 60)
        click.echo("Set environment variables to customize configuration")

    except Exception as e:
        click.echo(f"Failed to display configuration: {e}", err=True)
        ctx.exit(1)


__all__ = ["config"]
