"""
Command-line entry point for Azure Cmdlets.

Wraps Azure management APIs: vault settings file generation and virtual
network gateway connection configuration.
"""

import logging

import click
from dotenv import load_dotenv

from azure_cmdlets.commands import list_commands, register_all_commands

# Always load .env if present
load_dotenv()

# Suppress verbose HTTP logging from Azure SDK and related libraries
for name in [
    "azure",
    "azure.core",
    "azure.core.pipeline",
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.identity",
    "azure.mgmt",
    "urllib3",
    "urllib3.connectionpool",
]:
    logging.getLogger(name).setLevel(logging.WARNING)


@click.group(invoke_without_command=True)
@click.option(
    "--log-level",
    default="INFO",
    help="Logging level (DEBUG, INFO, WARNING, ERROR)",
)
@click.option("--debug", is_flag=True, help="Show tracebacks for failed commands")
@click.option(
    "--subscription-id",
    envvar="AZURE_SUBSCRIPTION_ID",
    default=None,
    help="Azure subscription ID (default: AZURE_SUBSCRIPTION_ID)",
)
@click.pass_context
def cli(
    ctx: click.Context, log_level: str, debug: bool, subscription_id: str
) -> None:
    """Azure Cmdlets - Recovery Services vault and virtual network gateway tools."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = "DEBUG" if debug else log_level.upper()
    ctx.obj["debug"] = debug
    ctx.obj["subscription_id"] = subscription_id

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        click.echo()
        click.echo("Available commands: " + ", ".join(list_commands()))


register_all_commands(cli)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
