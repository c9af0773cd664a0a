"""Recovery Services vault commands.

This module provides:
- 'get-vault-settings-file' command: Generate a vault credential file
"""

from typing import Optional

import click
from pydantic import ValidationError as ModelValidationError

from azure_cmdlets.commands.base import (
    command_context,
    exit_with_error,
    output_option,
    render_output,
    report_error,
)
from azure_cmdlets.models import VaultReference
from azure_cmdlets.vault_settings import VaultSettingsExporter


@click.command("get-vault-settings-file")
@click.option("--vault-name", required=True, help="Recovery Services vault name")
@click.option(
    "--resource-group", required=True, help="Resource group containing the vault"
)
@click.option(
    "--site-identifier",
    default=None,
    help="Hyper-V site identifier (used together with --site-friendly-name)",
)
@click.option(
    "--site-friendly-name",
    default=None,
    help="Hyper-V site friendly name (used together with --site-identifier)",
)
@click.option(
    "--path",
    default=None,
    help="Directory the credential file is written to (default: configured or temp dir)",
)
@output_option
@click.pass_context
def get_vault_settings_file(
    ctx: click.Context,
    vault_name: str,
    resource_group: str,
    site_identifier: Optional[str],
    site_friendly_name: Optional[str],
    path: Optional[str],
    output_format: str,
) -> None:
    """Generate a vault settings (credential) file and print its path.

    The file is backed by a self-signed certificate valid for 120 hours. When
    both site options are given, the credential is scoped to that site and the
    file name is prefixed with the site's friendly name.

    Examples:
        azcmdlets get-vault-settings-file --vault-name MyVault --resource-group rg

        azcmdlets get-vault-settings-file --vault-name MyVault --resource-group rg \\
            --site-identifier <SITE_ID> --site-friendly-name Site1 --path /tmp/out
    """
    cmd_ctx = command_context(ctx)

    try:
        vault = VaultReference(name=vault_name, resource_group=resource_group)
    except ModelValidationError as e:
        exit_with_error(f"Invalid vault reference: {e.errors()[0]['msg']}")
        return

    try:
        config = cmd_ctx.get_config()
        session = cmd_ctx.get_session(config)
        exporter = VaultSettingsExporter(session, config.vault_settings)
        result = exporter.export(
            vault,
            site_identifier=site_identifier,
            site_friendly_name=site_friendly_name,
            path=path,
        )
    except Exception as e:
        report_error(e, cmd_ctx.debug)
        return

    render_output(result, output_format)


__all__ = ["get_vault_settings_file"]
