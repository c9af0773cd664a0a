"""Virtual network gateway commands.

This module provides:
- 'set-gateway-ipsec-parameters' command: Set IPsec parameters on a connection
- 'set-gateway-key' command: Set the shared key on a connection
"""

import click

from azure_cmdlets.commands.base import (
    command_context,
    output_option,
    render_output,
    report_error,
)
from azure_cmdlets.exceptions import ParameterValidationError
from azure_cmdlets.gateway import (
    ENCRYPTION_TYPES,
    PFS_GROUPS,
    GatewayIPsecConfigurator,
    GatewaySharedKeySetter,
)
from azure_cmdlets.network_client import GatewayManagementClient
from azure_cmdlets.validation import validate_guid, validate_not_empty


def _guid_argument(ctx: click.Context, param: click.Parameter, value: str) -> str:
    try:
        return validate_guid(value, param.human_readable_name)
    except ParameterValidationError as e:
        raise click.BadParameter(e.message) from e


def _not_empty_argument(ctx: click.Context, param: click.Parameter, value: str) -> str:
    try:
        return validate_not_empty(value, param.human_readable_name)
    except ParameterValidationError as e:
        raise click.BadParameter(e.message) from e


def _build_client(ctx: click.Context) -> GatewayManagementClient:
    cmd_ctx = command_context(ctx)
    config = cmd_ctx.get_config()
    session = cmd_ctx.get_session(config)
    return GatewayManagementClient(
        session.subscription_id, session.credential, config.service_management
    )


@click.command("set-gateway-ipsec-parameters")
@click.argument("gateway_id", metavar="GATEWAY_ID", callback=_guid_argument)
@click.argument(
    "connected_entity_id", metavar="CONNECTED_ENTITY_ID", callback=_guid_argument
)
@click.option(
    "--encryption-type",
    default=None,
    help=f"Encryption used on the connection. Valid values are {'/'.join(ENCRYPTION_TYPES)}.",
)
@click.option(
    "--pfs-group",
    default=None,
    help=f"PFS group used on the connection. Valid values are {' and '.join(PFS_GROUPS)}.",
)
@click.option(
    "--sa-data-size-kilobytes",
    type=int,
    default=0,
    help="Kilobytes of traffic sent before the connection's SA is renegotiated.",
)
@click.option(
    "--sa-lifetime-seconds",
    type=int,
    default=0,
    help="Seconds the connection's SA is valid before a new SA is negotiated.",
)
@output_option
@click.pass_context
def set_gateway_ipsec_parameters(
    ctx: click.Context,
    gateway_id: str,
    connected_entity_id: str,
    encryption_type: str,
    pfs_group: str,
    sa_data_size_kilobytes: int,
    sa_lifetime_seconds: int,
    output_format: str,
) -> None:
    """Set the IPsec parameters of a virtual network gateway connection.

    Examples:
        azcmdlets set-gateway-ipsec-parameters <GATEWAY_ID> <CONNECTED_ENTITY_ID> \\
            --encryption-type AES256 --pfs-group PFS1 \\
            --sa-data-size-kilobytes 102400 --sa-lifetime-seconds 3600
    """
    try:
        configurator = GatewayIPsecConfigurator(_build_client(ctx))
        result = configurator.set_ipsec_parameters(
            gateway_id,
            connected_entity_id,
            encryption_type=encryption_type,
            pfs_group=pfs_group,
            sa_data_size_kilobytes=sa_data_size_kilobytes,
            sa_lifetime_seconds=sa_lifetime_seconds,
        )
    except Exception as e:
        report_error(e, command_context(ctx).debug)
        return

    render_output(result, output_format)


@click.command("set-gateway-key")
@click.argument("gateway_id", metavar="GATEWAY_ID", callback=_guid_argument)
@click.argument(
    "connected_entity_id", metavar="CONNECTED_ENTITY_ID", callback=_guid_argument
)
@click.argument("shared_key", metavar="SHARED_KEY", callback=_not_empty_argument)
@output_option
@click.pass_context
def set_gateway_key(
    ctx: click.Context,
    gateway_id: str,
    connected_entity_id: str,
    shared_key: str,
    output_format: str,
) -> None:
    """Set the shared key used by the gateway and the customer's VPN device.

    Examples:
        azcmdlets set-gateway-key <GATEWAY_ID> <CONNECTED_ENTITY_ID> <SHARED_KEY>
    """
    try:
        setter = GatewaySharedKeySetter(_build_client(ctx))
        result = setter.set_shared_key(gateway_id, connected_entity_id, shared_key)
    except Exception as e:
        report_error(e, command_context(ctx).debug)
        return

    render_output(result, output_format)


__all__ = ["set_gateway_ipsec_parameters", "set_gateway_key"]
