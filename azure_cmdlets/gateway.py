"""Virtual network gateway connection handlers.

Each handler validates its identifiers locally, then forwards the call to the
gateway management client and returns the client's result unmodified. The
encryption type, PFS group and SA values are not checked here; the service
decides what it accepts.
"""

import logging
from typing import Optional

from .models import GatewayOperationStatus, SharedKeyContext
from .network_client import GatewayManagementClient
from .validation import validate_guid, validate_not_empty

logger = logging.getLogger(__name__)

# Documented values, shown in command help only.
ENCRYPTION_TYPES = ("RequireEncryption", "NoEncryption", "AES256", "AES128", "DES3")
PFS_GROUPS = ("PFS1", "None")


class GatewayIPsecConfigurator:
    """Sets IPsec parameters on a gateway connection."""

    def __init__(self, client: GatewayManagementClient) -> None:
        self.client = client

    def set_ipsec_parameters(
        self,
        gateway_id: str,
        connected_entity_id: str,
        encryption_type: Optional[str] = None,
        pfs_group: Optional[str] = None,
        sa_data_size_kilobytes: int = 0,
        sa_lifetime_seconds: int = 0,
    ) -> GatewayOperationStatus:
        """
        Validate the identifiers and forward the IPsec parameters.

        Args:
            gateway_id: Virtual network gateway GUID
            connected_entity_id: Connected entity (local network site) GUID
            encryption_type: Encryption used on the connection
            pfs_group: PFS group used on the connection
            sa_data_size_kilobytes: Kilobytes of traffic before SA renegotiation
            sa_lifetime_seconds: Seconds before SA renegotiation

        Returns:
            GatewayOperationStatus returned by the client

        Raises:
            ParameterValidationError: If an identifier is empty or not a GUID
        """
        validate_guid(gateway_id, "GatewayId")
        validate_guid(connected_entity_id, "ConnectedEntityId")

        logger.info(
            f"Setting IPsec parameters on gateway {gateway_id} "
            f"connection {connected_entity_id}"
        )
        return self.client.set_ipsec_parameters_v2(
            gateway_id,
            connected_entity_id,
            encryption_type,
            pfs_group,
            sa_data_size_kilobytes,
            sa_lifetime_seconds,
        )


class GatewaySharedKeySetter:
    """Sets the shared key on a gateway connection."""

    def __init__(self, client: GatewayManagementClient) -> None:
        self.client = client

    def set_shared_key(
        self, gateway_id: str, connected_entity_id: str, shared_key: str
    ) -> SharedKeyContext:
        """
        Validate the parameters and forward the shared key.

        Raises:
            ParameterValidationError: If an identifier is not a GUID or the
                shared key is empty
        """
        validate_guid(gateway_id, "GatewayId")
        validate_guid(connected_entity_id, "ConnectedEntityId")
        validate_not_empty(shared_key, "SharedKey")

        logger.info(
            f"Setting shared key on gateway {gateway_id} "
            f"connection {connected_entity_id}"
        )
        return self.client.set_shared_key_v2(
            gateway_id, connected_entity_id, shared_key
        )
