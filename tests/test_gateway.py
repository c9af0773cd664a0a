"""Tests for the gateway connection handlers."""

from unittest.mock import Mock

import pytest

from azure_cmdlets.exceptions import ParameterValidationError, RemoteOperationError
from azure_cmdlets.gateway import GatewayIPsecConfigurator, GatewaySharedKeySetter
from azure_cmdlets.models import GatewayOperationStatus, SharedKeyContext

GATEWAY_ID = "11111111-1111-1111-1111-111111111111"
CONNECTED_ENTITY_ID = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def client():
    return Mock()


class TestGatewayIPsecConfigurator:
    def test_forwards_all_values_unmodified(self, client):
        expected = GatewayOperationStatus(id="op-1", status="Successful")
        client.set_ipsec_parameters_v2.return_value = expected

        result = GatewayIPsecConfigurator(client).set_ipsec_parameters(
            GATEWAY_ID,
            CONNECTED_ENTITY_ID,
            encryption_type="AES256",
            pfs_group="PFS1",
            sa_data_size_kilobytes=102400,
            sa_lifetime_seconds=3600,
        )

        assert result is expected
        client.set_ipsec_parameters_v2.assert_called_once_with(
            GATEWAY_ID, CONNECTED_ENTITY_ID, "AES256", "PFS1", 102400, 3600
        )

    def test_unknown_enum_values_are_not_checked_locally(self, client):
        GatewayIPsecConfigurator(client).set_ipsec_parameters(
            GATEWAY_ID, CONNECTED_ENTITY_ID, encryption_type="ROT13", pfs_group="PFS99"
        )
        client.set_ipsec_parameters_v2.assert_called_once_with(
            GATEWAY_ID, CONNECTED_ENTITY_ID, "ROT13", "PFS99", 0, 0
        )

    @pytest.mark.parametrize(
        "gateway_id,connected_entity_id",
        [
            ("not-a-guid", CONNECTED_ENTITY_ID),
            (GATEWAY_ID, "not-a-guid"),
            ("", CONNECTED_ENTITY_ID),
            (GATEWAY_ID, None),
            (GATEWAY_ID + "\n", CONNECTED_ENTITY_ID),
            (GATEWAY_ID, CONNECTED_ENTITY_ID + "\n"),
        ],
    )
    def test_invalid_identifiers_rejected_before_remote_call(
        self, client, gateway_id, connected_entity_id
    ):
        with pytest.raises(ParameterValidationError):
            GatewayIPsecConfigurator(client).set_ipsec_parameters(
                gateway_id, connected_entity_id, "AES256", "PFS1", 1, 1
            )
        client.set_ipsec_parameters_v2.assert_not_called()

    def test_remote_errors_propagate(self, client):
        error = RemoteOperationError("Gateway not found", status_code=404)
        client.set_ipsec_parameters_v2.side_effect = error

        with pytest.raises(RemoteOperationError) as exc_info:
            GatewayIPsecConfigurator(client).set_ipsec_parameters(
                GATEWAY_ID, CONNECTED_ENTITY_ID
            )
        assert exc_info.value is error


class TestGatewaySharedKeySetter:
    def test_forwards_shared_key(self, client):
        expected = SharedKeyContext(
            operation_id="op-1",
            operation_description="Set-AzureVirtualNetworkGatewayKey",
            operation_status="Successful",
            value="s3cret",
        )
        client.set_shared_key_v2.return_value = expected

        result = GatewaySharedKeySetter(client).set_shared_key(
            GATEWAY_ID, CONNECTED_ENTITY_ID, "s3cret"
        )

        assert result is expected
        client.set_shared_key_v2.assert_called_once_with(
            GATEWAY_ID, CONNECTED_ENTITY_ID, "s3cret"
        )

    def test_empty_shared_key_rejected(self, client):
        with pytest.raises(ParameterValidationError, match="SharedKey cannot be empty"):
            GatewaySharedKeySetter(client).set_shared_key(
                GATEWAY_ID, CONNECTED_ENTITY_ID, ""
            )
        client.set_shared_key_v2.assert_not_called()

    def test_invalid_gateway_id_rejected(self, client):
        with pytest.raises(ParameterValidationError, match="Invalid GatewayId format"):
            GatewaySharedKeySetter(client).set_shared_key(
                "gateway", CONNECTED_ENTITY_ID, "s3cret"
            )
        client.set_shared_key_v2.assert_not_called()

    def test_connected_entity_id_with_trailing_newline_rejected(self, client):
        with pytest.raises(ParameterValidationError, match="Invalid ConnectedEntityId format"):
            GatewaySharedKeySetter(client).set_shared_key(
                GATEWAY_ID, CONNECTED_ENTITY_ID + "\n", "s3cret"
            )
        client.set_shared_key_v2.assert_not_called()
