import os
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest

from azure_cmdlets.config_manager import ServiceManagementConfig, VaultSettingsConfig
from azure_cmdlets.models import SelfSignedCertificate
from azure_cmdlets.session import SessionContext

TEST_SUBSCRIPTION_ID = "00000000-1111-2222-3333-444444444444"
GATEWAY_ID = "11111111-1111-1111-1111-111111111111"
CONNECTED_ENTITY_ID = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def clean_env():
    """Run a test with none of the project's environment variables set."""
    keys = [
        k
        for k in os.environ
        if k.startswith("AZCMDLETS_")
        or k in ("AZURE_SUBSCRIPTION_ID", "AZURE_TENANT_ID", "LOG_LEVEL", "LOG_FILE")
    ]
    with patch.dict(os.environ, {}, clear=False):
        for key in keys:
            os.environ.pop(key, None)
        yield


@pytest.fixture
def mock_credential():
    """Provide a mock azure-identity credential."""
    credential = Mock()
    credential.get_token.return_value = Mock(token="test-token", expires_on=0)
    return credential


@pytest.fixture
def session(mock_credential) -> SessionContext:
    """Provide a session bound to a fixed subscription."""
    return SessionContext(
        subscription_id=TEST_SUBSCRIPTION_ID, credential=mock_credential
    )


@pytest.fixture
def frozen_clock():
    """Clock pinned to 2024-01-15 10:30:00 UTC."""
    return lambda: datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def vault_settings_config(tmp_path) -> VaultSettingsConfig:
    return VaultSettingsConfig(
        output_directory=str(tmp_path / "default"), certificate_expiry_hours=120
    )


@pytest.fixture
def service_management_config() -> ServiceManagementConfig:
    return ServiceManagementConfig(
        endpoint="https://management.core.windows.net",
        api_version="2015-04-01",
        poll_interval=0,
        operation_timeout=30,
        http_timeout=10,
    )


@pytest.fixture
def fake_certificate(frozen_clock) -> SelfSignedCertificate:
    """A certificate model that skips key generation."""
    now = frozen_clock()
    return SelfSignedCertificate(
        subject=f"CN={TEST_SUBSCRIPTION_ID}-MyVault-01-15-2024-vaultcredentials",
        thumbprint="ABCDEF0123456789",
        not_before=now,
        not_after=now,
        public_data="cHVibGlj",
        pfx_data="cGZ4",
    )
