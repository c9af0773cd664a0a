"""Data models exchanged between the commands and the management clients."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

RECOVERY_SERVICES_VAULT_TYPE = "Microsoft.RecoveryServices/vaults"


class VaultReference(BaseModel):
    """A Recovery Services vault addressed by name within a subscription.

    Attributes:
        name: Vault name
        resource_group: Resource group holding the vault
        subscription_id: Subscription holding the vault
        id: Full ARM resource ID, when known
        location: Azure region, when known
        type: ARM resource type
    """

    name: str
    resource_group: str = ""
    subscription_id: str = ""
    id: Optional[str] = None
    location: Optional[str] = None
    type: str = RECOVERY_SERVICES_VAULT_TYPE

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Vault name must not be empty or blank; it is kept as given."""
        if not v or not v.strip():
            raise ValueError("Vault name cannot be empty")
        return v

    @property
    def resource_id(self) -> str:
        """ARM resource ID, built from the parts when it was not supplied."""
        if self.id:
            return self.id
        return (
            f"/subscriptions/{self.subscription_id}/resourceGroups/"
            f"{self.resource_group}/providers/{self.type}/{self.name}"
        )


class SiteIdentity(BaseModel):
    """Optional Hyper-V site the credential is scoped to.

    An empty identity means the credential is not scoped to any site.
    """

    id: str = ""
    friendly_name: str = ""

    @classmethod
    def from_parameters(
        cls, site_identifier: Optional[str], site_friendly_name: Optional[str]
    ) -> "SiteIdentity":
        """Populate both fields only when both parameters are non-empty."""
        if site_identifier and site_friendly_name:
            return cls(id=site_identifier, friendly_name=site_friendly_name)
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (self.id and self.friendly_name)


class VaultCredential(BaseModel):
    """Credential payload an agent uploads to register against a vault."""

    model_config = ConfigDict(frozen=True)

    subscription_id: str
    resource_type: str
    resource_name: str
    resource_group: str
    management_cert: str
    aad_tenant_id: Optional[str] = None
    aad_authority: Optional[str] = None
    aad_audience: Optional[str] = None
    service_resource_id: Optional[str] = None
    resource_id: Optional[str] = None
    vault_location: Optional[str] = None
    channel_integrity_key: Optional[str] = None
    site_id: str = ""
    site_name: str = ""
    version: str = "2.0"


class VaultSettingsFilePath(BaseModel):
    """Output of the vault settings file command."""

    file_path: str


class IPsecParameters(BaseModel):
    """IPsec settings forwarded verbatim to the gateway API."""

    encryption_type: Optional[str] = None
    pfs_group: Optional[str] = None
    sa_data_size_kilobytes: int = 0
    sa_lifetime_seconds: int = 0


class GatewayOperationStatus(BaseModel):
    """Status of an asynchronous gateway operation."""

    id: Optional[str] = None
    status: str
    http_status_code: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    request_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        """True once the service reports the operation as successful."""
        return self.status == "Successful"


class SharedKeyContext(BaseModel):
    """Result of setting a gateway connection's shared key."""

    operation_id: Optional[str] = None
    operation_description: str
    operation_status: str
    value: str


class SelfSignedCertificate(BaseModel):
    """A generated management certificate and its private material."""

    model_config = ConfigDict(frozen=True)

    subject: str
    thumbprint: str
    not_before: datetime
    not_after: datetime
    public_data: str
    pfx_data: str

    def to_dict(self) -> Dict[str, Any]:
        """Public details only, for logging."""
        return {
            "subject": self.subject,
            "thumbprint": self.thumbprint,
            "not_before": self.not_before.isoformat(),
            "not_after": self.not_after.isoformat(),
        }
