"""
Vault Settings File Export

Generates the credential file an operator downloads and later uploads to a
Recovery Services agent to register it against a vault.

Public API:
    VaultSettingsExporter: Certificate + credential orchestration
    generate_file_name: Operator-facing file naming
    serialize_vault_credential: XML rendering of a VaultCredential
    write_to_file: Single synchronous write of the serialized credential

Usage:
    ```python
    exporter = VaultSettingsExporter(session, config.vault_settings)
    output = exporter.export(
        VaultReference(name="MyVault", resource_group="rg"),
        path="/tmp/out",
    )
    print(output.file_path)
    ```
"""

import logging
import os
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .certificates import create_self_signed_certificate
from .config_manager import VaultSettingsConfig
from .exceptions import AggregatedRemoteError, VaultCredentialError, reduce_to_first
from .models import (
    SelfSignedCertificate,
    SiteIdentity,
    VaultCredential,
    VaultReference,
    VaultSettingsFilePath,
)
from .recovery_services_client import VaultCredentialGenerator
from .session import SessionContext

logger = logging.getLogger(__name__)

VAULT_CREDENTIALS_EXTENSION = ".VaultCredentials"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"
CREDENTIALS_NAMESPACE = (
    "http://schemas.datacontract.org/2004/07/"
    "Microsoft.Azure.Portal.RecoveryServices.Models.Common"
)

# Element name for each serialized VaultCredential field, in document order.
_CREDENTIAL_ELEMENTS = (
    ("subscription_id", "SubscriptionId"),
    ("resource_type", "ResourceType"),
    ("resource_name", "ResourceName"),
    ("resource_group", "ResourceGroup"),
    ("management_cert", "ManagementCert"),
    ("aad_tenant_id", "AadTenantId"),
    ("aad_authority", "AadAuthority"),
    ("aad_audience", "AadAudience"),
    ("service_resource_id", "ServiceResourceId"),
    ("resource_id", "ResourceId"),
    ("vault_location", "Location"),
    ("channel_integrity_key", "ChannelIntegrityKey"),
    ("site_id", "SiteId"),
    ("site_name", "SiteName"),
    ("version", "Version"),
)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_file_name(vault_name: str, site: SiteIdentity, now: datetime) -> str:
    """
    Build the credential file name.

    ``{vault}_{timestamp}.VaultCredentials`` without a site, or
    ``{site_friendly_name}_{vault}_{timestamp}.VaultCredentials`` with one.
    The timestamp is UTC so names sort chronologically.
    """
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    timestamp = now.strftime(TIMESTAMP_FORMAT)

    if site.is_empty:
        return f"{vault_name}_{timestamp}{VAULT_CREDENTIALS_EXTENSION}"
    return f"{site.friendly_name}_{vault_name}_{timestamp}{VAULT_CREDENTIALS_EXTENSION}"


def serialize_vault_credential(credential: VaultCredential) -> bytes:
    """Render a credential as an XML document."""
    root_tag = "ASRVaultCreds" if credential.site_id else "RSVaultCreds"
    root = ET.Element(root_tag, {"xmlns": CREDENTIALS_NAMESPACE})
    for attribute, element_name in _CREDENTIAL_ELEMENTS:
        value = getattr(credential, attribute)
        if value is None or value == "":
            continue
        ET.SubElement(root, element_name).text = str(value)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def write_to_file(credential: VaultCredential, directory: str, file_name: str) -> str:
    """
    Serialize a credential and write it to ``directory/file_name``.

    Returns:
        Absolute path of the written file
    """
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    file_path = os.path.abspath(os.path.join(directory, file_name))

    with open(file_path, "wb") as f:
        f.write(serialize_vault_credential(credential))

    logger.info(f"Vault credentials written to {file_path}")
    return file_path


class VaultSettingsExporter:
    """
    Exports vault settings (credential) files.

    Attributes:
        session: Explicit session supplying the subscription ID
        config: Vault settings configuration (expiry, default directory)
        credential_generator: Remote credential generation capability
        clock: Callable returning the current UTC time
        certificate_factory: Callable creating the self-signed certificate
    """

    def __init__(
        self,
        session: SessionContext,
        config: VaultSettingsConfig,
        credential_generator: Optional[VaultCredentialGenerator] = None,
        clock: Optional[Clock] = None,
        certificate_factory: Optional[
            Callable[..., SelfSignedCertificate]
        ] = None,
    ) -> None:
        self.session = session
        self.config = config
        self.credential_generator = credential_generator or VaultCredentialGenerator(
            session
        )
        self.clock = clock or _utc_now
        self.certificate_factory = certificate_factory or create_self_signed_certificate

    def export(
        self,
        vault: VaultReference,
        site_identifier: Optional[str] = None,
        site_friendly_name: Optional[str] = None,
        path: Optional[str] = None,
    ) -> VaultSettingsFilePath:
        """
        Generate a vault credential and write it to disk.

        Args:
            vault: Vault to generate the credential for
            site_identifier: Optional site ID (used only with a friendly name)
            site_friendly_name: Optional site name (used only with an ID)
            path: Optional output directory

        Returns:
            VaultSettingsFilePath with the absolute path of the written file

        Raises:
            The first failure of an aggregated remote failure, unwrapped.
        """
        try:
            return self._export(vault, site_identifier, site_friendly_name, path)
        except (AggregatedRemoteError, BaseExceptionGroup) as exc:
            # Only the first contained failure is reported.
            first = reduce_to_first(exc)
            logger.debug(f"Reducing aggregated failure to first cause: {first!r}")
            raise first from None

    def _export(
        self,
        vault: VaultReference,
        site_identifier: Optional[str],
        site_friendly_name: Optional[str],
        path: Optional[str],
    ) -> VaultSettingsFilePath:
        subscription_id = self.session.subscription_id
        if not vault.subscription_id:
            vault = vault.model_copy(update={"subscription_id": subscription_id})

        certificate = self.certificate_factory(
            self.config.certificate_expiry_hours,
            subscription_id,
            vault.name,
            clock=self.clock,
        )
        logger.debug(f"Management certificate created: {certificate.to_dict()}")

        site = SiteIdentity.from_parameters(site_identifier, site_friendly_name)

        credential = self.credential_generator.generate_vault_credential(
            certificate, vault, site
        )

        directory = path if path else self.config.get_default_path()
        file_name = generate_file_name(vault.name, site, self.clock())

        try:
            file_path = write_to_file(credential, directory, file_name)
        except OSError as exc:
            raise VaultCredentialError(
                f"Could not write vault credentials to {directory}",
                vault_name=vault.name,
                cause=exc,
            ) from exc

        return VaultSettingsFilePath(file_path=file_path)
