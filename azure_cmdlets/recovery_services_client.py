"""Recovery Services vault credential generation.

Public API:
    VaultCredentialGenerator: Uploads a management certificate to a vault and
        assembles the credential payload an agent needs to register.

The three remote calls involved (certificate upload, vault lookup and channel
integrity key lookup) are independent and run concurrently. When any of them
fails, every failure is collected into an ``AggregatedRemoteError`` in
submission order.
"""

import base64
import secrets
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional

import structlog
from azure.core.exceptions import ResourceNotFoundError
from azure.mgmt.recoveryservices import RecoveryServicesClient
from azure.mgmt.recoveryservices.models import (
    CertificateRequest,
    RawCertificateData,
    VaultExtendedInfoResource,
)

from .exceptions import AggregatedRemoteError
from .models import SelfSignedCertificate, SiteIdentity, VaultCredential, VaultReference
from .session import SessionContext

logger = structlog.get_logger(__name__)

CERTIFICATE_AUTH_TYPE = "AAD"
INTEGRITY_KEY_ALGORITHM = "None"
INTEGRITY_KEY_BYTES = 16


class VaultCredentialGenerator:
    """
    Generates vault credentials through the Recovery Services management API.

    Attributes:
        session: Session the management client is bound to
        client: RecoveryServicesClient (created from the session when omitted)
    """

    def __init__(
        self,
        session: SessionContext,
        client: Optional[RecoveryServicesClient] = None,
    ) -> None:
        self.session = session
        self.client = client or RecoveryServicesClient(
            session.credential, session.subscription_id
        )

    def generate_vault_credential(
        self,
        certificate: SelfSignedCertificate,
        vault: VaultReference,
        site: SiteIdentity,
    ) -> VaultCredential:
        """
        Register the certificate with the vault and build its credential.

        Args:
            certificate: Management certificate to upload
            vault: Target vault
            site: Site the credential is scoped to (may be empty)

        Returns:
            VaultCredential ready for serialization

        Raises:
            AggregatedRemoteError: If one or more of the remote calls failed
        """
        resource_group = vault.resource_group
        certificate_name = certificate.subject.removeprefix("CN=")

        logger.info(
            "generating_vault_credential",
            vault=vault.name,
            resource_group=resource_group,
            site_scoped=not site.is_empty,
        )

        with ThreadPoolExecutor(max_workers=3) as executor:
            futures: Dict[str, Future[Any]] = {
                "certificate": executor.submit(
                    self._upload_certificate,
                    resource_group,
                    vault.name,
                    certificate_name,
                    certificate,
                ),
                "vault": executor.submit(
                    self.client.vaults.get, resource_group, vault.name
                ),
                "integrity_key": executor.submit(
                    self._get_or_create_integrity_key, resource_group, vault.name
                ),
            }
            results: Dict[str, Any] = {}
            failures = []
            for key, future in futures.items():
                error = future.exception()
                if error is not None:
                    failures.append(error)
                else:
                    results[key] = future.result()

        if failures:
            logger.warning(
                "vault_credential_calls_failed",
                vault=vault.name,
                failure_count=len(failures),
            )
            raise AggregatedRemoteError(
                f"Failed to generate credential for vault {vault.name}",
                causes=failures,
            )

        aad_details = results["certificate"].properties
        remote_vault = results["vault"]

        return VaultCredential(
            subscription_id=self.session.subscription_id,
            resource_type=remote_vault.type or vault.type,
            resource_name=vault.name,
            resource_group=resource_group,
            management_cert=certificate.pfx_data,
            aad_tenant_id=getattr(aad_details, "aad_tenant_id", None),
            aad_authority=getattr(aad_details, "aad_authority", None),
            aad_audience=getattr(aad_details, "aad_audience", None),
            service_resource_id=getattr(aad_details, "service_resource_id", None),
            resource_id=remote_vault.id or vault.resource_id,
            vault_location=remote_vault.location or vault.location,
            channel_integrity_key=results["integrity_key"],
            site_id=site.id,
            site_name=site.friendly_name,
        )

    def _upload_certificate(
        self,
        resource_group: str,
        vault_name: str,
        certificate_name: str,
        certificate: SelfSignedCertificate,
    ) -> Any:
        request = CertificateRequest(
            properties=RawCertificateData(
                auth_type=CERTIFICATE_AUTH_TYPE,
                certificate=base64.b64decode(certificate.public_data),
            )
        )
        response = self.client.vault_certificates.create(
            resource_group, vault_name, certificate_name, request
        )
        logger.debug(
            "certificate_uploaded",
            vault=vault_name,
            thumbprint=certificate.thumbprint,
        )
        return response

    def _get_or_create_integrity_key(self, resource_group: str, vault_name: str) -> str:
        """Return the vault's channel integrity key, creating one if absent."""
        try:
            info = self.client.vault_extended_info.get(resource_group, vault_name)
            if info.integrity_key:
                return info.integrity_key
        except ResourceNotFoundError:
            logger.info("vault_extended_info_missing", vault=vault_name)

        integrity_key = base64.b64encode(
            secrets.token_bytes(INTEGRITY_KEY_BYTES)
        ).decode("ascii")
        created = self.client.vault_extended_info.create_or_update(
            resource_group,
            vault_name,
            VaultExtendedInfoResource(
                integrity_key=integrity_key, algorithm=INTEGRITY_KEY_ALGORITHM
            ),
        )
        return created.integrity_key or integrity_key
