"""Self-signed management certificates for vault credential files."""

import base64
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from .models import SelfSignedCertificate

logger = logging.getLogger(__name__)

KEY_SIZE = 2048
# not_before precedes issuance by this much
CLOCK_SKEW_ALLOWANCE = timedelta(minutes=15)


def build_subject_name(subscription_id: str, vault_name: str, now: datetime) -> str:
    """Common name used for a vault management certificate."""
    return f"{subscription_id}-{vault_name}-{now:%m-%d-%Y}-vaultcredentials"


def create_self_signed_certificate(
    expiry_hours: int,
    subscription_id: str,
    vault_name: str,
    clock: Optional[Callable[[], datetime]] = None,
) -> SelfSignedCertificate:
    """
    Create a short-lived self-signed client certificate.

    Args:
        expiry_hours: Validity window in hours, counted from now
        subscription_id: Subscription the vault lives in
        vault_name: Vault the certificate is issued for
        clock: Optional callable returning the current UTC time

    Returns:
        SelfSignedCertificate with base64 DER public data and base64 PKCS#12
    """
    if expiry_hours < 1:
        raise ValueError("Certificate expiry must be at least 1 hour")

    now = (clock or (lambda: datetime.now(timezone.utc)))()
    common_name = build_subject_name(subscription_id, vault_name, now)

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=KEY_SIZE)
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])

    not_before = now - CLOCK_SKEW_ALLOWANCE
    not_after = now + timedelta(hours=expiry_hours)

    certificate = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.CLIENT_AUTH]), critical=False
        )
        .sign(private_key, hashes.SHA256())
    )

    public_der = certificate.public_bytes(serialization.Encoding.DER)
    pfx = pkcs12.serialize_key_and_certificates(
        name=common_name.encode("utf-8"),
        key=private_key,
        cert=certificate,
        cas=None,
        encryption_algorithm=serialization.NoEncryption(),
    )
    thumbprint = certificate.fingerprint(hashes.SHA1()).hex().upper()  # nosec

    logger.debug(f"Created self-signed certificate {thumbprint} for vault {vault_name}")

    return SelfSignedCertificate(
        subject=f"CN={common_name}",
        thumbprint=thumbprint,
        not_before=not_before,
        not_after=not_after,
        public_data=base64.b64encode(public_der).decode("ascii"),
        pfx_data=base64.b64encode(pfx).decode("ascii"),
    )
