"""Tests for self-signed certificate generation."""

import base64
from datetime import timedelta

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from azure_cmdlets.certificates import (
    CLOCK_SKEW_ALLOWANCE,
    build_subject_name,
    create_self_signed_certificate,
)

TEST_SUBSCRIPTION_ID = "00000000-1111-2222-3333-444444444444"


class TestBuildSubjectName:
    def test_subject_binds_subscription_and_vault(self, frozen_clock):
        name = build_subject_name(TEST_SUBSCRIPTION_ID, "MyVault", frozen_clock())
        assert name == f"{TEST_SUBSCRIPTION_ID}-MyVault-01-15-2024-vaultcredentials"


class TestCreateSelfSignedCertificate:
    @pytest.fixture
    def certificate(self, frozen_clock):
        return create_self_signed_certificate(
            120, TEST_SUBSCRIPTION_ID, "MyVault", clock=frozen_clock
        )

    def test_validity_window(self, certificate, frozen_clock):
        now = frozen_clock()
        assert certificate.not_after == now + timedelta(hours=120)
        assert certificate.not_before == now - CLOCK_SKEW_ALLOWANCE

    def test_public_data_is_der_certificate(self, certificate):
        parsed = x509.load_der_x509_certificate(
            base64.b64decode(certificate.public_data)
        )
        common_name = parsed.subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0]
        assert certificate.subject == f"CN={common_name.value}"
        assert parsed.issuer == parsed.subject

    def test_pfx_contains_private_key(self, certificate):
        key, cert, _ = pkcs12.load_key_and_certificates(
            base64.b64decode(certificate.pfx_data), None
        )
        assert key is not None
        assert cert is not None

    def test_thumbprint_is_uppercase_sha1(self, certificate):
        assert len(certificate.thumbprint) == 40
        assert certificate.thumbprint == certificate.thumbprint.upper()

    def test_to_dict_omits_private_material(self, certificate):
        data = certificate.to_dict()
        assert "pfx_data" not in data
        assert data["thumbprint"] == certificate.thumbprint

    def test_invalid_expiry(self):
        with pytest.raises(ValueError, match="at least 1 hour"):
            create_self_signed_certificate(0, TEST_SUBSCRIPTION_ID, "MyVault")
