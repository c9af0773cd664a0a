"""Tests for vault settings file export.

Test Coverage:
- File naming with and without a site identity
- Partial site identity falls back to the two-part name
- Output directory resolution
- Aggregated failures reduced to the first cause
- XML serialization of the credential
"""

import os
import re
import shutil
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from azure_cmdlets.exceptions import AggregatedRemoteError, VaultCredentialError
from azure_cmdlets.models import SiteIdentity, VaultCredential, VaultReference
from azure_cmdlets.vault_settings import (
    CREDENTIALS_NAMESPACE,
    TIMESTAMP_FORMAT,
    VaultSettingsExporter,
    generate_file_name,
    serialize_vault_credential,
    write_to_file,
)

TEST_SUBSCRIPTION_ID = "00000000-1111-2222-3333-444444444444"
FILE_NAME_PATTERN = re.compile(
    r"^(?:(?P<site>.+)_)?(?P<vault>[^_]+)_"
    r"(?P<timestamp>\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2})\.VaultCredentials$"
)


def _credential(**overrides) -> VaultCredential:
    values = {
        "subscription_id": TEST_SUBSCRIPTION_ID,
        "resource_type": "Microsoft.RecoveryServices/vaults",
        "resource_name": "MyVault",
        "resource_group": "rg",
        "management_cert": "cGZ4",
        "aad_tenant_id": "tenant-1",
        "vault_location": "westus",
    }
    values.update(overrides)
    return VaultCredential(**values)


@pytest.fixture
def generator():
    generator = Mock()
    generator.generate_vault_credential.return_value = _credential()
    return generator


@pytest.fixture
def certificate_factory(fake_certificate):
    return Mock(return_value=fake_certificate)


@pytest.fixture
def exporter(session, vault_settings_config, generator, frozen_clock, certificate_factory):
    return VaultSettingsExporter(
        session,
        vault_settings_config,
        credential_generator=generator,
        clock=frozen_clock,
        certificate_factory=certificate_factory,
    )


class TestGenerateFileName:
    """Tests for credential file naming."""

    def test_without_site(self, frozen_clock):
        name = generate_file_name("MyVault", SiteIdentity(), frozen_clock())
        assert name == "MyVault_2024-01-15T10-30-00.VaultCredentials"

    def test_with_site(self, frozen_clock):
        site = SiteIdentity(id="site-id", friendly_name="Site1")
        name = generate_file_name("MyVault", site, frozen_clock())
        assert name == "Site1_MyVault_2024-01-15T10-30-00.VaultCredentials"

    def test_timestamp_converted_to_utc(self):
        pacific = timezone(timedelta(hours=-8))
        now = datetime(2024, 1, 15, 2, 30, 0, tzinfo=pacific)
        name = generate_file_name("MyVault", SiteIdentity(), now)
        assert name == "MyVault_2024-01-15T10-30-00.VaultCredentials"

    def test_real_clock_timestamp_is_within_execution_window(self):
        before = datetime.now(timezone.utc).replace(microsecond=0)
        name = generate_file_name("MyVault", SiteIdentity(), datetime.now(timezone.utc))
        after = datetime.now(timezone.utc)

        match = FILE_NAME_PATTERN.match(name)
        assert match is not None
        assert match.group("vault") == "MyVault"
        assert match.group("site") is None
        stamp = datetime.strptime(match.group("timestamp"), TIMESTAMP_FORMAT).replace(
            tzinfo=timezone.utc
        )
        assert before <= stamp <= after


class TestSiteIdentity:
    """Tests for pairing of site parameters."""

    def test_both_parameters_populate_site(self):
        site = SiteIdentity.from_parameters("site-id", "Site1")
        assert site.id == "site-id"
        assert site.friendly_name == "Site1"
        assert not site.is_empty

    @pytest.mark.parametrize(
        "site_identifier,site_friendly_name",
        [("site-id", None), (None, "Site1"), ("site-id", ""), ("", "Site1"), (None, None)],
    )
    def test_partial_parameters_are_ignored(self, site_identifier, site_friendly_name):
        site = SiteIdentity.from_parameters(site_identifier, site_friendly_name)
        assert site == SiteIdentity()
        assert site.is_empty


class TestVaultSettingsExporter:
    """Tests for the export workflow."""

    def test_end_to_end_without_site(self, exporter, generator, tmp_path):
        out_dir = tmp_path / "out"
        result = exporter.export(VaultReference(name="MyVault"), path=str(out_dir))

        expected = str(out_dir / "MyVault_2024-01-15T10-30-00.VaultCredentials")
        assert result.file_path == expected
        assert os.path.isfile(expected)

        _, vault, site = generator.generate_vault_credential.call_args.args
        assert vault.name == "MyVault"
        assert vault.subscription_id == TEST_SUBSCRIPTION_ID
        assert site == SiteIdentity()

    def test_export_to_tmp_out(self, exporter):
        out_dir = "/tmp/out"
        created = not os.path.exists(out_dir)
        expected = "/tmp/out/MyVault_2024-01-15T10-30-00.VaultCredentials"
        try:
            result = exporter.export(VaultReference(name="MyVault"), path=out_dir)
            assert result.file_path == expected
            assert os.path.isfile(expected)
        finally:
            if os.path.exists(expected):
                os.remove(expected)
            if created and os.path.isdir(out_dir):
                shutil.rmtree(out_dir)

    def test_with_site(self, exporter, generator, tmp_path):
        result = exporter.export(
            VaultReference(name="MyVault"),
            site_identifier="site-id",
            site_friendly_name="Site1",
            path=str(tmp_path),
        )
        assert os.path.basename(result.file_path) == (
            "Site1_MyVault_2024-01-15T10-30-00.VaultCredentials"
        )
        _, _, site = generator.generate_vault_credential.call_args.args
        assert site == SiteIdentity(id="site-id", friendly_name="Site1")

    def test_only_site_identifier_falls_back_to_two_part_name(
        self, exporter, generator, tmp_path
    ):
        result = exporter.export(
            VaultReference(name="MyVault"),
            site_identifier="site-id",
            path=str(tmp_path),
        )
        assert os.path.basename(result.file_path) == (
            "MyVault_2024-01-15T10-30-00.VaultCredentials"
        )
        _, _, site = generator.generate_vault_credential.call_args.args
        assert site.is_empty

    def test_only_site_friendly_name_falls_back_to_two_part_name(self, exporter, tmp_path):
        result = exporter.export(
            VaultReference(name="MyVault"),
            site_friendly_name="Site1",
            path=str(tmp_path),
        )
        assert os.path.basename(result.file_path) == (
            "MyVault_2024-01-15T10-30-00.VaultCredentials"
        )

    def test_default_directory_used_without_path(self, exporter, vault_settings_config):
        result = exporter.export(VaultReference(name="MyVault"), path="")
        assert os.path.dirname(result.file_path) == os.path.abspath(
            vault_settings_config.output_directory
        )

    def test_certificate_requested_with_expiry_subscription_and_vault(
        self, exporter, certificate_factory, frozen_clock, tmp_path
    ):
        exporter.export(VaultReference(name="MyVault"), path=str(tmp_path))
        certificate_factory.assert_called_once_with(
            120, TEST_SUBSCRIPTION_ID, "MyVault", clock=frozen_clock
        )

    def test_aggregate_failure_reports_first_error(self, exporter, generator, tmp_path):
        a, b, c = KeyError("A"), ValueError("B"), RuntimeError("C")
        generator.generate_vault_credential.side_effect = AggregatedRemoteError(
            "failed", causes=[a, b, c]
        )

        with pytest.raises(KeyError) as exc_info:
            exporter.export(VaultReference(name="MyVault"), path=str(tmp_path))

        assert exc_info.value is a
        assert list(tmp_path.iterdir()) == []

    def test_exception_group_reports_first_error(self, exporter, certificate_factory, tmp_path):
        a = PermissionError("A")
        certificate_factory.side_effect = ExceptionGroup("cert", [a, OSError("B")])

        with pytest.raises(PermissionError) as exc_info:
            exporter.export(VaultReference(name="MyVault"), path=str(tmp_path))

        assert exc_info.value is a

    def test_other_errors_propagate_unchanged(self, exporter, generator, tmp_path):
        error = RuntimeError("boom")
        generator.generate_vault_credential.side_effect = error

        with pytest.raises(RuntimeError) as exc_info:
            exporter.export(VaultReference(name="MyVault"), path=str(tmp_path))

        assert exc_info.value is error

    def test_unwritable_directory_raises_credential_error(self, exporter, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(VaultCredentialError, match="Could not write"):
            exporter.export(VaultReference(name="MyVault"), path=str(blocker / "sub"))


class TestSerialization:
    """Tests for the XML credential document."""

    def test_root_and_elements(self):
        root = ET.fromstring(serialize_vault_credential(_credential()))
        ns = {"c": CREDENTIALS_NAMESPACE}
        assert root.tag == f"{{{CREDENTIALS_NAMESPACE}}}RSVaultCreds"
        assert root.find("c:ResourceName", ns).text == "MyVault"
        assert root.find("c:SubscriptionId", ns).text == TEST_SUBSCRIPTION_ID
        assert root.find("c:Version", ns).text == "2.0"
        assert root.find("c:SiteId", ns) is None

    def test_site_scoped_root(self):
        credential = _credential(site_id="site-id", site_name="Site1")
        root = ET.fromstring(serialize_vault_credential(credential))
        ns = {"c": CREDENTIALS_NAMESPACE}
        assert root.tag == f"{{{CREDENTIALS_NAMESPACE}}}ASRVaultCreds"
        assert root.find("c:SiteName", ns).text == "Site1"

    def test_write_to_file_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "dir"
        path = write_to_file(_credential(), str(target), "x.VaultCredentials")
        assert path == str(target / "x.VaultCredentials")
        with open(path, "rb") as f:
            assert f.read() == serialize_vault_credential(_credential())


class TestVaultReference:
    """Tests for vault name handling."""

    def test_name_is_kept_as_given(self):
        assert VaultReference(name=" My Vault ").name == " My Vault "

    @pytest.mark.parametrize("name", ["", "   ", "\t"])
    def test_blank_name_rejected(self, name):
        with pytest.raises(ValueError, match="Vault name cannot be empty"):
            VaultReference(name=name)

    def test_name_is_used_unchanged_in_file_name(self, exporter, tmp_path):
        result = exporter.export(VaultReference(name="My Vault "), path=str(tmp_path))
        assert os.path.basename(result.file_path) == (
            "My Vault _2024-01-15T10-30-00.VaultCredentials"
        )
