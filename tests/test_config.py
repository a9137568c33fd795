"""
Tests for settings loading — wdkpack.yml parsing and validation.
"""

import textwrap
from pathlib import Path

import pytest

from wdkpack.core.config.loader import SETTINGS_FILE, find_settings_file, load_settings
from wdkpack.core.errors import SettingsError
from wdkpack.core.models import Profile


@pytest.fixture
def settings_yml(tmp_path: Path) -> Path:
    """Create a full wdkpack.yml in a temp directory."""
    content = textwrap.dedent("""\
        profile: release
        target_arch: ARM64
        verify_signature: true
        sample: true
        signing:
          cert_store: TeamStore
          cert_name: TeamCert
          timestamp_url: http://timestamp.example.test
    """)
    path = tmp_path / SETTINGS_FILE
    path.write_text(content)
    return path


class TestLoadSettings:
    def test_full_file(self, settings_yml: Path):
        settings = load_settings(path=settings_yml)
        assert settings.profile is Profile.RELEASE
        assert settings.target_arch == "arm64"
        assert settings.verify_signature is True
        assert settings.sample is True
        assert settings.signing.cert_store == "TeamStore"
        assert settings.signing.cert_name == "TeamCert"
        assert settings.signing.timestamp_url == "http://timestamp.example.test"

    def test_defaults_when_absent(self, tmp_path: Path):
        settings = load_settings(start_dir=tmp_path)
        assert settings.profile is None
        assert settings.target_arch is None
        assert settings.verify_signature is False
        assert settings.signing.cert_store == "WDRTestCertStore"
        assert settings.signing.cert_name == "WDRLocalTestCert"
        assert settings.signing.timestamp_url == "http://timestamp.digicert.com"

    def test_found_from_subdirectory(self, settings_yml: Path):
        nested = settings_yml.parent / "drivers" / "sample"
        nested.mkdir(parents=True)
        assert find_settings_file(nested) == settings_yml
        assert load_settings(start_dir=nested).profile is Profile.RELEASE

    def test_empty_file_is_defaults(self, tmp_path: Path):
        path = tmp_path / SETTINGS_FILE
        path.write_text("")
        assert load_settings(path=path).sample is False

    def test_explicit_missing_path(self, tmp_path: Path):
        with pytest.raises(SettingsError, match="not found"):
            load_settings(path=tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / SETTINGS_FILE
        path.write_text("profile: [release\n")
        with pytest.raises(SettingsError, match="Invalid YAML"):
            load_settings(path=path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / SETTINGS_FILE
        path.write_text("- release\n")
        with pytest.raises(SettingsError, match="mapping"):
            load_settings(path=path)

    def test_unknown_key(self, tmp_path: Path):
        path = tmp_path / SETTINGS_FILE
        path.write_text("profiles: release\n")
        with pytest.raises(SettingsError, match="Invalid settings"):
            load_settings(path=path)

    def test_bad_arch(self, tmp_path: Path):
        path = tmp_path / SETTINGS_FILE
        path.write_text("target_arch: x86\n")
        with pytest.raises(SettingsError):
            load_settings(path=path)

    def test_bad_profile(self, tmp_path: Path):
        path = tmp_path / SETTINGS_FILE
        path.write_text("profile: fast\n")
        with pytest.raises(SettingsError):
            load_settings(path=path)
