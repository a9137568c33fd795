"""
Settings loader — reads wdkpack.yml into PackagingSettings.

The file is optional. When present it supplies defaults for the CLI
options and the signing parameters; CLI flags always win.

    profile: release
    target_arch: amd64        # amd64 | arm64 | host
    verify_signature: true
    sample: false
    signing:
      cert_store: WDRTestCertStore
      cert_name: WDRLocalTestCert
      timestamp_url: http://timestamp.digicert.com
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from wdkpack.core.engine.package_task import (
    TIMESTAMP_URL,
    WDR_LOCAL_TEST_CERT,
    WDR_TEST_CERT_STORE,
)
from wdkpack.core.errors import SettingsError
from wdkpack.core.models.target import Profile

logger = logging.getLogger(__name__)

# Default settings filename
SETTINGS_FILE = "wdkpack.yml"


class SigningSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    cert_store: str = WDR_TEST_CERT_STORE
    cert_name: str = WDR_LOCAL_TEST_CERT
    timestamp_url: str = TIMESTAMP_URL


class PackagingSettings(BaseModel):
    """Defaults for build and package invocations."""

    model_config = ConfigDict(extra="forbid")

    profile: Profile | None = None
    target_arch: str | None = None
    verify_signature: bool = False
    sample: bool = False
    signing: SigningSettings = Field(default_factory=SigningSettings)

    @field_validator("target_arch")
    @classmethod
    def _check_arch(cls, value: str | None) -> str | None:
        if value is not None and value.lower() not in ("amd64", "arm64", "host"):
            raise ValueError(f"'{value}' is not a valid target architecture")
        return value.lower() if value else value


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for wdkpack.yml starting from the given directory, walking up.

    Returns:
        Path to wdkpack.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(path: Path | None = None, start_dir: Path | None = None) -> PackagingSettings:
    """Load and validate settings.

    Args:
        path: Explicit path to a settings file. Must exist if given.
        start_dir: Where to start searching upward when ``path`` is None.

    Returns:
        Validated settings; defaults when no file is found.

    Raises:
        SettingsError: If the file is missing (explicit path) or invalid.
    """
    if path is None:
        path = find_settings_file(start_dir)
        if path is None:
            logger.debug("No %s found, using defaults", SETTINGS_FILE)
            return PackagingSettings()
    elif not path.is_file():
        raise SettingsError(f"Settings file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SettingsError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return PackagingSettings()
    if not isinstance(data, dict):
        raise SettingsError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = PackagingSettings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings in {path}: {e}") from e

    logger.info("Loaded settings from %s", path)
    return settings
