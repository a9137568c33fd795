"""
WDK build info — locate the installed Windows Driver Kit and read its build number.

Detection order for the kit root:
    1. ``WDKContentRoot`` (set inside an eWDK prompt)
    2. ``MicrosoftKitRoot`` / "Windows Kits" / ``WDKKitVersion`` (default 10.0)

The version comes from ``Version_Number`` if set, otherwise from the
newest ``10.*`` directory under ``<root>/Lib``. A version looks like
``10.0.26100.0``; the build number is its third part.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from wdkpack.adapters.base import BuildInfoProvider
from wdkpack.core.errors import WdkBuildNumberError

logger = logging.getLogger(__name__)

DEFAULT_KIT_VERSION = "10.0"


def validate_wdk_version_format(version: str) -> bool:
    """Four numeric dot-separated parts, the first being 10."""
    parts = version.split(".")
    if len(parts) != 4 or parts[0] != "10":
        return False
    return all(p.isdigit() for p in parts)


def get_wdk_version_number(version: str) -> int:
    """Extract the build number from a full version string."""
    if not validate_wdk_version_format(version):
        raise WdkBuildNumberError(f"WDK version string is not well-formed: {version!r}")
    return int(version.split(".")[2])


def _version_key(name: str) -> list[int]:
    return [int(p) if p.isdigit() else -1 for p in name.split(".")]


def get_latest_sdk_version(lib_dir: Path) -> str:
    """Newest ``10.*`` directory name under ``lib_dir``."""
    try:
        candidates = [
            p.name for p in lib_dir.iterdir() if p.is_dir() and p.name.startswith("10.")
        ]
    except OSError as e:
        raise WdkBuildNumberError(f"Cannot read {lib_dir}: {e}") from e
    if not candidates:
        raise WdkBuildNumberError(f"Windows SDK Directory in {lib_dir} not found")
    return max(candidates, key=_version_key)


class WdkBuildInfo(BuildInfoProvider):
    """Reads the WDK install from environment variables and the kit directory."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = environ if environ is not None else os.environ

    def detect_content_root(self) -> Path | None:
        content_root = self._environ.get("WDKContentRoot")
        if content_root:
            path = Path(content_root)
            if path.is_dir():
                return path
            logger.warning(
                "WDKContentRoot was detected to be %s, but does not exist or is not a "
                "valid directory.",
                path,
            )

        kit_root = self._environ.get("MicrosoftKitRoot")
        if kit_root:
            path = Path(kit_root)
            if not path.is_absolute():
                logger.warning(
                    "MicrosoftKitRoot(%s) was found in environment, but is not an absolute path.",
                    path,
                )
            elif not path.is_dir():
                logger.warning(
                    "MicrosoftKitRoot(%s) was found in environment, but does not exist or is "
                    "not a valid directory.",
                    path,
                )
            else:
                kit_version = self._environ.get("WDKKitVersion", DEFAULT_KIT_VERSION)
                candidate = path / "Windows Kits" / kit_version
                if candidate.is_dir():
                    return candidate
                logger.warning("WDK kit directory %s does not exist.", candidate)

        return None

    def detect_sdk_version(self, content_root: Path) -> str:
        version = self._environ.get("Version_Number")
        if version:
            return version
        return get_latest_sdk_version(content_root / "Lib")

    def detect_build_number(self) -> int:
        content_root = self.detect_content_root()
        if content_root is None:
            raise WdkBuildNumberError("Unable to locate the WDK content root")
        version = self.detect_sdk_version(content_root)
        build_number = get_wdk_version_number(version)
        logger.debug("WDK build number: %d (version %s)", build_number, version)
        return build_number
