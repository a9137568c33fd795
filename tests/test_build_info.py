"""
Tests for WDK build number detection.
"""

from pathlib import Path

import pytest

from wdkpack.adapters.wdk.build_info import (
    WdkBuildInfo,
    get_latest_sdk_version,
    get_wdk_version_number,
    validate_wdk_version_format,
)
from wdkpack.core.errors import WdkBuildNumberError


class TestVersionParsing:
    @pytest.mark.parametrize(
        "version,valid",
        [
            ("10.0.26100.0", True),
            ("10.0.22621.1", True),
            ("11.0.26100.0", False),
            ("10.0.26100", False),
            ("10.0.abc.0", False),
            ("10.0.26100.0.1", False),
            ("", False),
        ],
    )
    def test_validate(self, version, valid):
        assert validate_wdk_version_format(version) is valid

    def test_build_number(self):
        assert get_wdk_version_number("10.0.26100.0") == 26100

    def test_malformed(self):
        with pytest.raises(WdkBuildNumberError):
            get_wdk_version_number("10.0.x.0")


class TestLatestSdkVersion:
    def test_picks_greatest(self, tmp_path: Path):
        for name in ("10.0.22621.0", "10.0.26100.0", "wdf", "8.1"):
            (tmp_path / name).mkdir()
        (tmp_path / "10.0.99999.0.txt").write_text("not a dir")
        assert get_latest_sdk_version(tmp_path) == "10.0.26100.0"

    def test_none_found(self, tmp_path: Path):
        (tmp_path / "wdf").mkdir()
        with pytest.raises(WdkBuildNumberError):
            get_latest_sdk_version(tmp_path)

    def test_missing_dir(self, tmp_path: Path):
        with pytest.raises(WdkBuildNumberError):
            get_latest_sdk_version(tmp_path / "missing")


class TestWdkBuildInfo:
    def _make_kit(self, root: Path, *versions: str) -> Path:
        for v in versions:
            (root / "Lib" / v).mkdir(parents=True)
        return root

    def test_content_root_with_version_number(self, tmp_path: Path):
        kit = self._make_kit(tmp_path, "10.0.22621.0")
        info = WdkBuildInfo({"WDKContentRoot": str(kit), "Version_Number": "10.0.26100.0"})
        assert info.detect_build_number() == 26100

    def test_content_root_scans_lib(self, tmp_path: Path):
        kit = self._make_kit(tmp_path, "10.0.22621.0", "10.0.26100.0")
        info = WdkBuildInfo({"WDKContentRoot": str(kit)})
        assert info.detect_build_number() == 26100

    def test_microsoft_kit_root(self, tmp_path: Path):
        kit = self._make_kit(tmp_path / "Windows Kits" / "10.0", "10.0.22621.0")
        info = WdkBuildInfo({"MicrosoftKitRoot": str(tmp_path)})
        assert info.detect_content_root() == kit
        assert info.detect_build_number() == 22621

    def test_kit_version_override(self, tmp_path: Path):
        kit = self._make_kit(tmp_path / "Windows Kits" / "10.1", "10.0.26100.0")
        info = WdkBuildInfo({"MicrosoftKitRoot": str(tmp_path), "WDKKitVersion": "10.1"})
        assert info.detect_content_root() == kit

    def test_invalid_content_root_falls_back(self, tmp_path: Path):
        kit = self._make_kit(tmp_path / "Windows Kits" / "10.0", "10.0.26100.0")
        info = WdkBuildInfo(
            {"WDKContentRoot": str(tmp_path / "missing"), "MicrosoftKitRoot": str(tmp_path)}
        )
        assert info.detect_content_root() == kit

    def test_relative_kit_root_ignored(self):
        info = WdkBuildInfo({"MicrosoftKitRoot": "relative/kits"})
        assert info.detect_content_root() is None

    def test_nothing_found(self):
        with pytest.raises(WdkBuildNumberError, match="content root"):
            WdkBuildInfo({}).detect_build_number()

    def test_malformed_version_number(self, tmp_path: Path):
        info = WdkBuildInfo({"WDKContentRoot": str(tmp_path), "Version_Number": "26100"})
        with pytest.raises(WdkBuildNumberError):
            info.detect_build_number()
