"""
Tests for domain models — driver configuration, targets, workspace, paths.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from tests.cargo_fixtures import KMDF_CONFIG, UMDF_CONFIG, WDM_CONFIG, metadata_document, package_entry
from wdkpack.core.errors import UnsupportedArchitecture
from wdkpack.core.models import (
    ArchitectureSelection,
    CargoMetadata,
    CpuArchitecture,
    DriverConfiguration,
    KmdfConfig,
    PackagePaths,
    UmdfConfig,
    Verbosity,
    WdmConfig,
)

# ── Driver configuration ─────────────────────────────────────────────


class TestDriverConfiguration:
    def test_kmdf_from_kebab_keys(self):
        config = DriverConfiguration.model_validate(KMDF_CONFIG)
        assert isinstance(config.driver_model, KmdfConfig)
        assert config.driver_model.kmdf_version_major == 1
        assert config.driver_model.target_kmdf_version_minor == 33
        assert config.driver_model.minimum_kmdf_version_minor is None

    def test_umdf_from_kebab_keys(self):
        config = DriverConfiguration.model_validate(UMDF_CONFIG)
        assert isinstance(config.driver_model, UmdfConfig)
        assert config.driver_model.umdf_version_major == 2

    def test_wdm(self):
        config = DriverConfiguration.model_validate(WDM_CONFIG)
        assert isinstance(config.driver_model, WdmConfig)

    def test_minimum_minor_accepted(self):
        raw = {
            "driver-model": {
                "driver-type": "KMDF",
                "kmdf-version-major": 1,
                "target-kmdf-version-minor": 33,
                "minimum-kmdf-version-minor": 31,
            }
        }
        config = DriverConfiguration.model_validate(raw)
        assert config.driver_model.minimum_kmdf_version_minor == 31

    def test_unknown_driver_type_rejected(self):
        with pytest.raises(ValidationError):
            DriverConfiguration.model_validate({"driver-model": {"driver-type": "NDIS"}})

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            DriverConfiguration.model_validate(
                {"driver-model": {"driver-type": "WDM", "kmdf-version-major": 1}}
            )

    def test_missing_version_rejected(self):
        with pytest.raises(ValidationError):
            DriverConfiguration.model_validate({"driver-model": {"driver-type": "KMDF"}})

    def test_version_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            DriverConfiguration.model_validate(
                {
                    "driver-model": {
                        "driver-type": "UMDF",
                        "umdf-version-major": 256,
                        "target-umdf-version-minor": 0,
                    }
                }
            )

    def test_structural_equality_deduplicates(self):
        a = DriverConfiguration.model_validate(KMDF_CONFIG)
        b = DriverConfiguration.model_validate(KMDF_CONFIG)
        assert a == b
        assert len({a, b}) == 1

    def test_different_versions_are_distinct(self):
        a = DriverConfiguration.model_validate(KMDF_CONFIG)
        b = DriverConfiguration(
            driver_model=KmdfConfig(kmdf_version_major=1, target_kmdf_version_minor=31)
        )
        assert a != b
        assert len({a, b}) == 2

    def test_frozen(self):
        config = DriverConfiguration.model_validate(WDM_CONFIG)
        with pytest.raises(ValidationError):
            config.driver_model = KmdfConfig(kmdf_version_major=1, target_kmdf_version_minor=33)

    def test_describe(self):
        assert DriverConfiguration.model_validate(KMDF_CONFIG).describe() == "KMDF 1.33"
        assert DriverConfiguration.model_validate(WDM_CONFIG).describe() == "WDM"


class TestDriverModelProperties:
    def test_wdm(self):
        model = WdmConfig()
        assert model.binary_extension == "sys"
        assert model.stampinf_version_args == []
        assert model.infverif_mode_flag == "/w"

    def test_kmdf(self):
        model = KmdfConfig(kmdf_version_major=1, target_kmdf_version_minor=33)
        assert model.binary_extension == "sys"
        assert model.stampinf_version_args == ["-k", "1.33"]
        assert model.infverif_mode_flag == "/w"

    def test_umdf(self):
        model = UmdfConfig(umdf_version_major=2, target_umdf_version_minor=33)
        assert model.binary_extension == "dll"
        assert model.stampinf_version_args == ["-u", "2.33.0"]
        assert model.infverif_mode_flag == "/u"


# ── Targets ──────────────────────────────────────────────────────────


class TestCpuArchitecture:
    def test_triples(self):
        assert CpuArchitecture.AMD64.target_triple == "x86_64-pc-windows-msvc"
        assert CpuArchitecture.ARM64.target_triple == "aarch64-pc-windows-msvc"

    def test_os_mappings(self):
        assert CpuArchitecture.AMD64.os_mapping == "10_x64"
        assert CpuArchitecture.ARM64.os_mapping == "Server10_arm64"

    def test_str_is_stampinf_arch(self):
        assert str(CpuArchitecture.AMD64) == "amd64"
        assert str(CpuArchitecture.ARM64) == "arm64"

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("x86_64-pc-windows-msvc\n", CpuArchitecture.AMD64),
            ("aarch64-pc-windows-msvc\n", CpuArchitecture.ARM64),
            ("x86_64-unknown-linux-gnu", CpuArchitecture.AMD64),
        ],
    )
    def test_from_host_tuple(self, text, expected):
        assert CpuArchitecture.from_host_tuple(text) is expected

    def test_from_host_tuple_unsupported(self):
        with pytest.raises(UnsupportedArchitecture):
            CpuArchitecture.from_host_tuple("i686-pc-windows-msvc")

    @pytest.mark.parametrize(
        "machine,expected",
        [
            ("AMD64", CpuArchitecture.AMD64),
            ("x86_64", CpuArchitecture.AMD64),
            ("ARM64", CpuArchitecture.ARM64),
            ("aarch64", CpuArchitecture.ARM64),
        ],
    )
    def test_from_machine(self, machine, expected):
        assert CpuArchitecture.from_machine(machine) is expected

    def test_from_machine_unsupported(self):
        with pytest.raises(UnsupportedArchitecture):
            CpuArchitecture.from_machine("riscv64")


class TestArchitectureSelection:
    def test_none_means_probe(self):
        selection = ArchitectureSelection.parse(None)
        assert selection.mode == "probe"
        assert not selection.is_explicit

    def test_host(self):
        selection = ArchitectureSelection.parse("HOST")
        assert selection.mode == "host"
        assert selection.arch is None

    def test_explicit(self):
        selection = ArchitectureSelection.parse("arm64")
        assert selection.is_explicit
        assert selection.arch is CpuArchitecture.ARM64

    def test_invalid(self):
        with pytest.raises(UnsupportedArchitecture):
            ArchitectureSelection.parse("x86")


class TestVerbosity:
    @pytest.mark.parametrize(
        "verbosity,flag",
        [
            (Verbosity.QUIET, "-q"),
            (Verbosity.NORMAL, None),
            (Verbosity.VERBOSE, "-v"),
            (Verbosity.DEBUG, "-vv"),
        ],
    )
    def test_cargo_flags(self, verbosity, flag):
        assert verbosity.cargo_flag == flag


# ── Workspace ────────────────────────────────────────────────────────


class TestCargoMetadata:
    def _make_metadata(self) -> CargoMetadata:
        ws = Path("/ws")
        driver = package_entry("driver", ws / "driver", wdk=KMDF_CONFIG)
        lib = package_entry("helper-lib", ws / "helper-lib", kinds=("lib",))
        dep = package_entry("wdk-sys", Path("/registry/wdk-sys"), kinds=("lib",))
        doc = metadata_document(ws, [dep, lib, driver], members=[driver, lib])
        return CargoMetadata.model_validate_json(doc)

    def test_workspace_packages_in_member_order(self):
        metadata = self._make_metadata()
        assert [p.name for p in metadata.workspace_packages()] == ["driver", "helper-lib"]

    def test_package_root(self):
        driver = self._make_metadata().workspace_packages()[0]
        assert driver.root == Path("/ws/driver")

    def test_cdylib_detection(self):
        driver, lib = self._make_metadata().workspace_packages()
        assert driver.has_cdylib_target
        assert not lib.has_cdylib_target

    def test_wdk_metadata(self):
        driver, lib = self._make_metadata().workspace_packages()
        assert driver.declares_wdk_metadata
        assert driver.wdk_metadata == KMDF_CONFIG
        assert not lib.declares_wdk_metadata
        assert lib.wdk_metadata is None

    def test_empty_wdk_table_still_declares(self):
        pkg = package_entry("marker", Path("/ws/marker"), wdk={})
        doc = metadata_document(Path("/ws"), [pkg])
        (package,) = CargoMetadata.model_validate_json(doc).workspace_packages()
        assert package.declares_wdk_metadata


# ── Package paths ────────────────────────────────────────────────────


class TestPackagePaths:
    def _compute(self, driver_model, arch=CpuArchitecture.AMD64) -> PackagePaths:
        return PackagePaths.compute(
            package_name="sample-kmdf-driver",
            working_dir=Path("/ws/sample-kmdf-driver"),
            target_dir=Path("/ws/target/debug"),
            driver_model=driver_model,
            target_arch=arch,
        )

    def test_kmdf_layout(self):
        paths = self._compute(KmdfConfig(kmdf_version_major=1, target_kmdf_version_minor=33))
        target = Path("/ws/target/debug")
        package_dir = target / "sample_kmdf_driver_package"

        assert paths.package_name == "sample_kmdf_driver"
        assert paths.src_inx == Path("/ws/sample-kmdf-driver/sample_kmdf_driver.inx")
        assert paths.src_driver_binary == target / "sample_kmdf_driver.dll"
        assert paths.src_renamed_driver_binary == target / "sample_kmdf_driver.sys"
        assert paths.src_pdb == target / "sample_kmdf_driver.pdb"
        assert paths.src_map == target / "deps" / "sample_kmdf_driver.map"
        assert paths.src_cert == target / "WDRLocalTestCert.cer"
        assert paths.dest_package_dir == package_dir
        assert paths.dest_inf == package_dir / "sample_kmdf_driver.inf"
        assert paths.dest_driver_binary == package_dir / "sample_kmdf_driver.sys"
        assert paths.dest_pdb == package_dir / "sample_kmdf_driver.pdb"
        assert paths.dest_map == package_dir / "sample_kmdf_driver.map"
        assert paths.dest_cert == package_dir / "WDRLocalTestCert.cer"
        assert paths.cert_name == "WDRLocalTestCert"
        assert paths.dest_cat == package_dir / "sample_kmdf_driver.cat"
        assert paths.cat_file_name == "sample_kmdf_driver.cat"

    def test_umdf_keeps_dll(self):
        paths = self._compute(UmdfConfig(umdf_version_major=2, target_umdf_version_minor=33))
        assert paths.src_renamed_driver_binary == paths.src_driver_binary
        assert paths.dest_driver_binary.suffix == ".dll"

    def test_wdm_uses_sys(self):
        paths = self._compute(WdmConfig())
        assert paths.dest_driver_binary.suffix == ".sys"

    def test_arch_recorded(self):
        paths = self._compute(WdmConfig(), arch=CpuArchitecture.ARM64)
        assert paths.arch is CpuArchitecture.ARM64

    def test_pure_function(self):
        model = WdmConfig()
        assert self._compute(model) == self._compute(model)
