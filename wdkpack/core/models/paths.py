"""
Package paths — every source and destination file of one driver package.

Computed once per package, right before its package task runs. A pure
function of its inputs.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from wdkpack.core.models.driver import DriverModel
from wdkpack.core.models.target import CpuArchitecture

# Extension cargo gives a cdylib on Windows
SRC_DRIVER_BINARY_EXTENSION = "dll"


class PackagePaths(BaseModel):
    model_config = ConfigDict(frozen=True)

    package_name: str
    arch: CpuArchitecture
    cert_name: str

    # src paths
    src_inx: Path
    src_driver_binary: Path
    src_renamed_driver_binary: Path
    src_pdb: Path
    src_map: Path
    src_cert: Path

    # destination paths
    dest_package_dir: Path
    dest_inf: Path
    dest_driver_binary: Path
    dest_pdb: Path
    dest_map: Path
    dest_cert: Path
    dest_cat: Path

    @classmethod
    def compute(
        cls,
        package_name: str,
        working_dir: Path,
        target_dir: Path,
        driver_model: DriverModel,
        target_arch: CpuArchitecture,
        cert_name: str = "WDRLocalTestCert",
    ) -> PackagePaths:
        name = package_name.replace("-", "_")
        ext = driver_model.binary_extension
        package_dir = target_dir / f"{name}_package"
        return cls(
            package_name=name,
            arch=target_arch,
            cert_name=cert_name,
            src_inx=working_dir / f"{name}.inx",
            src_driver_binary=target_dir / f"{name}.{SRC_DRIVER_BINARY_EXTENSION}",
            src_renamed_driver_binary=target_dir / f"{name}.{ext}",
            src_pdb=target_dir / f"{name}.pdb",
            src_map=target_dir / "deps" / f"{name}.map",
            src_cert=target_dir / f"{cert_name}.cer",
            dest_package_dir=package_dir,
            dest_inf=package_dir / f"{name}.inf",
            dest_driver_binary=package_dir / f"{name}.{ext}",
            dest_pdb=package_dir / f"{name}.pdb",
            dest_map=package_dir / f"{name}.map",
            dest_cert=package_dir / f"{cert_name}.cer",
            dest_cat=package_dir / f"{name}.cat",
        )

    @property
    def cat_file_name(self) -> str:
        return f"{self.package_name}.cat"
