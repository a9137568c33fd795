"""
Domain models — pydantic types for driver packaging.

    from wdkpack.core.models import DriverConfiguration, PackagePaths, CargoMetadata
"""

from wdkpack.core.models.driver import (
    DriverConfiguration,
    DriverModel,
    KmdfConfig,
    UmdfConfig,
    WdmConfig,
)
from wdkpack.core.models.paths import PackagePaths
from wdkpack.core.models.target import (
    ArchitectureSelection,
    CpuArchitecture,
    Profile,
    Verbosity,
)
from wdkpack.core.models.workspace import (
    CargoMetadata,
    CargoPackage,
    CargoTarget,
    ResolvedWorkspace,
)

__all__ = [
    "ArchitectureSelection",
    "CargoMetadata",
    "CargoPackage",
    "CargoTarget",
    "CpuArchitecture",
    "DriverConfiguration",
    "DriverModel",
    "KmdfConfig",
    "PackagePaths",
    "Profile",
    "ResolvedWorkspace",
    "UmdfConfig",
    "Verbosity",
    "WdmConfig",
]
