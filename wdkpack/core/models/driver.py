"""
Driver model — which framework (and version) a driver targets.

The configuration lives in the ``wdk`` table of a Cargo manifest, either
under ``[workspace.metadata.wdk]`` or ``[package.metadata.wdk]``:

    [package.metadata.wdk.driver-model]
    driver-type = "KMDF"
    kmdf-version-major = 1
    target-kmdf-version-minor = 33

Keys are kebab-case on input. All models are frozen so two configurations
can be compared and deduplicated by structural equality.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class _DriverModelBase(BaseModel):
    model_config = ConfigDict(
        alias_generator=_kebab,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    @property
    def binary_extension(self) -> str:
        """Extension the installed driver binary must carry."""
        return "sys"

    @property
    def stampinf_version_args(self) -> list[str]:
        """Framework version flag passed to stampinf (none for WDM)."""
        return []

    @property
    def infverif_mode_flag(self) -> str:
        return "/w"


class WdmConfig(_DriverModelBase):
    """Windows Driver Model — no framework, no version."""

    driver_type: Literal["WDM"] = "WDM"

    def describe(self) -> str:
        return "WDM"


class KmdfConfig(_DriverModelBase):
    """Kernel Mode Driver Framework."""

    driver_type: Literal["KMDF"] = "KMDF"
    kmdf_version_major: int = Field(ge=0, le=255)
    target_kmdf_version_minor: int = Field(ge=0, le=255)
    minimum_kmdf_version_minor: int | None = Field(default=None, ge=0, le=255)

    @property
    def stampinf_version_args(self) -> list[str]:
        return ["-k", f"{self.kmdf_version_major}.{self.target_kmdf_version_minor}"]

    def describe(self) -> str:
        return f"KMDF {self.kmdf_version_major}.{self.target_kmdf_version_minor}"


class UmdfConfig(_DriverModelBase):
    """User Mode Driver Framework. Ships a .dll instead of a .sys."""

    driver_type: Literal["UMDF"] = "UMDF"
    umdf_version_major: int = Field(ge=0, le=255)
    target_umdf_version_minor: int = Field(ge=0, le=255)
    minimum_umdf_version_minor: int | None = Field(default=None, ge=0, le=255)

    @property
    def binary_extension(self) -> str:
        return "dll"

    @property
    def stampinf_version_args(self) -> list[str]:
        return ["-u", f"{self.umdf_version_major}.{self.target_umdf_version_minor}.0"]

    @property
    def infverif_mode_flag(self) -> str:
        return "/u"

    def describe(self) -> str:
        return f"UMDF {self.umdf_version_major}.{self.target_umdf_version_minor}"


DriverModel = Union[WdmConfig, KmdfConfig, UmdfConfig]


class DriverConfiguration(BaseModel):
    """The contents of a ``wdk`` metadata table."""

    model_config = ConfigDict(
        alias_generator=_kebab,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    driver_model: DriverModel = Field(discriminator="driver_type")

    def describe(self) -> str:
        return self.driver_model.describe()
