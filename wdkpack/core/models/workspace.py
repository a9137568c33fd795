"""
Workspace model — the consumed subset of ``cargo metadata`` output.

Only the fields the packaging flow reads are modeled; everything else in
the document is ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Target kind cargo reports for dynamic libraries (driver binaries)
CDYLIB_KIND = "cdylib"

# Reserved metadata namespace holding the driver configuration
WDK_METADATA_KEY = "wdk"


class CargoTarget(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    kind: list[str] = Field(default_factory=list)


class CargoPackage(BaseModel):
    """A package node from the dependency graph."""

    model_config = ConfigDict(extra="ignore")

    name: str
    id: str
    manifest_path: Path
    targets: list[CargoTarget] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None

    @property
    def root(self) -> Path:
        """Directory holding this package's Cargo.toml."""
        return self.manifest_path.parent

    @property
    def has_cdylib_target(self) -> bool:
        return any(CDYLIB_KIND in t.kind for t in self.targets)

    @property
    def wdk_metadata(self) -> Any:
        """Raw ``package.metadata.wdk`` value, or None."""
        return (self.metadata or {}).get(WDK_METADATA_KEY)

    @property
    def declares_wdk_metadata(self) -> bool:
        """Whether a ``wdk`` table exists at all (even an empty one)."""
        return WDK_METADATA_KEY in (self.metadata or {})


class CargoMetadata(BaseModel):
    """The ``cargo metadata --format-version 1`` document.

    ``[workspace.metadata]`` is emitted under the top-level ``metadata`` key.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    packages: list[CargoPackage] = Field(default_factory=list)
    workspace_members: list[str] = Field(default_factory=list)
    workspace_root: Path
    target_directory: Path
    workspace_metadata: dict[str, Any] | None = Field(default=None, alias="metadata")

    def workspace_packages(self) -> list[CargoPackage]:
        """Workspace members, in member order."""
        by_id = {p.id: p for p in self.packages}
        return [by_id[m] for m in self.workspace_members if m in by_id]


class ResolvedWorkspace(BaseModel):
    """A workspace as seen by one invocation. Read-only once built."""

    model_config = ConfigDict(frozen=True)

    root: Path
    target_directory: Path
    members: tuple[CargoPackage, ...] = ()

    @classmethod
    def from_metadata(cls, metadata: CargoMetadata, root: Path) -> ResolvedWorkspace:
        return cls(
            root=root,
            target_directory=metadata.target_directory,
            members=tuple(metadata.workspace_packages()),
        )
