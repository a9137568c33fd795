"""
Build use case — build (and optionally package) every driver in scope.

The working directory decides what is in scope:

    Cargo.toml here, dir is the workspace root  → every workspace member
    Cargo.toml here, dir is a member's root     → only that member
    no Cargo.toml, subdirs have one             → each subdir independently
                                                  ("emulated workspace")
    none of the above                           → NoValidProjectsFound

Per package the build always runs. Packaging follows only when it was
requested, the package has a ``wdk`` metadata table, it has a cdylib
target, and the driver configuration resolved; otherwise packaging is
skipped with a warning. A configuration that fails to resolve is raised
only after every package in scope has been built.

Failure containment: a package task is fail-fast, but across members
(and across emulated-workspace projects) failures are collected and
reported together once every package has been attempted. Packages run
strictly in member order because the certificate created by one
package's task is reused by the next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from wdkpack.adapters.base import BuildInfoProvider, CommandExecutor, FilesystemProvider
from wdkpack.adapters.cargo.metadata import CargoMetadataProvider
from wdkpack.core.config.loader import SigningSettings
from wdkpack.core.config.resolver import resolve_driver_configuration
from wdkpack.core.engine.build_task import BuildTask, probe_target_arch, resolve_artifact_dir
from wdkpack.core.engine.package_task import PackageTask
from wdkpack.core.errors import (
    ConfigurationError,
    NoValidProjectsFound,
    NotAWorkspaceMember,
    OneOrMorePackagesFailed,
    OneOrMoreProjectsFailed,
    WdkPackError,
)
from wdkpack.core.models.driver import DriverConfiguration
from wdkpack.core.models.paths import PackagePaths
from wdkpack.core.models.target import (
    ArchitectureSelection,
    CpuArchitecture,
    Profile,
    Verbosity,
)
from wdkpack.core.models.workspace import CargoPackage, ResolvedWorkspace

logger = logging.getLogger(__name__)

MANIFEST_FILE = "Cargo.toml"


@dataclass
class BuildActionParams:
    working_dir: Path
    profile: Profile | None = None
    target_arch: ArchitectureSelection = field(default_factory=ArchitectureSelection.probe)
    package: bool = True
    verify_signature: bool = False
    sample_class: bool = False
    verbosity: Verbosity = Verbosity.NORMAL
    signing: SigningSettings = field(default_factory=SigningSettings)


@dataclass
class BuildReport:
    """What happened to each package, for display."""

    built: list[str] = field(default_factory=list)
    packaged: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "built": self.built,
            "packaged": self.packaged,
            "skipped": self.skipped,
            "failed": self.failed,
        }


class BuildAction:
    """Orchestrates build and packaging of a project, workspace, or directory of projects."""

    def __init__(
        self,
        params: BuildActionParams,
        command_exec: CommandExecutor,
        fs: FilesystemProvider,
        build_info: BuildInfoProvider,
        metadata_provider: CargoMetadataProvider | None = None,
    ):
        self.params = params
        self._command_exec = command_exec
        self._fs = fs
        self._build_info = build_info
        self._metadata_provider = metadata_provider or CargoMetadataProvider(command_exec)
        self.working_dir = fs.canonicalize(params.working_dir)
        self.report = BuildReport()

    def run(self) -> BuildReport:
        """Build (and package) everything in scope of the working directory.

        Raises:
            NoValidProjectsFound: No Cargo.toml here or in any subdirectory.
            OneOrMoreProjectsFailed: Emulated workspace with failing projects.
            OneOrMorePackagesFailed: Workspace root with failing members.
            NotAWorkspaceMember: Working dir is inside a workspace but no member.
            ConfigurationError: Driver configuration could not be resolved.
        """
        logger.debug("Initialized build for project at: %s", self.working_dir)

        if self._fs.exists(self.working_dir / MANIFEST_FILE):
            self.run_from_workspace_root(self.working_dir)
            logger.info("Build completed successfully")
            return self.report

        logger.info(
            "Checking for valid Rust projects in the working directory: %s", self.working_dir
        )
        project_dirs = [
            d
            for d in self._fs.list_dir(self.working_dir)
            if self._fs.is_dir(d) and self._fs.exists(d / MANIFEST_FILE)
        ]
        if not project_dirs:
            raise NoValidProjectsFound(self.working_dir)

        failures: dict[str, Exception] = {}
        for project_dir in project_dirs:
            logger.info("Processing Rust(possibly driver) project: %s", project_dir.name)
            try:
                self.run_from_workspace_root(project_dir)
            except WdkPackError as e:
                failures[project_dir.name] = e
                self.report.failed.setdefault(project_dir.name, str(e))
                logger.error(
                    "Error building the child project: %s, error: %s", project_dir.name, e
                )

        if failures:
            raise OneOrMoreProjectsFailed(self.working_dir, failures)

        logger.info("Build completed successfully")
        return self.report

    def run_from_workspace_root(self, working_dir: Path) -> None:
        """Process the workspace (or standalone package) containing ``working_dir``."""
        metadata = self._metadata_provider.get_metadata(working_dir)

        # Shared by every package; a failure is raised once all are built
        config: DriverConfiguration | None = None
        config_error: ConfigurationError | None = None
        if self.params.package:
            try:
                config = resolve_driver_configuration(metadata)
            except ConfigurationError as e:
                config_error = e
                logger.debug("Driver configuration could not be resolved: %s", e)

        workspace = ResolvedWorkspace.from_metadata(
            metadata, self._fs.canonicalize(metadata.workspace_root)
        )

        if workspace.root == working_dir:
            logger.debug("Running from workspace root")
            failures: dict[str, Exception] = {}
            for package in workspace.members:
                package_root = self._fs.canonicalize(package.root)
                logger.debug("Processing workspace member package: %s", package_root)
                try:
                    self.build_and_package(package_root, package, config)
                except WdkPackError as e:
                    failures[package.name] = e
                    self.report.failed[package.name] = str(e)
                    logger.error(
                        "Error packaging the workspace member project: %s, error: %s",
                        package_root,
                        e,
                    )
            if config_error is not None:
                raise config_error
            if failures:
                raise OneOrMorePackagesFailed(working_dir, failures)
            return

        logger.info("Running from standalone/workspace member directory")
        for package in workspace.members:
            if self._fs.canonicalize(package.root) == working_dir:
                try:
                    self.build_and_package(working_dir, package, config)
                except WdkPackError as e:
                    self.report.failed[package.name] = str(e)
                    raise
                if config_error is not None:
                    raise config_error
                logger.info("Build completed successfully for path: %s", working_dir)
                return

        raise NotAWorkspaceMember(working_dir)

    def build_and_package(
        self,
        working_dir: Path,
        package: CargoPackage,
        config: DriverConfiguration | None,
    ) -> None:
        """Build one package and, if it is a driver, package it."""
        logger.info("Processing package: %s", package.name)
        p = self.params

        target_arch = p.target_arch.arch if p.target_arch.is_explicit else None
        records = BuildTask(
            package,
            working_dir,
            self._command_exec,
            profile=p.profile,
            target_arch=target_arch,
            verbosity=p.verbosity,
        ).run()
        self.report.built.append(package.name)

        if not p.package:
            return
        if not package.declares_wdk_metadata:
            logger.warning(
                "No package.metadata.wdk section found. Skipping driver build workflow for "
                "package: %s",
                package.name,
            )
            self.report.skipped.append(package.name)
            return
        if not package.has_cdylib_target:
            logger.warning(
                "No cdylib target found. Skipping driver build workflow for package: %s",
                package.name,
            )
            self.report.skipped.append(package.name)
            return
        if config is None:
            logger.warning(
                "Driver configuration is not available. Skipping driver build workflow for "
                "package: %s",
                package.name,
            )
            self.report.skipped.append(package.name)
            return

        arch = self.resolve_target_arch(working_dir)
        logger.debug("Target architecture for package: %s is: %s", package.name, arch)

        target_dir = resolve_artifact_dir(records, package)
        logger.debug("Target directory for package: %s is: %s", package.name, target_dir)

        paths = PackagePaths.compute(
            package_name=package.name,
            working_dir=working_dir,
            target_dir=target_dir,
            driver_model=config.driver_model,
            target_arch=arch,
            cert_name=p.signing.cert_name,
        )
        PackageTask(
            paths,
            config.driver_model,
            self._command_exec,
            self._fs,
            self._build_info,
            verify_signature=p.verify_signature,
            sample_class=p.sample_class,
            cert_store=p.signing.cert_store,
            timestamp_url=p.signing.timestamp_url,
        ).run()

        self.report.packaged.append(package.name)
        logger.info("Processing completed for package: %s", package.name)

    def resolve_target_arch(self, working_dir: Path) -> CpuArchitecture:
        selection = self.params.target_arch
        if selection.is_explicit and selection.arch is not None:
            return selection.arch
        if selection.mode == "host":
            return CpuArchitecture.host()
        return probe_target_arch(self._command_exec, working_dir)
