"""
Error taxonomy — every failure the tool can surface.

Errors are grouped by layer so callers can tell a configuration problem
from a build failure, a packaging step failure, or an orchestration
summary without parsing messages:

    WdkPackError
    ├── ConfigurationError   — driver configuration absent / conflicting
    ├── BuildError           — cargo invocation, artifact resolution, arch probe
    ├── PackageTaskError     — one subclass per packaging step
    └── OrchestrationError   — project discovery and aggregate failures

Lower-level provider errors (CommandError, FileSystemError) are chained
as ``__cause__`` so the full chain can be printed by the CLI.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wdkpack.core.models.driver import DriverConfiguration


class WdkPackError(Exception):
    """Base class for all wdkpack errors."""


# ── Provider errors ─────────────────────────────────────────────────


class CommandError(WdkPackError):
    """An external command could not be run or exited non-zero."""

    def __init__(self, command: str, args: Iterable[str], message: str):
        self.command = command
        self.args_list = list(args)
        super().__init__(message)


class CommandFailed(CommandError):
    """The command ran but exited with a non-zero status."""

    def __init__(
        self,
        command: str,
        args: Iterable[str],
        status: int,
        stdout: str = "",
        stderr: str = "",
    ):
        self.status = status
        self.stdout = stdout
        self.stderr = stderr
        args = list(args)
        super().__init__(
            command,
            args,
            f"Command exited with a non-zero status code: {status}.\n"
            f"COMMAND: '{command}'\nARGS: {args}\nSTDOUT: {stdout}\nSTDERR: {stderr}",
        )


class CommandLaunchFailed(CommandError):
    """The command could not be started at all."""

    def __init__(self, command: str, args: Iterable[str], cause: OSError):
        self.cause = cause
        args = list(args)
        super().__init__(
            command,
            args,
            f"Failed to run command: '{command}' with args: {args}\n IO Error: {cause}",
        )


class FileSystemError(WdkPackError):
    """A filesystem operation failed."""

    def __init__(self, message: str, path: Path, cause: OSError | None = None):
        self.path = path
        self.cause = cause
        super().__init__(message)


class CopyError(FileSystemError):
    def __init__(self, src: Path, dest: Path, cause: OSError):
        self.dest = dest
        super().__init__(f"Failed to copy file from {src} to {dest}: {cause}", src, cause)


class RenameError(FileSystemError):
    def __init__(self, src: Path, dest: Path, cause: OSError):
        self.dest = dest
        super().__init__(f"Failed to rename file from {src} to {dest}: {cause}", src, cause)


class CreateDirError(FileSystemError):
    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Failed to create directory at path {path}: {cause}", path, cause)


class CanonicalizeError(FileSystemError):
    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Failed to canonicalize path {path}: {cause}", path, cause)


class ReadDirError(FileSystemError):
    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Failed to read directory {path}: {cause}", path, cause)


class WdkBuildNumberError(WdkPackError):
    """The installed WDK build number could not be detected."""


class SettingsError(WdkPackError):
    """Raised when wdkpack.yml is unreadable or invalid."""


# ── Configuration errors ────────────────────────────────────────────


class ConfigurationError(WdkPackError):
    """Driver configuration could not be resolved."""


class MetadataError(ConfigurationError):
    """`cargo metadata` failed or returned an unusable document."""


class NoConfigurationDetected(ConfigurationError):
    def __init__(self) -> None:
        super().__init__(
            "no WDK configuration metadata is detected in the dependency graph. This could "
            "happen when building library crates that depend on the WDK but defer WDK "
            "configuration to their consumers"
        )


class MultipleConfigurationsDetected(ConfigurationError):
    def __init__(self, configurations: Iterable[DriverConfiguration]):
        self.configurations = frozenset(configurations)
        descriptions = sorted(c.describe() for c in self.configurations)
        listing = "\n".join(f"  - {d}" for d in descriptions)
        super().__init__(
            "multiple configurations of the WDK are detected across the dependency graph, "
            f"but only one configuration is allowed:\n{listing}"
        )


class ConfigurationDeserializationError(ConfigurationError):
    def __init__(self, source: str, detail: str):
        self.source = source
        super().__init__(f"failed to deserialize WDK metadata from {source}: {detail}")


# ── Build errors ────────────────────────────────────────────────────


class BuildError(WdkPackError):
    """Building a package failed."""


class CargoBuildFailed(BuildError):
    def __init__(self, package_name: str):
        self.package_name = package_name
        super().__init__(f"Error running cargo build for package: {package_name}")


class CannotDetermineTargetDir(BuildError):
    """The artifact directory could not be derived from cargo's output."""


class ArchitectureProbeFailed(BuildError):
    def __init__(self) -> None:
        super().__init__("Unable to read rustc host tuple")


class UnsupportedArchitecture(BuildError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unsupported target architecture: {value!r}")


# ── Package task errors ─────────────────────────────────────────────


class PackageTaskError(WdkPackError):
    """A packaging step failed."""

    step = "package"


class PackageDirectoryCreationFailed(PackageTaskError):
    step = "create-package-dir"

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Failed to create package directory: {path}")


class MissingSourceDescriptor(PackageTaskError):
    step = "check-inx"

    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"Missing .inx file in source path: {path}, "
            "Please ensure you are in a Rust driver project directory."
        )


class CopyFailed(PackageTaskError):
    step = "copy"

    def __init__(self, src: Path, dest: Path, cause: Exception):
        self.src = src
        self.dest = dest
        self.cause = cause
        super().__init__(f"Failed to copy file error, src: {src}, dest: {dest}, error: {cause}")


class _ToolStepFailed(PackageTaskError):
    message = ""

    def __init__(self, cause: CommandError | None = None):
        self.cause = cause
        super().__init__(self.message)

    @property
    def output(self) -> str:
        """Captured stdout of the failing tool, if it ran."""
        return getattr(self.cause, "stdout", "")


class StampingFailed(_ToolStepFailed):
    step = "stampinf"
    message = "Error running stampinf command"


class CatalogGenerationFailed(_ToolStepFailed):
    step = "inf2cat"
    message = "Error running inf2cat command"


class CertificateStoreQueryFailed(_ToolStepFailed):
    step = "certmgr-query"
    message = "Checking for existence of cert in store using certmgr"


class CertificateStoreOutputInvalid(PackageTaskError):
    step = "certmgr-query"

    def __init__(self, cause: UnicodeDecodeError):
        self.cause = cause
        super().__init__(
            "Error reading stdout while checking for existence of cert in store using certmgr"
        )


class CertificateExportFailed(_ToolStepFailed):
    step = "certmgr-put"
    message = "Creating cert file from store using certmgr"


class CertificateGenerationFailed(_ToolStepFailed):
    step = "makecert"
    message = "Error generating certificate to cert store using makecert"


class SigningFailed(_ToolStepFailed):
    step = "signtool-sign"
    message = "Error signing file using signtool"


class VerificationFailed(_ToolStepFailed):
    step = "infverif"
    message = "Error verifying inf file using infverif"


class SignatureVerificationFailed(_ToolStepFailed):
    step = "signtool-verify"
    message = "Error verifying signed file using signtool"


class BuildNumberDetectionFailed(PackageTaskError):
    step = "infverif"

    def __init__(self, cause: WdkBuildNumberError):
        self.cause = cause
        super().__init__(f"Failed to detect WDK build number: {cause}")


# ── Orchestration errors ────────────────────────────────────────────


class OrchestrationError(WdkPackError):
    """Project discovery or aggregate failure."""


class NoValidProjectsFound(OrchestrationError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"No valid rust projects in the current working directory: {path}")


class NotAWorkspaceMember(OrchestrationError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Not a workspace member, working directory: {path}")


class OneOrMorePackagesFailed(OrchestrationError):
    def __init__(self, path: Path, failures: dict[str, Exception]):
        self.path = path
        self.failures = dict(failures)
        super().__init__(
            f"One or more workspace members failed to build in the workspace: {path} "
            f"({', '.join(self.failures)})"
        )


class OneOrMoreProjectsFailed(OrchestrationError):
    def __init__(self, path: Path, failures: dict[str, Exception]):
        self.path = path
        self.failures = dict(failures)
        super().__init__(
            "One or more rust (possibly driver) projects failed to build in the emulated "
            f"workspace: {path} ({', '.join(self.failures)})"
        )


def iter_error_chain(error: BaseException) -> Iterable[BaseException]:
    """Yield ``error`` and every exception it was raised from."""
    current: BaseException | None = error
    seen: set[int] = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__
