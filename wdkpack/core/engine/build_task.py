"""
Build task — run ``cargo build`` for one package and locate its driver binary.

cargo is invoked with ``--message-format=json`` so its stdout is a stream
of JSON records. The ``compiler-artifact`` record for the package's
cdylib target lists the produced files; the directory holding the .dll
is the target directory every later path is computed from.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from wdkpack.adapters.base import CommandExecutor
from wdkpack.core.errors import (
    ArchitectureProbeFailed,
    CannotDetermineTargetDir,
    CargoBuildFailed,
    CommandError,
)
from wdkpack.core.models.target import CpuArchitecture, Profile, Verbosity
from wdkpack.core.models.workspace import CDYLIB_KIND, CargoPackage

logger = logging.getLogger(__name__)

# Dynamic library extension on the Windows targets drivers are built for
DYLIB_EXTENSION = ".dll"

COMPILER_ARTIFACT_REASON = "compiler-artifact"


class BuildTask:
    """Builds one package by running ``cargo build``."""

    def __init__(
        self,
        package: CargoPackage,
        working_dir: Path,
        command_exec: CommandExecutor,
        profile: Profile | None = None,
        target_arch: CpuArchitecture | None = None,
        verbosity: Verbosity = Verbosity.NORMAL,
    ):
        if not working_dir.is_absolute():
            raise ValueError(
                f"Working directory path must be absolute. Input path: {working_dir}"
            )
        self.package = package
        self.working_dir = working_dir
        self.profile = profile
        self.target_arch = target_arch
        self.verbosity = verbosity
        self.manifest_path = working_dir / "Cargo.toml"
        self._command_exec = command_exec

    def build_args(self) -> list[str]:
        args = [
            "build",
            "--message-format=json",
            "-p",
            self.package.name,
            "--manifest-path",
            str(self.manifest_path),
        ]
        if self.profile is not None:
            args += ["--profile", str(self.profile)]
        if self.target_arch is not None:
            args += ["--target", self.target_arch.target_triple]
        flag = self.verbosity.cargo_flag
        if flag:
            args.append(flag)
        return args

    def run(self) -> Iterator[dict[str, Any]]:
        """Run cargo build and return an iterator over its JSON records.

        Raises:
            CargoBuildFailed: If cargo cannot be started or exits non-zero.
        """
        logger.debug("Running cargo build for package: %s", self.package.name)
        # Run from the package dir so .cargo/config.toml is respected
        try:
            output = self._command_exec.run("cargo", self.build_args(), cwd=self.working_dir)
        except CommandError as e:
            raise CargoBuildFailed(self.package.name) from e
        logger.debug("cargo build done")
        return parse_message_stream(output.stdout.decode("utf-8", errors="replace"))


def parse_message_stream(text: str) -> Iterator[dict[str, Any]]:
    """Lazily decode JSON-lines output, one record per non-empty line."""
    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            raise CannotDetermineTargetDir(
                f"Unable to parse cargo build output at line {line_no}: {e}"
            ) from e
        if not isinstance(record, dict):
            raise CannotDetermineTargetDir(
                f"Unable to parse cargo build output at line {line_no}: expected a JSON object"
            )
        yield record


def resolve_artifact_dir(records: Iterable[dict[str, Any]], package: CargoPackage) -> Path:
    """Find the cdylib artifact record for ``package`` and return its directory.

    Raises:
        CannotDetermineTargetDir: If the stream is unparsable, has no
            matching record, or the record lists no .dll file.
    """
    for record in records:
        if record.get("reason") != COMPILER_ARTIFACT_REASON:
            continue
        if record.get("package_id") != package.id:
            continue
        kinds = (record.get("target") or {}).get("kind") or []
        if CDYLIB_KIND not in kinds:
            continue

        for filename in record.get("filenames") or []:
            path = Path(filename)
            if path.suffix.lower() == DYLIB_EXTENSION:
                logger.debug("Found driver binary for %s: %s", package.name, path)
                return path.parent

        raise CannotDetermineTargetDir(
            f"cdylib artifact for package {package.name} does not contain a "
            f"{DYLIB_EXTENSION} file"
        )

    raise CannotDetermineTargetDir(
        f"No cdylib compiler artifact found for package {package.name} in cargo build output"
    )


def probe_target_arch(command_exec: CommandExecutor, working_dir: Path) -> CpuArchitecture:
    """Ask rustc for its host tuple, from the package dir (honours toolchain files).

    Raises:
        ArchitectureProbeFailed: If rustc cannot be run or exits non-zero.
        UnsupportedArchitecture: If the tuple names neither x86_64 nor aarch64.
    """
    try:
        output = command_exec.run("rustc", ["--print", "host-tuple"], cwd=working_dir)
    except CommandError as e:
        raise ArchitectureProbeFailed() from e
    return CpuArchitecture.from_host_tuple(output.stdout_text)
