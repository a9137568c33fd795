"""
Build target selection — architecture, profile, and verbosity.
"""

from __future__ import annotations

import platform
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel

from wdkpack.core.errors import UnsupportedArchitecture


class CpuArchitecture(StrEnum):
    AMD64 = "amd64"
    ARM64 = "arm64"

    @property
    def target_triple(self) -> str:
        return _TARGET_TRIPLES[self]

    @property
    def os_mapping(self) -> str:
        """OS token passed to inf2cat."""
        return _OS_MAPPINGS[self]

    @classmethod
    def from_host_tuple(cls, text: str) -> CpuArchitecture:
        """Pick the architecture out of ``rustc --print host-tuple`` output."""
        if "x86_64" in text:
            return cls.AMD64
        if "aarch64" in text:
            return cls.ARM64
        raise UnsupportedArchitecture(text.strip())

    @classmethod
    def from_machine(cls, machine: str) -> CpuArchitecture:
        """Map a ``platform.machine()`` value."""
        value = machine.lower()
        if value in ("amd64", "x86_64", "x64"):
            return cls.AMD64
        if value in ("arm64", "aarch64"):
            return cls.ARM64
        raise UnsupportedArchitecture(machine)

    @classmethod
    def host(cls) -> CpuArchitecture:
        return cls.from_machine(platform.machine())


_TARGET_TRIPLES = {
    CpuArchitecture.AMD64: "x86_64-pc-windows-msvc",
    CpuArchitecture.ARM64: "aarch64-pc-windows-msvc",
}

_OS_MAPPINGS = {
    CpuArchitecture.AMD64: "10_x64",
    CpuArchitecture.ARM64: "Server10_arm64",
}


class Profile(StrEnum):
    DEV = "dev"
    RELEASE = "release"


class Verbosity(StrEnum):
    QUIET = "quiet"
    NORMAL = "normal"
    VERBOSE = "verbose"
    DEBUG = "debug"

    @property
    def cargo_flag(self) -> str | None:
        """Equivalent cargo verbosity flag, if any."""
        return {
            Verbosity.QUIET: "-q",
            Verbosity.NORMAL: None,
            Verbosity.VERBOSE: "-v",
            Verbosity.DEBUG: "-vv",
        }[self]


class ArchitectureSelection(BaseModel):
    """How the target architecture is chosen.

    ``explicit`` pins the architecture and passes ``--target`` to cargo.
    ``host`` uses the architecture of this process. ``probe`` asks rustc
    for its host tuple in the package directory.
    """

    mode: Literal["explicit", "host", "probe"] = "probe"
    arch: CpuArchitecture | None = None

    @classmethod
    def explicit(cls, arch: CpuArchitecture) -> ArchitectureSelection:
        return cls(mode="explicit", arch=arch)

    @classmethod
    def host(cls) -> ArchitectureSelection:
        return cls(mode="host")

    @classmethod
    def probe(cls) -> ArchitectureSelection:
        return cls(mode="probe")

    @classmethod
    def parse(cls, value: str | None) -> ArchitectureSelection:
        """Parse a CLI/config value: amd64, arm64, host, or None (probe)."""
        if value is None:
            return cls.probe()
        if value.lower() == "host":
            return cls.host()
        try:
            return cls.explicit(CpuArchitecture(value.lower()))
        except ValueError as e:
            raise UnsupportedArchitecture(value) from e

    @property
    def is_explicit(self) -> bool:
        return self.mode == "explicit"
