"""
Adapter base — the contracts between the packaging engine and the outside world.

The engine never spawns processes, touches files, or inspects the WDK
install directly. It talks to three injected collaborators:

    CommandExecutor     run an external program
    FilesystemProvider  exists / mkdir / copy / rename / canonicalize / list
    BuildInfoProvider   detect the installed WDK build number

Each has one production implementation and a recording test double in
``wdkpack.adapters.mock``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import BaseModel


class CommandOutput(BaseModel):
    """Captured result of a command that exited successfully."""

    return_code: int = 0
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def stdout_text(self) -> str:
        """stdout decoded leniently, for logs and messages."""
        return self.stdout.decode("utf-8", errors="replace")


class CommandExecutor(ABC):
    """Runs external programs.

    ``run`` returns a CommandOutput when the program exits 0 and raises
    ``CommandFailed`` (non-zero exit) or ``CommandLaunchFailed`` (could not
    be started) otherwise.
    """

    @abstractmethod
    def run(
        self,
        command: str,
        args: Sequence[str],
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> CommandOutput:
        """Run ``command`` with ``args`` and wait for it to finish."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class FilesystemProvider(ABC):
    """File and directory operations used by the build and package flows.

    Mutating operations raise ``FileSystemError`` subclasses carrying the
    path(s) involved and the underlying OSError.
    """

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Whether ``path`` exists."""

    @abstractmethod
    def create_dir(self, path: Path) -> None:
        """Create a single directory (parent must exist)."""

    @abstractmethod
    def copy(self, src: Path, dest: Path) -> None:
        """Copy a file's contents from ``src`` to ``dest``."""

    @abstractmethod
    def rename(self, src: Path, dest: Path) -> None:
        """Rename ``src`` to ``dest``, replacing ``dest`` if present."""

    @abstractmethod
    def canonicalize(self, path: Path) -> Path:
        """Absolute, symlink-free form of an existing path."""

    @abstractmethod
    def list_dir(self, path: Path) -> list[Path]:
        """Immediate children of a directory, sorted by name."""

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        """Whether ``path`` is an existing directory."""


class BuildInfoProvider(ABC):
    """Reports the installed WDK build number."""

    @abstractmethod
    def detect_build_number(self) -> int:
        """Return the build number, e.g. 26100 for 10.0.26100.0.

        Raises:
            WdkBuildNumberError: If no WDK install can be located.
        """
