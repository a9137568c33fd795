"""
Mock adapters — recording test doubles for every external collaborator.

They never touch a real process, file, or WDK install. Each keeps a call
log so tests can assert exactly which operations ran, in which order.
Responses are configurable per command (and optionally per argument).
"""

from __future__ import annotations

import errno
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePath

from wdkpack.adapters.base import (
    BuildInfoProvider,
    CommandExecutor,
    CommandOutput,
    FilesystemProvider,
)
from wdkpack.core.errors import (
    CommandFailed,
    CommandLaunchFailed,
    CopyError,
    CreateDirError,
    ReadDirError,
    RenameError,
    WdkBuildNumberError,
)


@dataclass
class CommandCall:
    command: str
    args: list[str]
    env: dict[str, str] | None = None
    cwd: Path | None = None


@dataclass
class _Rule:
    command: str
    matches: Callable[[list[str]], bool]
    respond: Callable[[str, list[str]], CommandOutput]


class MockCommandExecutor(CommandExecutor):
    """Command executor that records calls and replays canned results.

    By default every command succeeds with empty output. Rules are
    checked most-recent first, so a later ``set_*`` overrides an earlier one.
    """

    def __init__(self) -> None:
        self._rules: list[_Rule] = []
        self._call_log: list[CommandCall] = []

    @property
    def call_log(self) -> list[CommandCall]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls_to(self, command: str) -> list[CommandCall]:
        """All recorded calls of one program."""
        return [c for c in self._call_log if c.command == command]

    @property
    def commands(self) -> list[str]:
        """Program names in call order."""
        return [c.command for c in self._call_log]

    def set_output(
        self,
        command: str,
        stdout: bytes | str = b"",
        first_arg: str | None = None,
    ) -> None:
        """Make ``command`` succeed with the given stdout."""
        if isinstance(stdout, str):
            stdout = stdout.encode("utf-8")
        output = CommandOutput(stdout=stdout)
        self._add_rule(command, first_arg, lambda _c, _a: output)

    def set_failure(
        self,
        command: str,
        status: int = 1,
        stdout: str = "",
        stderr: str = "mock failure",
        first_arg: str | None = None,
    ) -> None:
        """Make ``command`` exit non-zero."""

        def respond(cmd: str, args: list[str]) -> CommandOutput:
            raise CommandFailed(cmd, args, status, stdout=stdout, stderr=stderr)

        self._add_rule(command, first_arg, respond)

    def set_handler(
        self,
        command: str,
        handler: Callable[[list[str]], CommandOutput | None],
        first_arg: str | None = None,
    ) -> None:
        """Call ``handler(args)`` for ``command``; a None result means empty success.

        Used to emulate tools with side effects, e.g. makecert writing a .cer.
        """

        def respond(_cmd: str, args: list[str]) -> CommandOutput:
            return handler(args) or CommandOutput()

        self._add_rule(command, first_arg, respond)

    def set_launch_failure(self, command: str, first_arg: str | None = None) -> None:
        """Make ``command`` fail to start, as if it were not on PATH."""

        def respond(cmd: str, args: list[str]) -> CommandOutput:
            raise CommandLaunchFailed(
                cmd, args, FileNotFoundError(errno.ENOENT, "No such file or directory", cmd)
            )

        self._add_rule(command, first_arg, respond)

    def _add_rule(
        self,
        command: str,
        first_arg: str | None,
        respond: Callable[[str, list[str]], CommandOutput],
    ) -> None:
        def matches(args: list[str]) -> bool:
            return first_arg is None or (bool(args) and args[0] == first_arg)

        self._rules.insert(0, _Rule(command, matches, respond))

    def run(
        self,
        command: str,
        args: Sequence[str],
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> CommandOutput:
        args = list(args)
        self._call_log.append(
            CommandCall(command, args, dict(env) if env else None, cwd)
        )
        for rule in self._rules:
            if rule.command == command and rule.matches(args):
                return rule.respond(command, args)
        return CommandOutput()

    def reset(self) -> None:
        self._call_log.clear()
        self._rules.clear()


@dataclass
class FsCall:
    operation: str
    paths: tuple[PurePath, ...] = field(default_factory=tuple)


class MockFilesystem(FilesystemProvider):
    """In-memory filesystem made of known files and directories."""

    def __init__(
        self,
        files: Sequence[Path] = (),
        dirs: Sequence[Path] = (),
    ) -> None:
        self.files: set[Path] = set(files)
        self.dirs: set[Path] = set(dirs)
        self._failures: set[tuple[str, Path]] = set()
        self._canonical: dict[Path, Path] = {}
        self._call_log: list[FsCall] = []

    @property
    def call_log(self) -> list[FsCall]:
        return self._call_log

    def calls_to(self, operation: str) -> list[FsCall]:
        return [c for c in self._call_log if c.operation == operation]

    def add_file(self, *paths: Path) -> None:
        self.files.update(paths)

    def add_dir(self, *paths: Path) -> None:
        self.dirs.update(paths)

    def set_failure(self, operation: str, path: Path) -> None:
        """Make ``operation`` fail when its first path is ``path``."""
        self._failures.add((operation, path))

    def set_canonical(self, path: Path, canonical: Path) -> None:
        self._canonical[path] = canonical

    def _check_failure(self, operation: str, path: Path) -> OSError | None:
        if (operation, path) in self._failures:
            return PermissionError(errno.EACCES, "Permission denied (mock)", str(path))
        return None

    def exists(self, path: Path) -> bool:
        self._call_log.append(FsCall("exists", (path,)))
        return path in self.files or path in self.dirs

    def is_dir(self, path: Path) -> bool:
        return path in self.dirs

    def create_dir(self, path: Path) -> None:
        self._call_log.append(FsCall("create_dir", (path,)))
        err = self._check_failure("create_dir", path)
        if err:
            raise CreateDirError(path, err)
        self.dirs.add(path)

    def copy(self, src: Path, dest: Path) -> None:
        self._call_log.append(FsCall("copy", (src, dest)))
        err = self._check_failure("copy", src)
        if err is None and src not in self.files:
            err = FileNotFoundError(errno.ENOENT, "No such file or directory", str(src))
        if err:
            raise CopyError(src, dest, err)
        self.files.add(dest)

    def rename(self, src: Path, dest: Path) -> None:
        self._call_log.append(FsCall("rename", (src, dest)))
        err = self._check_failure("rename", src)
        if err is None and src not in self.files:
            err = FileNotFoundError(errno.ENOENT, "No such file or directory", str(src))
        if err:
            raise RenameError(src, dest, err)
        self.files.discard(src)
        self.files.add(dest)

    def canonicalize(self, path: Path) -> Path:
        self._call_log.append(FsCall("canonicalize", (path,)))
        return self._canonical.get(path, path)

    def list_dir(self, path: Path) -> list[Path]:
        self._call_log.append(FsCall("list_dir", (path,)))
        if path not in self.dirs:
            raise ReadDirError(
                path, FileNotFoundError(errno.ENOENT, "No such directory", str(path))
            )
        children = {p for p in self.files | self.dirs if p.parent == path and p != path}
        return sorted(children)


class MockBuildInfo(BuildInfoProvider):
    """Returns a fixed build number (or fails) and counts queries."""

    def __init__(self, build_number: int | None = 26100):
        self.build_number = build_number
        self.call_count = 0

    def detect_build_number(self) -> int:
        self.call_count += 1
        if self.build_number is None:
            raise WdkBuildNumberError("Unable to locate the WDK content root (mock)")
        return self.build_number
