"""
Local filesystem — the production FilesystemProvider.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from wdkpack.adapters.base import FilesystemProvider
from wdkpack.core.errors import (
    CanonicalizeError,
    CopyError,
    CreateDirError,
    ReadDirError,
    RenameError,
)

logger = logging.getLogger(__name__)


class LocalFilesystem(FilesystemProvider):
    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def create_dir(self, path: Path) -> None:
        logger.debug("Creating directory: %s", path)
        try:
            path.mkdir()
        except OSError as e:
            raise CreateDirError(path, e) from e

    def copy(self, src: Path, dest: Path) -> None:
        try:
            shutil.copyfile(src, dest)
        except OSError as e:
            raise CopyError(src, dest, e) from e

    def rename(self, src: Path, dest: Path) -> None:
        try:
            os.replace(src, dest)
        except OSError as e:
            raise RenameError(src, dest, e) from e

    def canonicalize(self, path: Path) -> Path:
        try:
            return path.resolve(strict=True)
        except OSError as e:
            raise CanonicalizeError(path, e) from e

    def list_dir(self, path: Path) -> list[Path]:
        try:
            return sorted(path.iterdir())
        except OSError as e:
            raise ReadDirError(path, e) from e
