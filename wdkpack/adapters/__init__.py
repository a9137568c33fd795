"""Adapters — bindings for the external world (processes, files, WDK install).

Public re-exports for convenient access.
"""

from wdkpack.adapters.base import (
    BuildInfoProvider,
    CommandExecutor,
    CommandOutput,
    FilesystemProvider,
)
from wdkpack.adapters.mock import MockBuildInfo, MockCommandExecutor, MockFilesystem

__all__ = [
    "BuildInfoProvider",
    "CommandExecutor",
    "CommandOutput",
    "FilesystemProvider",
    "MockBuildInfo",
    "MockCommandExecutor",
    "MockFilesystem",
]
