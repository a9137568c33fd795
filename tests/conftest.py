"""
Shared test fixtures and configuration.
"""

import logging

import pytest

from wdkpack.adapters.mock import MockBuildInfo, MockCommandExecutor, MockFilesystem


@pytest.fixture
def command_exec() -> MockCommandExecutor:
    return MockCommandExecutor()


@pytest.fixture
def fs() -> MockFilesystem:
    return MockFilesystem()


@pytest.fixture
def build_info() -> MockBuildInfo:
    """WDK 10.0.26100.0, inside the sample-class InfVerif workaround range."""
    return MockBuildInfo(build_number=26100)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
