"""
Cargo metadata provider — the dependency graph as a validated model.

Runs ``cargo metadata --format-version 1`` in the project directory and
parses the JSON into ``CargoMetadata``. Only the consumed fields are
validated; the rest of the document is ignored.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from wdkpack.adapters.base import CommandExecutor
from wdkpack.core.errors import CommandError, MetadataError
from wdkpack.core.models.workspace import CargoMetadata

logger = logging.getLogger(__name__)


class CargoMetadataProvider:
    def __init__(self, command_exec: CommandExecutor):
        self._command_exec = command_exec

    def get_metadata(self, working_dir: Path) -> CargoMetadata:
        """Fetch and parse the metadata document for ``working_dir``.

        Raises:
            MetadataError: If cargo fails or the output is not a valid document.
        """
        logger.debug("Reading cargo metadata at %s", working_dir)
        try:
            output = self._command_exec.run(
                "cargo",
                ["metadata", "--format-version", "1"],
                cwd=working_dir,
            )
        except CommandError as e:
            raise MetadataError(
                f"Error Parsing Cargo.toml, not a valid rust project/workspace: {working_dir}"
            ) from e
        return parse_metadata(output.stdout)


def parse_metadata(raw: bytes | str) -> CargoMetadata:
    """Validate a raw metadata document."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MetadataError(f"cargo metadata output is not valid JSON: {e}") from e
    try:
        return CargoMetadata.model_validate(data)
    except ValidationError as e:
        raise MetadataError(f"Unexpected cargo metadata document: {e}") from e
