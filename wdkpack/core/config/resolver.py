"""
Configuration resolver — one driver configuration per dependency graph.

Configuration may be declared at workspace scope
(``[workspace.metadata.wdk]``) and/or package scope
(``[package.metadata.wdk]``) on any package in the graph. Resolution
tolerates absence at either scope but never tolerates disagreement:

    nothing declared                      → NoConfigurationDetected
    one distinct value overall            → that value
    more than one distinct value          → MultipleConfigurationsDetected

Package values are deduplicated by structural equality, so N packages
declaring the same configuration count once, and a workspace value equal
to the package value(s) is not a conflict.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from wdkpack.adapters.cargo.metadata import CargoMetadataProvider
from wdkpack.core.errors import (
    ConfigurationDeserializationError,
    MultipleConfigurationsDetected,
    NoConfigurationDetected,
)
from wdkpack.core.models.driver import DriverConfiguration
from wdkpack.core.models.workspace import WDK_METADATA_KEY, CargoMetadata, CargoPackage

logger = logging.getLogger(__name__)


def _deserialize(raw: Any, source: str) -> DriverConfiguration:
    try:
        return DriverConfiguration.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationDeserializationError(source, str(e)) from e


def parse_workspace_configuration(metadata: CargoMetadata) -> DriverConfiguration | None:
    """Configuration from ``workspace.metadata.wdk``, or None."""
    raw = (metadata.workspace_metadata or {}).get(WDK_METADATA_KEY)
    if raw is None:
        return None
    return _deserialize(raw, "workspace_metadata[\"wdk\"]")


def parse_package_configuration(package: CargoPackage) -> DriverConfiguration | None:
    """Configuration from ``package.metadata.wdk``, or None.

    An empty ``wdk`` table only marks the package as a driver and carries
    no configuration.
    """
    raw = package.wdk_metadata
    if raw is None or raw == {}:
        return None
    return _deserialize(raw, f"package.metadata[\"wdk\"] for {package.name} package")


def parse_packages_configurations(
    packages: list[CargoPackage],
) -> set[DriverConfiguration]:
    configs: set[DriverConfiguration] = set()
    for package in packages:
        config = parse_package_configuration(package)
        if config is not None:
            logger.debug("Found %s configuration in package %s", config.describe(), package.name)
            configs.add(config)
    return configs


def resolve_driver_configuration(metadata: CargoMetadata) -> DriverConfiguration:
    """Merge workspace and package configuration into exactly one value.

    Raises:
        NoConfigurationDetected: Neither scope declares a configuration.
        MultipleConfigurationsDetected: Scopes disagree, or packages disagree.
        ConfigurationDeserializationError: A ``wdk`` section is malformed.
    """
    package_configs = parse_packages_configurations(metadata.packages)
    workspace_config = parse_workspace_configuration(metadata)

    configs = set(package_configs)
    if workspace_config is not None:
        configs.add(workspace_config)

    if not configs:
        raise NoConfigurationDetected()
    if len(configs) > 1:
        raise MultipleConfigurationsDetected(configs)

    (config,) = configs
    logger.debug("Resolved driver configuration: %s", config.describe())
    return config


class ConfigurationResolver:
    """Resolve the driver configuration for a manifest directory."""

    def __init__(self, metadata_provider: CargoMetadataProvider):
        self._metadata_provider = metadata_provider

    def resolve(self, manifest_dir: Path) -> DriverConfiguration:
        metadata = self._metadata_provider.get_metadata(manifest_dir)
        return resolve_driver_configuration(metadata)
