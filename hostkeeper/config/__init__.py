"""Configuration loading and validation for Hostkeeper."""

from hostkeeper.config.loader import expand_env_vars, find_config_file, load_config
from hostkeeper.config.schema import (
    BrandingSettings,
    HostkeeperConfig,
    SeedSettings,
    StorageSettings,
    ValidationSettings,
)

__all__ = [
    "BrandingSettings",
    "HostkeeperConfig",
    "SeedSettings",
    "StorageSettings",
    "ValidationSettings",
    "expand_env_vars",
    "find_config_file",
    "load_config",
]
