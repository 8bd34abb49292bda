"""Pydantic configuration models for Hostkeeper."""

from __future__ import annotations

import os
import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from hostkeeper.constants import (
    CANONICAL_HOST_PATTERN,
    DEFAULT_PRODUCT_NAME,
    DEFAULT_VALIDATION_TIMEOUT,
    INFO_PATH,
    PROTOCOL_SCHEME,
    SEED_FILENAME,
)
from hostkeeper.registry.storage import DEFAULT_PREFERENCES_FILE, DEFAULT_STORAGE_FILE


def _expand_path(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    return os.path.expanduser(v.strip())


class StorageSettings(BaseModel):
    """Where persisted registry state lives."""

    path: str = Field(default=DEFAULT_STORAGE_FILE, description="Host map + active host store.")
    preferences_path: str = Field(
        default=DEFAULT_PREFERENCES_FILE,
        description="UI preference flags (sidebar state).",
    )
    snapshot_path: Optional[str] = Field(
        default=None,
        description="If set, the host map is mirrored here for other processes.",
    )

    @field_validator("path", "preferences_path", "snapshot_path")
    @classmethod
    def _expand_user(cls, v: Optional[str]) -> Optional[str]:
        return _expand_path(v)


class SeedSettings(BaseModel):
    """One-time import of a ``servers.json`` seed file."""

    filename: str = Field(default=SEED_FILENAME, min_length=1)
    search_dirs: List[str] = Field(
        default_factory=list,
        description="Directories searched in order. Empty: user data dir, then install dir.",
    )

    @field_validator("search_dirs")
    @classmethod
    def _expand_dirs(cls, v: List[str]) -> List[str]:
        return [os.path.expanduser(d) for d in v]


class ValidationSettings(BaseModel):
    timeout: float = Field(default=DEFAULT_VALIDATION_TIMEOUT, gt=0, description="Seconds.")
    info_path: str = Field(default=INFO_PATH, min_length=1)


class BrandingSettings(BaseModel):
    product_name: str = Field(default=DEFAULT_PRODUCT_NAME, min_length=1)
    canonical_host_pattern: str = Field(default=CANONICAL_HOST_PATTERN)
    protocol_scheme: str = Field(default=PROTOCOL_SCHEME, min_length=1)

    @field_validator("canonical_host_pattern")
    @classmethod
    def _check_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as exc:
            raise ValueError(f"invalid regular expression: {exc}") from exc
        return v

    @field_validator("protocol_scheme")
    @classmethod
    def _strip_scheme(cls, v: str) -> str:
        return v.strip().removesuffix("://")


class HostkeeperConfig(BaseModel):
    """Top-level configuration file model."""

    version: str = "1"
    storage: StorageSettings = Field(default_factory=StorageSettings)
    seed: SeedSettings = Field(default_factory=SeedSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    branding: BrandingSettings = Field(default_factory=BrandingSettings)
