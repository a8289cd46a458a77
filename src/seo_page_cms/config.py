# -*- coding: utf-8 -*-
"""
Centralized configuration for SEO Page CMS.

This module provides a configuration dataclass for the storage location,
the local-SEO locality check used by the scoring engine, and upload limits
for the HTTP layer.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


DEFAULT_DATABASE_PATH = "seo_cms.db"


@dataclass
class CmsConfig:
    """
    Central configuration for the CMS.

    Attributes:
        database_path: SQLite file holding pages, versions and keywords.
        required_locality: Token that page titles are expected to contain
            for local SEO (matched case-insensitively). Empty disables the
            locality suggestion.
        locality_label: Human-readable locality named in the suggestion.
        max_upload_files: Maximum number of files per batch extraction.
        max_upload_bytes: Maximum size of a single uploaded file.
    """

    database_path: Union[str, Path] = DEFAULT_DATABASE_PATH
    required_locality: str = "houston"
    locality_label: str = "Houston Heights"
    max_upload_files: int = 100
    max_upload_bytes: int = 10 * 1024 * 1024

    def __post_init__(self):
        """Validate configuration values."""
        self.required_locality = self.required_locality.strip().lower()
        if self.max_upload_files < 1:
            raise ValueError(f"max_upload_files must be >= 1, got {self.max_upload_files}")
        if self.max_upload_bytes < 1:
            raise ValueError(f"max_upload_bytes must be >= 1, got {self.max_upload_bytes}")

    @property
    def checks_locality(self) -> bool:
        """Check if the title locality suggestion is enabled."""
        return bool(self.required_locality)

    @classmethod
    def from_env(cls, **overrides) -> "CmsConfig":
        """Create config from SEO_CMS_* environment variables.

        Args:
            **overrides: Override any config values

        Returns:
            CmsConfig with environment values applied
        """
        values: dict = {}
        database: Optional[str] = os.environ.get("SEO_CMS_DATABASE")
        if database:
            values["database_path"] = database
        locality = os.environ.get("SEO_CMS_LOCALITY")
        if locality is not None:
            values["required_locality"] = locality
        label = os.environ.get("SEO_CMS_LOCALITY_LABEL")
        if label:
            values["locality_label"] = label
        values.update(overrides)
        return cls(**values)
