"""
File storage configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Upload and output artifact location configuration
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from prd_reviewer.configs.base import BaseSettings


class StorageSettings(BaseSettings):
    """Upload and review output storage configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STORAGE_",
        case_sensitive=False,
        extra="ignore",
    )

    data_dir: Path = Field(default=Path("./data"), description="Root data directory")
    max_upload_bytes: int = Field(
        default=20 * 1024 * 1024,
        description="Maximum size of a single uploaded file",
    )
    max_supplementary_files: int = Field(
        default=10,
        description="Maximum number of supplementary sources per review",
    )
