"""Configuration schema for the package extractor."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator


class LoggingConfig(BaseModel):
    """Logging settings for extraction runs."""

    model_config = ConfigDict(extra='forbid')

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum level; per-asset progress is logged at INFO"
    )
    format: Literal["simple", "detailed", "json"] = Field(
        default="simple",
        description="Console format written to stderr"
    )
    file: Optional[Path] = Field(
        default=None,
        description="Also write JSON records to this file"
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        description="Rotate the log file after this many megabytes"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="Number of rotated log files to keep"
    )

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        """Accept level names in any case (``--log-level debug``)."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator('format', mode='before')
    @classmethod
    def normalize_format(cls, v):
        if isinstance(v, str):
            return v.lower()
        return v


class ExtractionConfig(BaseModel):
    """Configuration for package extraction."""

    model_config = ConfigDict(extra='forbid')

    filter_prefix: Optional[str] = Field(
        default=None,
        description="Extract only assets under this path, relative to it"
    )
    include_meta: bool = Field(
        default=False,
        description="Write <asset>.meta files next to each asset"
    )
    dry_run: bool = Field(
        default=False,
        description="Decode and resolve everything but never touch the disk"
    )
    max_concurrency: int = Field(
        default=256,
        ge=1,
        description="Maximum number of asset writes in flight"
    )
    strict: bool = Field(
        default=False,
        description="Fail on incomplete asset groups instead of dropping them"
    )

    @field_validator('filter_prefix', mode='before')
    @classmethod
    def normalize_filter_prefix(cls, v: Optional[str]) -> Optional[str]:
        """Strip surrounding slashes; blank means no filter."""
        if isinstance(v, str):
            v = v.strip().strip('/')
            return v or None
        return v


class ExtractorConfig(BaseModel):
    """Root configuration for the package extractor."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
