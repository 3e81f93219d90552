"""
Pipeline configuration.

Loads the pipeline settings from a YAML file and validates them into
pydantic models.

Expected YAML format:
```yaml
raw_csv_dir: data/raw_csv
archive_path: data/archive
failed_path: data/failed
file_regex: '\\.csv$'
file_type_regexes:
  trax: 'trax|transactions'
  itemz: 'itemz|items'
dry_run: false
on_empty: warn
database:
  host: localhost
  name: trax
platforms:
  slice:
    write_isolated: true
  square:
    write_isolated: true
    expected_headers: [Date, Time, Transaction ID, Net Total]
```
"""

import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from trax_etl.core.errors import ConfigurationError
from trax_etl.core.models import Platform, RecordKind
from trax_etl.core.normalization import normalize_header


def _check_regex(value: str) -> str:
    try:
        re.compile(value)
    except re.error as e:
        raise ValueError(f"Invalid regular expression {value!r}: {e}") from e
    return value


class FileTypeRegexes(BaseModel):
    """Filename patterns that decide a file's record kind (case-insensitive)."""

    trax: str = "trax|transactions"
    itemz: str = "itemz|items"

    @field_validator("trax", "itemz")
    @classmethod
    def check_regex(cls, v: str) -> str:
        return _check_regex(v)

    def classify(self, file_name: str) -> RecordKind | None:
        """Record kind matched by file_name, trax first; None if neither matches."""
        if re.search(self.trax, file_name, re.IGNORECASE):
            return RecordKind.TRAX
        if re.search(self.itemz, file_name, re.IGNORECASE):
            return RecordKind.ITEMZ
        return None


class PlatformSettings(BaseModel):
    """
    Per-platform settings.

    Attributes:
        write_isolated: Persist to the platform's isolated table as well as
            the unified table
        expected_headers: Header contract override; None means the
            platform's full field table. Normalized on load.
    """

    write_isolated: bool = True
    expected_headers: list[str] | None = None

    @field_validator("expected_headers")
    @classmethod
    def normalize_expected(cls, v):
        if v is None:
            return v
        return [normalize_header(h) for h in v]


class DatabaseSettings(BaseModel):
    """
    PostgreSQL settings; unset values fall back to DB_* environment variables.

    A full libpq conninfo string, when given, is used as-is.
    """

    host: str = Field(default_factory=lambda: os.getenv("DB_HOST", "localhost"))
    port: int = Field(default_factory=lambda: int(os.getenv("DB_PORT", "5432")))
    name: str = Field(default_factory=lambda: os.getenv("DB_NAME", "trax"))
    user: str = Field(default_factory=lambda: os.getenv("DB_USER", "pipeline"))
    password: str | None = Field(default_factory=lambda: os.getenv("DB_PASSWORD"), repr=False)
    conninfo: str | None = Field(default=None, repr=False)
    min_size: int = Field(default=2, ge=1)
    max_size: int = Field(default=10, ge=1)
    timeout: float = Field(default=30.0, gt=0)


class PipelineConfig(BaseModel):
    """Validated pipeline configuration."""

    raw_csv_dir: Path
    archive_path: Path
    failed_path: Path
    file_regex: str = r"\.csv$"
    file_type_regexes: FileTypeRegexes = Field(default_factory=FileTypeRegexes)
    dry_run: bool = False
    on_empty: Literal["ignore", "warn", "fail"] = "warn"
    max_concurrent_writes: int = Field(default=32, ge=1)
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    platforms: dict[Platform, PlatformSettings] = Field(default_factory=dict)

    @field_validator("file_regex")
    @classmethod
    def check_file_regex(cls, v: str) -> str:
        return _check_regex(v)

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def fill_platform_defaults(self):
        for platform in Platform:
            self.platforms.setdefault(platform, PlatformSettings())
        return self

    def platform_settings(self, platform: Platform) -> PlatformSettings:
        return self.platforms[platform]


class ConfigLoader:
    """
    Loads PipelineConfig from a YAML file.
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the config loader.

        Args:
            config_path: Path to the YAML configuration file

        Raises:
            ConfigurationError: If the file does not exist
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

    def load(self) -> PipelineConfig:
        """
        Load and validate the configuration.

        Returns:
            PipelineConfig

        Raises:
            ConfigurationError: If the YAML is malformed or fails validation
        """
        try:
            with open(self.config_path) as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {self.config_path}")

        return parse_config(raw)


def parse_config(raw: dict) -> PipelineConfig:
    """
    Validate a raw configuration mapping.

    Raises:
        ConfigurationError: Wrapping every validation failure
    """
    try:
        return PipelineConfig.model_validate(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e
