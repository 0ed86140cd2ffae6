# Configuration loader with environment variable support

import logging
import re
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import LinkerBaseModel

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = r"[0-9]{4}-[0-9]{2}-[0-9]{2}"
DEFAULT_FIELD_NAME = "mentions"

# Frontmatter keys must survive a YAML round trip unquoted
FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")

MIN_DEBOUNCE_SECONDS = 0.1
MAX_DEBOUNCE_SECONDS = 60.0


class ConfigurationError(ValueError):
    """Raised when configuration is missing, malformed or fails validation."""


class VaultConfig(LinkerBaseModel):
    """Where the vault lives and which folders are never walked."""

    path: str = Field(default=".")
    ignore_folders: List[str] = Field(default_factory=lambda: [".obsidian", ".trash"])


class LinkerConfig(LinkerBaseModel):
    """
    Sibling linking settings.

    A snapshot of this model is handed to the orchestrator and scheduler;
    changing settings means building a new instance, never mutating a live one.
    """

    pattern: str = Field(default=DEFAULT_PATTERN)
    exclude_paths: List[str] = Field(default_factory=list)
    field_name: str = Field(default=DEFAULT_FIELD_NAME)
    debounce_seconds: float = Field(
        default=1.0, ge=MIN_DEBOUNCE_SECONDS, le=MAX_DEBOUNCE_SECONDS
    )
    notify_on_change: bool = False
    extension: str = Field(default="md")

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v):
        """Eligibility pattern must compile"""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"pattern is not a valid regular expression: {e}")
        return v

    @field_validator("field_name")
    @classmethod
    def validate_field_name(cls, v):
        """Field name must be a plain frontmatter key"""
        if not FIELD_NAME_PATTERN.match(v or ""):
            raise ValueError(
                f"field_name must match {FIELD_NAME_PATTERN.pattern}, got {v!r}"
            )
        return v

    @field_validator("exclude_paths")
    @classmethod
    def drop_blank_exclusions(cls, v):
        # An empty substring would exclude every document
        return [item for item in v if item]

    @field_validator("extension")
    @classmethod
    def normalize_extension(cls, v):
        return v.lstrip(".").lower()


class LoggingConfig(LinkerBaseModel):
    level: str = "INFO"
    json_output: bool = True


class Config(LinkerBaseModel):
    """Main configuration model"""

    vault: VaultConfig = Field(default_factory=VaultConfig)
    linker: LinkerConfig = Field(default_factory=LinkerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Settings(BaseSettings):
    """Environment-based settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    env: str = Field(default="development", alias="ENV")
    config_path: Optional[str] = Field(default=None, alias="CONFIG_PATH")
    vault_path: Optional[str] = Field(default=None, alias="VAULT_PATH")
    log_level: Optional[str] = Field(default=None, alias="LOG_LEVEL")
    metrics_port: Optional[int] = Field(default=None, alias="METRICS_PORT")


def _default_config_path(settings: Settings) -> Path:
    return Path(__file__).parent.parent.parent / "config" / f"{settings.env}.yaml"


def load_config(config_path: Optional[Path] = None) -> tuple[Config, Settings]:
    """
    Load configuration from YAML file and environment variables.

    A missing file is not an error: defaults apply. Environment settings
    override the file (VAULT_PATH, LOG_LEVEL).

    Returns:
        tuple: (Config, Settings)

    Raises:
        ConfigurationError: If the file cannot be parsed or fails validation
    """
    settings = Settings()

    if config_path is None:
        config_path = (
            Path(settings.config_path)
            if settings.config_path
            else _default_config_path(settings)
        )

    config_dict = {}
    if config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse {config_path}: {e}") from e
        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"{config_path} must contain a mapping at the root"
            )
    else:
        logger.info(f"No configuration file at {config_path}, using defaults")

    try:
        config = Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    if settings.vault_path:
        config.vault.path = settings.vault_path
    if settings.log_level:
        config.logging.level = settings.log_level

    return config, settings


# Global config instances, read by entry points only
_config: Optional[Config] = None
_settings: Optional[Settings] = None


def get_config() -> Config:
    """Get the global Config instance"""
    global _config
    if _config is None:
        init_config()
    return _config


def init_config(config_path: Optional[Path] = None) -> tuple[Config, Settings]:
    """Initialize and cache global config instances"""
    global _config, _settings
    _config, _settings = load_config(config_path)
    return _config, _settings


def reload_config(config_path: Optional[Path] = None) -> tuple[Config, Settings]:
    """Force reload of config/settings from disk and environment."""
    return init_config(config_path)
