"""
Configuration Module - Load and validate source settings.
=========================================================

Loads configuration from:
1. config/settings.yaml (defaults)
2. Environment variables from .env file
3. Environment variables from system

Environment variables override YAML defaults. The source options
(base url, catalog ids, related page size) are validated before a run
starts; a failed availability probe is a configuration error, never a
retryable fetch.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, Union
from urllib.parse import urlparse

import requests
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docebo_source.shared.errors import ConfigurationError

# Load .env file early
load_dotenv()

# Endpoint used to check that the configured instance is reachable
AVAILABILITY_PATH = "/learn/v1/courses"


# Find project root (where pyproject.toml is located)
def _find_project_root() -> Path:
    """Find the project root directory by looking for pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    # Fallback to current working directory
    return Path.cwd()


PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Nested Configuration Models
# ─────────────────────────────────────────────────────────────────────────────


class SourceOptions(BaseModel):
    """Options of the Docebo source: where to fetch and what to aggregate."""

    base_url: str = ""
    catalog_ids: list[Union[int, str]] = Field(default_factory=list)
    related_links: int = Field(default=5, gt=0)

    @field_validator("base_url", mode="before")
    @classmethod
    def strip_base_url(cls, v: Any) -> str:
        """Drop surrounding whitespace and trailing slashes."""
        if v is None:
            return ""
        return str(v).strip().rstrip("/")

    @field_validator("catalog_ids", mode="before")
    @classmethod
    def coerce_catalog_ids(cls, v: Any) -> list:
        """Accept a single id, a comma-separated string or a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        if isinstance(v, (int, float)):
            return [int(v)]
        return list(v)


class FetchConfig(BaseModel):
    """HTTP fetch and retry settings."""

    max_retries: int = Field(default=3, ge=0)
    initial_delay: float = Field(default=1.0, ge=0)
    timeout: float = 30.0
    user_agent: str = "docebo-source/0.1.0"


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    rich_console: bool = True
    file: str = ""


class OutputConfig(BaseModel):
    """Where the command-line sink writes records."""

    records_file: str = "data/course_pages.jsonl"

    def resolve(self, base_path: Path) -> Path:
        """Resolve the records file relative to a base path."""
        path = Path(self.records_file)
        return path if path.is_absolute() else base_path / path


# ─────────────────────────────────────────────────────────────────────────────
# Main Settings Class
# ─────────────────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """
    Main application settings.

    Loads from:
    1. config/settings.yaml (defaults)
    2. Environment variables

    Environment variables override YAML settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Top-level environment overrides
    docebo_base_url: Optional[str] = Field(default=None, validation_alias="DOCEBO_BASE_URL")
    docebo_catalog_ids: Optional[str] = Field(
        default=None, validation_alias="DOCEBO_CATALOG_IDS"
    )
    log_level: Optional[str] = Field(default=None, validation_alias="LOG_LEVEL")

    # Nested configurations (from YAML)
    source: SourceOptions = Field(default_factory=SourceOptions)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    _project_root: Path = PROJECT_ROOT

    @property
    def records_path(self) -> Path:
        """Get the resolved path of the JSONL records file."""
        return self.output.resolve(self._project_root)

    def get_effective_source(self) -> SourceOptions:
        """Get the source options with environment overrides applied."""
        overrides: dict[str, Any] = {}
        if self.docebo_base_url:
            overrides["base_url"] = self.docebo_base_url
        if self.docebo_catalog_ids:
            overrides["catalog_ids"] = self.docebo_catalog_ids
        if not overrides:
            return self.source
        return SourceOptions.model_validate({**self.source.model_dump(), **overrides})

    def get_effective_log_level(self) -> str:
        """Get the effective log level (env override or config)."""
        if self.log_level:
            return self.log_level.upper()
        return self.logging.level.upper()


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def _create_settings(config_path: Optional[Path] = None) -> Settings:
    """Create settings instance by merging YAML defaults with environment."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    yaml_config = _load_yaml_config(config_path)

    return Settings(**yaml_config)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the singleton settings instance.

    Returns:
        Settings instance with merged configuration

    Example:
        >>> settings = get_settings()
        >>> print(settings.source.related_links)
        5
    """
    return _create_settings()


def reload_settings() -> Settings:
    """
    Force reload of settings (clears cache).

    Returns:
        Fresh Settings instance
    """
    get_settings.cache_clear()
    return get_settings()


# ─────────────────────────────────────────────────────────────────────────────
# Option Validation
# ─────────────────────────────────────────────────────────────────────────────


def validate_options(options: SourceOptions) -> SourceOptions:
    """
    Validate source options before a run.

    An empty catalog list is allowed here; it yields an aborted run later.

    Raises:
        ConfigurationError: If the base url is missing or not http(s)
    """
    if not options.base_url:
        raise ConfigurationError("You must provide your Docebo url (source.base_url)")

    parsed = urlparse(options.base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"Invalid Docebo url {options.base_url!r}")

    return options


def check_availability(base_url: str, timeout: float = 30.0) -> None:
    """
    Probe the Docebo instance once.

    Args:
        base_url: Base url of the instance
        timeout: Request timeout in seconds

    Raises:
        ConfigurationError: If the probe fails for any reason
    """
    url = f"{base_url.rstrip('/')}{AVAILABILITY_PATH}"
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ConfigurationError(
            f'Cannot access Docebo with the provided url "{base_url}". '
            "Double check it is correct and try again"
        ) from e
