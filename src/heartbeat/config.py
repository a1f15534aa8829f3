"""Central Configuration System for Heartbeat.

This module is the single source of truth for application configuration.
Every other module that needs settings imports from here.

The configuration system supports:
- Multi-source configuration (environment variables > config file > defaults)
- Paths derived from one data directory
- Graceful degradation when the config file is malformed

Example:
    >>> from heartbeat.config import get_config
    >>>
    >>> cfg = get_config()
    >>> print(cfg.paths.data_file)  # ~/.heartbeat/people.json by default
    >>> print(cfg.analysis.delay_seconds)  # 2.0

Config File Format (YAML):
    ```yaml
    paths:
      data_dir: ~/.heartbeat
      data_file: ~/.heartbeat/people.json
      shared_container_dir: ~/.heartbeat/shared

    analysis:
      simulate_delay: true
      delay_seconds: 2.0

    widget:
      filename: nextDateWidgetData.json
      photo_max_pixels: 100
      jpeg_quality: 50
      refresh_minutes: 15
      entry_interval_minutes: 5
      entry_span_minutes: 60

    debug: false
    verbose: false
    log_level: INFO
    ```

Environment variables use the ``HEARTBEAT_`` prefix and ``__`` between
nested keys, e.g. ``HEARTBEAT_ANALYSIS__DELAY_SECONDS=0``.
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Exception raised for YAML config file issues.

    Raised when an explicitly requested config file does not exist or
    cannot be read. A malformed file found by the default search is only
    logged.
    """

    pass


# =============================================================================
# Configuration Models
# =============================================================================


def _expand(v: Any) -> Any:
    if isinstance(v, (str, Path)):
        return Path(v).expanduser()
    return v


class PathsConfig(BaseModel):
    """Configuration for application file system paths.

    Attributes:
        data_dir: Base directory. Default ~/.heartbeat
        data_file: JSON roster file. Default: data_dir/people.json
        shared_container_dir: Directory the widget data file is written to.
            Default: data_dir/shared
        log_dir: Directory for log files. Default: data_dir/logs

    Example:
        >>> paths = PathsConfig(data_dir="/tmp/hb")
        >>> paths.data_file
        PosixPath('/tmp/hb/people.json')
    """

    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".heartbeat", description="Base data directory."
    )
    data_file: Path | None = Field(
        default=None, description="Roster JSON file. Defaults to data_dir/people.json."
    )
    shared_container_dir: Path | None = Field(
        default=None, description="Widget container directory. Defaults to data_dir/shared."
    )
    log_dir: Path | None = Field(
        default=None, description="Log directory. Defaults to data_dir/logs."
    )

    @field_validator("data_dir", "data_file", "shared_container_dir", "log_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Any:
        """Expand ~ in paths."""
        return _expand(v)

    @model_validator(mode="after")
    def resolve_defaults(self) -> "PathsConfig":
        """Resolve None defaults relative to data_dir."""
        if self.data_file is None:
            object.__setattr__(self, "data_file", self.data_dir / "people.json")
        if self.shared_container_dir is None:
            object.__setattr__(self, "shared_container_dir", self.data_dir / "shared")
        if self.log_dir is None:
            object.__setattr__(self, "log_dir", self.data_dir / "logs")
        return self

    def ensure_dirs_exist(self) -> None:
        """Create the data, shared container and log directories."""
        for directory in [self.data_dir, self.shared_container_dir, self.log_dir]:
            if directory is not None:
                directory.mkdir(parents=True, exist_ok=True)
        if self.data_file is not None:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)


class AnalysisConfig(BaseModel):
    """Settings for the insight analyzers.

    Attributes:
        simulate_delay: Wait before returning async analysis results.
        delay_seconds: Length of that wait.
    """

    simulate_delay: bool = Field(default=True, description="Pause before async analysis.")
    delay_seconds: float = Field(default=2.0, ge=0.0, description="Pause length in seconds.")


class WidgetConfig(BaseModel):
    """Settings for the next-date widget data file and its refresh timeline.

    Attributes:
        filename: Name of the JSON file inside the shared container.
        photo_max_pixels: Bounding box edge for the embedded photo thumbnail.
        jpeg_quality: JPEG quality of the embedded thumbnail (1-95).
        refresh_minutes: Minutes until the widget timeline asks for a refresh.
        entry_interval_minutes: Minutes between timeline entries.
        entry_span_minutes: How far ahead timeline entries are generated.
    """

    filename: str = "nextDateWidgetData.json"
    photo_max_pixels: int = Field(default=100, gt=0)
    jpeg_quality: int = Field(default=50, ge=1, le=95)
    refresh_minutes: int = Field(default=15, gt=0)
    entry_interval_minutes: int = Field(default=5, gt=0)
    entry_span_minutes: int = Field(default=60, ge=0)


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Configuration priority (highest wins):
    1. Environment variables (HEARTBEAT_*)
    2. Config file (YAML)
    3. In-code defaults

    Attributes:
        paths: Filesystem path configuration.
        analysis: Analyzer delay settings.
        widget: Widget export and timeline settings.
        debug: Enable debug mode (debug logging, tracebacks).
        verbose: Enable verbose output to console.
        log_level: Level used when neither debug nor verbose is set.
    """

    paths: PathsConfig = Field(default_factory=PathsConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    widget: WidgetConfig = Field(default_factory=WidgetConfig)
    debug: bool = Field(default=False, description="Enable debug mode.")
    verbose: bool = Field(default=False, description="Enable verbose output.")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING", description="Default logging level."
    )

    model_config = {
        "env_prefix": "HEARTBEAT_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Config file values arrive as init kwargs; environment overrides them.
        return env_settings, init_settings

    @property
    def effective_log_level(self) -> str:
        if self.debug:
            return "DEBUG"
        if self.verbose:
            return "INFO"
        return self.log_level


# =============================================================================
# Loading
# =============================================================================


DEFAULT_CONFIG_PATHS: tuple[Path, ...] = (
    Path("./heartbeat.yaml"),
    Path.home() / ".heartbeat" / "config.yaml",
)


def find_config_file(path: Path | None = None) -> Path | None:
    """Locate the config file to load.

    Args:
        path: Explicit path. Must exist when given.

    Returns:
        The first existing file, or None when nothing is found.

    Raises:
        ConfigFileError: If ``path`` is given but does not exist.
    """
    if path is not None:
        if not path.exists():
            raise ConfigFileError(f"Config file not found: {path}")
        return path

    for search_path in DEFAULT_CONFIG_PATHS:
        if search_path.exists():
            return search_path
    return None


def _read_config_file(config_file: Path) -> dict[str, Any]:
    try:
        content = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(f"Cannot read config file {config_file}: {e}") from e

    try:
        loaded = yaml.safe_load(content) if content.strip() else None
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse config file {config_file}: {e}. Using defaults.")
        return {}

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        logger.warning(f"Config file {config_file} has unexpected format. Using defaults.")
        return {}
    return loaded


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file, environment, and defaults.

    If no config file is found, uses defaults only (not an error).
    If the config file is malformed or holds invalid values, logs a
    warning and uses defaults plus environment.

    Args:
        path: Optional path to config file. If None, searches default locations.

    Returns:
        Fully-populated AppConfig instance.

    Raises:
        ConfigFileError: If an explicit ``path`` is missing or unreadable.
        ConfigError: If the environment holds a value that fails validation.

    Example:
        >>> config = load_config()
        >>> config = load_config(Path("./heartbeat.yaml"))
    """
    config_file = find_config_file(path)
    config_data = _read_config_file(config_file) if config_file is not None else {}

    if config_file is not None:
        logger.debug(f"Loaded config file {config_file}")

    try:
        return AppConfig(**config_data)
    except ValidationError as e:
        logger.warning(f"Error parsing config values: {e}. Using defaults.")

    # Defaults still read the environment, which may hold the bad value
    try:
        return AppConfig()
    except ValidationError as e:
        raise ConfigError(
            f"Invalid HEARTBEAT_* environment setting: {e.errors()[0]['loc']} "
            f"{e.errors()[0]['msg']}"
        ) from e


@functools.lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the cached configuration singleton.

    Example:
        >>> cfg = get_config()
        >>> print(cfg.widget.filename)
    """
    return load_config()


def reset_config() -> None:
    """Clear the configuration cache so the next get_config() reloads."""
    get_config.cache_clear()
