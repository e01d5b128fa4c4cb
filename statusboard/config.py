"""Configuration loader with type-safe dataclasses."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


# Refresh intervals (seconds) offered by the dashboard settings.
REFRESH_INTERVALS = (10, 30, 60, 120, 300, 600)
DEFAULT_REFRESH_INTERVAL = 300

# Duration tokens accepted by the badge and chart APIs.
CHART_DURATIONS = ("1h", "24h", "7d", "30d")

HEALTHY_STATE = "healthy"
UNHEALTHY_STATE = "unhealthy"
MAINTENANCE_STATE = "maintenance"

DEFAULT_STATE_COLORS = {
    HEALTHY_STATE: "#22C55E",
    UNHEALTHY_STATE: "#E43B3C",
    MAINTENANCE_STATE: "#3B82F6",
}

# Reserved colors, not overridable by themes.
INVALID_STATE_COLOR = "#9CA3AF"  # state missing from the active theme
UNKNOWN_STATE_COLOR = "#6B7280"  # no result at all

DEFAULT_THEME_NAME = "default"


def normalize_refresh_interval(value: Any) -> int:
    """Return ``value`` as an allowed refresh interval, or the default.

    Accepts ints and numeric strings; anything else (including values outside
    the allow-list) yields ``DEFAULT_REFRESH_INTERVAL``.
    """
    if isinstance(value, bool):
        return DEFAULT_REFRESH_INTERVAL
    try:
        interval = int(value)
    except (TypeError, ValueError):
        return DEFAULT_REFRESH_INTERVAL
    if interval not in REFRESH_INTERVALS:
        return DEFAULT_REFRESH_INTERVAL
    return interval


def is_valid_color(color: str) -> bool:
    """Check that a color is a ``#RRGGBB`` hex code."""
    if not isinstance(color, str) or len(color) != 7 or color[0] != "#":
        return False
    return all(c in "0123456789abcdefABCDEF" for c in color[1:])


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the status server the dashboard reads from."""

    url: str = "http://localhost:8080"
    timeout: int = 10  # seconds, passed to every request

    def __post_init__(self) -> None:
        if not self.url:
            raise ConfigError("Server URL cannot be empty")
        if not self.url.startswith(("http://", "https://")):
            raise ConfigError(f"Server URL must start with http:// or https://, got '{self.url}'")
        if self.timeout < 1:
            raise ConfigError(f"Server timeout must be at least 1 second (got {self.timeout})")

    @property
    def base_url(self) -> str:
        """Server URL without a trailing slash."""
        return self.url.rstrip("/")


@dataclass(frozen=True)
class DashboardConfig:
    """Configuration for the dashboard refresh loop."""

    refresh_interval: int = DEFAULT_REFRESH_INTERVAL
    page: int = 1
    show_average_response_time: bool = True

    def __post_init__(self) -> None:
        if self.refresh_interval not in REFRESH_INTERVALS:
            raise ConfigError(
                f"Refresh interval must be one of {REFRESH_INTERVALS} (got {self.refresh_interval})"
            )
        if self.page < 1:
            raise ConfigError(f"Page must be at least 1 (got {self.page})")


def _get_default_storage_path() -> str:
    """Get the default settings path using XDG-compliant directory."""
    return str(Path.home() / ".local" / "share" / "statusboard" / "settings.db")


DEFAULT_STORAGE_PATH = _get_default_storage_path()


@dataclass(frozen=True)
class StorageConfig:
    """Configuration for persisted dashboard settings."""

    path: str = DEFAULT_STORAGE_PATH

    def __post_init__(self) -> None:
        if not self.path:
            raise ConfigError("Storage path cannot be empty")


def _default_themes() -> dict[str, dict[str, str]]:
    return {DEFAULT_THEME_NAME: dict(DEFAULT_STATE_COLORS)}


@dataclass(frozen=True)
class ThemeConfig:
    """Named color tables mapping state names to colors.

    States missing from a configured theme fall back to the default palette.
    """

    default: str = DEFAULT_THEME_NAME
    themes: dict[str, dict[str, str]] = field(default_factory=_default_themes)

    def __post_init__(self) -> None:
        if not self.themes:
            raise ConfigError("At least one theme must be configured")
        if self.default not in self.themes:
            raise ConfigError(f"Default theme '{self.default}' is not defined")
        merged = {}
        for theme_name, colors in self.themes.items():
            for state_name, color in colors.items():
                if not is_valid_color(color):
                    raise ConfigError(
                        f"Invalid color for state '{state_name}' in theme '{theme_name}': "
                        f"must be in the format #RRGGBB (got '{color}')"
                    )
            merged[theme_name] = {**DEFAULT_STATE_COLORS, **colors}
        object.__setattr__(self, "themes", merged)


@dataclass(frozen=True)
class Config:
    """Main configuration container."""

    server: ServerConfig = field(default_factory=ServerConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    theme: ThemeConfig = field(default_factory=ThemeConfig)


def _parse_server_config(data: dict | None) -> ServerConfig:
    """Parse server configuration section."""
    if data is None:
        return ServerConfig()
    if not isinstance(data, dict):
        raise ConfigError("'server' section must be a dictionary")

    try:
        timeout = int(data.get("timeout", 10))
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid server timeout: {data.get('timeout')!r}")

    return ServerConfig(
        url=str(data.get("url", "http://localhost:8080")),
        timeout=timeout,
    )


def _parse_dashboard_config(data: dict | None) -> DashboardConfig:
    """Parse dashboard configuration section."""
    if data is None:
        return DashboardConfig()
    if not isinstance(data, dict):
        raise ConfigError("'dashboard' section must be a dictionary")

    try:
        refresh_interval = int(data.get("refresh_interval", DEFAULT_REFRESH_INTERVAL))
        page = int(data.get("page", 1))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid dashboard setting: {e}")

    return DashboardConfig(
        refresh_interval=refresh_interval,
        page=page,
        show_average_response_time=bool(data.get("show_average_response_time", True)),
    )


def _parse_storage_config(data: dict | None) -> StorageConfig:
    """Parse storage configuration section."""
    if data is None:
        return StorageConfig()
    if not isinstance(data, dict):
        raise ConfigError("'storage' section must be a dictionary")

    return StorageConfig(path=os.path.expanduser(str(data.get("path", DEFAULT_STORAGE_PATH))))


def _parse_theme_config(data: dict | None) -> ThemeConfig:
    """Parse theme configuration section."""
    if data is None:
        return ThemeConfig()
    if not isinstance(data, dict):
        raise ConfigError("'theme' section must be a dictionary")

    themes_data = data.get("themes")
    if themes_data is None:
        themes = _default_themes()
    elif not isinstance(themes_data, dict):
        raise ConfigError("'theme.themes' must be a dictionary")
    else:
        themes = {}
        for name, colors in themes_data.items():
            if colors is None:
                colors = {}
            if not isinstance(colors, dict):
                raise ConfigError(f"Theme '{name}' must be a dictionary of state colors")
            themes[str(name)] = {str(state): str(color) for state, color in colors.items()}

    return ThemeConfig(default=str(data.get("default", DEFAULT_THEME_NAME)), themes=themes)


def _apply_env_overrides(config_data: dict) -> dict:
    """Apply environment variable overrides to configuration.

    Supported overrides:
    - STATUSBOARD_SERVER_URL: Override server.url
    - STATUSBOARD_SERVER_TIMEOUT: Override server.timeout
    - STATUSBOARD_REFRESH_INTERVAL: Override dashboard.refresh_interval
    - STATUSBOARD_STORAGE_PATH: Override storage.path
    """
    for section in ("server", "dashboard", "storage"):
        if not isinstance(config_data.get(section), dict):
            config_data[section] = {}

    server_url = os.environ.get("STATUSBOARD_SERVER_URL")
    if server_url is not None:
        config_data["server"]["url"] = server_url

    server_timeout = os.environ.get("STATUSBOARD_SERVER_TIMEOUT")
    if server_timeout is not None:
        config_data["server"]["timeout"] = server_timeout

    refresh_interval = os.environ.get("STATUSBOARD_REFRESH_INTERVAL")
    if refresh_interval is not None:
        config_data["dashboard"]["refresh_interval"] = refresh_interval

    storage_path = os.environ.get("STATUSBOARD_STORAGE_PATH")
    if storage_path is not None:
        config_data["storage"]["path"] = storage_path

    return config_data


def load_config(config_path: str | None = None) -> Config:
    """Load and validate configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file. When None, only
            defaults and environment overrides are used.

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If the file cannot be read or configuration is invalid.
    """
    data: Any = {}
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML configuration: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a YAML dictionary")

    data = _apply_env_overrides(data)

    return Config(
        server=_parse_server_config(data.get("server")),
        dashboard=_parse_dashboard_config(data.get("dashboard")),
        storage=_parse_storage_config(data.get("storage")),
        theme=_parse_theme_config(data.get("theme")),
    )
