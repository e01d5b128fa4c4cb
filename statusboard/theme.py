"""Resolution of result states to display colors through the active theme."""

from .config import (
    HEALTHY_STATE,
    INVALID_STATE_COLOR,
    UNHEALTHY_STATE,
    UNKNOWN_STATE_COLOR,
    ThemeConfig,
)
from .models import Result
from .storage import Storage


def result_state(result: Result) -> str:
    """Return the result's explicit state, or one derived from its success flag."""
    if result.state:
        return result.state
    return HEALTHY_STATE if result.success else UNHEALTHY_STATE


class ColorResolver:
    """Maps results and states to colors using the persisted active theme."""

    def __init__(self, config: ThemeConfig, storage: Storage) -> None:
        self._config = config
        self._storage = storage

    @property
    def theme_names(self) -> list[str]:
        return list(self._config.themes)

    def active_theme(self) -> str:
        """Return the active theme name.

        Read from storage on every call; unknown stored names fall back to the
        configured default.
        """
        name = self._storage.get_theme()
        if name is None or name not in self._config.themes:
            return self._config.default
        return name

    def set_active_theme(self, name: str) -> None:
        if name not in self._config.themes:
            raise ValueError(f"Unknown theme '{name}'. Available: {', '.join(self.theme_names)}")
        self._storage.set_theme(name)

    def state_color(self, state: str) -> str:
        return self._config.themes[self.active_theme()].get(state, INVALID_STATE_COLOR)

    def result_color(self, result: Result | None) -> str:
        if result is None:
            return UNKNOWN_STATE_COLOR
        return self.state_color(result_state(result))
