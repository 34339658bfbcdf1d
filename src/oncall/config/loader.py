"""
Configuration file loading.

Search order:
1. Explicit path (--config flag)
2. ONCALL_CONFIG environment variable
3. ~/.config/oncall/config.yml
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from oncall.clients.opsgenie import DEFAULT_BASE_URL, MAX_ALERT_LIMIT
from oncall.config.settings import Settings, get_settings
from oncall.errors import ConfigError, ConfigNotFoundError
from oncall.roster.periods import RosterMode

logger = structlog.get_logger()


def default_config_path() -> Path:
    """Per-user config file location."""
    return Path.home() / ".config" / "oncall" / "config.yml"


def get_config_path(explicit_path: str | Path | None = None, settings: Settings | None = None) -> Path:
    """Resolve which config file to read; the file need not exist."""
    if explicit_path:
        return Path(explicit_path).expanduser()
    settings = settings or get_settings()
    if settings.config:
        return settings.config.expanduser()
    return default_config_path()


@dataclass
class DisplayConfig:
    """How rosters and alerts are shaped for display."""

    mode: RosterMode = RosterMode.CURRENT_NEXT
    window_weeks: int = 3
    enrich_users: bool = False
    alert_limit: int = 20

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DisplayConfig:
        if not isinstance(data, dict):
            raise ConfigError("display must be a mapping")

        try:
            mode = RosterMode(data.get("mode", RosterMode.CURRENT_NEXT))
        except ValueError as exc:
            choices = ", ".join(m.value for m in RosterMode)
            raise ConfigError(f"display.mode must be one of {choices}, got {data['mode']!r}") from exc

        window_weeks = _positive_int(data, "windowWeeks", 3)
        alert_limit = _positive_int(data, "alertLimit", 20)
        if alert_limit > MAX_ALERT_LIMIT:
            raise ConfigError(f"display.alertLimit must be at most {MAX_ALERT_LIMIT}")

        return cls(
            mode=mode,
            window_weeks=window_weeks,
            enrich_users=bool(data.get("enrichUsers", False)),
            alert_limit=alert_limit,
        )


def _positive_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"display.{key} must be a positive integer, got {value!r}")
    return value


@dataclass
class OnCallConfig:
    """Contents of the config file."""

    api_key: str = ""
    team_names: list[str] = field(default_factory=list)
    api_url: str = DEFAULT_BASE_URL
    display: DisplayConfig = field(default_factory=DisplayConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OnCallConfig:
        """Build config from parsed YAML.

        An empty ``apiKey`` is accepted; it only fails on the first remote call.
        """
        if not isinstance(data, dict):
            raise ConfigError("config root must be a mapping")

        opsgenie = data.get("opsGenie") or {}
        if not isinstance(opsgenie, dict):
            raise ConfigError("opsGenie must be a mapping")

        team_names = data.get("teamNames") or []
        if not isinstance(team_names, list) or not all(isinstance(t, str) for t in team_names):
            raise ConfigError("teamNames must be a list of strings")

        return cls(
            api_key=str(opsgenie.get("apiKey") or ""),
            team_names=team_names,
            api_url=opsgenie.get("apiUrl") or DEFAULT_BASE_URL,
            display=DisplayConfig.from_dict(data.get("display") or {}),
        )


def load_config(path: str | Path | None = None, settings: Settings | None = None) -> OnCallConfig:
    """
    Load the config file and apply environment overrides.

    Args:
        path: Optional explicit config file path
        settings: Environment settings, defaults to ``get_settings()``

    Returns:
        OnCallConfig instance

    Raises:
        ConfigNotFoundError: the file does not exist
        ConfigError: the file cannot be read, parsed, or has the wrong shape
    """
    settings = settings or get_settings()
    config_path = get_config_path(path, settings)

    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigNotFoundError(config_path) from exc
    except OSError as exc:
        raise ConfigError(f"read {config_path}: {exc}") from exc

    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"parse {config_path}: {exc}") from exc

    config = OnCallConfig.from_dict(data)
    if settings.api_url:
        config.api_url = settings.api_url

    logger.debug("loaded_config", path=str(config_path), teams=len(config.team_names))
    return config
