"""Shared helpers for the Archon terminal client."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path

from .tui.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path("~/.config/archon-tui/config.json")

ENV_SERVER_URL = "ARCHON_TUI_SERVER_URL"
ENV_API_KEY = "ARCHON_TUI_API_KEY"

# Accepted spellings for default_sort_mode, mapped to SortMode values.
SORT_MODE_NAMES = {
    "status+priority": 0,
    "status": 0,
    "priority": 1,
    "created": 2,
    "time": 2,
    "alphabetical": 3,
    "alpha": 3,
}


def _parse_sort_mode(value: object) -> int:
    """Convert a configured sort mode (name or index) into a SortMode value."""
    if isinstance(value, bool):
        raise ValueError(f"default_sort_mode must be a name or 0-3, got {value!r}")
    if isinstance(value, int):
        if 0 <= value < 4:
            return value
        raise ValueError(f"default_sort_mode must be between 0 and 3, got {value}")
    name = str(value).strip().lower()
    if name not in SORT_MODE_NAMES:
        allowed = ", ".join(sorted(SORT_MODE_NAMES))
        raise ValueError(f"default_sort_mode must be one of {allowed}, got {value!r}")
    return SORT_MODE_NAMES[name]


def _positive(name: str, value: float) -> float:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Config:
    """Runtime configuration loaded from config.json."""

    server_url: str = "http://localhost:8181"
    api_key: str | None = None
    timeout_seconds: float = 30.0
    show_completed_tasks: bool = True
    default_sort_mode: int = 0
    default_project_id: str | None = None
    realtime_enabled: bool = True
    realtime_poll_seconds: float = 5.0
    reconnect_base_seconds: float = 1.0
    reconnect_max_seconds: float = 30.0
    chord_timeout_ms: int = 500
    status_message_seconds: float = 2.0
    max_workers: int = 4
    cache_dir: Path = Path(os.path.expanduser("~/.cache/archon-tui"))
    tui_refresh_per_second: int = 4
    tui_min_terminal_cols: int = 80
    tui_min_terminal_rows: int = 24

    @classmethod
    def from_dict(cls, payload: dict) -> Config:
        """Create a Config object from a raw dictionary.

        Missing keys fall back to defaults. Invalid values raise ValueError
        naming the offending field.
        """
        server_url = str(payload.get("server_url", cls.server_url)).strip().rstrip("/")
        if not server_url.startswith(("http://", "https://")):
            raise ValueError(f"server_url must start with http:// or https://, got {server_url!r}")

        cache_dir = Path(
            os.path.expanduser(payload.get("cache_dir", "~/.cache/archon-tui"))
        ).resolve()

        timeout_seconds = _positive("timeout_seconds", float(payload.get("timeout_seconds", 30)))
        realtime_poll_seconds = _positive(
            "realtime_poll_seconds", float(payload.get("realtime_poll_seconds", 5))
        )
        reconnect_base_seconds = _positive(
            "reconnect_base_seconds", float(payload.get("reconnect_base_seconds", 1))
        )
        reconnect_max_seconds = float(payload.get("reconnect_max_seconds", 30))
        if reconnect_max_seconds < reconnect_base_seconds:
            raise ValueError(
                f"reconnect_max_seconds must be >= reconnect_base_seconds, "
                f"got {reconnect_max_seconds} < {reconnect_base_seconds}"
            )
        chord_timeout_ms = int(_positive("chord_timeout_ms", int(payload.get("chord_timeout_ms", 500))))
        status_message_seconds = _positive(
            "status_message_seconds", float(payload.get("status_message_seconds", 2))
        )
        max_workers = int(_positive("max_workers", int(payload.get("max_workers", 4))))
        tui_refresh_per_second = int(
            _positive("tui_refresh_per_second", int(payload.get("tui_refresh_per_second", 4)))
        )
        tui_min_terminal_cols = int(
            _positive("tui_min_terminal_cols", int(payload.get("tui_min_terminal_cols", 80)))
        )
        tui_min_terminal_rows = int(
            _positive("tui_min_terminal_rows", int(payload.get("tui_min_terminal_rows", 24)))
        )

        return cls(
            server_url=server_url,
            api_key=_optional_str(payload.get("api_key")),
            timeout_seconds=timeout_seconds,
            show_completed_tasks=bool(payload.get("show_completed_tasks", True)),
            default_sort_mode=_parse_sort_mode(payload.get("default_sort_mode", "status+priority")),
            default_project_id=_optional_str(payload.get("default_project_id")),
            realtime_enabled=bool(payload.get("realtime_enabled", True)),
            realtime_poll_seconds=realtime_poll_seconds,
            reconnect_base_seconds=reconnect_base_seconds,
            reconnect_max_seconds=reconnect_max_seconds,
            chord_timeout_ms=chord_timeout_ms,
            status_message_seconds=status_message_seconds,
            max_workers=max_workers,
            cache_dir=cache_dir,
            tui_refresh_per_second=tui_refresh_per_second,
            tui_min_terminal_cols=tui_min_terminal_cols,
            tui_min_terminal_rows=tui_min_terminal_rows,
        )

    def with_environment(self, environ: dict[str, str] | None = None) -> Config:
        """Apply ARCHON_TUI_* environment overrides on top of this config."""
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        server_url = env.get(ENV_SERVER_URL, "").strip()
        if server_url:
            overrides["server_url"] = server_url.rstrip("/")
        api_key = env.get(ENV_API_KEY, "").strip()
        if api_key:
            overrides["api_key"] = api_key
        return replace(self, **overrides) if overrides else self


def load_config(path: Path) -> Config:
    """Load configuration from the provided path.

    A missing file yields the defaults.

    Raises:
        ConfigError: If the file is not valid JSON or a value fails validation
    """
    if not path.exists():
        return Config.from_dict({}).with_environment()
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as err:
        raise ConfigError(f"Config file {path} is not valid JSON: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    try:
        return Config.from_dict(data).with_environment()
    except ValueError as err:
        raise ConfigError(f"Invalid config {path}: {err}") from err
