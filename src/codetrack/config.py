"""Configuration file support for CLI options.

Load configuration from TOML files. CLI arguments always take precedence
over config file values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Python 3.11+ has tomllib in stdlib, earlier versions need tomli
try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[import-not-found]

from .store.gateway import DEFAULT_CONTAINER, DEFAULT_TIMESTAMP_FORMAT, DEFAULT_TIMEZONE
from .summarizer.gemini import DEFAULT_MODEL
from .timers import DEFAULT_COMMIT_INTERVAL, DEFAULT_IDLE_TIMEOUT

logger = logging.getLogger(__name__)

STORES = ("github", "directory")


@dataclass
class TrackerConfig:
    """Configuration for activity tracking and commits."""

    idle_timeout: float = DEFAULT_IDLE_TIMEOUT  # Seconds of inactivity before pausing
    commit_interval: float = DEFAULT_COMMIT_INTERVAL  # Seconds between commits
    repo_name: str = DEFAULT_CONTAINER
    timezone: str = DEFAULT_TIMEZONE
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT
    store: str = "github"  # "github" or "directory"
    store_path: str | None = None  # Root directory for the directory store
    gemini_model: str = DEFAULT_MODEL
    summary_prompt: str | None = None  # Custom prompt template
    summary_prompt_file: str | None = None  # Path to prompt template file


@dataclass
class ServeConfig:
    """Configuration for the status server and workspace watcher."""

    host: str = "127.0.0.1"
    port: int = 8766
    watch: str | None = None  # Workspace directory to watch for edits
    no_server: bool = False
    debug: bool = False


@dataclass
class Config:
    """Top-level configuration container."""

    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    serve: ServeConfig = field(default_factory=ServeConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Create a Config from a dictionary (e.g., parsed TOML).

        Args:
            data: Dictionary with section keys (tracker, serve).

        Returns:
            Config instance with values from dict, defaults for missing.
        """
        tracker_data = data.get("tracker", {})
        serve_data = data.get("serve", {})

        return cls(
            tracker=TrackerConfig(
                **{k: v for k, v in tracker_data.items() if hasattr(TrackerConfig, k)}
            ),
            serve=ServeConfig(**{k: v for k, v in serve_data.items() if hasattr(ServeConfig, k)}),
        )


# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "tracker": {
        "idle_timeout": DEFAULT_IDLE_TIMEOUT,
        "commit_interval": DEFAULT_COMMIT_INTERVAL,
        "repo_name": DEFAULT_CONTAINER,
        "timezone": DEFAULT_TIMEZONE,
        "timestamp_format": DEFAULT_TIMESTAMP_FORMAT,
        "store": "github",
        "store_path": None,
        "gemini_model": DEFAULT_MODEL,
        "summary_prompt": None,
        "summary_prompt_file": None,
    },
    "serve": {
        "host": "127.0.0.1",
        "port": 8766,
        "watch": None,
        "no_server": False,
        "debug": False,
    },
}


def get_config_paths() -> list[Path]:
    """Get list of config file paths to check, in priority order.

    Lower priority files are listed first so they get overridden by later ones.

    Checks:
    1. ~/.config/codetrack/config.toml (global user config)
    2. .codetrack.toml (project-local config)

    Returns:
        List of paths to check (may not all exist).
    """
    return [
        Path.home() / ".config" / "codetrack" / "config.toml",
        Path(".codetrack.toml"),
    ]


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary (lower priority).
        override: Override dictionary (higher priority).

    Returns:
        Merged dictionary with override values taking precedence.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_paths: list[Path] | None = None) -> Config:
    """Load configuration from TOML files.

    Loads and merges config files in order of priority (later files override
    earlier ones). Starts with DEFAULT_CONFIG as the base.

    Args:
        config_paths: List of paths to check. If None, uses get_config_paths().

    Returns:
        Config instance with merged values.
    """
    if config_paths is None:
        config_paths = get_config_paths()

    merged: dict[str, Any] = _deep_merge({}, DEFAULT_CONFIG)

    for path in config_paths:
        if not path.exists():
            continue

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            merged = _deep_merge(merged, data)
            logger.debug(f"Loaded config from {path}")
        except Exception as e:
            logger.warning(f"Failed to parse config file {path}: {e}")

    return Config.from_dict(merged)
