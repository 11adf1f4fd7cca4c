"""
Configuration — loads settings from .hunkedit.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import logging
import os

import yaml

from .diff.modes import DiffMode, DiffView

logger = logging.getLogger(__name__)


_DEFAULTS = {
    "diff_mode": DiffMode.UNSTAGED.value,
    "diff_view": DiffView.SIDE_BY_SIDE.value,
    "compare_branch": None,
    "max_visible_rows": 30,
    "max_visible_files": 20,
    "highlight_cache_size": 1000,
    "theme": "monokai",
    "watch": True,
    "watch_debounce_seconds": 0.5,
    "log_dir": ".hunkedit/logs",
}

# Config file search locations
_CONFIG_FILENAMES = [".hunkedit.yaml", ".hunkedit.yml"]


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("[Config] Ignoring unreadable config %s: %s", path, e)
        return {}


class Config:
    """Application configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables (``HUNKEDIT_*``)
    3. .hunkedit.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(key: str, cast=str):
            env_val = os.getenv(f"HUNKEDIT_{key.upper()}")
            default = _DEFAULTS[key]
            try:
                if env_val is not None:
                    return cast(env_val)
                yaml_val = yd.get(key)
                if yaml_val is not None:
                    return cast(yaml_val)
            except (TypeError, ValueError):
                logger.warning("[Config] Invalid value for %s, using default", key)
            return default

        def _get_bool(key: str) -> bool:
            env_val = os.getenv(f"HUNKEDIT_{key.upper()}")
            if env_val is not None:
                return env_val.lower() in ("1", "true", "yes")
            yaml_val = yd.get(key)
            if yaml_val is not None:
                return bool(yaml_val)
            return _DEFAULTS[key]

        self.DIFF_MODE = DiffMode(_get("diff_mode", cast=DiffMode))
        self.DIFF_VIEW = DiffView(_get("diff_view", cast=DiffView))
        self.COMPARE_BRANCH: str | None = _get("compare_branch") or None

        self.MAX_VISIBLE_ROWS = max(_get("max_visible_rows", cast=int), 1)
        self.MAX_VISIBLE_FILES = max(_get("max_visible_files", cast=int), 1)

        self.HIGHLIGHT_CACHE_SIZE = max(_get("highlight_cache_size", cast=int), 2)
        self.THEME = _get("theme")

        self.WATCH = _get_bool("watch")
        self.WATCH_DEBOUNCE_SECONDS = _get("watch_debounce_seconds", cast=float)

        self.LOG_DIR = _get("log_dir")

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
