# EASY/easy/config_loader.py

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from easy.config import CONFIG_FILE_NAME, DEFAULT_SETTINGS, PROGRESS_MODES, SORT_MODES, USER_CONFIG_PATH
from easy.errors import ConfigError
from easy.logger_utils import app_logger


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Returns a new dict with override merged into base, recursing into nested dicts."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def validate_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Raises ConfigError if a setting holds a value the runner cannot use."""
    if settings.get("progress_mode") not in PROGRESS_MODES:
        raise ConfigError(
            f"Unknown progress_mode '{settings.get('progress_mode')}'. "
            f"Valid modes: {', '.join(PROGRESS_MODES)}."
        )
    if settings.get("sort_mode") not in SORT_MODES:
        raise ConfigError(f"Unknown sort_mode '{settings.get('sort_mode')}'. Valid modes: {', '.join(SORT_MODES)}.")
    if settings.get("script_source") not in ("repo", "builtin"):
        raise ConfigError(f"Unknown script_source '{settings.get('script_source')}'. Use 'repo' or 'builtin'.")
    for key in ("tail_lines", "poll_interval"):
        value = settings.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"'{key}' must be a positive number, got {value!r}.")
    if not settings.get("script_suffixes"):
        raise ConfigError("'script_suffixes' must list at least one suffix.")
    return settings


def _default_config_path() -> Optional[Path]:
    for candidate in (Path.cwd() / CONFIG_FILE_NAME, USER_CONFIG_PATH):
        if candidate.is_file():
            return candidate
    return None


def load_configuration(config_file: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Loads the JSON configuration and merges it over DEFAULT_SETTINGS.

    Without an explicit path, ./easy.json and ~/.config/easy/easy.json are
    tried in turn and the defaults are used when neither exists. An explicit
    path that is missing, or any file that does not parse, raises ConfigError.
    """
    if config_file is None:
        config_path = _default_config_path()
        if config_path is None:
            app_logger.info("No configuration file found; using built-in defaults.")
            return validate_settings(copy.deepcopy(DEFAULT_SETTINGS))
    else:
        config_path = Path(config_file).expanduser()
        if not config_path.is_file():
            raise ConfigError(f"Configuration file '{config_path}' not found.")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_settings = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"Error loading configuration file '{config_path}': {e}") from e

    if not isinstance(user_settings, dict):
        raise ConfigError(f"Configuration file '{config_path}' must contain a JSON object.")

    app_logger.info(f"Loaded configuration from {config_path}")
    return validate_settings(deep_merge(DEFAULT_SETTINGS, user_settings))
