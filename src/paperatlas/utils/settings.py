# src/paperatlas/utils/settings.py
"""
Runtime settings.

Resolution order (later wins):
1. Defaults below.
2. YAML file at ``PAPERATLAS_SETTINGS`` (default ``config/pipeline.yaml``),
   if it exists.
3. ``PAPERATLAS_*`` environment variables.

Example config/pipeline.yaml:

    data_dir: data
    fetch:
      min_interval: 3.2
      timeout: 15
      retries: 2
      retry_delay: 1.2
      user_agent: "paperatlas/0.1 (mailto:ops@example.org)"
    feeds:
      limit_latest: 12
      limit_trending: 12
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from paperatlas.domain.errors import ConfigurationError
from paperatlas.infrastructure.api_clients.rate_limited_client import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = "config/pipeline.yaml"


@dataclass
class FetchSettings:
    min_interval: float = 3.2
    timeout: float = 15.0
    retries: int = 2
    retry_delay: float = 1.2
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class FeedSettings:
    limit_latest: int = 12
    limit_trending: int = 12


@dataclass
class Settings:
    data_dir: str = "data"
    fetch: FetchSettings = field(default_factory=FetchSettings)
    feeds: FeedSettings = field(default_factory=FeedSettings)


_ENV_OVERRIDES = {
    "PAPERATLAS_DATA_DIR": ("data_dir", None, str),
    "PAPERATLAS_FETCH_MIN_INTERVAL": ("fetch", "min_interval", float),
    "PAPERATLAS_FETCH_TIMEOUT": ("fetch", "timeout", float),
    "PAPERATLAS_FETCH_RETRIES": ("fetch", "retries", int),
    "PAPERATLAS_FETCH_RETRY_DELAY": ("fetch", "retry_delay", float),
    "PAPERATLAS_USER_AGENT": ("fetch", "user_agent", str),
    "PAPERATLAS_FEED_LIMIT": ("feeds", None, int),
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid settings file {path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")
    logger.info(f"Loaded settings from {path}")
    return config


def _apply_section(target: Any, values: Any, section: str) -> None:
    if not values:
        return
    if not isinstance(values, dict):
        raise ConfigurationError(f"Settings section '{section}' must be a mapping")
    for key, value in values.items():
        if not hasattr(target, key):
            logger.warning(f"Unknown setting {section}.{key} ignored")
            continue
        current = getattr(target, key)
        try:
            setattr(target, key, type(current)(value))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value for {section}.{key}: {value!r}") from e


def load_settings(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from defaults, the YAML file and the environment.

    Raises:
        ConfigurationError: Unparseable YAML or a value of the wrong type.
    """
    environ = os.environ if environ is None else environ
    settings_path = Path(path or environ.get("PAPERATLAS_SETTINGS") or DEFAULT_SETTINGS_PATH)
    config = _load_yaml(settings_path)

    settings = Settings()
    if config.get("data_dir"):
        settings.data_dir = str(config["data_dir"])
    _apply_section(settings.fetch, config.get("fetch"), "fetch")
    _apply_section(settings.feeds, config.get("feeds"), "feeds")

    for env_name, (section, key, cast) in _ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            value = cast(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}") from e

        if section == "data_dir":
            settings.data_dir = value
        elif section == "feeds":
            settings.feeds.limit_latest = value
            settings.feeds.limit_trending = value
        else:
            setattr(getattr(settings, section), key, value)

    return settings
