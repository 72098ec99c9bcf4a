"""Application settings resolved from a YAML file and environment variables."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError
import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV = "DEADLINES_CONFIG"
DATA_ENV = "DEADLINES_DATA"
LOG_LEVEL_ENV = "DEADLINES_LOG_LEVEL"


def app_home() -> Path:
    return Path.home() / ".deadlines"


class AppSettings(BaseModel):
    data_path: Path = Field(default_factory=lambda: app_home() / "defaults.json")
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def default_config_path() -> Path:
    env_path = os.getenv(CONFIG_ENV, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    return app_home() / "config.yaml"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a mapping", path)
        return {}
    return data


def load_settings(config_path: Optional[Path] = None) -> AppSettings:
    path = Path(config_path).expanduser() if config_path else default_config_path()
    data = _load_yaml(path)

    env_data = os.getenv(DATA_ENV, "").strip()
    env_level = os.getenv(LOG_LEVEL_ENV, "").strip()
    if env_data:
        data["data_path"] = env_data
    if env_level:
        data["log_level"] = env_level

    try:
        settings = AppSettings.model_validate(data)
    except ValidationError as exc:
        logger.warning("Invalid settings in %s, using defaults: %s", path, exc)
        return AppSettings()
    settings.data_path = settings.data_path.expanduser()
    if settings.log_file is not None:
        settings.log_file = settings.log_file.expanduser()
    return settings
