"""
Configuration for the ML Studio client.

Settings are resolved per field in this order:
1. Explicit overrides passed to load_settings (command-line options)
2. Environment variables (``MLSTUDIO_API_URL``, ``MLSTUDIO_SESSION_DIR``, ...)
3. YAML settings file (``MLSTUDIO_SETTINGS`` or ``studio_settings.yaml`` in
   the per-user data directory)
4. Built-in defaults

The upload size cap, the allowed extensions and the session freshness
window are client constants; they are never negotiated with the service.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import platformdirs
import yaml
from pydantic import BaseModel, Field

from .shared.logger import get_logger

logger = get_logger(__name__)

APP_NAME = "ml-studio"
APP_AUTHOR = "ml-studio"

SETTINGS_FILE = "studio_settings.yaml"

DEFAULT_API_URL = "http://localhost:5000"
MAX_FILE_SIZE = 500 * 1024 * 1024
ALLOWED_FILE_TYPES: Tuple[str, ...] = (".csv", ".xlsx", ".xls")
HEALTH_CHECK_INTERVAL = 30.0
SESSION_TTL_HOURS = 24
SESSION_KEY = "mlStudioState"

ENDPOINTS: Dict[str, str] = {
    "HEALTH": "/health",
    "UPLOAD": "/upload",
    "ANALYZE": "/analyze",
    "DATASET_INFO": "/dataset_info",
    "GET_COLUMNS": "/get_columns",
}

# Environment variable -> settings field
_ENV_OVERRIDES: Dict[str, str] = {
    "MLSTUDIO_API_URL": "api_url",
    "MLSTUDIO_SESSION_DIR": "session_dir",
    "MLSTUDIO_HEALTH_INTERVAL": "health_interval_seconds",
    "MLSTUDIO_REQUEST_TIMEOUT": "request_timeout",
    "MLSTUDIO_READ_TIMEOUT": "read_timeout",
    "MLSTUDIO_LOG_LEVEL": "log_level",
}


def get_data_dir() -> Path:
    """Get the per-user directory holding settings and the session record."""
    return Path(platformdirs.user_data_dir(APP_NAME, APP_AUTHOR))


class Settings(BaseModel):
    """Client settings."""

    api_url: str = DEFAULT_API_URL
    max_file_size: int = MAX_FILE_SIZE
    allowed_extensions: Tuple[str, ...] = ALLOWED_FILE_TYPES
    health_interval_seconds: float = HEALTH_CHECK_INTERVAL
    session_ttl_hours: float = SESSION_TTL_HOURS
    session_key: str = SESSION_KEY
    session_dir: Path = Field(default_factory=lambda: get_data_dir() / "session")
    request_timeout: float = 30.0
    read_timeout: float = 300.0
    log_level: str = "INFO"

    model_config = {"frozen": True}

    @property
    def base_url(self) -> str:
        """API URL without a trailing slash."""
        return self.api_url.rstrip("/")


def _load_settings_file(path: Path) -> Dict[str, Any]:
    """Read the YAML settings file, returning an empty mapping when unusable."""
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not load settings file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: expected a mapping", path)
        return {}
    return data


def load_settings(
    settings_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Settings:
    """Build Settings from defaults, the YAML file and the environment.

    Args:
        settings_path: Explicit YAML file. Defaults to ``MLSTUDIO_SETTINGS``
            or ``studio_settings.yaml`` in the user data directory.
        overrides: Values applied last, e.g. from command-line options.
            ``None`` values are ignored.
    """
    if settings_path is None:
        env_path = os.environ.get("MLSTUDIO_SETTINGS")
        settings_path = Path(env_path) if env_path else get_data_dir() / SETTINGS_FILE

    data = _load_settings_file(settings_path)

    # Client constants, not configurable
    for fixed in ("max_file_size", "allowed_extensions", "session_ttl_hours", "session_key"):
        data.pop(fixed, None)

    for env, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env)
        if value:
            data[field_name] = value

    for field_name, value in (overrides or {}).items():
        if value is not None:
            data[field_name] = value

    return Settings(**data)
