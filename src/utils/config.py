"""
Configuration for the Kitchen Back Office application.

Settings come from KITCHEN_BACKOFFICE_* environment variables with the
defaults in constants.py:

- KITCHEN_BACKOFFICE_ENV: production (database under ~/Documents) or
  development (database under the project's data/ directory)
- KITCHEN_BACKOFFICE_DATABASE_URL: full SQLAlchemy URL, overrides the path
- KITCHEN_BACKOFFICE_LABOR_RATE: hourly labor rate for recipe costing
- KITCHEN_BACKOFFICE_IMPORT_BATCH_SIZE: rows committed per import batch
- KITCHEN_BACKOFFICE_ORGANIZATION_ID / KITCHEN_BACKOFFICE_USER_ID: identity
  used by command-line tools when none is passed
"""

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DEFAULT_LABOR_RATE_PER_HOUR,
    IMPORT_BATCH_SIZE,
)

logger = logging.getLogger(__name__)

ENV_VAR_ENVIRONMENT = "KITCHEN_BACKOFFICE_ENV"
ENV_VAR_LABOR_RATE = "KITCHEN_BACKOFFICE_LABOR_RATE"
ENV_VAR_IMPORT_BATCH_SIZE = "KITCHEN_BACKOFFICE_IMPORT_BATCH_SIZE"
ENV_VAR_DATABASE_URL = "KITCHEN_BACKOFFICE_DATABASE_URL"
ENV_VAR_ORGANIZATION_ID = "KITCHEN_BACKOFFICE_ORGANIZATION_ID"
ENV_VAR_USER_ID = "KITCHEN_BACKOFFICE_USER_ID"

PROJECT_DATA_DIR = Path(__file__).parent.parent.parent / "data"
USER_DATA_DIR = Path.home() / "Documents" / "KitchenBackOffice"


def _env_number(name: str, default, cast: Callable, allow_zero: bool = True):
    """
    Read a numeric environment variable.

    Unparseable or out-of-range values are logged and replaced by ``default``
    so a typo in the environment never stops the application.
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        value = None
    if value is None or value < 0 or (value == 0 and not allow_zero):
        logger.warning(f"Ignoring invalid {name}={raw!r}; using default {default}")
        return default
    return value


class Config:
    """Environment mode, database location and costing/import settings."""

    def __init__(self, environment: str = "production"):
        self.environment = environment

        base_dir = PROJECT_DATA_DIR if environment == "development" else USER_DATA_DIR
        self._database_path = base_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get(ENV_VAR_DATABASE_URL)

        self.labor_rate_per_hour: float = _env_number(
            ENV_VAR_LABOR_RATE, DEFAULT_LABOR_RATE_PER_HOUR, float
        )
        self.import_batch_size: int = _env_number(
            ENV_VAR_IMPORT_BATCH_SIZE, IMPORT_BATCH_SIZE, int, allow_zero=False
        )

        self.default_organization_id = os.environ.get(ENV_VAR_ORGANIZATION_ID)
        self.default_user_id = os.environ.get(ENV_VAR_USER_ID)

    @property
    def app_name(self) -> str:
        return APP_NAME

    @property
    def app_version(self) -> str:
        return APP_VERSION

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def database_path(self) -> Path:
        return self._database_path

    @property
    def database_url(self) -> str:
        """The URL override when set, otherwise SQLite at database_path."""
        if self._database_url_override:
            return self._database_url_override
        return f"sqlite:///{self._database_path.as_posix()}"

    def database_exists(self) -> bool:
        return self._database_path.exists()

    def ensure_directories(self) -> None:
        self._database_path.parent.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Return the process-wide Config, creating it on first use.

    ``environment`` (default: KITCHEN_BACKOFFICE_ENV, else production) only
    applies on creation. A later call asking for a different environment
    gets the existing instance and a warning, so the database never switches
    underneath running services.
    """
    global _config_instance

    if _config_instance is None:
        _config_instance = Config(environment or os.environ.get(ENV_VAR_ENVIRONMENT, "production"))
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config(environment='{environment}') ignored; already configured "
            f"for '{_config_instance.environment}'"
        )

    return _config_instance


def reset_config():
    """Drop the cached Config so the next get_config() rereads the environment."""
    global _config_instance
    _config_instance = None
