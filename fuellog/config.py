"""Settings read from the environment."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .units import UnitSystem, default_unit_system

DEFAULT_STORE_FILE = "fuel_log.yaml"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def store_path() -> Path:
    """Store file used by the web app (FUEL_LOG_STORE)."""
    return Path(os.environ.get("FUEL_LOG_STORE", DEFAULT_STORE_FILE))


def log_level() -> str:
    """Logging level name (FUEL_LOG_LEVEL), INFO by default."""
    return os.environ.get("FUEL_LOG_LEVEL", "INFO").upper()


def default_units() -> UnitSystem:
    """Unit system for a new store (FUEL_LOG_UNITS, else guessed from LANG)."""
    return default_unit_system(
        os.environ.get("FUEL_LOG_UNITS"), os.environ.get("LANG")
    )


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """Configure root logging for the CLI and web entry points."""
    if level is None:
        level = log_level()
    if isinstance(level, str):
        level = getattr(logging, level, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
