# permatrix/config/defaults.py

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_logger(level_name: str) -> logging.Logger:
    """Return the package logger, attaching a stream handler once."""
    log = logging.getLogger("permatrix")
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    log.setLevel(level)
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    return log


logger = _configure_logger(os.getenv("PERMATRIX_LOG_LEVEL", "INFO"))


def _env_int(name: str, fallback: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer, using {fallback}")
        return fallback
    if value < minimum:
        logger.warning(f"Ignoring {name}={value}: must be >= {minimum}, using {fallback}")
        return fallback
    return value


@dataclass
class Default:
    """Runtime settings. Attributes may be reassigned (tests do)."""

    LOG_LEVEL: str = "INFO"
    MEMOIZE_MAX_SIZE: int = 100
    VISIBLE_TABLES_CACHE_SIZE: int = 20


def load_defaults() -> Default:
    return Default(
        LOG_LEVEL=os.getenv("PERMATRIX_LOG_LEVEL", "INFO").upper(),
        MEMOIZE_MAX_SIZE=_env_int("PERMATRIX_MEMOIZE_MAX_SIZE", 100),
        VISIBLE_TABLES_CACHE_SIZE=_env_int("PERMATRIX_VISIBLE_TABLES_CACHE_SIZE", 20),
    )


default = load_defaults()
logger.debug(f"Loaded defaults: {default}")
