"""Environment-driven settings for the scoring service.

Values are read once at import time. Set the variables in the process
environment (or a `.env` loaded by the process manager) to override them.
"""

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.exceptions import ConfigurationError

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Read/Write partitioning, see database/database.py
WRITE_DATABASE_URL = os.getenv("WRITE_DATABASE_URL", "sqlite:///fuelscore.db")
READ_DATABASE_URL = os.getenv("READ_DATABASE_URL", WRITE_DATABASE_URL)

LOG_DIR = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Weekly boundaries are a single-market business rule, not the viewer's zone.
REGION_TIMEZONE = os.getenv("REGION_TIMEZONE", "Asia/Jakarta")

SCORING_CONFIG_PATH = os.getenv("SCORING_CONFIG_PATH") or None

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be numeric, got {raw!r}", config_key=key)


DEFAULT_WEIGHT_KG = _env_float("DEFAULT_WEIGHT_KG", 70.0)
DEFAULT_HEIGHT_CM = _env_float("DEFAULT_HEIGHT_CM", 170.0)
DEFAULT_AGE = int(_env_float("DEFAULT_AGE", 30))
DEFAULT_SEX = os.getenv("DEFAULT_SEX", "male")

# Widget cache TTLs (seconds)
DASHBOARD_CACHE_TTL = _env_float("DASHBOARD_CACHE_TTL", 120)
MEAL_PLAN_CACHE_TTL = _env_float("MEAL_PLAN_CACHE_TTL", 300)
WEEKLY_DISTANCE_CACHE_TTL = _env_float("WEEKLY_DISTANCE_CACHE_TTL", 600)
WIDGET_CACHE_VERSION = os.getenv("WIDGET_CACHE_VERSION", "v1.0.0")


def get_zone(name: str = None) -> ZoneInfo:
    """Resolve an IANA timezone name, defaulting to the region timezone.

    Raises:
        ConfigurationError: If the name is not a known timezone.
    """
    name = name or REGION_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"Unknown timezone '{name}'", config_key="REGION_TIMEZONE")
