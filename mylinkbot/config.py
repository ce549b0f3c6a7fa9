"""Configuration loading and validation for mylinkbot."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from dotenv import load_dotenv
from loguru import logger

from mylinkbot.redirects.cache import DEFAULT_FETCH_TIMEOUT, DEFAULT_REDIRECTS_URL
from mylinkbot.redirects.resolver import DEFAULT_BASE_URL

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}"
VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


@dataclass(slots=True)
class Config:
    """Runtime configuration values."""

    discord_bot_token: str
    discord_guild_id: int | None
    redirects_url: str
    my_base_url: str
    redirects_fetch_timeout_seconds: float
    sentry_dsn: str
    sentry_environment: str
    log_level: str


def _normalize_log_level(raw_level: str | None) -> str:
    """Convert string log level into a loguru level name."""
    name = (raw_level or "INFO").strip().upper()
    if name not in VALID_LOG_LEVELS:
        logger.warning(f"LOG_LEVEL {name} is unknown. Using INFO.")
        return "INFO"
    return name


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with one at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level=_normalize_log_level(level), format=LOG_FORMAT)


def _parse_positive_float(raw_value: str | None, default: float, name: str) -> float:
    """Parse positive float config value with safe fallback."""
    if raw_value is None or not raw_value.strip():
        return default
    try:
        parsed = float(raw_value.strip())
    except ValueError:
        logger.warning(f"{name} must be float. Using default: {default:.1f}")
        return default
    if parsed <= 0:
        logger.warning(f"{name} must be > 0. Using default: {default:.1f}")
        return default
    return parsed


def _parse_guild_id(raw_value: str | None) -> int | None:
    if raw_value is None or not raw_value.strip():
        return None
    try:
        return int(raw_value.strip())
    except ValueError:
        logger.warning("DISCORD_GUILD_ID must be integer. Syncing commands globally.")
        return None


def load_config() -> Config:
    """Load config values from .env and validate them."""
    load_dotenv()

    log_level = _normalize_log_level(os.getenv("LOG_LEVEL", "INFO"))

    discord_token = os.getenv("DISCORD_BOT_TOKEN", "").strip()
    if not discord_token:
        logger.warning("DISCORD_BOT_TOKEN is empty. Discord bot will not start.")

    redirects_url = os.getenv("REDIRECTS_URL", "").strip() or DEFAULT_REDIRECTS_URL
    my_base_url = os.getenv("MY_BASE_URL", "").strip() or DEFAULT_BASE_URL

    fetch_timeout = _parse_positive_float(
        os.getenv("REDIRECTS_FETCH_TIMEOUT_SECONDS"),
        default=DEFAULT_FETCH_TIMEOUT,
        name="REDIRECTS_FETCH_TIMEOUT_SECONDS",
    )

    return Config(
        discord_bot_token=discord_token,
        discord_guild_id=_parse_guild_id(os.getenv("DISCORD_GUILD_ID")),
        redirects_url=redirects_url,
        my_base_url=my_base_url,
        redirects_fetch_timeout_seconds=fetch_timeout,
        sentry_dsn=os.getenv("SENTRY_DSN", "").strip(),
        sentry_environment=os.getenv("SENTRY_ENVIRONMENT", "").strip() or "production",
        log_level=log_level,
    )
