"""Error reporting to Sentry."""

from __future__ import annotations

from typing import Any

import sentry_sdk
from loguru import logger
from sentry_sdk.integrations.loguru import LoguruIntegration


def init_reporting(dsn: str, environment: str = "production") -> bool:
    """Enable Sentry. Returns False (and stays disabled) without a DSN."""
    if not dsn:
        logger.info("SENTRY_DSN not set, exception reporting disabled")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[LoguruIntegration()],
        send_default_pii=False,
    )
    logger.info(f"Sentry exception reporting enabled ({environment})")
    return True


def report_exception(err: BaseException, data: dict[str, Any] | None = None) -> None:
    """Send an exception with interaction context to Sentry. Never raises."""
    logger.opt(exception=err).warning(f"Reporting exception: {err}")
    try:
        with sentry_sdk.new_scope() as scope:
            if data:
                scope.set_context("data", data)
            sentry_sdk.capture_exception(err)
    except Exception as e:  # noqa: BLE001
        logger.warning(f"Failed to report exception to Sentry: {e}")
