import logging
import os

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from ..exceptions import DomainException

logger = logging.getLogger(__name__)


def parse_sample_rate(env_var: str, default: float = 0.0) -> float:
    raw_value = os.getenv(env_var)
    if raw_value is None:
        return default

    try:
        value = float(raw_value)
    except ValueError:
        logger.warning(
            "%s is not a valid float (got %r); defaulting to %.2f",
            env_var,
            raw_value,
            default,
        )
        return default

    if value < 0:
        logger.warning("%s cannot be negative; defaulting to %.2f", env_var, default)
        return default

    return value


def drop_rejected_commands(event, hint):
    """``before_send`` hook: keep scoring rejections out of Sentry.

    Wrong-turn throws, finished matches and bad match setups are answered
    with 4xx problems and say nothing about the service's health. Store
    failures (5xx) are still reported.
    """

    exc_info = (hint or {}).get("exc_info")
    if exc_info:
        exc = exc_info[1]
        if isinstance(exc, DomainException) and exc.status_code < 500:
            return None
    return event


def init_sentry() -> bool:
    """Initialise Sentry from the environment; return whether it is enabled."""

    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        logger.info("SENTRY_DSN not provided; skipping Sentry initialization.")
        return False

    environment = (os.getenv("SENTRY_ENVIRONMENT") or "").strip() or None
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FastApiIntegration()],
        environment=environment,
        release=(os.getenv("SENTRY_RELEASE") or "").strip() or None,
        traces_sample_rate=parse_sample_rate("SENTRY_TRACES_SAMPLE_RATE", default=0.0),
        profiles_sample_rate=parse_sample_rate("SENTRY_PROFILES_SAMPLE_RATE", default=0.0),
        before_send=drop_rejected_commands,
    )
    sentry_sdk.set_tag("service", "darts-scoring")
    logger.info(
        "Initialized Sentry%s",
        f" (environment={environment})" if environment else "",
    )
    return True
