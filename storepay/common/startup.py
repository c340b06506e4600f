"""Startup-time helpers for safe config logging."""

from storepay.common.config import GatewaySettings
from storepay.common.logging import logger


_SECRET_MARKERS = ("KEY", "SECRET", "PASSWORD", "TOKEN", "DSN")


def _safe_value(name: str, value) -> str:
    """Return a printable value with simple redaction for secret-like names."""

    if value is None:
        return "<unset>"
    if any(marker in name.upper() for marker in _SECRET_MARKERS):
        return "<redacted>"
    return str(value)


def log_startup_config(settings: GatewaySettings) -> None:
    """Log the effective settings for quick troubleshooting."""

    config = {"service": settings.service_name}
    for key, value in settings.model_dump().items():
        config[key.upper()] = _safe_value(key, value)
    config["INTERACTION_URL"] = settings.interaction_url
    logger.info("startup_config=%s", config)
