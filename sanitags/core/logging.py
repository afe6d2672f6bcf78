"""
Text-safe logging module.
CRITICAL: Never log field values - they are untrusted user text.
Only log: record type, field name, policy name, depth, counts.
"""
import logging
import sys
from typing import Any

from sanitags.core.config import get_settings


def setup_logging() -> None:
    """Configure logging for applications embedding sanitags."""
    settings = get_settings()

    if settings.log_level is not None:
        log_level = getattr(logging, settings.log_level)
    else:
        log_level = logging.DEBUG if settings.service_env == "dev" else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True
    )


class SafeLogger:
    """
    Value-safe logger wrapper.
    Only allows logging of whitelisted context keys; anything else is dropped.
    """

    SAFE_FIELDS = frozenset({
        "record_type",
        "field",
        "policy",
        "depth",
        "elements",
        "configured",
    })

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _format_safe_context(self, context: dict[str, Any]) -> str:
        """Format only safe fields from context."""
        safe_items = []
        for key, value in context.items():
            if key in self.SAFE_FIELDS:
                safe_items.append(f"{key}={value}")
        return " | ".join(safe_items) if safe_items else ""

    def _emit(self, level: int, message: str, context: dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        ctx = self._format_safe_context(context)
        full_message = f"{message} | {ctx}" if ctx else message
        self._logger.log(level, full_message)

    def info(self, message: str, **context: Any) -> None:
        """Log info with safe context only."""
        self._emit(logging.INFO, message, context)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug with safe context only."""
        self._emit(logging.DEBUG, message, context)


def get_safe_logger(name: str) -> SafeLogger:
    """Get a value-safe logger instance."""
    return SafeLogger(name)
