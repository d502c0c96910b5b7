"""Logging setup and the booking event log."""

import logging
import sys
from typing import Any

from app.core.config import settings

# LogRecord extras copied into structured output when present
CONTEXT_FIELDS = ("request_id", "provider_id", "appointment_id", "action")

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio")


class StructuredFormatter(logging.Formatter):
    """``key=value`` formatter used outside development."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                fields[name] = value

        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)

        return " ".join(f"{key}={value}" for key, value in fields.items())


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once at startup.

    Args:
        level: Overrides ``settings.log_level`` when given
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    if settings.is_dev:
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    else:
        console_handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


class BookingEventLogger:
    """One log line per booking lifecycle event.

    Actions used by the engine: ``booking_committed``, ``booking_rejected``,
    ``booking_timeout``, ``booking.created`` and ``status_changed``.
    """

    def __init__(self, name: str = "booking.events") -> None:
        self.logger = get_logger(name)

    def log(
        self,
        action: str,
        provider_id: int,
        appointment_id: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log a booking event with provider and appointment context."""
        self.logger.info(
            f"BOOKING: action={action} provider={provider_id} "
            f"appointment={appointment_id if appointment_id is not None else 'none'} "
            f"metadata={metadata or {}}",
            extra={
                "action": action,
                "provider_id": provider_id,
                "appointment_id": appointment_id,
            },
        )


booking_logger = BookingEventLogger()
