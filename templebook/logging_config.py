import os
import sys

from loguru import logger

LOG_FORMAT = "{time} | {level} | {message}"

_configured = False


def _log_type(name):
    return lambda record: record["extra"].get("log_type") == name


def configure_logging(log_dir: str = "logs", level: str = "INFO"):
    """Install the application sinks. Safe to call more than once."""
    global _configured
    if _configured:
        return logger

    # Create folder if missing
    os.makedirs(log_dir, exist_ok=True)

    # Remove default handler
    logger.remove()

    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    # General application log
    logger.add(
        f"{log_dir}/app.log",
        rotation="1 week",
        retention="4 weeks",
        level=level,
        enqueue=True,
        format=LOG_FORMAT,
    )

    # Booking admissions and cancellations
    logger.add(
        f"{log_dir}/bookings.log",
        rotation="1 week",
        retention="4 weeks",
        level="INFO",
        enqueue=True,
        filter=_log_type("booking"),
        format=LOG_FORMAT,
    )

    # Ticket scans
    logger.add(
        f"{log_dir}/verifications.log",
        rotation="1 week",
        retention="4 weeks",
        level="INFO",
        enqueue=True,
        filter=_log_type("verification"),
        format=LOG_FORMAT,
    )

    # Admin activity logs
    logger.add(
        f"{log_dir}/admin.log",
        rotation="1 week",
        retention="4 weeks",
        level="INFO",
        enqueue=True,
        filter=_log_type("admin"),
        format=LOG_FORMAT,
    )

    # Error logs
    logger.add(
        f"{log_dir}/errors.log",
        rotation="1 week",
        retention="8 weeks",
        level="ERROR",
        enqueue=True,
    )

    _configured = True
    return logger


def get_logger(log_type: str = None):
    if log_type:
        return logger.bind(log_type=log_type)
    return logger
