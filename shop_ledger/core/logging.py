import logging
import sys


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure package-wide logging with a console handler."""

    logger = logging.getLogger("shop_ledger")
    if logger.handlers:
        return logger

    logger.setLevel(level.upper())
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
