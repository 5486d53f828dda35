"""Logging setup.

Modules log event names and pass structured fields through ``extra=``::

    logger.info("ocr_fallback", extra={"primary": "on-device", "error": "..."})

The formatter installed here appends those fields as ``key=value`` pairs.
"""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes present on every LogRecord; anything else came from ``extra``.
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


class ExtraFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = {k: v for k, v in record.__dict__.items() if k not in _RESERVED}
        if extras:
            line += " | " + " ".join(f"{k}={v}" for k, v in sorted(extras.items()))
        return line


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ExtraFormatter(LOG_FORMAT, DATE_FORMAT))
    root.addHandler(handler)

    # Third-party noise
    for name in ("urllib3", "requests", "botocore", "boto3", "ppocr"):
        logging.getLogger(name).setLevel(logging.WARNING)
