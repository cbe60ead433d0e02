"""Logging utilities shared by the client and its command-line front end."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def mask_sensitive(value: str | None, keep_chars: int = 4) -> str:
    """Return *value* with everything after the first ``keep_chars`` hidden."""
    if not value:
        return ""
    if len(value) <= keep_chars:
        return "*" * len(value)
    return f"{value[:keep_chars]}{'*' * min(len(value) - keep_chars, 8)}"


def setup_logging(level: int = logging.WARNING, stream=None) -> logging.Logger:
    """Configure the ``mozvpn-client`` logger hierarchy.

    Handlers are replaced rather than appended so repeated CLI invocations
    within one process (tests) do not duplicate output.
    """
    logger = logging.getLogger("mozvpn-client")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return logger
