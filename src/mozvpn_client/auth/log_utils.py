"""Structured logging helpers for the login flow.

This module purposefully restricts **which** contextual attributes are attached
to log records in order to avoid accidentally leaking secrets.  All helpers
ONLY inject the following *non-sensitive* fields:

- ``attempt_id`` – The login attempt identifier (first 6 chars kept)
- ``port``       – Local callback port of the attempt

Verifiers, authorization codes and session tokens never belong here.

Usage
-----
>>> from mozvpn_client.auth.log_utils import get_auth_logger
>>> log = get_auth_logger(
...     base_logger_name="mozvpn-client.auth.listener",
...     attempt_id="9f1c2a77d0e64c0e",
...     port=9443,
... )
>>> log.info("Waiting for browser callback")
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, MutableMapping


class _AuthLoggerAdapter(logging.LoggerAdapter):
    """Prefix records with the attempt context and attach it as ``extra``."""

    def __init__(self, logger: logging.Logger, extra: Mapping[str, Any] | None = None):
        context: dict[str, Any] = {}
        if extra:
            attempt_id = extra.get("attempt_id")
            if attempt_id:
                context["attempt_id"] = str(attempt_id)[:6]
            if extra.get("port") is not None:
                context["port"] = extra["port"]
        super().__init__(logger, context)
        self._prefix = " ".join(f"{k}={v}" for k, v in context.items())

    def process(self, msg: str, kwargs: MutableMapping[str, Any]):
        call_extra = kwargs.get("extra") or {}
        kwargs["extra"] = {**self.extra, **call_extra}
        if self._prefix:
            msg = f"[{self._prefix}] {msg}"
        return msg, kwargs


def get_auth_logger(
    *,
    base_logger_name: str = "mozvpn-client.auth",
    attempt_id: str | None = None,
    port: int | None = None,
) -> logging.LoggerAdapter:
    """Return a LoggerAdapter pre-filled with login context."""
    logger = logging.getLogger(base_logger_name)
    return _AuthLoggerAdapter(logger, {"attempt_id": attempt_id, "port": port})
