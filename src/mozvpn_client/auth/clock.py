"""Clock abstraction for testable time handling in the login flow.

This module defines a `Clock` protocol representing callables that return a
monotonically increasing number of seconds as ``float``.  The callback wait
computes its deadline from an injected ``Clock`` instance rather than calling
``time.monotonic()`` directly, so tests can drive timeouts without sleeping.

Example
-------
>>> from mozvpn_client.auth.clock import default_clock
>>> now = default_clock()
>>> isinstance(now, float)
True
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Callable protocol returning elapsed *seconds* from an arbitrary origin."""

    def __call__(self) -> float: ...


def default_clock() -> float:
    """Default implementation that delegates to ``time.monotonic()``."""
    return time.monotonic()
