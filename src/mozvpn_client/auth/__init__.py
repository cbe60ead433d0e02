"""Browser login core package.

Sub-modules
-----------
clock
    Test-friendly time abstraction.
pkce
    Proof-Key for Code Exchange helpers and the login URL.
listener
    Per-attempt local HTTP endpoint receiving the OAuth redirect.
service
    Session state machine driving the login end to end.
store
    Key-value persistence for the session token and device keys.
log_utils
    Structured logging helpers (thin wrapper around :pymod:`logging`).

All public objects are re-exported here for convenience.
"""

from __future__ import annotations

from .clock import Clock, default_clock  # noqa: F401
from .listener import CallbackListener  # noqa: F401
from .log_utils import get_auth_logger  # noqa: F401
from .pkce import PKCEChallenge, code_challenge_s256, create_challenge, generate_code_verifier  # noqa: F401
from .service import AuthOrchestrator, AuthState, Session  # noqa: F401
from .store import (  # noqa: F401
    PRIVATE_KEY_KEY,
    PUBLIC_KEY_KEY,
    TOKEN_KEY,
    DiskSessionStore,
    MemorySessionStore,
    SessionStore,
    default_store,
)

__all__ = [
    # clock
    "Clock",
    "default_clock",
    # pkce
    "PKCEChallenge",
    "create_challenge",
    "generate_code_verifier",
    "code_challenge_s256",
    # listener
    "CallbackListener",
    # service
    "AuthOrchestrator",
    "AuthState",
    "Session",
    # store
    "SessionStore",
    "MemorySessionStore",
    "DiskSessionStore",
    "default_store",
    "TOKEN_KEY",
    "PUBLIC_KEY_KEY",
    "PRIVATE_KEY_KEY",
    # logging helpers
    "get_auth_logger",
]
