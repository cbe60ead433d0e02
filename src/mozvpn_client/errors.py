"""Exception types raised by the VPN client core.

Only lightweight, **data-carrying** exceptions live here so that the CLI (or
any other front end) can transform them into exit codes or user-friendly
messages.

Taxonomy
--------
TransportError
    Request construction or network failure.
ProtocolError
    The server answered with an unexpected HTTP status.
DecodeError
    The response body is not the JSON document we expected.
PolicyError
    A local rule refused to continue (device limit, bad challenge input).
StoreError
    The preference file is unreadable, corrupt or locked.
LoginError
    The browser login could not complete (timeout, cancellation, listener).
"""

from __future__ import annotations


class MozVPNError(RuntimeError):
    """Base class of every error raised by :mod:`mozvpn_client`."""

    kind: str = "error"

    def to_payload(self) -> dict[str, str]:
        """Return a JSON-serialisable payload **without secrets**."""
        return {"error": self.kind, "message": str(self)}


class TransportError(MozVPNError):
    """Raised when a request cannot be built or sent."""

    kind = "transport"


class ProtocolError(MozVPNError):
    """Raised when the server does not answer with the expected status."""

    kind = "protocol"

    def __init__(self, message: str, *, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code: int = status_code
        self.body: str = body

    def to_payload(self) -> dict[str, str]:
        payload = super().to_payload()
        payload["status_code"] = str(self.status_code)
        return payload


class DecodeError(MozVPNError):
    """Raised when a response body cannot be parsed into a model."""

    kind = "decode"


class PolicyError(MozVPNError):
    """Raised when a local policy forbids the requested operation."""

    kind = "policy"


class DeviceLimitError(PolicyError):
    """Raised when the account cannot accept another device key."""

    kind = "device_limit"

    def __init__(self, *, device_count: int, limit: int) -> None:
        super().__init__(
            f"device limit reached: the account already has {device_count} "
            f"devices and only supports up to {limit} public keys; "
            "remove a device before registering this one"
        )
        self.device_count: int = device_count
        self.limit: int = limit


class ChallengeError(PolicyError):
    """Raised when the PKCE challenge cannot be built."""

    kind = "challenge"


class StoreError(MozVPNError):
    """Raised when the preference file cannot be read, parsed or written."""

    kind = "store"


class LoginError(MozVPNError):
    """Raised when the browser-based login does not complete."""

    kind = "login"


class LoginTimeoutError(LoginError):
    """No valid callback arrived before the deadline."""

    kind = "login_timeout"


class LoginCancelledError(LoginError):
    """The caller cancelled the wait for the browser callback."""

    kind = "login_cancelled"


class LoginInProgressError(LoginError):
    """A second login was started while one is still awaiting its callback."""

    kind = "login_in_progress"


class BrowserLaunchError(LoginError):
    """The system browser could not be opened."""

    kind = "browser"


class ListenerError(LoginError):
    """The local callback listener could not be started."""

    kind = "listener"
