"""AuthOrchestrator – end-to-end browser login.

The orchestrator owns the session state machine::

    NO_SESSION ──(persisted token accepted)──────────────────────► AUTHENTICATED
        │
        └─(no token) challenge → listener → browser ─► AWAITING_BROWSER_CALLBACK
                                                            │
                                           (callback handed off) ─► AUTHENTICATED

Any error moves to ``FAILED`` and is raised to the caller, which must not
continue to device provisioning.

Collaborators are injected: a :class:`~mozvpn_client.auth.store.SessionStore`
for the token, an :class:`~mozvpn_client.api.client.AccountClient` for HTTP,
a browser opener and a listener factory.  Tests replace all four.
"""

from __future__ import annotations

import enum
import logging
import threading
import uuid
import webbrowser
from dataclasses import dataclass
from typing import Callable

from mozvpn_client.api.client import AccountClient
from mozvpn_client.api.models import LoginResult, User
from mozvpn_client.auth.clock import Clock, default_clock
from mozvpn_client.auth.listener import CallbackListener
from mozvpn_client.auth.log_utils import get_auth_logger
from mozvpn_client.auth.pkce import create_challenge
from mozvpn_client.auth.store import TOKEN_KEY, SessionStore
from mozvpn_client.config import ClientConfig
from mozvpn_client.errors import (
    BrowserLaunchError,
    LoginInProgressError,
    MozVPNError,
    ProtocolError,
)

_LOG = logging.getLogger("mozvpn-client.auth.service")

BrowserOpener = Callable[[str], bool]
ListenerFactory = Callable[..., CallbackListener]

_REJECTED_TOKEN_STATUSES = (401, 403)


class AuthState(str, enum.Enum):
    NO_SESSION = "no_session"
    AWAITING_BROWSER_CALLBACK = "awaiting_browser_callback"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Session:
    """Session token together with the account it belongs to."""

    token: str
    user: User


class AuthOrchestrator:
    """Drive the login: persisted token first, browser flow otherwise."""

    def __init__(
        self,
        client: AccountClient,
        store: SessionStore,
        *,
        config: ClientConfig | None = None,
        open_browser: BrowserOpener = webbrowser.open,
        listener_factory: ListenerFactory = CallbackListener,
        clock: Clock = default_clock,
    ) -> None:
        self.client = client
        self.store = store
        self.config = config or client.config
        self._open_browser = open_browser
        self._listener_factory = listener_factory
        self._clock = clock
        self._state = AuthState.NO_SESSION
        self._state_lock = threading.Lock()

    @property
    def state(self) -> AuthState:
        return self._state

    def _transition(self, new_state: AuthState) -> None:
        _LOG.debug("Auth state %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def authenticate(
        self,
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> Session:
        """Return an authenticated :class:`Session` or raise.

        Parameters
        ----------
        timeout:
            Seconds to wait for the browser callback; defaults to
            ``config.login_timeout``.  ``0`` or a negative value means no
            deadline.
        cancel:
            Optional event aborting the browser wait.
        """
        with self._state_lock:
            if self._state is AuthState.AWAITING_BROWSER_CALLBACK:
                raise LoginInProgressError("a browser login is already awaiting its callback")
            self._transition(AuthState.NO_SESSION)
        try:
            token = self.store.get(TOKEN_KEY)
            if token:
                session = self._resume(token, timeout=timeout, cancel=cancel)
            else:
                session = self.login(timeout=timeout, cancel=cancel)
        except BaseException:
            self._transition(AuthState.FAILED)
            raise
        self._transition(AuthState.AUTHENTICATED)
        return session

    def login(
        self,
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> Session:
        """Run the browser flow and persist the new session token."""
        with self._state_lock:
            if self._state is AuthState.AWAITING_BROWSER_CALLBACK:
                raise LoginInProgressError("a browser login is already awaiting its callback")
            self._transition(AuthState.AWAITING_BROWSER_CALLBACK)

        try:
            result = self._browser_login(timeout=timeout, cancel=cancel)
            self.store.set(TOKEN_KEY, result.token)
        except BaseException:
            self._transition(AuthState.FAILED)
            raise

        self._transition(AuthState.AUTHENTICATED)
        return Session(token=result.token, user=result.user)

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #
    def _resume(
        self,
        token: str,
        *,
        timeout: float | None,
        cancel: threading.Event | None,
    ) -> Session:
        try:
            user = self.client.get_user(token)
        except ProtocolError as exc:
            if (
                self.config.relogin_on_rejected_token
                and exc.status_code in _REJECTED_TOKEN_STATUSES
            ):
                _LOG.warning(
                    "Persisted session rejected with HTTP %s; starting browser login",
                    exc.status_code,
                )
                return self.login(timeout=timeout, cancel=cancel)
            raise
        _LOG.info("Resumed persisted session")
        return Session(token=token, user=user)

    def _browser_login(
        self,
        *,
        timeout: float | None,
        cancel: threading.Event | None,
    ) -> LoginResult:
        attempt_id = uuid.uuid4().hex
        port = self.config.callback_port
        log = get_auth_logger(
            base_logger_name="mozvpn-client.auth.service", attempt_id=attempt_id, port=port
        )

        challenge = create_challenge(base_url=self.config.base_url, callback_port=port)
        listener = self._listener_factory(
            challenge.verifier,
            self.client.verify_login,
            host=self.config.callback_host,
            port=port,
            attempt_id=attempt_id,
        )
        listener.start()
        try:
            log.info("Opening system browser for login")
            try:
                opened = self._open_browser(challenge.url)
            except webbrowser.Error as exc:
                raise BrowserLaunchError(f"unable to open browser: {exc}") from exc
            if not opened:
                raise BrowserLaunchError(
                    f"unable to open browser; visit {challenge.url} to sign in"
                )

            wait_for = self.config.login_timeout if timeout is None else timeout
            result = listener.wait(
                wait_for if wait_for and wait_for > 0 else None,
                cancel=cancel,
                clock=self._clock,
            )
        except MozVPNError as exc:
            log.error("Browser login failed: %s", exc)
            raise
        finally:
            listener.shutdown()

        log.info("Browser login completed")
        return result
