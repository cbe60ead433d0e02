"""Local HTTP listener receiving the OAuth redirect of one login attempt.

The provider redirects the system browser to
``http://localhost:<port>/?code=<authorization_code>`` after consent.  Each
login attempt builds its **own** :class:`CallbackListener`: a Starlette
application with a single route, served by uvicorn on a background thread and
torn down as soon as the orchestrator has its result.

Handler rules:

1. A request without ``code`` is ignored (empty response, nothing delivered).
2. A request with ``code`` is exchanged synchronously for a session using the
   attempt's verifier.
3. A successful exchange is delivered once through a single-slot queue.
4. A failed exchange is logged; the listener keeps waiting for another
   callback.

No raw secrets (codes, verifiers, tokens) are ever logged.
"""

from __future__ import annotations

import html
import logging
import queue
import threading
import time
from typing import Callable, Final

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, Response
from starlette.routing import Route

from mozvpn_client.api.models import LoginResult
from mozvpn_client.auth.clock import Clock, default_clock
from mozvpn_client.auth.log_utils import get_auth_logger
from mozvpn_client.errors import (
    ListenerError,
    LoginCancelledError,
    LoginTimeoutError,
    MozVPNError,
)

_LOG_NAME: Final[str] = "mozvpn-client.auth.listener"
_STARTUP_TIMEOUT: Final[float] = 5.0
_SHUTDOWN_TIMEOUT: Final[float] = 5.0
_POLL_INTERVAL: Final[float] = 0.1

Exchange = Callable[[str, str], LoginResult]


def _html_page(title: str, body: str, status: int = 200) -> HTMLResponse:
    """Return a tiny success / error HTML page; *title* and *body* are escaped."""
    title, body = html.escape(title), html.escape(body)
    content = (
        "<!doctype html><html lang='en'>"
        "<head><meta charset='utf-8'><title>"
        f"{title}</title></head><body><h1>{title}</h1><p>{body}</p></body></html>"
    )
    return HTMLResponse(content, status_code=status)


class _ThreadedServer(uvicorn.Server):
    """uvicorn server that leaves process signal handling to the main thread."""

    def install_signal_handlers(self) -> None:  # pragma: no cover - older uvicorn only
        pass


class CallbackListener:
    """Per-attempt callback endpoint delivering at most one :class:`LoginResult`."""

    def __init__(
        self,
        verifier: str,
        exchange: Exchange,
        *,
        host: str = "localhost",
        port: int = 9443,
        attempt_id: str | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self._verifier = verifier
        self._exchange = exchange
        self._handoff: "queue.Queue[LoginResult]" = queue.Queue(maxsize=1)
        self._delivered = threading.Event()
        self._exchange_lock = threading.Lock()
        self._server: _ThreadedServer | None = None
        self._thread: threading.Thread | None = None
        self._log = get_auth_logger(base_logger_name=_LOG_NAME, attempt_id=attempt_id, port=port)
        self.app = Starlette(routes=[Route("/", self._callback, methods=["GET"])])

    # ------------------------------------------------------------------ #
    # HTTP handler                                                       #
    # ------------------------------------------------------------------ #
    def _callback(self, request: Request) -> Response:
        oauth_error = request.query_params.get("error")
        if oauth_error:
            self._log.warning("Provider redirected with error=%s", oauth_error)
            return _html_page("Authorization error", oauth_error, 400)

        code = request.query_params.get("code")
        if not code:
            self._log.debug("Ignoring callback request without code")
            return Response(status_code=200)

        with self._exchange_lock:
            if self._delivered.is_set():
                self._log.info("Ignoring callback received after login completed")
                return _html_page("Already signed in", "You may close this window.")
            try:
                result = self._exchange(code, self._verifier)
            except MozVPNError as exc:
                self._log.warning("Login code exchange failed: %s", exc)
                return _html_page(
                    "Authorization failed", "Please return to the application and try again.", 400
                )
            self._handoff.put_nowait(result)
            self._delivered.set()

        self._log.info("Login code exchanged; result handed to waiting client")
        return _html_page("Authorization successful", "You may close this window.")

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #
    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def delivered(self) -> bool:
        return self._delivered.is_set()

    @property
    def bound_port(self) -> int:
        """Port actually bound (differs from ``port`` when ``port`` is 0)."""
        if self._server is not None and self._server.servers:
            sockets = self._server.servers[0].sockets
            if sockets:
                return int(sockets[0].getsockname()[1])
        return self.port

    def start(self, *, startup_timeout: float = _STARTUP_TIMEOUT) -> "CallbackListener":
        """Bind the port and serve on a background thread."""
        if self.running:
            raise ListenerError("callback listener already running")
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="warning",
            access_log=False,
            lifespan="off",
        )
        self._server = _ThreadedServer(config)
        self._thread = threading.Thread(
            target=self._server.run, name=f"mozvpn-callback-{self.port}", daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + startup_timeout
        while not self._server.started:
            if not self._thread.is_alive():
                raise ListenerError(f"unable to bind callback listener on {self.host}:{self.port}")
            if time.monotonic() > deadline:
                self.shutdown()
                raise ListenerError(
                    f"callback listener on {self.host}:{self.port} did not start "
                    f"within {startup_timeout}s"
                )
            time.sleep(0.01)
        self._log.info("Callback listener started on %s:%s", self.host, self.bound_port)
        return self

    def shutdown(self, *, timeout: float = _SHUTDOWN_TIMEOUT) -> None:
        """Stop serving and release the port; safe to call more than once."""
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                self._log.warning("Callback listener did not stop within %ss", timeout)
            else:
                self._log.debug("Callback listener stopped")
        self._thread = None

    def __enter__(self) -> "CallbackListener":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # ------------------------------------------------------------------ #
    # Handoff                                                            #
    # ------------------------------------------------------------------ #
    def wait(
        self,
        timeout: float | None = None,
        *,
        cancel: threading.Event | None = None,
        clock: Clock = default_clock,
        poll_interval: float = _POLL_INTERVAL,
    ) -> LoginResult:
        """Block until the login result arrives.

        Parameters
        ----------
        timeout:
            Seconds to wait; ``None`` waits forever.
        cancel:
            Event that aborts the wait when set.
        clock:
            Time source used for the deadline.

        Raises
        ------
        LoginTimeoutError
            No result before the deadline.
        LoginCancelledError
            *cancel* was set.
        """
        deadline = None if timeout is None else clock() + timeout
        while True:
            try:
                return self._handoff.get_nowait()
            except queue.Empty:
                pass
            if cancel is not None and cancel.is_set():
                raise LoginCancelledError("login cancelled while waiting for the browser callback")
            step = poll_interval
            if deadline is not None:
                remaining = deadline - clock()
                if remaining <= 0:
                    raise LoginTimeoutError(
                        f"no browser callback received within {timeout}s"
                    )
                step = min(step, remaining)
            try:
                return self._handoff.get(timeout=step)
            except queue.Empty:
                continue
