"""Callback listener served by a real uvicorn thread on a loopback socket."""

from __future__ import annotations

import socket

import pytest
import requests

from mozvpn_client.api.models import LoginResult
from mozvpn_client.auth.listener import CallbackListener

pytestmark = [pytest.mark.integration, pytest.mark.ci_safe]


@pytest.fixture()
def exchange(make_user):
    calls: list[tuple[str, str]] = []

    def _exchange(code: str, verifier: str) -> LoginResult:
        calls.append((code, verifier))
        return LoginResult(user=make_user(0), token="tok-1")

    _exchange.calls = calls  # type: ignore[attr-defined]
    return _exchange


def _port_is_free(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind(("127.0.0.1", port))
        except OSError:
            return False
        return True


def test_code_is_delivered_and_port_released(exchange) -> None:
    listener = CallbackListener("verifier", exchange, host="127.0.0.1", port=0).start()
    port = listener.bound_port
    try:
        assert port != 0
        resp = requests.get(f"http://127.0.0.1:{port}/", params={"code": "abc123"}, timeout=5)
        assert resp.status_code == 200
        assert "Authorization successful" in resp.text

        result = listener.wait(timeout=5)
        assert result.token == "tok-1"
        assert exchange.calls == [("abc123", "verifier")]
    finally:
        listener.shutdown()

    assert not listener.running
    assert _port_is_free(port)


def test_request_without_code_keeps_waiting(exchange) -> None:
    with CallbackListener("verifier", exchange, host="127.0.0.1", port=0) as listener:
        resp = requests.get(f"http://127.0.0.1:{listener.bound_port}/", timeout=5)
        assert resp.status_code == 200
        assert resp.text == ""
        assert listener.running
        assert not listener.delivered
    assert exchange.calls == []
