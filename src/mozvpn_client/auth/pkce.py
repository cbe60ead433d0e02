"""PKCE (Proof Key for Code Exchange) helpers.

RFC 7636 defines PKCE to protect public OAuth clients.  The mechanism relies on
a *code verifier* (random high-entropy string) generated at the beginning of
the flow and a *code challenge* derived from that verifier that is sent to the
authorization endpoint.

The Mozilla VPN login endpoint departs from the RFC in two ways that this
module reproduces exactly:

* the verifier is 32 random bytes in **standard** base64 (with padding);
* the S256 digest is taken over the ASCII bytes of that base64 text, and the
  digest itself is again standard base64 encoded.

This module intentionally performs **no logging** of verifiers or challenges.
"""

from __future__ import annotations

import base64
import secrets
from dataclasses import dataclass
from hashlib import sha256
from typing import Final
from urllib.parse import urlencode

from mozvpn_client.errors import ChallengeError

_VERIFIER_BYTES: Final[int] = 32
CHALLENGE_METHOD: Final[str] = "S256"
LOGIN_PATH: Final[str] = "/api/v2/vpn/login/linux"


@dataclass(frozen=True, slots=True)
class PKCEChallenge:
    """Verifier/challenge pair plus the browser URL built from it."""

    verifier: str
    challenge: str
    url: str


def generate_code_verifier(num_bytes: int = _VERIFIER_BYTES) -> str:
    """Return ``num_bytes`` random bytes as standard base64 text."""
    if num_bytes <= 0:
        raise ChallengeError("code verifier needs at least one random byte")
    return base64.b64encode(secrets.token_bytes(num_bytes)).decode("ascii")


def code_challenge_s256(verifier: str) -> str:
    """Compute the *S256* code challenge for a given verifier.

    Parameters
    ----------
    verifier:
        The base64 text produced by :func:`generate_code_verifier`.

    Returns
    -------
    str
        Standard base64 (padded) SHA-256 digest of the verifier text.
    """
    if not verifier:
        raise ChallengeError("code verifier must not be empty")
    digest = sha256(verifier.encode("ascii")).digest()
    return base64.b64encode(digest).decode("ascii")


def build_authorize_url(challenge: str, *, base_url: str, port: int) -> str:
    """Return the provider login URL carrying the challenge and callback port."""
    if not challenge:
        raise ChallengeError("code challenge must not be empty")
    if not 0 < port < 65536:
        raise ChallengeError(f"invalid callback port {port}")
    query = urlencode(
        {
            "code_challenge_method": CHALLENGE_METHOD,
            "code_challenge": challenge,
            "port": str(port),
        }
    )
    return f"{base_url.rstrip('/')}{LOGIN_PATH}?{query}"


def create_challenge(*, base_url: str, callback_port: int) -> PKCEChallenge:
    """Generate a fresh verifier, its challenge and the authorize URL."""
    verifier = generate_code_verifier()
    challenge = code_challenge_s256(verifier)
    url = build_authorize_url(challenge, base_url=base_url, port=callback_port)
    return PKCEChallenge(verifier=verifier, challenge=challenge, url=url)
