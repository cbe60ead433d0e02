"""Device key-pair generation and persistence.

Keys are Ed25519 (32-byte raw public and private halves) and are stored in
the :class:`~mozvpn_client.auth.store.SessionStore` as standard base64 text.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from mozvpn_client.auth.store import PRIVATE_KEY_KEY, PUBLIC_KEY_KEY, SessionStore


@dataclass(frozen=True, slots=True)
class KeyPair:
    public_key: str
    private_key: str

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self.public_key!r}, private_key='***')"


def generate_keypair() -> KeyPair:
    """Return a fresh Ed25519 key-pair encoded as base64 text."""
    private = Ed25519PrivateKey.generate()
    private_raw = private.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_raw = private.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return KeyPair(
        public_key=base64.b64encode(public_raw).decode("ascii"),
        private_key=base64.b64encode(private_raw).decode("ascii"),
    )


def save_keypair(store: SessionStore, keypair: KeyPair) -> None:
    # private half first so a crash never leaves a public key without its secret
    store.set(PRIVATE_KEY_KEY, keypair.private_key)
    store.set(PUBLIC_KEY_KEY, keypair.public_key)


def load_keypair(store: SessionStore) -> KeyPair | None:
    """Return the persisted key-pair, or ``None`` when either half is missing."""
    public_key = store.get(PUBLIC_KEY_KEY)
    private_key = store.get(PRIVATE_KEY_KEY)
    if not public_key or not private_key:
        return None
    return KeyPair(public_key=public_key, private_key=private_key)
