"""Unit tests for Ed25519 key generation and persistence."""

from __future__ import annotations

import base64

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives import serialization

from mozvpn_client.auth.store import PRIVATE_KEY_KEY, PUBLIC_KEY_KEY, MemorySessionStore
from mozvpn_client.provisioning.keys import generate_keypair, load_keypair, save_keypair


def test_generated_keys_are_32_bytes_and_match() -> None:
    pair = generate_keypair()

    private_raw = base64.b64decode(pair.private_key)
    public_raw = base64.b64decode(pair.public_key)
    assert len(private_raw) == 32
    assert len(public_raw) == 32

    derived = Ed25519PrivateKey.from_private_bytes(private_raw).public_key().public_bytes(
        encoding=serialization.Encoding.Raw, format=serialization.PublicFormat.Raw
    )
    assert derived == public_raw


def test_generated_keys_are_fresh() -> None:
    assert generate_keypair().public_key != generate_keypair().public_key


def test_repr_hides_private_key() -> None:
    pair = generate_keypair()
    assert pair.private_key not in repr(pair)


def test_save_and_load_roundtrip() -> None:
    store = MemorySessionStore()
    assert load_keypair(store) is None

    pair = generate_keypair()
    save_keypair(store, pair)

    assert store.get(PUBLIC_KEY_KEY) == pair.public_key
    assert store.get(PRIVATE_KEY_KEY) == pair.private_key
    assert load_keypair(store) == pair


def test_half_persisted_pair_reads_as_missing() -> None:
    store = MemorySessionStore({PUBLIC_KEY_KEY: "pub-only"})
    assert load_keypair(store) is None
