"""Device key-pair provisioning."""

from __future__ import annotations

from .keys import KeyPair, generate_keypair, load_keypair, save_keypair  # noqa: F401
from .provisioner import DEVICE_LIMIT, DeviceProvisioner, find_device  # noqa: F401

__all__ = [
    "DEVICE_LIMIT",
    "DeviceProvisioner",
    "KeyPair",
    "find_device",
    "generate_keypair",
    "load_keypair",
    "save_keypair",
]
