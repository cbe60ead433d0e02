"""Ensure this installation has a device key registered with the account.

The decision is a pure function of the account snapshot and the locally
persisted public key:

* persisted key matches a device → nothing to do;
* no match and fewer than ``device_limit`` devices → generate, upload, persist;
* no match and the limit is reached → :class:`DeviceLimitError`.

Upload failures are fatal: the error propagates and nothing is persisted, so
the next start tries again from a clean slate.  There are no retries.
"""

from __future__ import annotations

import logging
from typing import Callable, Final

from mozvpn_client.api.client import AccountClient
from mozvpn_client.api.models import Device, User
from mozvpn_client.auth.store import PUBLIC_KEY_KEY, SessionStore
from mozvpn_client.config import DEFAULT_DEVICE_NAME
from mozvpn_client.errors import DeviceLimitError
from mozvpn_client.provisioning.keys import KeyPair, generate_keypair, save_keypair
from mozvpn_client.utils.logging import mask_sensitive

_LOG = logging.getLogger("mozvpn-client.provisioning")

DEVICE_LIMIT: Final[int] = 5


def find_device(user: User, public_key: str | None) -> Device | None:
    """Return the device of *user* registered with *public_key*, if any."""
    if not public_key:
        return None
    return next((d for d in user.devices if d.pubkey == public_key), None)


class DeviceProvisioner:
    def __init__(
        self,
        client: AccountClient,
        store: SessionStore,
        *,
        device_name: str = DEFAULT_DEVICE_NAME,
        device_limit: int = DEVICE_LIMIT,
        key_factory: Callable[[], KeyPair] = generate_keypair,
    ) -> None:
        self.client = client
        self.store = store
        self.device_name = device_name
        self.device_limit = device_limit
        self._key_factory = key_factory

    def ensure_device(
        self,
        user: User,
        token: str,
        persisted_public_key: str | None = None,
    ) -> Device:
        """Return the device for this installation, registering one if needed.

        Parameters
        ----------
        user:
            Account snapshot from login or profile fetch.
        token:
            Session token used to authorise the upload.
        persisted_public_key:
            Public key to look for; read from the store when omitted.

        Raises
        ------
        DeviceLimitError
            No matching device and the account is full.
        MozVPNError
            The upload failed (transport, protocol or decode).
        """
        public_key = persisted_public_key
        if public_key is None:
            public_key = self.store.get(PUBLIC_KEY_KEY)

        existing = find_device(user, public_key)
        if existing is not None:
            _LOG.debug(
                "Persisted key %s matches device %s", mask_sensitive(public_key, 6), existing.name
            )
            return existing

        _LOG.info("Cannot find a device matching the persisted public key")
        device_count = len(user.devices)
        if device_count >= self.device_limit:
            raise DeviceLimitError(device_count=device_count, limit=self.device_limit)

        keypair = self._key_factory()
        device = self.client.upload_device(keypair.public_key, token, name=self.device_name)
        save_keypair(self.store, keypair)
        _LOG.info(
            "Registered new device %s with key %s (%d of %d)",
            device.name,
            mask_sensitive(keypair.public_key, 6),
            device_count + 1,
            self.device_limit,
        )
        return device
