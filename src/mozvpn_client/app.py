"""Application startup sequence.

``VPNApp.start()`` runs the steps in the only order that is allowed:

1. authenticate (persisted token or browser login);
2. make sure this installation has a registered device;
3. fetch the relay list for display.

Errors in steps 1 and 2 propagate and stop the sequence.  A relay list
failure is logged and leaves the display empty.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from mozvpn_client.api.client import AccountClient
from mozvpn_client.api.models import Device, RelayList, User
from mozvpn_client.auth.service import AuthOrchestrator, Session
from mozvpn_client.auth.store import PRIVATE_KEY_KEY, PUBLIC_KEY_KEY, DiskSessionStore, SessionStore
from mozvpn_client.config import ClientConfig
from mozvpn_client.errors import MozVPNError
from mozvpn_client.provisioning.provisioner import DeviceProvisioner, find_device
from mozvpn_client.relays import ConnectionState, RelaySelection

logger = logging.getLogger("mozvpn-client.app")


@dataclass(frozen=True, slots=True)
class StartupResult:
    """Everything the display layer needs once startup succeeded."""

    user: User
    device: Device
    relay_list: RelayList | None


class VPNApp:
    def __init__(
        self,
        config: ClientConfig,
        *,
        store: SessionStore,
        client: AccountClient,
        orchestrator: AuthOrchestrator | None = None,
        provisioner: DeviceProvisioner | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.client = client
        self.orchestrator = orchestrator or AuthOrchestrator(client, store, config=config)
        self.provisioner = provisioner or DeviceProvisioner(
            client, store, device_name=config.device_name
        )
        self.session: Session | None = None
        self.relay_list: RelayList | None = None
        self.connection = ConnectionState()

    @classmethod
    def from_config(
        cls, config: ClientConfig | None = None, *, store_path: Path | None = None
    ) -> "VPNApp":
        config = config or ClientConfig.from_env()
        return cls(
            config,
            store=DiskSessionStore(store_path or config.store_path),
            client=AccountClient(config),
        )

    @property
    def user(self) -> User | None:
        return self.session.user if self.session else None

    # ------------------------------------------------------------------ #
    # Startup steps                                                      #
    # ------------------------------------------------------------------ #
    def init_user(
        self,
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> User:
        self.session = self.orchestrator.authenticate(timeout=timeout, cancel=cancel)
        return self.session.user

    def check_device(self) -> Device:
        if self.session is None:
            raise RuntimeError("init_user() must succeed before check_device()")
        device = self.provisioner.ensure_device(self.session.user, self.session.token)
        if find_device(self.session.user, device.pubkey) is None:
            self.session = Session(
                token=self.session.token, user=self.session.user.with_device(device)
            )
        return device

    def load_relays(self) -> RelayList | None:
        try:
            self.relay_list = self.client.get_relay_list()
        except MozVPNError as exc:
            logger.warning("Unable to get relay list: %s", exc)
            self.relay_list = None
        return self.relay_list

    def start(
        self,
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> StartupResult:
        user = self.init_user(timeout=timeout, cancel=cancel)
        logger.info("Signed in as %s", user.email)
        device = self.check_device()
        relay_list = self.load_relays()
        assert self.session is not None
        return StartupResult(user=self.session.user, device=device, relay_list=relay_list)

    # ------------------------------------------------------------------ #
    # Display helpers                                                    #
    # ------------------------------------------------------------------ #
    def get_keys(self) -> tuple[str | None, str | None]:
        """Return the persisted ``(private, public)`` key strings."""
        return self.store.get(PRIVATE_KEY_KEY), self.store.get(PUBLIC_KEY_KEY)

    def current_device(self) -> Device | None:
        if self.user is None:
            return None
        return find_device(self.user, self.store.get(PUBLIC_KEY_KEY))

    def new_selection(self) -> RelaySelection:
        return RelaySelection(self.relay_list or RelayList())

    def close(self) -> None:
        self.client.close()
