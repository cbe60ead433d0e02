"""Key-value preference storage for the session token and device keys.

This module introduces a *narrow* persistence interface
(:class:`SessionStore`) and two implementations:

* :class:`MemorySessionStore` – dictionary-backed, for tests and one-shot runs.
* :class:`DiskSessionStore` – a single JSON file.

The disk implementation follows these goals:

* **Atomicity** – writes use *temp-file + os.replace*.
* **Concurrency** – read-modify-write cycles run under an advisory lock file.
* **Portability** – only standard-library modules are required.

Keys used by the client
-----------------------
MOZ_TOKEN
    Session token returned by the login verification endpoint.
PUB_KEY / PRIV_KEY
    Base64 encoded device key-pair.

Environment variables
---------------------
MOZVPN_STORAGE_DIR
    Base directory for the preference file.
    Defaults to ``~/.mozvpn-client`` when unset.
"""

from __future__ import annotations

import json
import os
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from mozvpn_client.errors import StoreError

TOKEN_KEY: Final[str] = "MOZ_TOKEN"
PUBLIC_KEY_KEY: Final[str] = "PUB_KEY"
PRIVATE_KEY_KEY: Final[str] = "PRIV_KEY"

# --------------------------------------------------------------------------- #
# helpers                                                                     #
# --------------------------------------------------------------------------- #


def _atomic_write(path: Path, data: dict[str, str]) -> None:
    """Replace *path* with *data* as JSON, readable by the owner only."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    fd = os.open(tmp, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, sort_keys=True)
    os.replace(tmp, path)


@contextmanager
def _file_lock(lock_path: Path, retries: int = 25, delay: float = 0.2):
    """Hold *lock_path* (created with ``O_EXCL``) for the duration of the block."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    attempts = 0
    while True:
        try:
            os.close(os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_RDWR))
        except FileExistsError:
            attempts += 1
            if attempts > retries:
                raise TimeoutError(f"preference file is locked: {lock_path}") from None
            time.sleep(delay)
        else:
            break
    try:
        yield
    finally:
        lock_path.unlink(missing_ok=True)


# --------------------------------------------------------------------------- #
# public interface                                                            #
# --------------------------------------------------------------------------- #


@runtime_checkable
class SessionStore(Protocol):
    """Get/set string values by key."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


class MemorySessionStore(SessionStore):
    """In-memory :class:`SessionStore`; contents vanish with the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key) or None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the stored values."""
        with self._lock:
            return dict(self._data)


class DiskSessionStore(SessionStore):
    """JSON-file implementation of :class:`SessionStore`.

    Unreadable, corrupt or locked files raise :class:`StoreError`.
    """

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        base_dir = os.getenv("MOZVPN_STORAGE_DIR") or Path.home() / ".mozvpn-client"
        self.path = Path(path or Path(base_dir) / "preferences.json").expanduser()

    @property
    def _lock_path(self) -> Path:
        return self.path.with_suffix(".lock")

    def _read(self) -> dict[str, str]:
        try:
            with self.path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            raise StoreError(f"unable to read preference file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"preference file {self.path} is not a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    @contextmanager
    def _update(self):
        try:
            with _file_lock(self._lock_path):
                data = self._read()
                yield data
                _atomic_write(self.path, data)
        except (OSError, TimeoutError) as exc:
            raise StoreError(f"unable to write preference file {self.path}: {exc}") from exc

    def get(self, key: str) -> str | None:
        return self._read().get(key) or None

    def set(self, key: str, value: str) -> None:
        with self._update() as data:
            data[key] = value

    def delete(self, key: str) -> None:
        with self._update() as data:
            data.pop(key, None)


# --------------------------------------------------------------------------- #
# Convenience – default singleton                                            #
# --------------------------------------------------------------------------- #

_default_store: DiskSessionStore | None = None


def default_store() -> DiskSessionStore:
    """Return a process-wide singleton :class:`DiskSessionStore`."""
    global _default_store  # noqa: PLW0603
    if _default_store is None:
        _default_store = DiskSessionStore()
    return _default_store
