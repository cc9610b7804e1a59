"""
Durable local snapshot for the client session.

Two named slots: ``food_rescue_user`` (serialized user, for fast restore)
and ``token`` (bearer token, for remote resolution). Stores raise
``StorageUnavailable`` when the medium cannot be read or written.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from foodrescue.core.errors import StorageUnavailable

logger = logging.getLogger(__name__)

USER_SLOT = "food_rescue_user"
TOKEN_SLOT = "token"


class SnapshotStore(Protocol):
    def get(self, slot: str) -> str | None:
        ...

    def set(self, slot: str, value: str) -> None:
        ...

    def remove(self, *slots: str) -> None:
        ...


class MemorySnapshotStore:
    """Process-local store, for tests and short-lived clients."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.slots: dict[str, str] = dict(initial or {})

    def get(self, slot: str) -> str | None:
        return self.slots.get(slot)

    def set(self, slot: str, value: str) -> None:
        self.slots[slot] = value

    def remove(self, *slots: str) -> None:
        for slot in slots:
            self.slots.pop(slot, None)


class FileSnapshotStore:
    """JSON file holding all slots; rewritten atomically on every change."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageUnavailable(f"Cannot read session snapshot: {e}") from e
        except UnicodeDecodeError as e:
            raise StorageUnavailable("Session snapshot is corrupt") from e
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StorageUnavailable("Session snapshot is corrupt") from e
        if not isinstance(data, dict):
            raise StorageUnavailable("Session snapshot is corrupt")
        return data

    def _write(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".session-")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageUnavailable(f"Cannot write session snapshot: {e}") from e

    def get(self, slot: str) -> str | None:
        return self._read().get(slot)

    def set(self, slot: str, value: str) -> None:
        data = self._read()
        data[slot] = value
        self._write(data)

    def remove(self, *slots: str) -> None:
        try:
            data = self._read()
        except StorageUnavailable:
            # An unreadable snapshot is replaced by an empty one.
            logger.warning("Discarding unreadable session snapshot at %s", self.path)
            data = {}
        for slot in slots:
            data.pop(slot, None)
        self._write(data)
