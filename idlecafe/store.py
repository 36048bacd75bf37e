"""
store.py — Player record persistence with a version per record.
Writes go through store_if_unchanged so a stale read can never overwrite a
newer record.
"""
from __future__ import annotations

import json
import os
import threading
from hashlib import sha256
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Callable, Iterable, Protocol

from .state import PlayerState, new_player_state


class StoreError(RuntimeError):
    """A stored player record could not be read back."""


class StateStore(Protocol):
    def load(self, player_id: str, now: int) -> PlayerState: ...

    def load_versioned(self, player_id: str, now: int) -> tuple[PlayerState, int]:
        """Current record and its version. Absent records come back as a default state at version 0."""
        ...

    def store(self, player_id: str, state: PlayerState) -> None: ...

    def store_if_unchanged(self, player_id: str, expected_version: int, state: PlayerState) -> bool:
        """Write only if the stored version still equals expected_version."""
        ...


class MemoryStore:
    """Process-local store. One lock guards every compare-and-swap."""

    def __init__(self, upgrade_kinds: Iterable[str] = ()):
        self.upgrade_kinds = tuple(upgrade_kinds)
        self._records: dict[str, tuple[int, PlayerState]] = {}
        self._lock = threading.Lock()

    def load(self, player_id: str, now: int) -> PlayerState:
        return self.load_versioned(player_id, now)[0]

    def load_versioned(self, player_id: str, now: int) -> tuple[PlayerState, int]:
        with self._lock:
            rec = self._records.get(player_id)
        if rec is None:
            return new_player_state(player_id, now, self.upgrade_kinds), 0
        version, state = rec
        return state, version

    def store(self, player_id: str, state: PlayerState) -> None:
        with self._lock:
            version = self._records.get(player_id, (0, None))[0]
            self._records[player_id] = (version + 1, state)

    def store_if_unchanged(self, player_id: str, expected_version: int, state: PlayerState) -> bool:
        with self._lock:
            version = self._records.get(player_id, (0, None))[0]
            if version != expected_version:
                return False
            self._records[player_id] = (version + 1, state)
            return True

    def __len__(self) -> int:
        return len(self._records)


class JsonFileStore:
    """One JSON file per player under `directory`, replaced atomically."""

    def __init__(self, directory: str | Path, upgrade_kinds: Iterable[str] = ()):
        self.directory = Path(directory)
        self.upgrade_kinds = tuple(upgrade_kinds)
        self._lock = threading.Lock()

    def _path(self, player_id: str) -> Path:
        # Hash the id so arbitrary strings map to safe file names
        digest = sha256(player_id.encode("utf-8")).hexdigest()[:32]
        return self.directory / f"{digest}.json"

    def _read(self, player_id: str) -> tuple[int, PlayerState | None]:
        path = self._path(player_id)
        if not path.exists():
            return 0, None
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
            return int(payload["version"]), PlayerState.from_dict(payload["state"])
        except (ValueError, KeyError, TypeError) as e:
            # JSONDecodeError is a ValueError
            raise StoreError(f"corrupt player record {path}: {e}") from e

    def _write(self, player_id: str, version: int, state: PlayerState) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = {"version": version, "state": state.to_dict()}
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=self.directory,
            prefix=".save-",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            json.dump(payload, tmp, indent=2, ensure_ascii=False)
            tmp.flush()
            os.fsync(tmp.fileno())
            temp_name = tmp.name
        try:
            os.replace(temp_name, self._path(player_id))
        except OSError:
            if os.path.exists(temp_name):
                os.remove(temp_name)
            raise

    def load(self, player_id: str, now: int) -> PlayerState:
        return self.load_versioned(player_id, now)[0]

    def load_versioned(self, player_id: str, now: int) -> tuple[PlayerState, int]:
        with self._lock:
            version, state = self._read(player_id)
        if state is None:
            return new_player_state(player_id, now, self.upgrade_kinds), 0
        return state, version

    def store(self, player_id: str, state: PlayerState) -> None:
        with self._lock:
            version, _ = self._read(player_id)
            self._write(player_id, version + 1, state)

    def store_if_unchanged(self, player_id: str, expected_version: int, state: PlayerState) -> bool:
        with self._lock:
            version, _ = self._read(player_id)
            if version != expected_version:
                return False
            self._write(player_id, version + 1, state)
            return True


def make_store(config: dict, upgrade_kinds: Iterable[str] = ()) -> StateStore:
    """Build the store named by the `store` section of config.yaml."""
    sc = config.get("store", {}) or {}
    backend = sc.get("backend", "memory")
    factories: dict[str, Callable[[], StateStore]] = {
        "memory": lambda: MemoryStore(upgrade_kinds),
        "json": lambda: JsonFileStore(sc.get("path", ".userdata/players"), upgrade_kinds),
    }
    if backend not in factories:
        raise ValueError(f"unknown store backend {backend!r}")
    return factories[backend]()
