# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Shared key-value store used as the only channel between the two clients.

Each game is a record of top-level children (``player1``, ``player2``,
``state``, ``turn``). A client holds a ``StoreRef`` on that record and can:
- read the whole record once
- overwrite one child (last write wins, no compare-and-swap)
- subscribe to children being added or changed

Values are copied through JSON on every write, so subscribers only ever see
what would survive serialization.

Backends:
- MemoryStore: in-process, notifications delivered right after each write
- FileStore: one JSON file per game, notifications delivered by ``poll()``
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

ChildCallback = Callable[[str, Any], None]


def _copy(value: Any) -> Any:
    return json.loads(json.dumps(value))


class StoreRef:
    """Handle on one game record. Subclasses provide reads and writes."""

    def __init__(self, game_id: str):
        self.game_id = game_id
        self._added: List[ChildCallback] = []
        self._changed: List[ChildCallback] = []

    def get_once(self) -> Optional[Dict[str, Any]]:
        """Return a copy of the whole record, or None if the game does not exist."""
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        """Overwrite one top-level child."""
        raise NotImplementedError

    def on_child_added(self, callback: ChildCallback) -> None:
        """
        Subscribe to new children.

        Children that already exist are reported to the callback immediately.
        """
        self._added.append(callback)
        for key, value in (self.get_once() or {}).items():
            callback(key, value)

    def on_child_changed(self, callback: ChildCallback) -> None:
        self._changed.append(callback)

    def poll(self) -> int:
        """Deliver pending notifications. Backends that notify on write have none."""
        return 0

    def off_child_added(self) -> None:
        self._added = []

    def off_child_changed(self) -> None:
        self._changed = []

    def _notify(self, key: str, before: Dict[str, Any], value: Any) -> None:
        """Deliver one child update given the record as it was before."""
        if key not in before:
            callbacks = list(self._added)
        elif before[key] != value:
            callbacks = list(self._changed)
        else:
            return
        for callback in callbacks:
            callback(key, _copy(value))


class MemoryStore:
    """In-process store holding any number of games."""

    def __init__(self):
        self._games: Dict[str, Dict[str, Any]] = {}
        self._refs: Dict[str, List["MemoryRef"]] = {}

    def ref(self, game_id: str) -> "MemoryRef":
        ref = MemoryRef(self, game_id)
        self._refs.setdefault(game_id, []).append(ref)
        return ref

    def read(self, game_id: str) -> Optional[Dict[str, Any]]:
        record = self._games.get(game_id)
        return _copy(record) if record is not None else None

    def write(self, game_id: str, key: str, value: Any) -> None:
        record = self._games.setdefault(game_id, {})
        before = dict(record)
        record[key] = _copy(value)
        logger.debug(f"store[{game_id}].{key} written")
        for ref in list(self._refs.get(game_id, [])):
            ref._notify(key, before, record[key])


class MemoryRef(StoreRef):

    def __init__(self, store: MemoryStore, game_id: str):
        super().__init__(game_id)
        self._store = store

    def get_once(self) -> Optional[Dict[str, Any]]:
        return self._store.read(self.game_id)

    def set(self, key: str, value: Any) -> None:
        self._store.write(self.game_id, key, value)


class FileStore:
    """
    Store backed by a directory of JSON files, one per game.

    Two processes sharing the directory can play against each other. There is
    no locking: a write replaces the whole file, so two writes racing on
    different children can lose one of them.
    """

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def ref(self, game_id: str) -> "FileRef":
        return FileRef(self.directory / f"{game_id}.json", game_id)


class FileRef(StoreRef):

    def __init__(self, path: Path, game_id: str):
        super().__init__(game_id)
        self.path = path
        self._last_seen: Dict[str, Any] = self.get_once() or {}

    def get_once(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        with open(self.path, "r") as f:
            return json.load(f)

    def set(self, key: str, value: Any) -> None:
        record = self.get_once() or {}
        record[key] = _copy(value)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        with os.fdopen(fd, "w") as f:
            json.dump(record, f)
        os.replace(tmp_path, self.path)
        logger.debug(f"store[{self.game_id}].{key} written to {self.path}")

    def poll(self) -> int:
        """
        Re-read the file and report every child added or changed since the
        last poll, including this client's own writes.

        Returns:
            Number of children that differed.
        """
        current = self.get_once() or {}
        before = self._last_seen
        self._last_seen = current
        changed = 0
        for key, value in current.items():
            if key not in before or before[key] != value:
                changed += 1
                self._notify(key, before, value)
        return changed
