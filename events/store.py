"""
Purpose: Local, per-user event storage.
What it does:
- Defines the key-value contract the capture layer persists through
  (get / set / remove / keys over JSON-serialisable values).
- Provides two backends: in-memory (tests, simulations) and a directory of
  JSON files written atomically (device-local durable storage).
- Wraps any backend in a UserScopedStore so one user's pending events are
  never visible to another.
- EventStore gives typed access to events and their pre-computed candidates.

Rule: Read and write failures propagate. A lost event is a correctness issue.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import quote, unquote

from .models import CapturedEvent

logger = logging.getLogger(__name__)

EVENT_KEY_PREFIX = "pending_event_"
CANDIDATES_KEY_PREFIX = "candidates_"

# Striped locks serialising work on one (user, event) pair across threads
_EVENT_LOCK_STRIPES = [threading.Lock() for _ in range(64)]


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def keys(self) -> List[str]:
        ...


class InMemoryKeyValueStore:
    """
    Dict-backed store. Values are round-tripped through JSON on write
    so callers can never share mutable state with the store.
    """
    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        raw = json.dumps(value)
        with self._lock:
            self._data[key] = raw

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())


class JsonFileKeyValueStore:
    """
    One JSON file per key under `root`. Writes go to a temp file first and
    are moved into place with os.replace, so a reader never sees half a record.
    """
    suffix = ".json"

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        return self.root / (quote(key, safe="") + self.suffix)

    def get(self, key: str) -> Optional[Any]:
        path = self._path_for(key)
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def set(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        fd, tmp_name = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=str(self.root))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, str(path))
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        if path.exists():
            path.unlink()

    def keys(self) -> List[str]:
        return [
            unquote(path.name[: -len(self.suffix)])
            for path in sorted(self.root.glob("*" + self.suffix))
        ]


class UserScopedStore:
    """
    Namespaces every key with the owning user id.
    keys() only ever lists the owner's keys, with the namespace stripped.
    """
    def __init__(self, store: KeyValueStore, user_id: str):
        if not user_id:
            raise ValueError("user_id is required to scope a store")
        self.store = store
        self.user_id = user_id
        self._prefix = f"user:{quote(user_id, safe='')}:"

    def get(self, key: str) -> Optional[Any]:
        return self.store.get(self._prefix + key)

    def set(self, key: str, value: Any) -> None:
        self.store.set(self._prefix + key, value)

    def remove(self, key: str) -> None:
        self.store.remove(self._prefix + key)

    def keys(self) -> List[str]:
        return [
            key[len(self._prefix):]
            for key in self.store.keys()
            if key.startswith(self._prefix)
        ]


class EventStore:
    """
    Typed access to one user's events and pre-computed candidates.
    Every record lives under a key derived from (user_id, event_id).
    """
    def __init__(self, store: KeyValueStore, user_id: str):
        self.user_id = user_id
        self._scoped = UserScopedStore(store, user_id)

    @staticmethod
    def event_key(event_id: str) -> str:
        return f"{EVENT_KEY_PREFIX}{event_id}"

    @staticmethod
    def candidates_key(event_id: str) -> str:
        return f"{CANDIDATES_KEY_PREFIX}{event_id}"

    def lock_for(self, event_id: str) -> threading.Lock:
        """
        Lock guarding read-check-write sequences on one event.
        Background matching and confirm/discard both hold it, so a removed
        event is never written back. Not reentrant.
        """
        return _EVENT_LOCK_STRIPES[hash((self.user_id, event_id)) % len(_EVENT_LOCK_STRIPES)]

    def save_event(self, event: CapturedEvent) -> None:
        if event.evaluator_user_id != self.user_id:
            raise ValueError(
                f"Event {event.id} belongs to {event.evaluator_user_id}, not {self.user_id}"
            )
        key = self.event_key(event.id)
        self._scoped.set(key, event.to_dict())
        logger.debug("Saved event %s for user %s", event.id, self.user_id)

    def load_event(self, event_id: str) -> Optional[CapturedEvent]:
        data = self._scoped.get(self.event_key(event_id))
        return CapturedEvent.from_dict(data) if data is not None else None

    def list_events(self) -> List[CapturedEvent]:
        events = []
        for key in self._scoped.keys():
            if not key.startswith(EVENT_KEY_PREFIX):
                continue
            data = self._scoped.get(key)
            if data is not None:
                events.append(CapturedEvent.from_dict(data))
        return events

    def save_candidates(self, event_id: str, candidates: List[Dict[str, Any]]) -> None:
        self._scoped.set(self.candidates_key(event_id), candidates)

    def load_candidates(self, event_id: str) -> Optional[List[Dict[str, Any]]]:
        return self._scoped.get(self.candidates_key(event_id))

    def remove_event(self, event_id: str) -> None:
        self._scoped.remove(self.event_key(event_id))
        self._scoped.remove(self.candidates_key(event_id))
        logger.info("Removed event %s for user %s", event_id, self.user_id)
