"""
Persisted key-value state and the cross-context broadcast channel.

Each store owns one namespace, saved as `<root>/<namespace>.json`. There is no
cross-namespace transaction: a reader must revalidate what it loads against the
current session instead of trusting leftovers.
"""

from __future__ import annotations

import inspect
import json
import os
import threading
import weakref
from pathlib import Path
from typing import Any, Callable

from mawaddah_client.utils.config import state_dir
from mawaddah_client.utils.logger import get_logger

logger = get_logger()

AUTH_NAMESPACE = "mawaddah-auth"
PROFILE_NAMESPACE = "mawaddah-profile"
SEARCH_NAMESPACE = "mawaddah-search"
FAVORITES_NAMESPACE = "mawaddah-favorites"


class StateStorage:
    """
    JSON-file backed key-value store, one file per namespace.

    Reads never raise: a missing or corrupt file reads as an empty dict.
    """

    def __init__(self, root: Path | None = None) -> None:
        self._root = Path(root) if root is not None else state_dir()
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, namespace: str) -> Path:
        return self._root / f"{namespace}.json"

    def read(self, namespace: str) -> dict[str, Any]:
        path = self._path(namespace)
        if not path.is_file():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("State read failed for %s: %s", namespace, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("State for %s is not an object; ignoring", namespace)
            return {}
        return data

    def write(self, namespace: str, data: dict[str, Any]) -> None:
        path = self._path(namespace)
        tmp = path.with_suffix(".json.tmp")
        with self._lock:
            try:
                self._root.mkdir(parents=True, exist_ok=True)
                with open(tmp, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                os.replace(tmp, path)
            except (OSError, TypeError, ValueError) as e:
                # A failed write never leaves a partial file behind.
                logger.warning("State write failed for %s: %s", namespace, e)
                tmp.unlink(missing_ok=True)

    def remove(self, namespace: str) -> None:
        with self._lock:
            try:
                self._path(namespace).unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("State remove failed for %s: %s", namespace, e)


Listener = Callable[[dict[str, Any]], None]


class BroadcastChannel:
    """
    Named in-process channel between contexts that share one storage root.

    A context publishes after it has persisted a change; every other
    subscriber is called with the message and is expected to re-read
    persisted state. The publisher does not receive its own message.

    Bound-method listeners are held weakly, so a store that is dropped
    without close() stops receiving messages and is pruned on next publish.
    """

    _channels: dict[str, "BroadcastChannel"] = {}
    _registry_lock = threading.Lock()

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[tuple[int | None, Callable[[], Listener | None]]] = []
        self._lock = threading.Lock()

    @classmethod
    def named(cls, name: str) -> "BroadcastChannel":
        with cls._registry_lock:
            channel = cls._channels.get(name)
            if channel is None:
                channel = cls(name)
                cls._channels[name] = channel
            return channel

    @classmethod
    def for_storage(cls, storage: StateStorage) -> "BroadcastChannel":
        return cls.named(str(storage.root.resolve()))

    @property
    def listener_count(self) -> int:
        with self._lock:
            self._prune()
            return len(self._listeners)

    def _prune(self) -> None:
        self._listeners = [entry for entry in self._listeners if entry[1]() is not None]

    def subscribe(self, listener: Listener, owner: object = None) -> Callable[[], None]:
        if inspect.ismethod(listener):
            ref: Callable[[], Listener | None] = weakref.WeakMethod(listener)
        else:
            ref = _StrongRef(listener)
        entry = (id(owner) if owner is not None else None, ref)
        with self._lock:
            self._listeners.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                self._listeners = [e for e in self._listeners if e is not entry]

        return unsubscribe

    def publish(self, message: dict[str, Any], origin: object = None) -> None:
        origin_id = id(origin) if origin is not None else None
        with self._lock:
            self._prune()
            targets = []
            for owner_id, ref in self._listeners:
                fn = ref()
                if fn is not None and (origin_id is None or owner_id != origin_id):
                    targets.append(fn)
        for fn in targets:
            try:
                fn(message)
            except Exception as e:
                logger.exception("Broadcast listener on %s failed: %s", self.name, e)


class _StrongRef:
    """Same call shape as a weak reference, for plain functions and builtins."""

    def __init__(self, listener: Listener) -> None:
        self._listener = listener

    def __call__(self) -> Listener:
        return self._listener
