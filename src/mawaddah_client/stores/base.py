"""
Observable base for the state containers.

State lives in plain attributes. Every change goes through `_set`, which
assigns all given attributes, persists the store's durable fields when any of
them changed, and then calls subscribers once with the store.
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar

from mawaddah_client.infrastructure.storage import StateStorage
from mawaddah_client.utils.logger import get_logger

logger = get_logger()

Listener = Callable[[Any], None]


class Store:
    namespace: ClassVar[str] = ""
    persisted_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, storage: StateStorage | None = None) -> None:
        self._storage = storage
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(store)` after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self, name, value)
        if any(name in self.persisted_fields for name in changes):
            self._persist()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.exception("%s subscriber failed: %s", type(self).__name__, e)

    def persisted_state(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.persisted_fields}

    def _persist(self) -> None:
        if self._storage is None or not self.namespace:
            return
        self._storage.write(self.namespace, self.persisted_state())

    def _read_persisted(self) -> dict[str, Any]:
        if self._storage is None or not self.namespace:
            return {}
        return self._storage.read(self.namespace)
