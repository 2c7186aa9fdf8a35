"""
Favorites collection with asymmetric mutation.

Adding reloads the authoritative list from the server. Removing filters the
entry out locally before the request and does not restore it if the request
fails; only `error` records the failure. A later load_favorites() is the only
reconciliation.
"""

from __future__ import annotations

from typing import Any, Optional

import requests

from mawaddah_client.domains.errors import ClientStateError, Unauthenticated, error_message
from mawaddah_client.infrastructure.api_client import ApiClient
from mawaddah_client.infrastructure.storage import FAVORITES_NAMESPACE, StateStorage
from mawaddah_client.stores.base import Store
from mawaddah_client.stores.session_store import SessionAccessor
from mawaddah_client.utils.logger import get_logger

logger = get_logger()


def _target_id(entry: Any) -> Optional[str]:
    if not isinstance(entry, dict):
        return None
    target = entry.get("target")
    if isinstance(target, dict) and target.get("id") is not None:
        return str(target["id"])
    for key in ("targetUserId", "target_user_id"):
        if entry.get(key) is not None:
            return str(entry[key])
    return None


def dedupe_favorites(entries: list[Any]) -> list[dict[str, Any]]:
    """Drop entries without a target id and later duplicates of the same target."""
    seen: set[str] = set()
    out: list[dict[str, Any]] = []
    for entry in entries:
        tid = _target_id(entry)
        if tid is None or tid in seen:
            continue
        seen.add(tid)
        out.append(entry)
    return out


class FavoritesStore(Store):
    namespace = FAVORITES_NAMESPACE
    persisted_fields = ("favorites",)

    def __init__(
        self,
        session: SessionAccessor,
        api: ApiClient,
        storage: StateStorage | None = None,
    ) -> None:
        super().__init__(storage)
        self._session = session
        self._api = api
        self.favorites: list[dict[str, Any]] = []
        self.loading = False
        self.error: Optional[str] = None
        if self._session.token:
            saved = self._read_persisted().get("favorites")
            if isinstance(saved, list):
                self.favorites = dedupe_favorites(saved)

    @property
    def target_ids(self) -> list[str]:
        return [tid for tid in (_target_id(f) for f in self.favorites) if tid is not None]

    def is_favorite(self, target_id: str) -> bool:
        return str(target_id) in self.target_ids

    def clear(self) -> None:
        self._set(favorites=[], loading=False, error=None)

    def load_favorites(self) -> None:
        """Replace the list with the server's. Without a session the list is cleared silently."""
        token = self._session.token
        if not token:
            self._set(favorites=[], loading=False, error=None)
            return

        self._set(loading=True, error=None)
        try:
            data = self._api.get_favorites(token)
        except (ClientStateError, requests.RequestException) as e:
            logger.warning("Favorites load failed: %s", e)
            self._set(loading=False, error=error_message(e, "Failed to load favorites."))
            return

        entries = dedupe_favorites(data) if isinstance(data, list) else []
        self._set(favorites=entries, loading=False, error=None)
        logger.info("Favorites loaded: %d entries", len(entries))

    def add_favorite(self, target_id: str) -> None:
        """
        Ask the server to add `target_id`, then reload the list whether or not
        the add succeeded. An add failure stays visible in `error`.

        Raises:
            Unauthenticated: No session.
        """
        token = self._session.token
        if not token:
            raise Unauthenticated("Sign in to manage favorites.")

        failure: Optional[str] = None
        try:
            self._api.add_favorite(token, target_id)
        except (ClientStateError, requests.RequestException) as e:
            logger.warning("Adding favorite %s failed: %s", target_id, e)
            failure = error_message(e, "Failed to add to favorites.")

        self.load_favorites()
        if failure is not None:
            self._set(error=failure)

    def remove_favorite(self, target_id: str) -> None:
        """
        Remove `target_id` locally right away, then tell the server. The local
        removal stands even if the request fails.

        Raises:
            Unauthenticated: No session.
        """
        token = self._session.token
        if not token:
            raise Unauthenticated("Sign in to manage favorites.")

        target_id = str(target_id)
        self._set(favorites=[f for f in self.favorites if _target_id(f) != target_id], error=None)
        try:
            self._api.remove_favorite(token, target_id)
        except (ClientStateError, requests.RequestException) as e:
            logger.warning("Removing favorite %s failed; local removal kept: %s", target_id, e)
            self._set(error=error_message(e, "Failed to remove from favorites."))

    def toggle_favorite(self, target_id: str) -> None:
        if self.is_favorite(target_id):
            self.remove_favorite(target_id)
        else:
            self.add_favorite(target_id)
