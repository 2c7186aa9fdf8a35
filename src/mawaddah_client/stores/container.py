"""
Wiring for the four stores.

The session is created first and injected into the others as a read-only
accessor. Two subscriptions connect them: a saved or loaded profile pushes its
id into the session and its gender into the search defaults, and losing the
session clears the profile snapshots and the favorites list.
"""

from __future__ import annotations

from dataclasses import dataclass

from mawaddah_client.infrastructure.api_client import ApiClient
from mawaddah_client.infrastructure.storage import BroadcastChannel, StateStorage
from mawaddah_client.stores.favorites_store import FavoritesStore
from mawaddah_client.stores.profile_store import ProfileStore
from mawaddah_client.stores.search_store import SearchStore
from mawaddah_client.stores.session_store import SessionStore
from mawaddah_client.utils.config import load_config, log_file, log_level
from mawaddah_client.utils.logger import get_logger, setup_logger

logger = get_logger()


@dataclass
class ClientState:
    session: SessionStore
    profile: ProfileStore
    search: SearchStore
    favorites: FavoritesStore

    def close(self) -> None:
        self.session.close()


def build_client_state(
    storage: StateStorage | None = None,
    api: ApiClient | None = None,
    channel: BroadcastChannel | None = None,
) -> ClientState:
    """
    Build and hydrate a ClientState. Defaults come from config: API base URL,
    timeout and the state directory.
    """
    load_config()
    setup_logger(level=log_level(), log_file=log_file())
    storage = storage or StateStorage()
    api = api or ApiClient()
    channel = channel or BroadcastChannel.for_storage(storage)

    session = SessionStore(storage=storage, api=api, channel=channel)
    session.hydrate()

    profile = ProfileStore(session, api, storage=storage)
    search = SearchStore(session, api, storage=storage)
    favorites = FavoritesStore(session, api, storage=storage)

    def _on_profile_change(store: ProfileStore) -> None:
        confirmed = store.baseline or {}
        profile_id = confirmed.get("id")
        if profile_id and session.token:
            session.set_profile_id(str(profile_id))
        search.apply_profile_defaults(confirmed.get("gender") or None)

    def _drop_stale_state(store: SessionStore) -> None:
        if store.token:
            return
        if profile.profile is not None or profile.baseline is not None:
            logger.info("Session ended; clearing profile snapshots")
            profile.clear()
        if favorites.favorites:
            logger.info("Session ended; clearing favorites")
            favorites.clear()

    profile.subscribe(_on_profile_change)
    _on_profile_change(profile)
    session.subscribe(_drop_stale_state)
    return ClientState(session=session, profile=profile, search=search, favorites=favorites)
