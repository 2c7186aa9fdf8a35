"""Observable state containers.

Stores coordinate domain logic with infrastructure (API calls, persistence) and
expose their state as plain attributes. They should avoid UI concerns.
"""

from mawaddah_client.stores.container import ClientState, build_client_state
from mawaddah_client.stores.favorites_store import FavoritesStore
from mawaddah_client.stores.profile_store import ProfileStore
from mawaddah_client.stores.search_store import SearchStore
from mawaddah_client.stores.session_store import Identity, SessionAccessor, SessionStore

__all__ = [
    "ClientState",
    "FavoritesStore",
    "Identity",
    "ProfileStore",
    "SearchStore",
    "SessionAccessor",
    "SessionStore",
    "build_client_state",
]
