"""
Session state: bearer token, signed-in identity, derived profile reference.

Invariant: identity is present if and only if a token is present. Other stores
only read the session, through the SessionAccessor protocol.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional, Protocol

import requests

from mawaddah_client.domains.claims import DisplayClaims, decode_display_claims
from mawaddah_client.domains.errors import ClientStateError, MalformedResponse, error_message
from mawaddah_client.infrastructure.api_client import ApiClient
from mawaddah_client.infrastructure.storage import AUTH_NAMESPACE, BroadcastChannel, StateStorage
from mawaddah_client.stores.base import Store
from mawaddah_client.utils.logger import get_logger

logger = get_logger()

HYDRATION_PENDING = "pending"
HYDRATION_READY = "ready"


@dataclass
class Identity:
    """Who is signed in, as far as the UI needs to know."""

    id: str
    email: Optional[str] = None
    role: Optional[str] = None
    profile_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Optional["Identity"]:
        if not isinstance(data, Mapping):
            return None
        ident = data.get("id") or data.get("_id") or data.get("sub")
        if not ident:
            return None
        profile_id = data.get("profile_id") or data.get("profileId")
        return cls(
            id=str(ident),
            email=data.get("email"),
            role=data.get("role"),
            profile_id=str(profile_id) if profile_id else None,
        )

    @classmethod
    def from_display_claims(cls, claims: DisplayClaims) -> Optional["Identity"]:
        # Display hints only; the role here is never used for access decisions.
        if claims.is_empty:
            return None
        return cls(id=claims.subject, email=claims.email, role=claims.role)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SessionAccessor(Protocol):
    """Read-only view of the session handed to the other stores."""

    @property
    def token(self) -> Optional[str]: ...

    @property
    def identity(self) -> Optional[Identity]: ...


class SessionStore(Store):
    namespace = AUTH_NAMESPACE
    persisted_fields = ("token", "identity", "profile_id")

    def __init__(
        self,
        storage: StateStorage | None = None,
        api: ApiClient | None = None,
        channel: BroadcastChannel | None = None,
    ) -> None:
        super().__init__(storage)
        self._api = api
        self._channel = channel
        self.token: Optional[str] = None
        self.identity: Optional[Identity] = None
        self.profile_id: Optional[str] = None
        self.hydration_status = HYDRATION_PENDING
        self.error: Optional[str] = None
        self._unsubscribe_channel = None
        if channel is not None:
            self._unsubscribe_channel = channel.subscribe(self._on_broadcast, owner=self)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token and self.identity)

    @property
    def is_ready(self) -> bool:
        return self.hydration_status == HYDRATION_READY

    def persisted_state(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "identity": self.identity.to_dict() if self.identity else None,
            "profile_id": self.profile_id,
        }

    def _commit(self, **changes: Any) -> None:
        self._set(**changes)
        if self._channel is not None:
            self._channel.publish({"namespace": self.namespace}, origin=self)

    def _on_broadcast(self, message: dict[str, Any]) -> None:
        if message.get("namespace") == self.namespace:
            logger.debug("Session changed in another context; re-reading persisted state")
            self.hydrate()

    def hydrate(self) -> None:
        """
        Rebuild the session from persisted storage.

        A stored token without a usable identity gets a minimal identity from
        the token's display claims; if that yields no subject there is no
        session. Status moves pending -> ready once and never back.
        """
        data = self._read_persisted()
        token = data.get("token") if isinstance(data.get("token"), str) else None
        token = token or None
        identity = Identity.from_dict(data.get("identity"))

        if token and identity is None:
            identity = Identity.from_display_claims(decode_display_claims(token))
            if identity is None:
                logger.warning("Persisted token carries no subject; discarding session")
                token = None
        if not token:
            identity = None

        profile_id = None
        if token:
            profile_id = data.get("profile_id") or (identity.profile_id if identity else None)

        self._set(
            token=token,
            identity=identity,
            profile_id=profile_id,
            hydration_status=HYDRATION_READY,
        )
        logger.info("Session hydrated (authenticated=%s)", self.is_authenticated)

    def set_auth(self, token: str, identity: Identity) -> None:
        """Install a new session unconditionally."""
        self._commit(
            token=token,
            identity=identity,
            profile_id=identity.profile_id if identity else None,
            hydration_status=HYDRATION_READY,
            error=None,
        )

    def set_token(self, token: Optional[str]) -> None:
        """
        Replace the token. Clearing it clears identity too; a new token keeps
        the current identity so a refresh does not need a refetch.
        """
        if token:
            self._commit(token=token, hydration_status=HYDRATION_READY)
        else:
            self._commit(token=None, identity=None, profile_id=None, hydration_status=HYDRATION_READY)

    def set_identity(self, identity: Optional[Identity]) -> None:
        if identity is not None and not self.token:
            logger.warning("Ignoring identity without a token")
            return
        profile_id = (identity.profile_id if identity else None) or self.profile_id
        if identity is not None and profile_id and not identity.profile_id:
            identity.profile_id = profile_id
        if identity is None:
            profile_id = None
        self._commit(identity=identity, profile_id=profile_id)

    def set_profile_id(self, profile_id: Optional[str]) -> None:
        """Record the signed-in user's profile id on the session and its identity."""
        if profile_id == self.profile_id:
            return
        if not self.token:
            return
        if self.identity is not None:
            self.identity.profile_id = profile_id
        self._commit(profile_id=profile_id, identity=self.identity)

    def logout(self) -> None:
        """Clear token, identity and profile reference. Safe to call repeatedly."""
        self._commit(
            token=None,
            identity=None,
            profile_id=None,
            hydration_status=HYDRATION_READY,
            error=None,
        )

    def login(self, email: str, password: str) -> bool:
        """
        Exchange credentials for a session. Returns True on success; on failure
        the message is recorded in `error` and the current session is kept.
        """
        if self._api is None:
            raise RuntimeError("SessionStore.login needs an ApiClient")
        try:
            data = self._api.login({"email": email, "password": password})
            token, identity = _session_from_login(data)
        except (ClientStateError, requests.RequestException) as e:
            logger.warning("Login failed: %s", e)
            self._set(error=error_message(e, "Sign-in failed."))
            return False
        self.set_auth(token, identity)
        logger.info("Signed in as user %s", identity.id)
        return True

    def close(self) -> None:
        """Stop listening to other contexts."""
        if self._unsubscribe_channel is not None:
            self._unsubscribe_channel()
            self._unsubscribe_channel = None


def _session_from_login(data: Any) -> tuple[str, Identity]:
    if not isinstance(data, dict):
        raise MalformedResponse("Unexpected sign-in response from server.")
    token = data.get("accessToken") or data.get("access_token") or data.get("token")
    if not isinstance(token, str) or not token:
        raise MalformedResponse("Sign-in response did not include a token.")
    identity = Identity.from_dict(data.get("user"))
    if identity is None:
        identity = Identity.from_display_claims(decode_display_claims(token))
    if identity is None:
        raise MalformedResponse("Sign-in response did not identify the user.")
    return token, identity
