"""
Profile synchronization: a working snapshot (local edits) reconciled against a
baseline snapshot (last state confirmed by the server) with field-level diffs.

The baseline only changes on a successful load or save. The working snapshot is
never rolled back on failure so in-progress edits survive.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional

import requests

from mawaddah_client.domains.errors import (
    ClientStateError,
    MalformedResponse,
    Unauthenticated,
    ValidationFailed,
    error_message,
)
from mawaddah_client.domains.profile_sync import (
    BIRTH_DATE_FIELD,
    build_create_payload,
    build_update_payload,
    is_persisted,
    merge_saved_profile,
    normalize_birth_date,
    normalize_profile_record,
    validate_for_save,
)
from mawaddah_client.infrastructure.api_client import ApiClient
from mawaddah_client.infrastructure.storage import PROFILE_NAMESPACE, StateStorage
from mawaddah_client.stores.base import Store
from mawaddah_client.stores.session_store import SessionAccessor
from mawaddah_client.utils.logger import get_logger

logger = get_logger()

_JSON_SCALARS = (str, int, float, bool, type(None))


def _form_value(name: str, value: Any) -> Any:
    """Form input as a JSON-safe value; dates become ISO strings."""
    if isinstance(value, (date, datetime)):
        if name == BIRTH_DATE_FIELD:
            return normalize_birth_date(value)
        return value.isoformat()
    if isinstance(value, _JSON_SCALARS) or isinstance(value, (list, dict)):
        return value
    return str(value)


class ProfileStore(Store):
    namespace = PROFILE_NAMESPACE
    persisted_fields = ("profile", "baseline")

    def __init__(
        self,
        session: SessionAccessor,
        api: ApiClient,
        storage: StateStorage | None = None,
    ) -> None:
        super().__init__(storage)
        self._session = session
        self._api = api
        # None means "not loaded yet"; {} means "loaded, no profile on the server".
        self.profile: Optional[dict[str, Any]] = None
        self.baseline: Optional[dict[str, Any]] = None
        self.loading = False
        self.saving = False
        self.error: Optional[str] = None
        self._restore()

    def _restore(self) -> None:
        # Leftover snapshots are only trusted while a session exists.
        if not self._session.token:
            return
        data = self._read_persisted()
        profile = data.get("profile")
        baseline = data.get("baseline")
        self.profile = dict(profile) if isinstance(profile, dict) else None
        self.baseline = dict(baseline) if isinstance(baseline, dict) else None

    @property
    def is_create_mode(self) -> bool:
        """True until the server has assigned the profile an id."""
        return not is_persisted(self.baseline)

    @property
    def has_unsaved_changes(self) -> bool:
        return bool(build_update_payload(self.profile or {}, self.baseline or {}))

    def load_profile(self) -> None:
        """
        Fetch the signed-in user's own profile and install it as both snapshots.

        Raises:
            Unauthenticated: No session.
        """
        token = self._session.token
        if not token:
            self._set(error="Sign in to load your profile.")
            raise Unauthenticated("Sign in to load your profile.")

        self._set(loading=True, error=None)
        try:
            data = self._api.get_my_profile(token)
        except (ClientStateError, requests.RequestException) as e:
            logger.warning("Profile load failed: %s", e)
            self._set(
                loading=False,
                error=error_message(e, "Failed to load your profile."),
                profile=self.profile if self.profile is not None else {},
                baseline=self.baseline if self.baseline is not None else {},
            )
            return

        if data and isinstance(data, dict):
            record = normalize_profile_record(data)
            self._set(profile=dict(record), baseline=dict(record), loading=False, error=None)
            logger.info("Profile loaded (id=%s)", record.get("id"))
        elif data:
            self._set(loading=False, error="Unexpected profile response from server.")
            logger.warning("Profile response is not an object: %r", type(data).__name__)
        else:
            self._set(profile={}, baseline={}, loading=False, error=None)
            logger.info("No profile on server yet")

    def set_field(self, name: str, value: Any) -> None:
        """Edit one attribute of the working snapshot. Never touches the baseline."""
        self._set(profile={**(self.profile or {}), name: _form_value(name, value)})

    def apply_form_changes(self, changes: Mapping[str, Any]) -> None:
        edits = {name: _form_value(name, value) for name, value in changes.items()}
        self._set(profile={**(self.profile or {}), **edits})

    def reset_profile(self) -> None:
        """Discard local edits: working := baseline."""
        self._set(
            profile=dict(self.baseline) if self.baseline is not None else None,
            error=None,
        )

    def set_from_server(self, record: Optional[Mapping[str, Any]]) -> None:
        if record is None:
            self._set(profile=None, baseline=None)
            return
        normalized = normalize_profile_record(record)
        self._set(profile=dict(normalized), baseline=dict(normalized))

    def clear(self) -> None:
        """Forget both snapshots (used when the session goes away)."""
        self._set(profile=None, baseline=None, loading=False, saving=False, error=None)

    def save_profile(self) -> bool:
        """
        Send local edits to the server.

        Update mode (baseline has an id) PATCHes only the changed fields;
        create mode POSTs the mandatory fields. Returns True when the server
        accepted a change, False for a no-op, an ignored overlapping call or a
        remote failure (recorded in `error`).

        Raises:
            Unauthenticated: No session.
            ValidationFailed: Mandatory fields blank or birth date invalid.
        """
        token = self._session.token
        identity = self._session.identity
        if not token or identity is None:
            self._set(error="Sign in before saving your profile.")
            raise Unauthenticated("Sign in before saving your profile.")

        if self.saving:
            logger.info("Profile save already in flight; ignoring")
            return False

        working = dict(self.profile or {})
        try:
            validate_for_save(working)
        except ValidationFailed as e:
            self._set(error=str(e))
            raise
        working[BIRTH_DATE_FIELD] = normalize_birth_date(working.get(BIRTH_DATE_FIELD))

        baseline = dict(self.baseline or {})
        updating = is_persisted(baseline)
        if updating:
            payload = build_update_payload(working, baseline)
        else:
            payload = build_create_payload(working)

        if not payload:
            logger.info("Profile unchanged; nothing to save")
            self._set(error=None)
            return False

        logger.info(
            "Saving profile (%s) fields=%s",
            "update" if updating else "create",
            sorted(payload),
        )
        self._set(saving=True, error=None)
        try:
            if updating:
                server = self._api.update_profile(token, identity.id, payload)
            else:
                server = self._api.create_profile(token, payload)
            if server is not None and not isinstance(server, dict):
                raise MalformedResponse("Unexpected profile response from server.")
        except (ClientStateError, requests.RequestException) as e:
            logger.warning("Profile save failed: %s", e)
            self._set(saving=False, error=error_message(e, "Failed to save your profile."))
            return False

        merged = merge_saved_profile(working, baseline, server)
        self._set(profile=dict(merged), baseline=dict(merged), saving=False, error=None)
        logger.info("Profile saved (id=%s)", merged.get("id"))
        return True
