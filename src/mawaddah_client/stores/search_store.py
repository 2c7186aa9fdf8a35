"""
Search state: persisted filters, transient results and pagination metadata.

Filters survive restarts; results never do.
"""

from __future__ import annotations

from typing import Any, Optional

import requests

from mawaddah_client.domains.errors import (
    ClientStateError,
    Unauthenticated,
    UnrecognizedStatus,
    ValidationFailed,
    error_message,
)
from mawaddah_client.domains.search_normalizer import normalize_search_envelope
from mawaddah_client.domains.profile_constants import (
    get_marital_statuses_for_search,
    get_search_target_gender,
)
from mawaddah_client.domains.search_query import (
    SEARCH_FILTER_FIELDS,
    build_search_params,
    empty_filters,
    profile_incomplete_message,
)
from mawaddah_client.infrastructure.api_client import ApiClient
from mawaddah_client.infrastructure.storage import SEARCH_NAMESPACE, StateStorage
from mawaddah_client.stores.base import Store
from mawaddah_client.stores.session_store import SessionAccessor
from mawaddah_client.utils.config import search_page_size
from mawaddah_client.utils.logger import get_logger

logger = get_logger()

SEARCH_FAILED_MESSAGE = "Search failed, please try again."


class SearchStore(Store):
    namespace = SEARCH_NAMESPACE
    persisted_fields = ("filters", "page_size")

    def __init__(
        self,
        session: SessionAccessor,
        api: ApiClient,
        storage: StateStorage | None = None,
        page_size: int | None = None,
    ) -> None:
        super().__init__(storage)
        self._session = session
        self._api = api
        self.filters: dict[str, str] = empty_filters()
        self.page_size: int = page_size or search_page_size()
        self.results: list[dict[str, Any]] = []
        self.meta: Optional[dict[str, int]] = None
        self.variant: Optional[str] = None
        self.loading = False
        self.error: Optional[str] = None
        # Signed-in user's own gender, pushed in by the container; not persisted.
        self.user_gender: Optional[str] = None
        self._restore()

    def _restore(self) -> None:
        data = self._read_persisted()
        saved = data.get("filters")
        if isinstance(saved, dict):
            for name, value in saved.items():
                if name in SEARCH_FILTER_FIELDS and value is not None:
                    self.filters[name] = str(value)
        size = data.get("page_size")
        if isinstance(size, int) and not isinstance(size, bool) and size > 0:
            self.page_size = size

    def set_filter(self, name: str, value: Any) -> None:
        self._set(filters={**self.filters, name: "" if value is None else str(value)})

    def set_page_size(self, size: int) -> None:
        if size > 0:
            self._set(page_size=int(size))

    @property
    def marital_status_options(self) -> tuple[str, ...]:
        """Marital statuses that make sense for the gender being searched."""
        return get_marital_statuses_for_search(self.user_gender)

    def apply_profile_defaults(self, user_gender: Optional[str]) -> None:
        """
        Record the signed-in user's gender and, when no gender filter is set,
        preselect the opposite one.
        """
        changes: dict[str, Any] = {}
        if user_gender != self.user_gender:
            changes["user_gender"] = user_gender
        target = get_search_target_gender(user_gender)
        if target and not self.filters.get("gender"):
            changes["filters"] = {**self.filters, "gender": target}
        if changes:
            self._set(**changes)

    def reset_filters(self) -> None:
        """Clear filters, results, error and metadata in one change."""
        filters = empty_filters()
        target = get_search_target_gender(self.user_gender)
        if target:
            filters["gender"] = target
        self._set(
            filters=filters,
            results=[],
            error=None,
            meta=None,
            variant=None,
        )

    def perform_search(self, page: int = 1) -> bool:
        """
        Run a search with the current filters. Returns True when results were
        installed; remote failures are recorded in `error` and return False.

        Raises:
            Unauthenticated: No session.
            ValidationFailed: Age filters missing or out of range.
        """
        token = self._session.token
        if not token:
            self._set(error="Sign in to search.")
            raise Unauthenticated("Sign in to search.")

        try:
            params = build_search_params(self.filters, page=page, page_size=self.page_size)
        except ValidationFailed as e:
            self._set(error=str(e))
            raise

        logger.info("Searching with filters=%s", sorted(k for k in params if k not in ("page", "limit")))
        self._set(loading=True, error=None)
        try:
            envelope = self._api.search(token, params)
            page_data = normalize_search_envelope(envelope, page=page, page_size=self.page_size)
        except UnrecognizedStatus as e:
            logger.warning("Search returned unrecognized status %r", e.status)
            self._set(results=[], meta=None, variant=None, loading=False, error=str(e))
            return False
        except (ClientStateError, requests.RequestException) as e:
            logger.warning("Search failed: %s", e)
            message = profile_incomplete_message(error_message(e, SEARCH_FAILED_MESSAGE))
            self._set(results=[], meta=None, variant=None, loading=False, error=message)
            return False

        self._set(
            results=page_data.results,
            meta=page_data.meta,
            variant=page_data.variant,
            loading=False,
            error=None,
        )
        logger.info(
            "Search returned %d results (total=%s, shape=%s)",
            len(page_data.results),
            page_data.meta.get("total"),
            page_data.variant,
        )
        return True
