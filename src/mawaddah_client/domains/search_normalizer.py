"""
Search response normalization.

The backend has changed where it puts the result array across versions, so the
envelope is parsed by a chain of shape-specific functions:

1. parse_strict      - current contract: data.results or data.items
2. parse_legacy      - older shapes: bare array, data as array, top-level results
3. parse_best_effort - degraded: first array of objects anywhere, or a single
                       object promoted when meta.total == 1

Each stage returns the raw records or None. Records are then projected into
the canonical {"user": {...}, "profile": {...}} shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from mawaddah_client.domains.errors import MalformedResponse, UnrecognizedStatus
from mawaddah_client.utils.logger import get_logger

logger = get_logger()

SUCCESS_STATUSES = ("success", "ok")

VARIANT_STRICT = "strict"
VARIANT_LEGACY = "legacy"
VARIANT_DEEP_SEARCH = "deep-search"
VARIANT_SINGLE_OBJECT = "single-object"
VARIANT_EMPTY = "empty"

# canonical key -> accepted spellings, first match wins
USER_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id", "userId", "user_id", "_id"),
    "email": ("email", "emailAddress", "email_address"),
    "role": ("role",),
    "status": ("status", "accountStatus", "account_status"),
    "memberId": ("memberId", "member_id", "memberNumber", "member_number"),
}

PROFILE_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("id", "profileId", "profile_id", "_id"),
    "firstName": ("firstName", "first_name"),
    "lastName": ("lastName", "last_name"),
    "gender": ("gender",),
    "age": ("age",),
    "nationality": ("nationality",),
    "city": ("city",),
    "countryOfResidence": ("countryOfResidence", "country_of_residence"),
    "education": ("education",),
    "occupation": ("occupation",),
    "maritalStatus": ("maritalStatus", "marital_status"),
    "marriageType": ("marriageType", "marriage_type"),
    "polygamyAcceptance": ("polygamyAcceptance", "polygamy_acceptance"),
    "compatibilityTest": ("compatibilityTest", "compatibility_test"),
    "religion": ("religion",),
    "religiosityLevel": ("religiosityLevel", "religiosity_level"),
    "about": ("about", "bio"),
    "photoUrl": ("photoUrl", "photo_url", "avatarUrl", "avatar_url"),
    "dateOfBirth": ("dateOfBirth", "date_of_birth", "dob"),
    "height": ("height", "heightCm", "height_cm"),
}

_INT_FIELDS = ("age", "height")

META_FIELDS: dict[str, tuple[str, ...]] = {
    "current_page": ("current_page", "currentPage", "page"),
    "last_page": ("last_page", "lastPage", "totalPages", "total_pages"),
    "per_page": ("per_page", "perPage", "limit", "pageSize", "page_size"),
    "total": ("total", "totalCount", "total_count", "count"),
}


@dataclass
class SearchPage:
    """Normalized search response: projected results plus pagination metadata."""

    results: list[dict[str, Any]] = field(default_factory=list)
    meta: dict[str, int] = field(default_factory=dict)
    variant: str = VARIANT_EMPTY


def _is_record_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and all(isinstance(v, dict) for v in value)


def parse_strict(envelope: Any) -> list[Any] | None:
    """Result array under data.results, else data.items."""
    if not isinstance(envelope, dict):
        return None
    data = envelope.get("data")
    if not isinstance(data, dict):
        return None
    for key in ("results", "items"):
        if isinstance(data.get(key), list):
            return data[key]
    return None


def parse_legacy(envelope: Any) -> list[Any] | None:
    """Bare array envelope, data as an array, or a top-level results array."""
    if isinstance(envelope, list):
        return envelope
    if not isinstance(envelope, dict):
        return None
    if isinstance(envelope.get("data"), list):
        return envelope["data"]
    if isinstance(envelope.get("results"), list):
        return envelope["results"]
    return None


def find_first_record_list(node: Any) -> list[dict[str, Any]] | None:
    """Depth-first search for the first non-empty array whose items are all objects."""
    if _is_record_list(node):
        return node
    if isinstance(node, dict):
        children = node.values()
    elif isinstance(node, list):
        children = node
    else:
        return None
    for child in children:
        found = find_first_record_list(child)
        if found is not None:
            return found
    return None


def parse_best_effort(envelope: Any, total: int | None) -> tuple[list[Any], str] | None:
    """
    Last-resort extraction. Returns (records, variant) or None.

    Single-object promotion covers a backend that answers a one-hit search with
    the bare record instead of a list. Kept for compatibility until the backend
    confirms which shape is intended.
    """
    found = find_first_record_list(envelope)
    if found is not None:
        logger.warning("Search response parsed by deep search; %d records adopted", len(found))
        return found, VARIANT_DEEP_SEARCH
    if total == 1 and isinstance(envelope, dict):
        data = envelope.get("data")
        if isinstance(data, dict) and data:
            logger.warning("Search response promoted a single object to a one-element result list")
            return [data], VARIANT_SINGLE_OBJECT
    return None


def _pick(source: Mapping[str, Any], spellings: tuple[str, ...]) -> Any:
    for key in spellings:
        if key in source and source[key] is not None:
            return source[key]
    return None


def _as_int(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return value
    return value


def project_result(record: Any, index: int) -> dict[str, Any]:
    """
    Canonical {"user", "profile"} projection of one raw record.

    Handles both nested records ({"user": {...}, "profile": {...}}) and flat
    profile rows carrying a userId. Missing identifiers become index-qualified
    placeholders so one bad record does not sink the whole batch.
    """
    raw = record if isinstance(record, dict) else {}
    raw_user = raw.get("user") if isinstance(raw.get("user"), dict) else {}
    raw_profile = raw.get("profile") if isinstance(raw.get("profile"), dict) else None
    if raw_profile is None:
        raw_profile = {k: v for k, v in raw.items() if k != "user"}

    user: dict[str, Any] = {}
    for key, spellings in USER_FIELDS.items():
        val = _pick(raw_user, spellings)
        if val is None and key == "id":
            val = _pick(raw, ("userId", "user_id")) or _pick(raw_profile, ("userId", "user_id"))
        elif val is None and key in ("email", "memberId"):
            val = _pick(raw, spellings)
        user[key] = "" if val is None else val
    if not user["id"]:
        user["id"] = f"unknown-user-{index}"
    user["id"] = str(user["id"])

    profile: dict[str, Any] = {}
    for key, spellings in PROFILE_FIELDS.items():
        val = _pick(raw_profile, spellings)
        if val is None:
            continue
        profile[key] = _as_int(val) if key in _INT_FIELDS else val
    profile["id"] = str(profile.get("id") or f"unknown-profile-{index}")

    return {"user": user, "profile": profile}


def _meta_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def extract_meta(envelope: Any) -> dict[str, Any] | None:
    """Raw pagination block from meta, data.meta or pagination, if any."""
    if not isinstance(envelope, dict):
        return None
    for candidate in (
        envelope.get("meta"),
        envelope.get("pagination"),
        envelope.get("data", {}).get("meta") if isinstance(envelope.get("data"), dict) else None,
    ):
        if isinstance(candidate, dict):
            return candidate
    return None


def normalize_meta(
    raw: Mapping[str, Any] | None,
    page: int,
    page_size: int,
    count: int,
) -> dict[str, int]:
    """
    {current_page, last_page, per_page, total} from a server block in either
    spelling; a single-page block is synthesized when the server sent none.
    """
    if not raw:
        return {"current_page": page, "last_page": 1, "per_page": page_size, "total": count}
    values = {key: _meta_int(_pick(raw, spellings)) for key, spellings in META_FIELDS.items()}
    total = values["total"] if values["total"] is not None else count
    per_page = values["per_page"] or page_size
    last_page = values["last_page"]
    if last_page is None:
        last_page = max(1, -(-total // per_page)) if per_page else 1
    return {
        "current_page": values["current_page"] or page,
        "last_page": last_page,
        "per_page": per_page,
        "total": total,
    }


def check_status(envelope: Any) -> None:
    """Raise UnrecognizedStatus unless the envelope status is absent or a success value."""
    if not isinstance(envelope, dict) or "status" not in envelope:
        return
    status = envelope.get("status")
    if isinstance(status, str) and status.strip().lower() in SUCCESS_STATUSES:
        return
    if status is True:
        return
    raise UnrecognizedStatus(status)


def normalize_search_envelope(envelope: Any, page: int = 1, page_size: int = 20) -> SearchPage:
    """
    Normalize a successful (2xx) search response.

    Raises:
        UnrecognizedStatus: The envelope's status is not a success value.
        MalformedResponse: No result array could be located and the metadata
            does not report zero results.
    """
    if envelope is None:
        raise MalformedResponse("Empty response from search service.")
    check_status(envelope)

    raw_meta = extract_meta(envelope)
    total = _meta_int(_pick(raw_meta, META_FIELDS["total"])) if raw_meta else None

    records: list[Any] | None = None
    variant = VARIANT_EMPTY
    for parser, tag in ((parse_strict, VARIANT_STRICT), (parse_legacy, VARIANT_LEGACY)):
        found = parser(envelope)
        if found is None:
            continue
        if found or not total:
            records, variant = found, tag
            break
        # An empty array while meta reports hits: keep looking before trusting it.
        if records is None:
            records, variant = found, tag

    if records is None or (not records and total):
        fallback = parse_best_effort(envelope, total)
        if fallback is not None:
            records, variant = fallback

    if records is None:
        if total == 0:
            records, variant = [], VARIANT_EMPTY
        else:
            raise MalformedResponse("Unrecognized search response format from server.")

    results = [project_result(r, i) for i, r in enumerate(records)]
    meta = normalize_meta(raw_meta, page, page_size, len(results))
    return SearchPage(results=results, meta=meta, variant=variant)
