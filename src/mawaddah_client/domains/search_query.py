"""
Search filters -> validated query parameters.

Filters are a sparse mapping of camelCase names to strings as typed into the
search form. Only the age bounds are mandatory; every other filter is sent when
it is non-blank and not the "all" sentinel.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from mawaddah_client.domains.errors import ValidationFailed

MIN_AGE = 18
MAX_AGE = 80
MIN_HEIGHT_CM = 100
MAX_HEIGHT_CM = 250

SEARCH_FILTER_FIELDS: tuple[str, ...] = (
    "gender",
    "minAge",
    "maxAge",
    "city",
    "height",
    "minHeight",
    "maxHeight",
    "countryOfResidence",
    "nationality",
    "education",
    "occupation",
    "maritalStatus",
    "religion",
    "religiosityLevel",
    "marriageType",
    "polygamyAcceptance",
    "compatibilityTest",
    "hasPhoto",
    "keyword",
    "memberId",
)

# Sent verbatim (trimmed) when set, in this order.
TEXT_FILTERS: tuple[str, ...] = (
    "gender",
    "city",
    "nationality",
    "education",
    "occupation",
    "maritalStatus",
    "countryOfResidence",
    "religion",
    "religiosityLevel",
    "marriageType",
    "polygamyAcceptance",
    "compatibilityTest",
    "keyword",
    "memberId",
)

HEIGHT_FILTERS: tuple[str, ...] = ("height", "minHeight", "maxHeight")

PROFILE_INCOMPLETE_MESSAGE = "Please complete your profile before searching."
_PROFILE_HINTS = ("gender", "profile", "complete", "missing")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def empty_filters() -> dict[str, str]:
    return {name: "" for name in SEARCH_FILTER_FIELDS}


def parse_int(value: Any) -> int | None:
    """Leading integer of a form value ("25", " 25 years"), or None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    m = _LEADING_INT.match(str(value))
    return int(m.group(1)) if m else None


def parse_age_bounds(filters: Mapping[str, Any]) -> tuple[int | None, int | None]:
    """
    Validate the age filters and return (min_age, max_age).

    Raises:
        ValidationFailed: Neither bound is given, or both are given and one is
            outside [18, 80] or min exceeds max.
    """
    min_age = parse_int(filters.get("minAge"))
    max_age = parse_int(filters.get("maxAge"))
    if min_age is None and max_age is None:
        raise ValidationFailed(
            "Enter a minimum or maximum age to search.",
            fields=["minAge", "maxAge"],
        )
    if min_age is not None and max_age is not None:
        out_of_range = [
            name
            for name, val in (("minAge", min_age), ("maxAge", max_age))
            if not MIN_AGE <= val <= MAX_AGE
        ]
        if out_of_range or min_age > max_age:
            raise ValidationFailed(
                f"Age range must be between {MIN_AGE} and {MAX_AGE} "
                "and the minimum cannot exceed the maximum.",
                fields=out_of_range or ["minAge", "maxAge"],
            )
    return min_age, max_age


def _clamp_height(value: int) -> int:
    return max(MIN_HEIGHT_CM, min(MAX_HEIGHT_CM, value))


def _text_value(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "all":
        return None
    return text


def build_search_params(
    filters: Mapping[str, Any],
    page: int = 1,
    page_size: int = 20,
) -> dict[str, str | int]:
    """
    Query parameters for GET /search.

    Age bounds are validated first (see parse_age_bounds). Height bounds are
    clamped to [100, 250]; non-numeric heights are dropped.
    """
    min_age, max_age = parse_age_bounds(filters)

    params: dict[str, str | int] = {}
    if min_age is not None:
        params["minAge"] = min_age
    if max_age is not None:
        params["maxAge"] = max_age

    for name in TEXT_FILTERS:
        text = _text_value(filters.get(name))
        if text is not None:
            params[name] = text

    for name in HEIGHT_FILTERS:
        raw = filters.get(name)
        if raw is None or not str(raw).strip():
            continue
        h = parse_int(raw)
        if h is not None:
            params[name] = _clamp_height(h)

    if str(filters.get("hasPhoto") or "").strip().lower() == "true":
        params["hasPhoto"] = "true"

    params["page"] = max(1, int(page))
    params["limit"] = max(1, int(page_size))
    return params


def profile_incomplete_message(message: str) -> str:
    """
    Replace server messages about an incomplete profile with one fixed hint.
    Everything else passes through verbatim.
    """
    lowered = (message or "").lower()
    if any(hint in lowered for hint in _PROFILE_HINTS):
        return PROFILE_INCOMPLETE_MESSAGE
    return message
