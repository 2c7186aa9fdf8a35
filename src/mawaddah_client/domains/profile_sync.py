"""
Profile diffing and normalization. Pure functions used by the profile store.

A profile is a flat mapping of camelCase attribute names to values, exactly as
the backend sends and receives them.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Mapping

from mawaddah_client.domains.errors import ValidationFailed
from mawaddah_client.domains.profile_constants import (
    ABOUT_MIN_LENGTH,
    MANDATORY_PROFILE_FIELDS,
    SYNCABLE_PROFILE_FIELDS,
)

BIRTH_DATE_FIELD = "dateOfBirth"


def _parse_calendar_date(value: str) -> date | None:
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def normalize_birth_date(value: Any) -> str:
    """
    Canonical YYYY-MM-DD form of a birth date.

    Timestamps with an offset are converted to their UTC calendar date. Blank
    values become "". Values that are not dates at all are returned trimmed
    and unchanged so the user can still see and fix them.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    parsed = _parse_calendar_date(text)
    return parsed.isoformat() if parsed else text


def is_valid_birth_date(value: Any) -> bool:
    if isinstance(value, (date, datetime)):
        return True
    return _parse_calendar_date(str(value or "")) is not None


def normalize_profile_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of a server record with the birth date in canonical form."""
    out = dict(record)
    out[BIRTH_DATE_FIELD] = normalize_birth_date(record.get(BIRTH_DATE_FIELD))
    return out


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def missing_required_fields(profile: Mapping[str, Any]) -> list[str]:
    """Mandatory fields that are blank in `profile`, in declaration order."""
    return [f for f in MANDATORY_PROFILE_FIELDS if _is_blank(profile.get(f))]


def validate_for_save(profile: Mapping[str, Any]) -> None:
    """
    Raise ValidationFailed listing every blank mandatory field, or when the
    birth date is present but not a date.
    """
    missing = missing_required_fields(profile)
    if missing:
        raise ValidationFailed(
            "The following fields are required: " + ", ".join(missing),
            fields=missing,
        )
    if not is_valid_birth_date(profile.get(BIRTH_DATE_FIELD)):
        raise ValidationFailed("Date of birth is not a valid date.", fields=[BIRTH_DATE_FIELD])


def _norm(value: Any) -> str:
    # Absent and blank compare equal; both mean "no value".
    if value is None:
        return ""
    return str(value).strip()


def build_update_payload(
    working: Mapping[str, Any],
    baseline: Mapping[str, Any],
) -> dict[str, str]:
    """
    Sparse PATCH payload: the syncable fields whose trimmed value differs from
    the baseline.

    A field that was non-empty in the baseline and is now blank is sent as ""
    so the server clears it. Untouched fields are omitted.
    """
    payload: dict[str, str] = {}
    for field in SYNCABLE_PROFILE_FIELDS:
        current = _norm(working.get(field))
        previous = _norm(baseline.get(field))
        if current == previous:
            continue
        payload[field] = current
    return payload


def build_create_payload(working: Mapping[str, Any]) -> dict[str, str]:
    """POST payload for a first save: mandatory fields plus a long-enough `about`."""
    payload: dict[str, str] = {}
    for field in MANDATORY_PROFILE_FIELDS:
        value = working.get(field)
        if isinstance(value, str):
            payload[field] = value.strip()
    about = working.get("about")
    if isinstance(about, str) and len(about.strip()) >= ABOUT_MIN_LENGTH:
        payload["about"] = about.strip()
    return payload


def is_persisted(profile: Mapping[str, Any] | None) -> bool:
    """True once the server has assigned the profile an identifier."""
    return bool(profile and profile.get("id"))


def merge_saved_profile(
    working: Mapping[str, Any],
    baseline: Mapping[str, Any],
    server: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """
    Canonical state after a successful save.

    Layers baseline, then working edits, then the server response; server
    fields win. The birth date is re-normalized from the server value when it
    sent one.
    """
    server = server or {}
    merged: dict[str, Any] = {**baseline, **working, **server}
    if server.get(BIRTH_DATE_FIELD):
        merged[BIRTH_DATE_FIELD] = normalize_birth_date(server[BIRTH_DATE_FIELD])
    else:
        merged[BIRTH_DATE_FIELD] = normalize_birth_date(working.get(BIRTH_DATE_FIELD))
    return merged
