"""
Tests for search envelope normalization across response shapes.
"""

from __future__ import annotations

import pytest

from mawaddah_client.domains.errors import MalformedResponse, UnrecognizedStatus
from mawaddah_client.domains.search_normalizer import (
    VARIANT_DEEP_SEARCH,
    VARIANT_EMPTY,
    VARIANT_LEGACY,
    VARIANT_SINGLE_OBJECT,
    VARIANT_STRICT,
    find_first_record_list,
    normalize_search_envelope,
    project_result,
)


def test_current_contract_envelope() -> None:
    """data.results with a meta block is the strict shape."""
    envelope = {
        "status": "success",
        "data": {"results": [{"user": {"id": "u1"}, "profile": {"firstName": "A"}}]},
        "meta": {"total": 1},
    }
    page = normalize_search_envelope(envelope)
    assert page.variant == VARIANT_STRICT
    assert len(page.results) == 1
    assert page.results[0]["user"]["id"] == "u1"
    assert page.results[0]["profile"]["firstName"] == "A"
    assert page.meta["total"] == 1


def test_data_items_is_strict() -> None:
    """data.items is accepted as the result array."""
    envelope = {"status": "success", "data": {"items": [{"user": {"id": "u2"}, "profile": {"id": "p2"}}]}}
    page = normalize_search_envelope(envelope)
    assert page.variant == VARIANT_STRICT
    assert page.results[0]["profile"]["id"] == "p2"


@pytest.mark.parametrize(
    "envelope",
    [
        [{"user": {"id": "u1"}, "profile": {"id": "p1"}}],
        {"status": "success", "data": [{"user": {"id": "u1"}, "profile": {"id": "p1"}}]},
        {"results": [{"user": {"id": "u1"}, "profile": {"id": "p1"}}]},
    ],
)
def test_legacy_shapes(envelope: object) -> None:
    """Bare arrays, data arrays and top-level results parse as legacy."""
    page = normalize_search_envelope(envelope)
    assert page.variant == VARIANT_LEGACY
    assert page.results[0]["user"]["id"] == "u1"


def test_missing_meta_is_synthesized() -> None:
    """Without a meta block one page covering the results is reported."""
    envelope = [{"user": {"id": "u1"}}, {"user": {"id": "u2"}}]
    page = normalize_search_envelope(envelope, page=3, page_size=10)
    assert page.meta == {"current_page": 3, "last_page": 1, "per_page": 10, "total": 2}


def test_camel_case_meta_is_normalized() -> None:
    """Pagination in camelCase is mapped and last_page computed."""
    envelope = {
        "data": {"results": [{"user": {"id": "u1"}}]},
        "meta": {"currentPage": 2, "perPage": 10, "total": 35},
    }
    assert normalize_search_envelope(envelope).meta == {
        "current_page": 2,
        "last_page": 4,
        "per_page": 10,
        "total": 35,
    }


def test_deep_search_finds_nested_records() -> None:
    """An array of objects anywhere in the envelope is adopted."""
    envelope = {"status": "success", "payload": {"hits": [{"userId": "u5", "firstName": "Zaid"}]}}
    page = normalize_search_envelope(envelope)
    assert page.variant == VARIANT_DEEP_SEARCH
    assert page.results[0]["user"]["id"] == "u5"
    assert page.results[0]["profile"]["firstName"] == "Zaid"


def test_single_object_is_promoted_when_total_is_one() -> None:
    """A lone record under data becomes a one-element list."""
    envelope = {
        "status": "success",
        "data": {"user": {"id": "u9"}, "profile": {"id": "p9"}},
        "meta": {"total": 1},
    }
    page = normalize_search_envelope(envelope)
    assert page.variant == VARIANT_SINGLE_OBJECT
    assert page.results[0]["user"]["id"] == "u9"
    assert page.results[0]["profile"]["id"] == "p9"


def test_empty_list_with_positive_total_keeps_looking() -> None:
    """An empty strict array is not trusted while meta reports hits."""
    envelope = {
        "data": {"results": [], "featured": [{"userId": "u1", "id": "p1"}]},
        "meta": {"total": 3},
    }
    page = normalize_search_envelope(envelope)
    assert page.variant == VARIANT_DEEP_SEARCH
    assert page.results[0]["profile"]["id"] == "p1"


def test_empty_list_with_zero_total_is_trusted() -> None:
    """A legitimate empty result never adopts unrelated arrays."""
    envelope = {"data": {"results": [], "featured": [{"id": "x"}]}, "meta": {"total": 0}}
    page = normalize_search_envelope(envelope)
    assert page.results == []
    assert page.variant == VARIANT_STRICT


def test_no_array_with_zero_total_is_empty() -> None:
    """No array and total 0 is an empty page, not an error."""
    page = normalize_search_envelope({"status": "success", "data": {}, "meta": {"total": 0}})
    assert page.results == []
    assert page.variant == VARIANT_EMPTY


def test_unrecognized_shape_raises() -> None:
    """No array and no zero total is a malformed response."""
    with pytest.raises(MalformedResponse):
        normalize_search_envelope({"status": "success", "data": {"foo": "bar"}})


def test_none_envelope_raises() -> None:
    with pytest.raises(MalformedResponse):
        normalize_search_envelope(None)


def test_unrecognized_status_names_the_status() -> None:
    """A non-success status is reported with its value."""
    with pytest.raises(UnrecognizedStatus) as exc:
        normalize_search_envelope({"status": "pending", "data": {"results": []}})
    assert exc.value.status == "pending"
    assert "pending" in str(exc.value)


def test_missing_ids_get_index_placeholders() -> None:
    """Records without ids are kept with placeholders instead of failing the batch."""
    page = normalize_search_envelope({"data": {"results": [{"profile": {"firstName": "X"}}, {"user": {}}]}})
    assert [r["user"]["id"] for r in page.results] == ["unknown-user-0", "unknown-user-1"]
    assert [r["profile"]["id"] for r in page.results] == ["unknown-profile-0", "unknown-profile-1"]


def test_snake_case_flat_row_is_projected() -> None:
    """Flat rows in snake_case map to the canonical shape."""
    result = project_result(
        {"user_id": 12, "profile_id": "p12", "first_name": "Lina", "marital_status": "عزباء", "age": "31"},
        0,
    )
    assert result["user"]["id"] == "12"
    assert result["profile"]["id"] == "p12"
    assert result["profile"]["firstName"] == "Lina"
    assert result["profile"]["maritalStatus"] == "عزباء"
    assert result["profile"]["age"] == 31


def test_find_first_record_list_skips_scalar_arrays() -> None:
    """Arrays of scalars are not mistaken for records."""
    node = {"tags": ["a", "b"], "inner": {"rows": [{"id": 1}]}}
    assert find_first_record_list(node) == [{"id": 1}]
