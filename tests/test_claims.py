"""
Tests for display-claim decoding of bearer tokens.
"""

from __future__ import annotations

import jwt

from helpers import make_raw_token, make_token
from mawaddah_client.domains.claims import DisplayClaims, decode_display_claims


def test_decodes_subject_email_role() -> None:
    """sub, email and role are read from the payload."""
    token = make_token({"sub": "u42", "email": "a@b.c", "role": "member", "exp": 1})
    claims = decode_display_claims(token)
    assert claims == DisplayClaims(subject="u42", email="a@b.c", role="member")
    assert not claims.is_empty


def test_signature_is_not_checked() -> None:
    """A token signed with an unknown key still yields display claims."""
    token = jwt.encode({"sub": "u1"}, "some-other-key-that-the-client-never-sees", algorithm="HS256")
    assert decode_display_claims(token).subject == "u1"


def test_numeric_subject_becomes_string() -> None:
    """Subjects are exposed as strings regardless of their JSON type."""
    assert decode_display_claims(make_raw_token({"sub": 7})).subject == "7"


def test_non_jwt_tokens_yield_empty_claims() -> None:
    """Opaque or broken tokens decode to nothing instead of raising."""
    for token in (None, "", "opaque-token", "a..c", "a.!!!.c", "a.bm90LWpzb24.c"):
        assert decode_display_claims(token).is_empty


def test_payload_that_is_not_an_object() -> None:
    """A JSON array payload carries no claims."""
    assert decode_display_claims(make_raw_token([1, 2, 3])).is_empty
