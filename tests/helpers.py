"""Shared test helpers: unsigned tokens and a signed-in session."""

from __future__ import annotations

import json
from typing import Any

import jwt

from mawaddah_client.stores.session_store import Identity, SessionStore

TEST_SIGNING_KEY = "mawaddah-test-signing-key-0123456789"


def make_token(claims: dict[str, Any]) -> str:
    return jwt.encode(claims, TEST_SIGNING_KEY, algorithm="HS256")


def make_raw_token(payload: Any) -> str:
    """Token whose payload is arbitrary JSON, including shapes jwt.encode refuses."""
    body = json.dumps(payload).encode("utf-8")
    return jwt.PyJWS().encode(body, TEST_SIGNING_KEY, algorithm="HS256")


def signed_in_session(user_id: str = "u1", token: str = "tok-1") -> SessionStore:
    session = SessionStore()
    session.set_auth(token, Identity(id=user_id, email=f"{user_id}@example.com", role="user"))
    return session
