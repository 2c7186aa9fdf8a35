"""
Display-only claims decoded from a bearer token.

The token's signature is never checked here. Whatever this module returns is a
hint for showing who is signed in (name badge, avatar seed) and must not feed
any access decision; the backend is the only party that validates tokens.
"""

from __future__ import annotations

from dataclasses import dataclass

import jwt
from jwt import InvalidTokenError

from mawaddah_client.utils.logger import get_logger

logger = get_logger()

# Nothing is validated: no signature, no time-based or registered claims.
_UNVERIFIED_OPTIONS = {
    "verify_signature": False,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


@dataclass(frozen=True)
class DisplayClaims:
    """Cosmetic subset of the token payload: subject id, email, role."""

    subject: str = ""
    email: str | None = None
    role: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.subject


def decode_display_claims(token: str | None) -> DisplayClaims:
    """
    Decode subject, email and role from a JWT without verifying it.

    Returns empty claims for anything PyJWT cannot read as a token with a JSON
    object payload.
    """
    if not token:
        return DisplayClaims()
    try:
        payload = jwt.decode(token, options=_UNVERIFIED_OPTIONS)
    except InvalidTokenError as e:
        logger.debug("Token payload is not decodable: %s", e)
        return DisplayClaims()
    if not isinstance(payload, dict):
        return DisplayClaims()

    sub = payload.get("sub")
    email = payload.get("email")
    role = payload.get("role")
    return DisplayClaims(
        subject=str(sub) if sub is not None else "",
        email=str(email) if email is not None else None,
        role=str(role) if role is not None else None,
    )
