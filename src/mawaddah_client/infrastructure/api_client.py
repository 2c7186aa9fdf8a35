"""
HTTP client for the Mawaddah backend API.

Thin wrapper over requests: builds URLs, attaches the bearer token, and turns
non-success responses into RemoteRejected with a readable message. No retries;
timeouts come from config.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

import requests

from mawaddah_client.domains.errors import MalformedResponse, RemoteRejected
from mawaddah_client.utils.config import api_base_url, http_timeout
from mawaddah_client.utils.logger import get_logger

logger = get_logger()

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"
_MAX_LOGGED_BODY_CHARS = 500


def _message_from_body(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    message = data.get("message") or data.get("error")
    if isinstance(message, dict):
        message = message.get("message")
    if isinstance(message, list):
        parts = [str(m).strip() for m in message if str(m).strip()]
        return ", ".join(parts) or None
    if message is None:
        return None
    text = str(message).strip()
    return text or None


def handle_response(response: requests.Response) -> Any:
    """
    Decode a response body or raise.

    2xx: parsed JSON, or None for an empty body.
    Non-2xx: RemoteRejected whose message comes from the JSON body's
    `message`/`error` field (lists joined), else the raw text.

    Raises:
        RemoteRejected: Non-success status.
        MalformedResponse: Success status with a body that is not JSON.
    """
    status = getattr(response, "status_code", None) or 0
    text = response.text or ""
    data: Any = None
    parsed = False
    if text.strip():
        try:
            data = json.loads(text)
            parsed = True
        except ValueError:
            data = None

    if not 200 <= status < 300:
        message = _message_from_body(data) if parsed else None
        if message is None:
            message = text.strip() or f"{DEFAULT_ERROR_MESSAGE} (HTTP {status})"
        logger.info("API responded %s: %s", status, message[:_MAX_LOGGED_BODY_CHARS])
        raise RemoteRejected(message, status_code=status, body=data if parsed else text)

    if text.strip() and not parsed:
        raise MalformedResponse(
            f"Server returned a non-JSON body (HTTP {status}): {text[:_MAX_LOGGED_BODY_CHARS]}"
        )
    return data


class ApiClient:
    """
    Backend API wrapper. Every authenticated helper takes the bearer token
    explicitly; the client itself holds no session.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = (base_url or api_base_url()).rstrip("/")
        self._timeout = timeout if timeout is not None else http_timeout()
        self._http = session or requests

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self, token: str | None, json_body: bool = True) -> dict[str, str]:
        headers: dict[str, str] = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(
        self,
        method: str,
        endpoint: str,
        token: str | None = None,
        json_body: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded body (see handle_response)."""
        url = f"{self._base_url}{endpoint}"
        logger.debug("%s %s", method, url)
        r = self._http.request(
            method,
            url,
            headers=self._headers(token),
            json=dict(json_body) if json_body is not None else None,
            params=dict(params) if params is not None else None,
            timeout=self._timeout,
        )
        return handle_response(r)

    # --- auth ---

    def login(self, payload: Mapping[str, Any]) -> Any:
        return self.request("POST", "/auth/login", json_body=payload)

    def register(self, payload: Mapping[str, Any]) -> Any:
        return self.request("POST", "/auth/register", json_body=payload)

    # --- profile ---

    def get_my_profile(self, token: str) -> Any:
        # Always the caller's own profile; never addressed by a client-supplied id.
        return self.request("GET", "/profiles/me", token)

    def create_profile(self, token: str, payload: Mapping[str, Any]) -> Any:
        return self.request("POST", "/profiles", token, json_body=payload)

    def update_profile(self, token: str, user_id: str, payload: Mapping[str, Any]) -> Any:
        return self.request("PATCH", f"/profiles/{user_id}", token, json_body=payload)

    def upload_profile_photo(
        self,
        token: str,
        user_id: str,
        filename: str,
        content: bytes,
        content_type: str = "image/jpeg",
    ) -> Any:
        url = f"{self._base_url}/profiles/{user_id}/photo"
        r = self._http.request(
            "PATCH",
            url,
            headers=self._headers(token, json_body=False),
            files={"photo": (filename, content, content_type)},
            timeout=self._timeout,
        )
        return handle_response(r)

    # --- search ---

    def search(self, token: str, params: Mapping[str, Any]) -> Any:
        return self.request("GET", "/search", token, params=params)

    # --- favorites ---

    def get_favorites(self, token: str) -> Any:
        return self.request("GET", "/favorites", token)

    def add_favorite(self, token: str, target_user_id: str) -> Any:
        return self.request("POST", "/favorites", token, json_body={"targetUserId": target_user_id})

    def remove_favorite(self, token: str, target_user_id: str) -> Any:
        return self.request("DELETE", f"/favorites/{target_user_id}", token)

    # --- dashboard, consultants, membership ---

    def get_dashboard_summary(self, token: str) -> Any:
        return self.request("GET", "/dashboard/summary", token)

    def get_consultants(self, token: str, include_inactive: bool = False) -> Any:
        params = {"includeInactive": "true"} if include_inactive else None
        return self.request("GET", "/consultants", token, params=params)

    def get_membership_plans(self, token: str) -> Any:
        return self.request("GET", "/membership/plans", token)

    def get_current_membership(self, token: str) -> Any:
        return self.request("GET", "/membership", token)

    def select_membership(self, token: str, plan_id: str) -> Any:
        return self.request("POST", "/membership/select", token, json_body={"planId": plan_id})

    def upgrade_membership(self, token: str, plan_id: str) -> Any:
        return self.request("POST", "/membership/upgrade", token, json_body={"planId": plan_id})
