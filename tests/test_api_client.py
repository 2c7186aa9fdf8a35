"""
Tests for ApiClient: headers, response decoding, error message extraction.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from mawaddah_client.domains.errors import MalformedResponse, RemoteRejected
from mawaddah_client.infrastructure.api_client import ApiClient, handle_response


def _response(status: int, body: object = None, text: str | None = None) -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.text = text if text is not None else ("" if body is None else json.dumps(body))
    return r


@pytest.fixture
def client() -> ApiClient:
    return ApiClient(base_url="http://api.test/api/", timeout=5)


def test_request_sends_bearer_token_and_json(client: ApiClient) -> None:
    """Authenticated calls carry the bearer token and a JSON content type."""
    with patch("mawaddah_client.infrastructure.api_client.requests.request") as mock_request:
        mock_request.return_value = _response(200, {"id": "p1"})
        out = client.create_profile("tok-123", {"gender": "male"})

    assert out == {"id": "p1"}
    method, url = mock_request.call_args.args
    kwargs = mock_request.call_args.kwargs
    assert method == "POST"
    assert url == "http://api.test/api/profiles"
    assert kwargs["headers"]["Authorization"] == "Bearer tok-123"
    assert kwargs["headers"]["Content-Type"] == "application/json"
    assert kwargs["json"] == {"gender": "male"}
    assert kwargs["timeout"] == 5


def test_get_my_profile_never_uses_an_id(client: ApiClient) -> None:
    """Own-profile fetch goes to /profiles/me."""
    with patch("mawaddah_client.infrastructure.api_client.requests.request") as mock_request:
        mock_request.return_value = _response(200, None)
        assert client.get_my_profile("tok") is None

    assert mock_request.call_args.args == ("GET", "http://api.test/api/profiles/me")


def test_favorite_endpoints(client: ApiClient) -> None:
    """Add posts targetUserId; remove deletes by target id."""
    with patch("mawaddah_client.infrastructure.api_client.requests.request") as mock_request:
        mock_request.return_value = _response(200, {})
        client.add_favorite("tok", "u9")
        add_call = mock_request.call_args
        client.remove_favorite("tok", "u9")
        remove_call = mock_request.call_args

    assert add_call.args == ("POST", "http://api.test/api/favorites")
    assert add_call.kwargs["json"] == {"targetUserId": "u9"}
    assert remove_call.args == ("DELETE", "http://api.test/api/favorites/u9")


def test_search_passes_query_params(client: ApiClient) -> None:
    """Search parameters go on the query string."""
    with patch("mawaddah_client.infrastructure.api_client.requests.request") as mock_request:
        mock_request.return_value = _response(200, {"status": "success"})
        client.search("tok", {"minAge": 20, "page": 1})

    assert mock_request.call_args.kwargs["params"] == {"minAge": 20, "page": 1}


def test_consultants_include_inactive_flag(client: ApiClient) -> None:
    """includeInactive is only sent when requested."""
    with patch("mawaddah_client.infrastructure.api_client.requests.request") as mock_request:
        mock_request.return_value = _response(200, [])
        client.get_consultants("tok")
        assert mock_request.call_args.kwargs["params"] is None
        client.get_consultants("tok", include_inactive=True)
        assert mock_request.call_args.kwargs["params"] == {"includeInactive": "true"}


def test_upload_photo_is_multipart(client: ApiClient) -> None:
    """Photo upload sends a file part and no JSON content type."""
    with patch("mawaddah_client.infrastructure.api_client.requests.request") as mock_request:
        mock_request.return_value = _response(200, {"photoUrl": "http://img"})
        out = client.upload_profile_photo("tok", "u1", "me.jpg", b"\xff\xd8")

    kwargs = mock_request.call_args.kwargs
    assert out == {"photoUrl": "http://img"}
    assert "Content-Type" not in kwargs["headers"]
    assert kwargs["files"]["photo"] == ("me.jpg", b"\xff\xd8", "image/jpeg")


def test_error_message_from_json_list() -> None:
    """Multi-part validation messages are joined into one string."""
    r = _response(400, {"message": ["city should not be empty", "gender must be valid"]})
    with pytest.raises(RemoteRejected) as exc:
        handle_response(r)
    assert str(exc.value) == "city should not be empty, gender must be valid"
    assert exc.value.status_code == 400


def test_error_message_from_error_field() -> None:
    """`error` is used when `message` is absent."""
    with pytest.raises(RemoteRejected, match="Forbidden"):
        handle_response(_response(403, {"error": "Forbidden"}))


def test_error_message_falls_back_to_raw_text() -> None:
    """A non-JSON error body is reported verbatim."""
    with pytest.raises(RemoteRejected, match="Bad Gateway"):
        handle_response(_response(502, text="Bad Gateway"))


def test_error_without_body_mentions_status() -> None:
    """An empty error body still produces a readable message."""
    with pytest.raises(RemoteRejected, match="HTTP 500"):
        handle_response(_response(500, text=""))


def test_payment_required_is_flagged() -> None:
    """402 responses are exposed as an opaque payment-required signal."""
    with pytest.raises(RemoteRejected) as exc:
        handle_response(_response(402, {"message": "Upgrade your membership"}))
    assert exc.value.payment_required


def test_success_with_non_json_body_is_malformed() -> None:
    """A 2xx body that is not JSON cannot be trusted."""
    with pytest.raises(MalformedResponse):
        handle_response(_response(200, text="<html>oops</html>"))


def test_transport_errors_propagate(client: ApiClient) -> None:
    """Connection failures are left for the stores to convert."""
    with patch(
        "mawaddah_client.infrastructure.api_client.requests.request",
        side_effect=requests.ConnectionError("refused"),
    ):
        with pytest.raises(requests.ConnectionError):
            client.get_favorites("tok")
