"""
Error kinds raised by the client state layer.

Unauthenticated and ValidationFailed are raised before any network call.
RemoteRejected, MalformedResponse and UnrecognizedStatus come from the remote
side and are converted to a store's `error` message at the store boundary.
"""

from __future__ import annotations


class ClientStateError(RuntimeError):
    """Base class for every error the stores know how to report."""


class Unauthenticated(ClientStateError):
    """Raised when an operation needs a session and none is present."""

    def __init__(self, message: str = "You must be signed in to do this.") -> None:
        super().__init__(message)


class ValidationFailed(ClientStateError):
    """Raised when a client-side precondition is violated."""

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = list(fields or [])


class RemoteRejected(ClientStateError):
    """Raised for a non-success HTTP response. The message comes from the body."""

    def __init__(self, message: str, status_code: int | None = None, body: object = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def payment_required(self) -> bool:
        # 402 is surfaced as-is; membership rules belong to the backend.
        return self.status_code == 402


class MalformedResponse(ClientStateError):
    """Raised when a response body cannot be parsed or its shape is unrecognized."""


class UnrecognizedStatus(ClientStateError):
    """Raised when a parsed envelope carries a status value we do not know."""

    def __init__(self, status: object) -> None:
        super().__init__(f"Unrecognized response status from server: {status!r}")
        self.status = status


def error_message(exc: BaseException, default: str) -> str:
    """Human-readable message for an exception, falling back to `default`."""
    text = str(exc).strip()
    return text or default
