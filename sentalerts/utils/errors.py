"""Error types and standardized error payloads."""
from typing import Any, Iterable


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return a standardized error payload."""

    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        payload["error"]["details"] = details
    return payload


class SentAlertError(Exception):
    """Base class for errors raised by the sent-alert layer."""

    code = "SENT_ALERT_ERROR"
    http_status = 400

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_response(self) -> dict[str, Any]:
        return error_response(self.code, self.message, self.details)


class ValidationError(SentAlertError, ValueError):
    """A record was rejected before reaching the database."""

    code = "VALIDATION_ERROR"


class InvalidAlertType(ValidationError):
    """``alert_type`` is not one of the recognised alert types."""

    code = "INVALID_ALERT_TYPE"

    def __init__(self, value: object, *, allowed: Iterable[str]) -> None:
        allowed = sorted(allowed)
        super().__init__(
            f"Unknown alert type {value!r}; expected one of {allowed}.",
            details={"alert_type": value if isinstance(value, str) else repr(value), "allowed": allowed},
        )
        self.value = value


class DuplicateSentAlert(SentAlertError):
    """The alert has already been recorded as sent for this user and request."""

    code = "SENT_ALERT_EXISTS"
    http_status = 409

    def __init__(self, *, user_id: int, info_request_id: int, alert_type: str) -> None:
        super().__init__(
            "Alert already recorded as sent.",
            details={"user_id": user_id, "info_request_id": info_request_id, "alert_type": alert_type},
        )


__all__ = [
    "DuplicateSentAlert",
    "InvalidAlertType",
    "SentAlertError",
    "ValidationError",
    "error_response",
]
