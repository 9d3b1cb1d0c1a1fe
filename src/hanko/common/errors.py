"""Shared error types."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any


class ConfigurationError(ValueError):
    """Invalid client or signer configuration."""


class ApiError(Exception):
    """
    Error raised before, during or after a call to the Hanko API.

    The API always provides a status code and status text. ``details`` and
    ``debug_message`` are only populated by some responses (and by SDK-side
    failures, see ``wrap_error``).
    """

    def __init__(
        self,
        status_code: int,
        status_text: str | None = None,
        message: str = "",
        details: str = "",
        debug_message: str = "",
    ) -> None:
        self.status_code = status_code
        self.status_text = status_text or _status_text(status_code)
        self.message = message
        self.details = details
        self.debug_message = debug_message
        super().__init__(str(self))

    def __str__(self) -> str:
        text = f"{self.status_code} - {self.status_text}"
        for part in (self.message, self.details, self.debug_message):
            if part:
                text = f"{text}: {part}"
        return text

    @classmethod
    def from_response(cls, status_code: int, payload: Any) -> "ApiError":
        """Build an error from a non-2xx status and the decoded response body."""
        if not isinstance(payload, dict):
            return cls(status_code, message=str(payload) if payload else "")
        code = payload.get("status_code")
        return cls(
            status_code=code if isinstance(code, int) else status_code,
            status_text=payload.get("status_text") or None,
            message=payload.get("message", ""),
            details=payload.get("details", ""),
            debug_message=payload.get("debug_message", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "details": self.details,
            "debug_message": self.debug_message,
            "status_text": self.status_text,
            "status_code": self.status_code,
        }


def _status_text(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown Status"


def wrap_error(error: BaseException) -> ApiError:
    """Wrap an SDK-side failure as an Internal Server Error ApiError."""
    return ApiError(
        status_code=500,
        status_text="Internal Server Error",
        message="sdk error",
        details="an error occurred while processing the request",
        debug_message=str(error),
    )
