"""Exceptions raised by attach sessions."""

from typing import Any


class AttachSessionError(Exception):
    """Base exception for attach session operations."""

    code = "SESSION_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SessionNotFoundError(AttachSessionError):
    """No session exists with the given ID."""

    code = "NOT_FOUND"

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found", details={"session_id": session_id})


class SessionLimitError(AttachSessionError):
    """Too many open sessions."""

    code = "SESSION_LIMIT"

    def __init__(self, limit: int):
        super().__init__(f"Maximum of {limit} open sessions reached", details={"limit": limit})


class InvalidSessionStateError(AttachSessionError):
    """The operation is not allowed in the session's current state."""

    code = "INVALID_STATE"


class InvalidSelectionError(AttachSessionError):
    """A selected value is not among the offered candidates."""

    code = "INVALID_SELECTION"

    def __init__(self, field: str, value: Any, choices: list[Any]):
        super().__init__(
            f"{value!r} is not a valid {field}",
            details={"field": field, "value": value, "choices": choices},
        )
