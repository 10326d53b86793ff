from typing import Any, Optional


class EngineError(Exception):
    """Base error for the conversation and notification engine."""

    code = "ENGINE_ERROR"
    status_code = 400

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details

    def to_detail(self) -> dict:
        detail = {"message": self.message, "code": self.code}
        if self.details is not None:
            detail["details"] = self.details
        return detail


class NotFoundError(EngineError, LookupError):

    code = "NOT_FOUND"
    status_code = 404


class EmptyBodyError(EngineError, ValueError):

    code = "EMPTY_BODY"
    status_code = 422


class NoUserError(EngineError):
    """Raised when an action needs a logged-in user and there is none."""

    code = "NO_USER"
    status_code = 401


class NotParticipantError(EngineError, PermissionError):

    code = "NOT_PARTICIPANT"
    status_code = 403


class SelfConversationError(EngineError, ValueError):

    code = "SELF_CONVERSATION"
    status_code = 400


class MissingHandleError(EngineError, ValueError):
    """No external-channel handle is known for the target participant."""

    code = "MISSING_HANDLE"
    status_code = 409
