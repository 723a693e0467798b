"""
Domain errors raised by the progression services.

Locked or incomplete nodes are ordinary data in the hierarchy view; these errors are
only raised when a caller asks for something the learner may not do (yet), when an
entity is missing, or when the input is malformed. `main.py` renders them as
`{"detail": ..., "reason": ..., **extra}` with the class' status code.
"""
from typing import Any, Dict, Optional

from fastapi import status


class LearnhubError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    reason: str = "error"

    def __init__(self, message: str, reason: Optional[str] = None, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if reason:
            self.reason = reason
        self.extra = extra or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"detail": self.message, "reason": self.reason}
        body.update(self.extra)
        return body


class InvalidInputError(LearnhubError):
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "invalid_input"


class ResourceNotFoundError(LearnhubError):
    status_code = status.HTTP_404_NOT_FOUND
    reason = "not_found"


class PreconditionFailedError(LearnhubError):
    """The request is well-formed but the learner has not unlocked it yet."""
    status_code = status.HTTP_403_FORBIDDEN
    reason = "precondition_failed"


class ContentLockedError(PreconditionFailedError):
    reason = "content_locked"


class ChapterIncompleteError(PreconditionFailedError):
    reason = "chapter_incomplete"


class QuizAlreadyPassedError(LearnhubError):
    """Passing a quiz is terminal: no questions are re-served and no new attempt is stored."""
    status_code = status.HTTP_409_CONFLICT
    reason = "quiz_already_passed"

    def __init__(self, result: Dict[str, Any]):
        super().__init__(
            "Quiz already completed.",
            extra={"already_completed": True, "result": result},
        )
        self.result = result


class QuizAttemptConflictError(LearnhubError):
    status_code = status.HTTP_409_CONFLICT
    reason = "quiz_attempt_conflict"


class EmailNotVerifiedError(LearnhubError):
    status_code = status.HTTP_403_FORBIDDEN
    reason = "email_not_verified"

    def __init__(self):
        super().__init__(
            "Email not verified. Please verify your email address.",
            extra={"email_not_verified": True},
        )
