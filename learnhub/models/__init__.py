# This file makes the 'models' directory a Python package.

from learnhub.core.database import Base # Base must be imported before models that use it

from .enums import ContentType, QuestionKind, NotificationType, UserRole

from .user_model import User
from .course_model import (
    Module,
    Chapter,
    Content,
    Quiz,
    QuizQuestion
)
from .user_progress_model import ContentProgress, ChapterProgress, ModuleProgress, QuizResult
from .notification_model import Notification


__all__ = [
    "Base",
    # Models
    "User",
    "Module",
    "Chapter",
    "Content",
    "Quiz",
    "QuizQuestion",
    "ContentProgress",
    "ChapterProgress",
    "ModuleProgress",
    "QuizResult",
    "Notification",
    # Enums
    "ContentType",
    "QuestionKind",
    "NotificationType",
    "UserRole",
]
