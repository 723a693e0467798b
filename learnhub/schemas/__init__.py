# This file makes the 'schemas' directory a Python package.

from .user_schema import (
    UserBase, UserCreateInternal, UserDisplay, TokenData,
    UserRegisterRequest, UserLoginRequest, AuthResponse
)

from .course_schema import (
    ModuleCreate, ChapterCreate, ContentCreate,
    MultipleChoiceQuestionCreate, TrueFalseQuestionCreate, QuestionCreate, QuizCreate,
    QuizQuestionDisplay, ModuleRef, ChapterRef, QuizDisplay
)

from .user_progress_schema import (
    PlaybackProgressReport, PlaybackProgressDisplay,
    ContentView, QuizView, ChapterView, ModuleView, UserStats, HierarchyResponse,
    NotificationDisplay, ReconciliationReport
)

from .quiz_submission_schema import (
    QuizSubmissionCreate, AnswerFeedback, QuizResultDisplay, StoredQuizResult
)


__all__ = [
    # User Schemas
    "UserBase", "UserCreateInternal", "UserDisplay", "TokenData",
    "UserRegisterRequest", "UserLoginRequest", "AuthResponse",

    # Course Schemas
    "ModuleCreate", "ChapterCreate", "ContentCreate",
    "MultipleChoiceQuestionCreate", "TrueFalseQuestionCreate", "QuestionCreate", "QuizCreate",
    "QuizQuestionDisplay", "ModuleRef", "ChapterRef", "QuizDisplay",

    # Progress Schemas
    "PlaybackProgressReport", "PlaybackProgressDisplay",
    "ContentView", "QuizView", "ChapterView", "ModuleView", "UserStats", "HierarchyResponse",
    "NotificationDisplay", "ReconciliationReport",

    # Quiz Submission Schemas
    "QuizSubmissionCreate", "AnswerFeedback", "QuizResultDisplay", "StoredQuizResult",
]
