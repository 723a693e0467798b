from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from learnhub.models.enums import ContentType, NotificationType

# --- Report-playback-progress ---

class PlaybackProgressReport(BaseModel):
    # Range and finiteness are checked by the playback tracker, which answers 400 invalid_input
    watch_time: float = Field(..., description="Current playback position in seconds, finite and >= 0")

class PlaybackProgressDisplay(BaseModel):
    content_id: int
    watch_time: int = Field(..., description="Stored watch time, clamped to the content duration")
    is_completed: bool
    newly_completed: bool = Field(False, description="True only for the report that completed the content")
    completed_at: Optional[datetime] = None
    progress: int = Field(..., ge=0, le=100)
    message: str

# --- Hierarchy view (derived, never persisted) ---

class ContentView(BaseModel):
    id: int
    title: str
    content_type: ContentType
    duration: int
    order: int
    is_completed: bool = False
    is_unlocked: bool = False
    lock_reason: Optional[str] = None
    progress: int = 0
    watch_time: int = 0

class QuizView(BaseModel):
    id: int
    title: str
    passing_score: int
    is_passed: bool = False
    is_accessible: bool = False

class ChapterView(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    order: int
    contents: List[ContentView] = []
    quiz: Optional[QuizView] = None
    is_completed: bool = False
    is_unlocked: bool = False
    lock_reason: Optional[str] = None
    all_contents_completed: bool = False
    quiz_passed: bool = False

class ModuleView(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    order: int
    chapters: List[ChapterView] = []
    is_completed: bool = False
    is_unlocked: bool = False
    lock_reason: Optional[str] = None
    progress: int = 0
    all_chapters_completed: bool = False

class UserStats(BaseModel):
    total_modules: int
    completed_modules: int
    total_watch_time: int
    average_score: int = Field(..., description="Average score over passed quizzes, 0 when none")

class HierarchyResponse(BaseModel):
    modules: List[ModuleView]
    user_stats: Optional[UserStats] = None
    success: bool = True

# --- Notifications and reconciliation ---

class NotificationDisplay(BaseModel):
    id: int
    title: str
    content: str
    notification_type: NotificationType
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class ReconciliationReport(BaseModel):
    user_id: int
    chapters_completed: List[int] = []
    modules_completed: List[int] = []
