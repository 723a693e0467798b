from pydantic import BaseModel, Field, StrictBool, StrictInt
from typing import Dict, List, Optional, Union
from datetime import datetime

# --- Quiz Submission Schemas ---
class QuizSubmissionCreate(BaseModel):
    # quiz_id is a path parameter; the user comes from the authenticated identity
    answers: Dict[int, Union[StrictBool, StrictInt]] = Field(
        ..., description="Map of question id to the submitted answer (option index or boolean)"
    )

# --- Quiz Result Schemas ---
class AnswerFeedback(BaseModel):
    question_id: int
    submitted_answer: Optional[Union[bool, int]] = None
    correct_answer: Union[bool, int]
    is_correct: bool
    explanation: Optional[str] = None

class QuizResultDisplay(BaseModel):
    quiz_id: int
    chapter_id: int
    score: int = Field(..., ge=0, le=100, description="Score percentage, rounded to the nearest integer")
    passed: bool
    correct_answers: int = Field(..., ge=0)
    total_questions: int = Field(..., gt=0)
    results: List[AnswerFeedback] = []
    chapter_completed: bool = False
    message: str

class StoredQuizResult(BaseModel):
    """The prior result returned when a passed quiz is requested again."""
    score: int
    passed: bool
    completed_at: Optional[datetime] = None
