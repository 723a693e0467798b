from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from learnhub.core.database import get_db
from learnhub.core.dependencies import get_current_verified_user
from learnhub.models.user_model import User
from learnhub.schemas import (
    course_schema as course_schemas,
    quiz_submission_schema as quiz_sub_schemas,
)
from learnhub.services import quiz_gate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/learn/quizzes", tags=["Quizzes"])


@router.get("/{quiz_id}", response_model=course_schemas.QuizDisplay)
def get_quiz_for_attempt(
    quiz_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user)
):
    """
    Serves the questions of a chapter quiz once every content of the chapter is completed.
    Correct answers are only revealed in the submission result. A passed quiz is answered
    with 409 and the stored result.
    """
    logger.info(f"User {current_user.email} fetching quiz {quiz_id}")
    return quiz_gate.fetch_quiz(db, current_user.id, quiz_id)


@router.post("/{quiz_id}/submit", response_model=quiz_sub_schemas.QuizResultDisplay)
def submit_quiz_attempt(
    quiz_id: int,
    submission_in: quiz_sub_schemas.QuizSubmissionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user)
):
    """Grades the attempt server-side; a pass completes the chapter and may complete its module."""
    logger.info(f"User {current_user.email} submitting {len(submission_in.answers)} answers for quiz {quiz_id}")
    return quiz_gate.submit_quiz(db, current_user.id, quiz_id, submission_in.answers)
