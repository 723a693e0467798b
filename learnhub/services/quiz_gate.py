"""
Chapter quiz gate.

Per (learner, quiz) the gate is in one of four states:

    LOCKED     not every active content of the chapter is completed
    AVAILABLE  contents completed, no stored result
    FAILED     a non-passing result is stored; the learner may retry
    PASSED     terminal, questions are never served again

Scores are always recomputed here from the stored correct answers.
"""
import enum
import logging
from typing import Dict, List, Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from learnhub.core.config import settings
from learnhub.core.exceptions import (
    ChapterIncompleteError, InvalidInputError, QuizAlreadyPassedError,
    QuizAttemptConflictError, ResourceNotFoundError
)
from learnhub.crud import course_crud, user_progress_crud
from learnhub.models.course_model import Quiz, QuizQuestion
from learnhub.models.enums import QuestionKind
from learnhub.models.user_progress_model import QuizResult
from learnhub.schemas.course_schema import ChapterRef, ModuleRef, QuizDisplay, QuizQuestionDisplay
from learnhub.schemas.quiz_submission_schema import AnswerFeedback, QuizResultDisplay, StoredQuizResult
from learnhub.services import completion_cascade
from learnhub.services.unlock_evaluator import all_completed, percent

logger = logging.getLogger(__name__)

Answer = Union[bool, int]


class QuizState(str, enum.Enum):
    LOCKED = "LOCKED"
    AVAILABLE = "AVAILABLE"
    FAILED = "FAILED"
    PASSED = "PASSED"


def _load_quiz(db: Session, quiz_id: int) -> Quiz:
    quiz = course_crud.get_quiz_with_questions(db, quiz_id)
    if quiz is None or not quiz.chapter.is_active or not quiz.chapter.module.is_active:
        logger.warning(f"Quiz {quiz_id} not found or its chapter is inactive.")
        raise ResourceNotFoundError(f"Quiz with ID {quiz_id} not found.")
    if not quiz.questions:
        logger.warning(f"Quiz {quiz_id} has no questions.")
        raise ResourceNotFoundError(f"Quiz with ID {quiz_id} has no questions.")
    return quiz


def quiz_state(db: Session, user_id: int, quiz: Quiz) -> QuizState:
    stored = user_progress_crud.get_quiz_result(db, user_id, quiz.id)
    if stored is not None and stored.passed:
        return QuizState.PASSED

    content_ids = course_crud.get_active_content_ids_for_chapter(db, quiz.chapter_id)
    completed = user_progress_crud.get_completed_content_ids(db, user_id, content_ids)
    if not all_completed(content_ids, lambda content_id: content_id in completed):
        return QuizState.LOCKED
    return QuizState.FAILED if stored is not None else QuizState.AVAILABLE


def _stored_result(result: QuizResult) -> dict:
    return StoredQuizResult(score=result.score, passed=result.passed, completed_at=result.created_at).model_dump(mode="json")


def _check_enterable(db: Session, user_id: int, quiz: Quiz) -> QuizState:
    state = quiz_state(db, user_id, quiz)
    if state == QuizState.PASSED:
        logger.info(f"User {user_id} requested quiz {quiz.id} which is already passed.")
        # A pass whose cascade was cut short is finished here; the learner cannot resubmit
        completion_cascade.resume_chapter(db, user_id, quiz.chapter_id)
        raise QuizAlreadyPassedError(_stored_result(user_progress_crud.get_quiz_result(db, user_id, quiz.id)))
    if state == QuizState.LOCKED:
        logger.warning(f"User {user_id} requested quiz {quiz.id} before completing chapter {quiz.chapter_id}.")
        raise ChapterIncompleteError("Complete every content of the chapter before taking its quiz.")
    return state


def fetch_quiz(db: Session, user_id: int, quiz_id: int) -> QuizDisplay:
    """Serves the question set of an AVAILABLE or FAILED quiz, without correct answers or explanations."""
    quiz = _load_quiz(db, quiz_id)
    _check_enterable(db, user_id, quiz)

    chapter = quiz.chapter
    return QuizDisplay(
        id=quiz.id,
        chapter_id=chapter.id,
        title=quiz.title,
        description=quiz.description,
        passing_score=quiz.passing_score,
        time_limit=quiz.time_limit_minutes or settings.QUIZ_TIME_LIMIT_MINUTES,
        questions=[
            QuizQuestionDisplay(
                id=question.id,
                kind=question.kind.value,
                question_text=question.question_text,
                options=list(question.options) if question.kind == QuestionKind.MULTIPLE_CHOICE else None,
            )
            for question in quiz.questions
        ],
        chapter=ChapterRef(
            id=chapter.id,
            title=chapter.title,
            order=chapter.chapter_order,
            module=ModuleRef(id=chapter.module.id, title=chapter.module.title, order=chapter.module.module_order),
        ),
    )


def _validate_answer(question: QuizQuestion, answer: Answer) -> None:
    if question.kind == QuestionKind.TRUE_FALSE:
        if not isinstance(answer, bool):
            raise InvalidInputError(f"Question {question.id} expects a true/false answer.")
        return
    # bool is a subclass of int, so it has to be excluded explicitly
    if isinstance(answer, bool) or not isinstance(answer, int) or not 0 <= answer < len(question.options or []):
        raise InvalidInputError(f"Question {question.id} expects an option index between 0 and {len(question.options or []) - 1}.")


def score_answers(questions: List[QuizQuestion], answers: Dict[int, Answer]) -> List[AnswerFeedback]:
    """Validates the answer map and grades it against the stored correct answers. Unanswered questions count as wrong."""
    by_id = {question.id: question for question in questions}
    unknown = sorted(set(answers) - set(by_id))
    if unknown:
        raise InvalidInputError(f"Answers reference unknown question ids: {unknown}.")
    for question_id, answer in answers.items():
        _validate_answer(by_id[question_id], answer)

    feedback = []
    for question in questions:
        submitted: Optional[Answer] = answers.get(question.id)
        feedback.append(AnswerFeedback(
            question_id=question.id,
            submitted_answer=submitted,
            correct_answer=question.correct_answer,
            is_correct=submitted is not None and submitted == question.correct_answer,
            explanation=question.explanation,
        ))
    return feedback


def submit_quiz(db: Session, user_id: int, quiz_id: int, answers: Dict[int, Answer]) -> QuizResultDisplay:
    quiz = _load_quiz(db, quiz_id)
    _check_enterable(db, user_id, quiz)

    feedback = score_answers(quiz.questions, answers)
    correct = sum(1 for item in feedback if item.is_correct)
    total = len(feedback)
    score = percent(correct, total)
    passed = score >= quiz.passing_score

    try:
        user_progress_crud.replace_quiz_result(
            db, user_id, quiz.id, score,
            answers={str(question_id): answer for question_id, answer in answers.items()},
            passed=passed,
        )
    except IntegrityError:
        # Another submission for the same (user, quiz) was stored first
        logger.warning(f"Concurrent submission for quiz {quiz.id} by user {user_id} rejected.")
        raise QuizAttemptConflictError("Another attempt for this quiz was recorded at the same time. Please retry.")

    chapter_completed = False
    if passed:
        logger.info(f"User {user_id} passed quiz {quiz.id} with {score}% (minimum {quiz.passing_score}%).")
        chapter_completed = completion_cascade.evaluate_chapter(db, user_id, quiz.chapter_id).chapter_completed
    else:
        logger.info(f"User {user_id} failed quiz {quiz.id} with {score}% (minimum {quiz.passing_score}%).")

    return QuizResultDisplay(
        quiz_id=quiz.id,
        chapter_id=quiz.chapter_id,
        score=score,
        passed=passed,
        correct_answers=correct,
        total_questions=total,
        results=feedback,
        chapter_completed=chapter_completed,
        message="Quiz passed!" if passed else f"Insufficient score ({score}%). Minimum required: {quiz.passing_score}%",
    )
