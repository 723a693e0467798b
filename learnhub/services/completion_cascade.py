"""
Upward propagation of completion: content -> chapter -> module.

Each tier is its own step. A step recomputes "all active siblings completed" from the
stored progress rows, then marks its own row through the Progress Store's atomic
transition, which commits independently. Side effects hang off the false -> true
transition only: the module notification row is written in the same transaction as the
module transition, so it is emitted exactly once per learner.

A crash between two commits leaves a valid intermediate state (for example a completed
content under a chapter that was never re-evaluated). Repeating the same trigger resumes
the tiers above it through `resume_chapter`, and `reconcile_user_progress` walks every
tier again from stored state.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from learnhub.crud import course_crud, user_progress_crud
from learnhub.models.course_model import Chapter, Module
from learnhub.schemas.user_progress_schema import ReconciliationReport
from learnhub.services import notification_service
from learnhub.services.unlock_evaluator import all_completed

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    """Which tiers a single trigger moved from incomplete to completed."""
    content_completed: bool = False
    chapter_completed: bool = False
    module_completed: bool = False
    chapter_id: Optional[int] = None
    module_id: Optional[int] = None


def _active_chapter(db: Session, chapter_id: int) -> Optional[Chapter]:
    chapter = course_crud.get_chapter(db, chapter_id)
    if chapter is None or not chapter.is_active or not chapter.module.is_active:
        return None
    return chapter


def chapter_requirements_met(db: Session, user_id: int, chapter: Chapter) -> bool:
    """Every active content completed and, when the chapter has a quiz, a passing result."""
    content_ids = course_crud.get_active_content_ids_for_chapter(db, chapter.id)
    completed = user_progress_crud.get_completed_content_ids(db, user_id, content_ids)
    if not all_completed(content_ids, lambda content_id: content_id in completed):
        return False
    if chapter.quiz is not None and not user_progress_crud.has_passed_quiz(db, user_id, chapter.quiz.id):
        logger.info(f"Chapter {chapter.id} contents completed by user {user_id}; waiting for quiz {chapter.quiz.id}.")
        return False
    return True


def module_requirements_met(db: Session, user_id: int, module: Module) -> bool:
    chapter_ids = course_crud.get_active_chapter_ids_for_module(db, module.id)
    completed = user_progress_crud.get_completed_chapter_ids(db, user_id, chapter_ids)
    return all_completed(chapter_ids, lambda chapter_id: chapter_id in completed)


def evaluate_module(db: Session, user_id: int, module_id: int) -> bool:
    """Marks the module completed when all its active chapters are. Returns True on the transition."""
    module = course_crud.get_module(db, module_id)
    if module is None or not module.is_active:
        return False
    if not module_requirements_met(db, user_id, module):
        return False

    transitioned = user_progress_crud.mark_module_completed(
        db, user_id, module.id,
        on_transition=lambda: notification_service.add_module_completed_notification(db, user_id, module.title),
    )
    if transitioned:
        notification_service.send_module_completed_email(db, user_id, module.id, module.title)
    return transitioned


def evaluate_chapter(db: Session, user_id: int, chapter_id: int, result: Optional[CascadeResult] = None) -> CascadeResult:
    """
    Chapter tier of the cascade, entered after a content completes or a quiz is passed.
    Continues to the module tier only when this call completed the chapter.
    """
    result = result or CascadeResult()
    chapter = _active_chapter(db, chapter_id)
    if chapter is None:
        logger.warning(f"Chapter {chapter_id} is missing or inactive; cascade stopped for user {user_id}.")
        return result
    result.chapter_id = chapter.id
    result.module_id = chapter.module_id

    if not chapter_requirements_met(db, user_id, chapter):
        return result

    result.chapter_completed = user_progress_crud.mark_chapter_completed(db, user_id, chapter.id)
    if result.chapter_completed:
        result.module_completed = evaluate_module(db, user_id, chapter.module_id)
    return result


def resume_chapter(db: Session, user_id: int, chapter_id: int, result: Optional[CascadeResult] = None) -> CascadeResult:
    """
    Re-enters the cascade above an already completed content or an already passed quiz,
    finishing the chapter or module tier that an interrupted request left behind.
    Nothing changes when both tiers are already completed.
    """
    result = result or CascadeResult(chapter_id=chapter_id)
    if not user_progress_crud.is_chapter_completed(db, user_id, chapter_id):
        return evaluate_chapter(db, user_id, chapter_id, result)

    chapter = _active_chapter(db, chapter_id)
    if chapter is None:
        return result
    result.module_id = chapter.module_id
    module_progress = user_progress_crud.get_module_progress(db, user_id, chapter.module_id)
    if module_progress is None or not module_progress.is_completed:
        result.module_completed = evaluate_module(db, user_id, chapter.module_id)
    return result


def complete_content(db: Session, user_id: int, content_id: int, chapter_id: int) -> CascadeResult:
    """
    Content tier: marks the content completed and walks upward. A repeated trigger on a
    completed content reports no content transition but still resumes the upper tiers,
    so retrying from the first step finishes a cascade that was cut short.
    """
    result = CascadeResult(chapter_id=chapter_id)
    result.content_completed = user_progress_crud.mark_content_completed(db, user_id, content_id)
    if not result.content_completed:
        logger.debug(f"Content {content_id} already completed by user {user_id}; resuming upper tiers.")
        return resume_chapter(db, user_id, chapter_id, result)
    return evaluate_chapter(db, user_id, chapter_id, result)


def reconcile_user_progress(db: Session, user_id: int) -> ReconciliationReport:
    """Re-evaluates every active chapter and module tier of one learner from stored state."""
    logger.info(f"Reconciling progress for user {user_id}")
    chapters_completed: List[int] = []
    modules_completed: List[int] = []
    for module in course_crud.get_active_modules(db):
        for chapter in module.chapters:
            if not chapter.is_active:
                continue
            if chapter_requirements_met(db, user_id, chapter) and \
                    user_progress_crud.mark_chapter_completed(db, user_id, chapter.id):
                chapters_completed.append(chapter.id)
        if evaluate_module(db, user_id, module.id):
            modules_completed.append(module.id)

    if chapters_completed or modules_completed:
        logger.info(f"Reconciliation for user {user_id} completed chapters {chapters_completed} and modules {modules_completed}.")
    return ReconciliationReport(
        user_id=user_id,
        chapters_completed=chapters_completed,
        modules_completed=modules_completed,
    )
