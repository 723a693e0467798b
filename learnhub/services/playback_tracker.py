import logging
import math

from sqlalchemy.orm import Session

from learnhub.core.exceptions import ContentLockedError, InvalidInputError, ResourceNotFoundError
from learnhub.crud import course_crud, user_progress_crud
from learnhub.schemas.user_progress_schema import PlaybackProgressDisplay
from learnhub.services import completion_cascade
from learnhub.services.unlock_evaluator import content_percent, describe_lock, evaluate_hierarchy, locate_content

logger = logging.getLogger(__name__)


def clamp_watch_time(watch_time: float, duration: int) -> int:
    """Whole seconds, limited to [0, duration]."""
    return max(0, min(int(math.floor(watch_time)), duration))


def report_playback_progress(db: Session, user_id: int, content_id: int, watch_time: float) -> PlaybackProgressDisplay:
    """
    Records a watch-time sample for (learner, content).

    The unlock state is recomputed here at write time, so calling this out of order
    cannot bypass the linear gate. A content is completed only when the clamped
    sample reaches its full duration.
    """
    if watch_time is None or not math.isfinite(watch_time) or watch_time < 0:
        raise InvalidInputError("Watch time must be a finite number greater than or equal to 0.")

    content = course_crud.get_content(db, content_id)
    if content is None or not content.is_active or not content.chapter.is_active or not content.chapter.module.is_active:
        logger.warning(f"Progress reported by user {user_id} for missing or inactive content {content_id}.")
        raise ResourceNotFoundError(f"Content with ID {content_id} not found.")

    views = evaluate_hierarchy(course_crud.load_active_hierarchy(db), user_progress_crud.load_progress_snapshot(db, user_id))
    located = locate_content(views, content_id)
    if located is None:
        raise ResourceNotFoundError(f"Content with ID {content_id} not found.")
    _, _, content_view = located
    if not content_view.is_unlocked:
        logger.warning(f"User {user_id} reported progress for locked content {content_id} ({content_view.lock_reason}).")
        raise ContentLockedError(
            f"Content locked: {describe_lock(content_view.lock_reason)}",
            extra={"lock_reason": content_view.lock_reason},
        )

    duration = content.duration_seconds
    chapter_id = content.chapter_id
    clamped = clamp_watch_time(watch_time, duration)
    reaches_end = clamped == duration

    user_progress_crud.upsert_content_watch_time(db, user_id, content_id, clamped)
    newly_completed = False
    if reaches_end:
        newly_completed = completion_cascade.complete_content(db, user_id, content_id, chapter_id).content_completed

    progress = user_progress_crud.get_content_progress(db, user_id, content_id)
    logger.info(f"Progress for user {user_id} on content {content_id}: {progress.watch_time_seconds}/{duration}s (completed: {progress.is_completed}).")
    return PlaybackProgressDisplay(
        content_id=content_id,
        watch_time=progress.watch_time_seconds,
        is_completed=progress.is_completed,
        newly_completed=newly_completed,
        completed_at=progress.completed_at,
        progress=content_percent(progress.watch_time_seconds, duration),
        message="Content completed successfully!" if reaches_end else "Progress updated",
    )
