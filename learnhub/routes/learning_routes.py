from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from learnhub.core.database import get_db
from learnhub.core.dependencies import get_current_user, get_current_verified_user, get_optional_current_user, ensure_email_verified
from learnhub.models.user_model import User
from learnhub.schemas import user_progress_schema as up_schemas
from learnhub.crud import (
    course_crud,
    notification_crud,
    user_progress_crud as up_crud,
)
from learnhub.services import playback_tracker
from learnhub.services.unlock_evaluator import compute_user_stats, evaluate_hierarchy

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/learn", tags=["Learning & Progress"])


@router.get("/modules", response_model=up_schemas.HierarchyResponse)
def get_module_hierarchy(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """
    Returns every active module with its chapters, contents and quizzes, annotated with
    unlock, completion and progress state for the caller. Anonymous callers get the
    same tree with every node locked and no user stats.
    """
    hierarchy = course_crud.load_active_hierarchy(db)
    if current_user is None:
        logger.info("Serving anonymous (all locked) module hierarchy.")
        return up_schemas.HierarchyResponse(modules=evaluate_hierarchy(hierarchy, None))

    ensure_email_verified(current_user)
    logger.info(f"Serving module hierarchy for user {current_user.email} (ID: {current_user.id})")
    snapshot = up_crud.load_progress_snapshot(db, current_user.id)
    module_views = evaluate_hierarchy(hierarchy, snapshot)
    return up_schemas.HierarchyResponse(
        modules=module_views,
        user_stats=compute_user_stats(module_views, snapshot),
    )


@router.post("/content-progress/{content_id}", response_model=up_schemas.PlaybackProgressDisplay)
def report_content_progress(
    content_id: int,
    progress_in: up_schemas.PlaybackProgressReport,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_verified_user)
):
    """
    Records the playback position for a content item. Reaching the full duration
    completes the item and propagates completion to its chapter and module.
    """
    logger.info(f"User {current_user.email} reporting {progress_in.watch_time}s for content_id {content_id}")
    return playback_tracker.report_playback_progress(db, current_user.id, content_id, progress_in.watch_time)


@router.get("/notifications", response_model=List[up_schemas.NotificationDisplay])
def list_my_notifications(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    logger.info(f"Fetching notifications for user {current_user.email} (ID: {current_user.id})")
    return notification_crud.get_notifications_for_user(db, current_user.id, skip=skip, limit=limit)
