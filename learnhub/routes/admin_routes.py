from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from learnhub.core.database import get_db
from learnhub.core.dependencies import get_current_admin_user, get_user_or_404
from learnhub.models.user_model import User
from learnhub.schemas.user_progress_schema import ReconciliationReport
from learnhub.services import completion_cascade

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin Panel"])


@router.post("/users/{user_id}/reconcile", response_model=ReconciliationReport)
def admin_reconcile_user_progress(
    current_admin: User = Depends(get_current_admin_user),
    user: User = Depends(get_user_or_404),
    db: Session = Depends(get_db)
):
    """
    Re-runs the chapter and module tiers of the completion cascade for one learner,
    completing any tier left behind by an interrupted request.
    """
    logger.info(f"Admin {current_admin.email} reconciling progress for user ID {user.id}")
    return completion_cascade.reconcile_user_progress(db, user.id)
