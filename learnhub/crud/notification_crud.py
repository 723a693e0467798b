from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List
import logging

from learnhub.models.enums import NotificationType
from learnhub.models.notification_model import Notification

logger = logging.getLogger(__name__)

def create_notification(
    db: Session,
    user_id: int,
    title: str,
    content: str,
    notification_type: NotificationType = NotificationType.INFO,
    commit: bool = True
) -> Notification:
    """With `commit=False` the row is only flushed, joining the caller's transaction."""
    logger.debug(f"Creating {notification_type.value} notification '{title}' for user_id {user_id}")
    db_notification = Notification(
        user_id=user_id,
        title=title,
        content=content,
        notification_type=notification_type,
    )
    if not commit:
        db.add(db_notification)
        db.flush()
        return db_notification
    try:
        db.add(db_notification)
        db.commit()
        db.refresh(db_notification)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating notification for user {user_id}: {e}", exc_info=True)
        raise
    logger.info(f"Notification '{title}' (ID: {db_notification.id}) created for user {user_id}.")
    return db_notification

def get_notifications_for_user(db: Session, user_id: int, skip: int = 0, limit: int = 50) -> List[Notification]:
    logger.debug(f"Fetching notifications for user_id {user_id} (skip {skip}, limit {limit})")
    return db.query(Notification).filter(
        Notification.user_id == user_id
    ).order_by(Notification.created_at.desc(), Notification.id.desc()).offset(skip).limit(limit).all()
