import logging
from html import escape
from sqlalchemy.orm import Session

from learnhub.core.config import settings
from learnhub.crud import notification_crud, user_crud
from learnhub.models.enums import NotificationType
from learnhub.models.notification_model import Notification
from learnhub.services import email_service

logger = logging.getLogger(__name__)

MODULE_COMPLETED_TITLE = "Module completed!"

def module_completed_message(module_title: str) -> str:
    return f'Congratulations! You have completed the module "{module_title}".'

def add_module_completed_notification(db: Session, user_id: int, module_title: str) -> Notification:
    """
    Stages the SUCCESS notification row of the module-completed event.
    Runs inside the transaction of the module's false -> true transition, so the
    transition and its event are committed together or not at all.
    """
    return notification_crud.create_notification(
        db,
        user_id=user_id,
        title=MODULE_COMPLETED_TITLE,
        content=module_completed_message(module_title),
        notification_type=NotificationType.SUCCESS,
        commit=False,
    )

def send_module_completed_email(db: Session, user_id: int, module_id: int, module_title: str) -> bool:
    user = user_crud.get_user_by_id(db, user_id)
    if user is None:
        logger.warning(f"User {user_id} not found; module {module_id} completion email not sent.")
        return False

    html_content = (
        f"<p>Hi {escape(user.display_name or user.email)},</p>"
        f"<p>{escape(module_completed_message(module_title))}</p>"
        f'<p><a href="{settings.APP_FRONTEND_URL}">Continue learning on {escape(settings.PROJECT_NAME)}</a></p>'
    )
    # Delivery failures are logged by the email service and never undo the completion
    sent = email_service.send_email(to_email=user.email, subject=MODULE_COMPLETED_TITLE, html_content=html_content)
    if not sent:
        logger.warning(f"Module {module_id} completion email to user {user_id} was not delivered.")
    return sent
