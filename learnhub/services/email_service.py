import logging
import emails # Library for composing and sending emails

from learnhub.core.config import settings # For email server configuration

logger = logging.getLogger(__name__)

# --- Email Sending Logic ---

def _smtp_options() -> dict:
    smtp_options = {
        "host": settings.EMAIL_HOST,
        "port": settings.EMAIL_PORT,
        "tls": settings.EMAIL_USE_TLS,
        "ssl": settings.EMAIL_USE_SSL, # Usually only one of TLS/SSL is true
        "user": settings.EMAIL_USERNAME,
        "password": settings.EMAIL_PASSWORD
    }
    # The `emails` library does not accept None values
    smtp_options = {k: v for k, v in smtp_options.items() if v is not None}
    if not smtp_options.get("user"):
        smtp_options.pop("user", None)
        smtp_options.pop("password", None)
    return smtp_options

def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Sends an email using configured SMTP settings.
    Logs and skips the message when SMTP is not configured.
    """
    if not settings.EMAIL_HOST or not settings.EMAIL_FROM_ADDRESS:
        logger.warning("Email sending SKIPPED: EMAIL_HOST or EMAIL_FROM_ADDRESS not configured.")
        logger.info(f"Email SKIPPED [To: {to_email}, Subject: {subject}]")
        logger.debug(f"Body:\n{html_content[:500]}...")
        return True

    message = emails.Message(
        subject=subject,
        html=html_content,
        mail_from=(settings.EMAIL_FROM_NAME, settings.EMAIL_FROM_ADDRESS)
    )

    logger.info(f"Attempting to send email to {to_email} via {settings.EMAIL_HOST}:{settings.EMAIL_PORT}")
    try:
        response = message.send(to=to_email, smtp=_smtp_options())
    except Exception as e:
        logger.error(f"Exception during email sending to {to_email}: {e}", exc_info=True)
        return False

    if response and response.status_code in [250, 252]: # Typical SMTP success codes
        logger.info(f"Email sent successfully to {to_email}. Subject: '{subject}'. SMTP Response: {response.status_code}")
        return True
    logger.error(f"Failed to send email to {to_email}. SMTP Response: {response.status_code if response else 'No response'}. Error: {response.error if response else 'N/A'}")
    return False
