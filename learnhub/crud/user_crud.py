from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import logging

from learnhub.models.user_model import User
from learnhub.schemas.user_schema import UserCreateInternal

logger = logging.getLogger(__name__)


def get_user_by_id(db: Session, user_id: int) -> User | None:
    """Fetches a user by their internal database ID."""
    logger.debug(f"Fetching user by ID: {user_id}")
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_email(db: Session, email: str) -> User | None:
    """Fetches a user by their email address."""
    logger.debug(f"Fetching user by email: {email}")
    return db.query(User).filter(User.email == email).first()

def get_user_by_firebase_uid(db: Session, firebase_uid: str) -> User | None:
    """Fetches a user by their Firebase UID."""
    logger.debug(f"Fetching user by Firebase UID: {firebase_uid}")
    return db.query(User).filter(User.firebase_uid == firebase_uid).first()

def create_user(db: Session, user_data: UserCreateInternal) -> User | None:
    """
    Creates a new user in the database.
    Assumes firebase_uid and email are provided from a verified Firebase ID token.
    Returns None when the Firebase UID or email is already registered.
    """
    logger.info(f"Attempting to create user for email: {user_data.email}, Firebase UID: {user_data.firebase_uid}")

    if get_user_by_firebase_uid(db, user_data.firebase_uid):
        logger.warning(f"User creation failed: Firebase UID {user_data.firebase_uid} already exists.")
        return None
    if get_user_by_email(db, user_data.email):
        logger.warning(f"User creation failed: Email {user_data.email} already exists.")
        return None

    db_user = User(
        firebase_uid=user_data.firebase_uid,
        email=user_data.email,
        display_name=user_data.display_name,
        role=user_data.role or 'Learner',
        email_verified=user_data.email_verified,
    )

    try:
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        logger.info(f"User created successfully: {db_user.email} (ID: {db_user.id}).")
        return db_user
    except IntegrityError as e:
        # A concurrent registration for the same identity won the race
        db.rollback()
        logger.error(f"Database integrity error during user creation for {user_data.email}: {e}", exc_info=True)
        return None

def update_email_verified(db: Session, db_user: User, email_verified: bool) -> User:
    """Syncs the verified-email flag reported by the identity provider."""
    if db_user.email_verified == email_verified:
        return db_user
    db_user.email_verified = email_verified
    try:
        db.commit()
        db.refresh(db_user)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating email_verified for user {db_user.id}: {e}", exc_info=True)
        raise
    logger.info(f"User ID {db_user.id} email_verified set to {email_verified}.")
    return db_user
