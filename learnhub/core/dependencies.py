from fastapi import Depends, HTTPException, status, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session
from typing import Optional
import logging

from learnhub.core.config import settings
from learnhub.core.database import get_db
from learnhub.core.exceptions import EmailNotVerifiedError
from learnhub.core.security import verify_firebase_id_token
from learnhub.crud.user_crud import get_user_by_firebase_uid, get_user_by_id
from learnhub.models.user_model import User
from learnhub.schemas.user_schema import TokenData

logger = logging.getLogger(__name__)


def _user_from_token(firebase_id_token: str, db: Session) -> User:
    token_data: TokenData = verify_firebase_id_token(firebase_id_token)

    user = get_user_by_firebase_uid(db, firebase_uid=token_data.firebase_uid)
    if user is None:
        # Authenticated with Firebase but never registered through /auth/register
        logger.warning(f"User not found in DB for Firebase UID: {token_data.firebase_uid} from token.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account not found or not fully registered in the system.",
        )

    logger.info(f"Authenticated user retrieved: {user.email} (ID: {user.id})")
    return user


# Dependency to get the current user from a Firebase ID token
async def get_current_user(
    request: Request, db: Session = Depends(get_db)
) -> User:
    """
    Verifies the Firebase ID token from the Authorization header,
    then fetches the user from the database.
    """
    authorization: str = request.headers.get("Authorization")
    scheme, param = get_authorization_scheme_param(authorization)

    if not authorization or scheme.lower() != "bearer":
        logger.warning("Missing or invalid Bearer token in Authorization header.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated. Bearer token required.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _user_from_token(param, db)


async def get_optional_current_user(
    request: Request, db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Like get_current_user, but an absent Authorization header yields None (anonymous caller).
    A header that is present but invalid is still rejected.
    """
    authorization: str = request.headers.get("Authorization")
    if not authorization:
        return None
    scheme, param = get_authorization_scheme_param(authorization)
    if scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated. Bearer token required.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _user_from_token(param, db)


def ensure_email_verified(user: User) -> User:
    if settings.REQUIRE_VERIFIED_EMAIL and not user.email_verified:
        logger.warning(f"Unverified email for user: {user.email} (ID: {user.id})")
        raise EmailNotVerifiedError()
    return user


async def get_current_verified_user(current_user: User = Depends(get_current_user)) -> User:
    """Learner endpoints that read or write progress require a verified email."""
    return ensure_email_verified(current_user)


async def get_current_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """
    Checks if the current user has the 'Admin' role.
    """
    if not current_user.is_admin:
        logger.warning(f"Admin access denied for user: {current_user.email} (Role: {current_user.role})")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Operation not permitted: Requires admin privileges.",
        )
    logger.info(f"Admin access granted for user: {current_user.email}")
    return current_user


def get_user_or_404(user_id: int, db: Session = Depends(get_db)) -> User:
    user = get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User with ID {user_id} not found.")
    return user
