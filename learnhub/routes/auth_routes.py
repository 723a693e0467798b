from fastapi import APIRouter, Depends, HTTPException, status, Body
from sqlalchemy.orm import Session
import logging

from learnhub.core.database import get_db
from learnhub.core.dependencies import get_current_user
from learnhub.core.security import verify_firebase_id_token
from learnhub.crud.user_crud import (
    create_user,
    get_user_by_firebase_uid,
    get_user_by_email,
    update_email_verified,
)
from learnhub.models.enums import UserRole
from learnhub.models.user_model import User
from learnhub.schemas.user_schema import (
    UserRegisterRequest,
    UserLoginRequest,
    UserDisplay,
    AuthResponse,
    UserCreateInternal,
    TokenData
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_user_after_firebase(
    payload: UserRegisterRequest = Body(...),
    db: Session = Depends(get_db)
):
    """
    Register a new learner in the application's database after successful
    authentication and registration with Firebase on the client-side.

    The client must obtain a Firebase ID token and send it in the request body.
    """
    logger.info("Registration attempt with Firebase ID token.")

    token_data: TokenData = verify_firebase_id_token(payload.firebase_id_token)
    firebase_uid = token_data.firebase_uid
    email = token_data.email
    logger.info(f"Token verified for UID: {firebase_uid}, Email: {email}")

    if get_user_by_firebase_uid(db, firebase_uid=firebase_uid):
        logger.warning(f"Registration failed: User with Firebase UID {firebase_uid} already exists.")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this Firebase UID already exists.",
        )
    if get_user_by_email(db, email=email):
        logger.warning(f"Registration failed: User with email {email} already exists.")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists.",
        )

    user_create_data = UserCreateInternal(
        firebase_uid=firebase_uid,
        email=email,
        role=UserRole.LEARNER.value,
        display_name=payload.display_name or token_data.name,
        email_verified=token_data.email_verified,
    )

    db_user = create_user(db, user_data=user_create_data)
    if not db_user:
        logger.error(f"Failed to create user in database for Firebase UID: {firebase_uid}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create user account. Please try again later.",
        )

    logger.info(f"User {email} (UID: {firebase_uid}) successfully registered and created in DB (ID: {db_user.id}).")
    return AuthResponse(
        message="User registered successfully.",
        user=UserDisplay.model_validate(db_user)
    )


@router.post("/login", response_model=AuthResponse)
async def login_user_with_firebase(
    payload: UserLoginRequest = Body(...),
    db: Session = Depends(get_db)
):
    """
    Logs in a user who has authenticated with Firebase on the client-side.
    Confirms the user exists locally and syncs the verified-email flag from the token.
    """
    logger.info("Login attempt with Firebase ID token.")

    token_data: TokenData = verify_firebase_id_token(payload.firebase_id_token)
    firebase_uid = token_data.firebase_uid

    user = get_user_by_firebase_uid(db, firebase_uid=firebase_uid)
    if not user:
        logger.warning(f"Login failed: User with Firebase UID {firebase_uid} not found in local database.")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not registered in our system. Please complete registration.",
        )

    user = update_email_verified(db, user, token_data.email_verified)

    logger.info(f"User {user.email} (Firebase UID: {firebase_uid}) logged in successfully.")
    return AuthResponse(
        message="Login successful.",
        user=UserDisplay.model_validate(user)
    )


@router.get("/users/me", response_model=UserDisplay)
async def read_users_me(current_user: User = Depends(get_current_user)):
    """
    Get current authenticated user's details.
    Requires a valid Firebase ID token in the Authorization header.
    """
    logger.info(f"Fetching details for current user: {current_user.email} (ID: {current_user.id})")
    return current_user
