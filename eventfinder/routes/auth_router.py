from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from eventfinder.auth import security
from eventfinder.auth.dependencies import get_current_session, get_session_token
from eventfinder.auth.schemas_auth import LoginResponse, MessageResponse, UserLoginSchema
from eventfinder.auth.sessions import SessionStore, SessionStoreError, get_session_store
from eventfinder.config import settings
from eventfinder.schemas.user import UserCreateSchema, UserResponseSchema
from eventfinder.storage import DuplicateRecordError, Storage, StorageError, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

INVALID_CREDENTIALS = "Invalid username or password"


@router.post(
    "/signup",
    response_model=UserResponseSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new account",
)
async def signup(
    user_in: UserCreateSchema,
    storage: Storage = Depends(get_storage),
):
    try:
        existing_user = await storage.get_user_by_username(user_in.username)
        if existing_user:
            logger.warning(f"Signup attempt with existing username: {user_in.username}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Username already exists",
            )
        user_data = user_in.model_dump(exclude={"password"})
        user_data["hashed_password"] = security.get_password_hash(user_in.password)
        created_user = await storage.create_user(user_data)
    except HTTPException:
        raise
    except DuplicateRecordError:
        logger.warning(f"Signup conflict for username '{user_in.username}' / email '{user_in.email}'.")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username or email already exists",
        )
    except StorageError as e_storage:
        logger.error(f"Unexpected error during signup for {user_in.username}: {str(e_storage)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create user",
        )
    logger.info(f"User signed up: {created_user.username} (ID: {created_user.id})")
    return created_user


@router.post("/login", response_model=LoginResponse, summary="Log in and start a session")
async def login(
    credentials: UserLoginSchema,
    response: Response,
    storage: Storage = Depends(get_storage),
    store: SessionStore = Depends(get_session_store),
    previous_token: Optional[str] = Depends(get_session_token),
):
    try:
        user = await storage.get_user_by_username(credentials.username)
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed",
        )
    if user is None:
        # keep timing close to a real password check
        security.pwd_context.dummy_verify()
    # same answer for unknown user and wrong password
    if not user or not security.verify_password(credentials.password, user.hashed_password):
        logger.warning(f"Failed login attempt for username: {credentials.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS,
        )

    session_token = security.new_session_token()
    try:
        if previous_token:
            await store.destroy(previous_token)
        await store.set(session_token, {
            "userId": user.id,
            "user": user.model_dump(mode="json", by_alias=True),
        })
    except SessionStoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed",
        )

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=security.create_session_cookie(session_token),
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )
    logger.info(f"User logged in successfully: {user.username}")
    return {"success": True, "user": user}


@router.get("/me", response_model=UserResponseSchema, summary="Get the logged-in user")
async def read_me(
    session: Optional[Dict[str, Any]] = Depends(get_current_session),
    session_token: Optional[str] = Depends(get_session_token),
    storage: Storage = Depends(get_storage),
    store: SessionStore = Depends(get_session_store),
):
    if not session or session.get("userId") is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user_id = session["userId"]
    try:
        user = await storage.get_user(user_id)
        if user is None:
            logger.warning(f"Session refers to missing user ID {user_id}; destroying it.")
            await store.destroy(session_token)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    except HTTPException:
        raise
    except (StorageError, SessionStoreError) as e:
        logger.error(f"Error fetching user ID {user_id} for session: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error",
        )
    return user


@router.post("/logout", response_model=MessageResponse, summary="End the current session")
async def logout(
    response: Response,
    session_token: Optional[str] = Depends(get_session_token),
    store: SessionStore = Depends(get_session_store),
):
    if session_token:
        try:
            await store.destroy(session_token)
        except SessionStoreError:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to log out",
            )
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME)
    return {"success": True, "message": "Logged out successfully"}
