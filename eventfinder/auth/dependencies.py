from typing import Any, Dict, Optional
import logging

from fastapi import Depends, HTTPException, Request, status

from eventfinder.auth import security
from eventfinder.auth.sessions import SessionStore, SessionStoreError, get_session_store
from eventfinder.config import settings
from eventfinder.storage import Storage, StorageError, get_storage

logger = logging.getLogger(__name__)


async def get_session_token(request: Request) -> Optional[str]:
    cookie_value = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not cookie_value:
        return None
    session_token = security.read_session_cookie(cookie_value)
    if session_token is None:
        logger.warning("Rejected session cookie with invalid signature or expiry.")
    return session_token


async def get_current_session(
    session_token: Optional[str] = Depends(get_session_token),
    store: SessionStore = Depends(get_session_store),
) -> Optional[Dict[str, Any]]:
    if session_token is None:
        return None
    try:
        return await store.get(session_token)
    except SessionStoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not load session.",
        )


async def get_current_user_id(
    session: Optional[Dict[str, Any]] = Depends(get_current_session),
    session_token: Optional[str] = Depends(get_session_token),
    storage: Storage = Depends(get_storage),
    store: SessionStore = Depends(get_session_store),
) -> int:
    if not session or session.get("userId") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You must be logged in to do this.",
        )
    user_id = int(session["userId"])
    try:
        user = await storage.get_user(user_id)
        if user is None:
            logger.warning(f"Session refers to missing user ID {user_id}; destroying it.")
            await store.destroy(session_token)
    except (StorageError, SessionStoreError) as e:
        logger.error(f"Error checking session user ID {user_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not load session.",
        )
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You must be logged in to do this.",
        )
    return user_id
