from fastapi import APIRouter, Depends, HTTPException, status
import logging

from eventfinder.auth.dependencies import get_current_user_id
from eventfinder.schemas.event import EventWithAttendeesResponseSchema
from eventfinder.storage import DuplicateRecordError, MissingReferenceError, Storage, StorageError, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/events",
    tags=["Attendance"]
)


@router.post(
    "/{event_id}/attend",
    response_model=EventWithAttendeesResponseSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Register the logged-in user for an event"
)
async def attend_event(
    event_id: int,
    storage: Storage = Depends(get_storage),
    user_id: int = Depends(get_current_user_id),
):
    try:
        if await storage.is_user_attending(user_id, event_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You are already registered for this event"
            )
        await storage.create_attendee(user_id, event_id)
        event = await storage.get_event(event_id)
    except HTTPException:
        raise
    except DuplicateRecordError:
        # lost a race with a concurrent registration of the same pair
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You are already registered for this event"
        )
    except MissingReferenceError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    except StorageError as e:
        logger.error(f"Error registering user ID {user_id} for event ID {event_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register for event"
        )
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    logger.info(f"User ID {user_id} registered for event ID {event_id}.")
    return event


@router.delete(
    "/{event_id}/attend",
    response_model=EventWithAttendeesResponseSchema,
    summary="Cancel the logged-in user's registration"
)
async def cancel_attendance(
    event_id: int,
    storage: Storage = Depends(get_storage),
    user_id: int = Depends(get_current_user_id),
):
    try:
        if not await storage.is_user_attending(user_id, event_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You are not registered for this event"
            )
        if not await storage.delete_attendee(user_id, event_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")
        event = await storage.get_event(event_id)
    except HTTPException:
        raise
    except StorageError as e:
        logger.error(f"Error cancelling registration of user ID {user_id} for event ID {event_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel registration"
        )
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    logger.info(f"User ID {user_id} cancelled registration for event ID {event_id}.")
    return event
