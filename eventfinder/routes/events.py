from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from typing import List
import logging

from eventfinder.schemas.attendee import AttendeeResponseSchema
from eventfinder.schemas.event import (
    EventCreateSchema,
    EventUpdateSchema,
    EventWithAttendeesResponseSchema,
)
from eventfinder.storage import MissingReferenceError, Storage, StorageError, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/events",
    tags=["Events"]
)


@router.get(
    "",
    response_model=List[EventWithAttendeesResponseSchema],
    summary="Get all events, soonest first"
)
async def get_all_events(storage: Storage = Depends(get_storage)):
    try:
        return await storage.get_all_events()
    except StorageError as e:
        logger.error(f"Error fetching events: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve events"
        )


@router.get(
    "/category/{category_id}",
    response_model=List[EventWithAttendeesResponseSchema],
    summary="Get events in a category ('All' returns every event)"
)
async def get_events_by_category(category_id: str, storage: Storage = Depends(get_storage)):
    try:
        return await storage.get_events_by_category(category_id)
    except StorageError as e:
        logger.error(f"Error fetching events for category '{category_id}': {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve events by category"
        )


@router.get(
    "/near",
    response_model=List[EventWithAttendeesResponseSchema],
    summary="Get events within a radius in miles, nearest first"
)
async def get_events_near(
    lat: float = Query(..., ge=-90, le=90, allow_inf_nan=False),
    lng: float = Query(..., ge=-180, le=180, allow_inf_nan=False),
    distance: float = Query(..., ge=0, allow_inf_nan=False, description="Maximum distance in miles"),
    storage: Storage = Depends(get_storage),
):
    try:
        return await storage.get_events_near_location(lat, lng, distance)
    except StorageError as e:
        logger.error(f"Error fetching events near ({lat}, {lng}) within {distance} mi: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve nearby events"
        )


@router.get(
    "/search",
    response_model=List[EventWithAttendeesResponseSchema],
    summary="Search events by title, description or location"
)
async def search_events(
    query: str = Query(..., min_length=1),
    storage: Storage = Depends(get_storage),
):
    try:
        return await storage.search_events(query)
    except StorageError as e:
        logger.error(f"Error searching events for '{query}': {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search events"
        )


@router.get(
    "/{event_id}",
    response_model=EventWithAttendeesResponseSchema,
    summary="Get a specific event by ID"
)
async def get_event(event_id: int, storage: Storage = Depends(get_storage)):
    try:
        event = await storage.get_event(event_id)
    except StorageError as e:
        logger.error(f"Error fetching event with id {event_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve event"
        )
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.post(
    "",
    response_model=EventWithAttendeesResponseSchema,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new event"
)
async def create_event(event_data: EventCreateSchema, storage: Storage = Depends(get_storage)):
    # TODO: tie host_id to the logged-in user once the authorization model for hosting is settled
    try:
        new_event = await storage.create_event(event_data.model_dump())
        event = await storage.get_event(new_event.id)
    except MissingReferenceError:
        logger.warning(f"Event '{event_data.title}' rejected: host user ID {event_data.host_id} not found.")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Host user {event_data.host_id} does not exist"
        )
    except StorageError as e:
        logger.error(f"Unexpected error creating event '{event_data.title}': {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create event"
        )
    logger.info(f"Event '{new_event.title}' (ID: {new_event.id}) created for host ID {new_event.host_id}")
    return event


@router.put(
    "/{event_id}",
    response_model=EventWithAttendeesResponseSchema,
    summary="Update some or all fields of an event"
)
async def update_event(
    event_id: int,
    event_update_data: EventUpdateSchema,
    storage: Storage = Depends(get_storage),
):
    updated_data = event_update_data.model_dump(exclude_unset=True)
    try:
        updated_event = await storage.update_event(event_id, updated_data)
        if updated_event is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        event = await storage.get_event(event_id)
    except HTTPException:
        raise
    except MissingReferenceError:
        logger.warning(f"Update of event ID {event_id} rejected: host user ID {updated_data.get('host_id')} not found.")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Host user {updated_data.get('host_id')} does not exist"
        )
    except StorageError as e:
        logger.error(
            f"Unexpected error updating event id {event_id} with payload {event_update_data.model_dump_json(exclude_unset=True)}: {str(e)}",
            exc_info=True
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update event"
        )
    logger.info(f"Event ID {event_id} updated (fields: {', '.join(updated_data) or 'none'}).")
    return event


@router.delete(
    "/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an event and its registrations"
)
async def delete_event(event_id: int, storage: Storage = Depends(get_storage)):
    try:
        deleted = await storage.delete_event(event_id)
    except StorageError as e:
        logger.error(f"Error deleting event with id {event_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete event"
        )
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    logger.info(f"Event ID {event_id} deleted.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{event_id}/attendees",
    response_model=List[AttendeeResponseSchema],
    summary="Get the raw registration rows of an event"
)
async def get_event_attendees(event_id: int, storage: Storage = Depends(get_storage)):
    try:
        return await storage.get_event_attendees(event_id)
    except StorageError as e:
        logger.error(f"Error fetching attendees for event_id {event_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve event attendees"
        )
