from fastapi import APIRouter
from typing import List

from eventfinder.schemas.event import EVENT_CATEGORIES

router = APIRouter(
    prefix="/api/categories",
    tags=["Categories"]
)


@router.get("", response_model=List[str], summary="List event categories, 'All' first")
async def get_categories():
    return list(EVENT_CATEGORIES)
