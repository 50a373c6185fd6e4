from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventfinder.database import get_db
from eventfinder.storage.base import Storage
from eventfinder.storage.errors import DuplicateRecordError, MissingReferenceError, StorageError
from eventfinder.storage.memory import MemoryStorage
from eventfinder.storage.sql import SqlStorage

__all__ = [
    "Storage",
    "SqlStorage",
    "MemoryStorage",
    "StorageError",
    "DuplicateRecordError",
    "MissingReferenceError",
    "get_storage",
]


async def get_storage(db: AsyncSession = Depends(get_db)) -> Storage:
    return SqlStorage(db)
