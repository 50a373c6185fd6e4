from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from eventfinder.config import settings


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def build_engine(database_url: str) -> AsyncEngine:
    new_engine = create_async_engine(database_url)

    if new_engine.dialect.name == "sqlite":
        @event.listens_for(new_engine.sync_engine, "connect")
        def _configure_sqlite_connection(dbapi_connection, connection_record):
            # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            # built-in lower() only folds ASCII, and ILIKE compiles to lower(x) LIKE lower(y)
            dbapi_connection.create_function("lower", 1, _unicode_lower)

    return new_engine


engine = build_engine(settings.DATABASE_URL)
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    async with SessionLocal() as db:
        yield db
