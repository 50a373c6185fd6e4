from fastapi import FastAPI, Request
import uvicorn
import logging
import sys
import time

from eventfinder.config import settings
from eventfinder.database import SessionLocal, engine
from eventfinder.errors import register_exception_handlers
from eventfinder.models import Base
from eventfinder.routes import attendance, auth_router, categories, events
from eventfinder.seed import seed_database
from eventfinder.storage import SqlStorage

LOG_LEVEL = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s (%(filename)s:%(lineno)d)"
stream_handler = logging.StreamHandler(sys.stdout)
stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
logging.basicConfig(level=LOG_LEVEL, handlers=[stream_handler], force=True)

logger = logging.getLogger(__name__)

app = FastAPI(title="EventFinder API")

register_exception_handlers(app)

app.include_router(auth_router.router, tags=["Authentication"])
app.include_router(categories.router, tags=["Categories"])
app.include_router(events.router, tags=["Events"])
app.include_router(attendance.router, tags=["Attendance"])


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} in {duration_ms:.0f}ms")
    return response


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.on_event("startup")
async def startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.SEED_DATABASE:
        async with SessionLocal() as db:
            await seed_database(SqlStorage(db))


if __name__ == "__main__":
    uvicorn.run("eventfinder.main:app", reload=True)
