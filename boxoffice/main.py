import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from boxoffice.db.init_db import create_database
from boxoffice.db.base import Base
from boxoffice.db.session import engine, SessionLocal
from boxoffice.core.config import settings
from boxoffice.core.errors import (
    ConflictError,
    DependencyError,
    DomainError,
    NotFoundError,
    StateError,
    ValidationError,
)
from boxoffice.api.deps import get_notifications
from boxoffice.api.v1.router import api_router
from boxoffice.schemas.common import ErrorResponse

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


async def _booking_expiry_loop() -> None:
    """Background task: cancel stale pending bookings on a fixed interval."""
    from boxoffice.utils.expiry import run_expiry_sweep

    while True:
        # Blocking database work runs in a worker thread
        await asyncio.to_thread(run_expiry_sweep, SessionLocal)
        await asyncio.sleep(settings.BOOKING_SWEEP_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    if settings.DATABASE_URL.startswith("postgresql"):
        create_database()
    Base.metadata.create_all(bind=engine)

    # Run an immediate sweep, then keep running in the background
    sweep_task = asyncio.create_task(_booking_expiry_loop())
    yield

    # Shutdown: cancel background task, let queued e-mails finish
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass
    await asyncio.to_thread(get_notifications().shutdown, True)


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Domain error kind -> HTTP status
ERROR_STATUS = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StateError, 409),
    (DependencyError, 503),
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    status_code = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=exc.code.value, message=exc.message).model_dump(),
    )


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": "Boxoffice"}
