import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__
from . import redis_client as redis_module
from .config import settings
from .database import get_db
from .errors import BookingError
from .routers import admin, availability, branches, my_bookings, reservations, rooms
from .services.reminder_checker import reminder_checker_loop

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if settings.reminder_loop_enabled:
        if redis_module.get_redis() is None:
            logger.warning("REMINDER_LOOP_ENABLED is set but REDIS_URL is not, loop not started")
        else:
            task = asyncio.create_task(reminder_checker_loop())
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)


app = FastAPI(title="Room Booking API", version=__version__, lifespan=lifespan)


# ===== Error mapping =====
@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, **exc.extra},
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Storage is temporarily unavailable, please retry"},
    )


# ===== Routers =====
app.include_router(availability.router)
app.include_router(reservations.router)
app.include_router(my_bookings.router)
app.include_router(branches.router)
app.include_router(rooms.router)
app.include_router(admin.router)


@app.get("/health")
def health(db: Session = Depends(get_db)):
    db_ok = True
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        db_ok = False

    redis = redis_module.get_redis()
    redis_ok = None
    if redis is not None:
        try:
            redis_ok = bool(redis.ping())
        except Exception:
            logger.exception("Health check: redis unreachable")
            redis_ok = False

    status_code = 200 if db_ok else 503
    return JSONResponse(
        status_code=status_code,
        content={"database": db_ok, "redis": redis_ok},
    )


@app.get("/version")
def version():
    return {"version": __version__}
