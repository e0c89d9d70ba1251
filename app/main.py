import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from app.db.init_db import create_database
from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.core.config import settings
from app.core.exceptions import BookingError, SeatUnavailable
from app.schemas.common import ErrorResponse, SeatsUnavailableError
from app.api.v1.router import api_router

logger = logging.getLogger(__name__)


async def _hold_sweep_loop() -> None:
    """Background task: expire lapsed seat holds every HOLD_SWEEP_SECONDS."""
    from app.services.holds import expire_stale_holds

    while True:
        try:
            db = SessionLocal()
            try:
                count = expire_stale_holds(db)
                if count:
                    logger.info("Expired %d stale hold(s).", count)
            finally:
                db.close()
        except Exception:
            logger.exception("Error during hold sweep.")
        await asyncio.sleep(settings.HOLD_SWEEP_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)

    # Holds expire lazily on read; the sweep only keeps the table tidy
    sweep_task = None
    if settings.HOLD_SWEEP_SECONDS > 0:
        sweep_task = asyncio.create_task(_hold_sweep_loop())
    yield

    # Shutdown: cancel background task
    if sweep_task:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass


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


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    if isinstance(exc, SeatUnavailable):
        body = SeatsUnavailableError(
            error=exc.kind,
            message=exc.detail,
            unavailable_seats=[{"row": r, "number": n} for r, n in exc.seats],
        )
    else:
        body = ErrorResponse(error=exc.kind, message=exc.detail)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": "Cine Booking"}
