# Application entrypoint: configures middleware, error rendering, startup routines, and API routers.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
import threading
import time

from .db import Base, engine
from .errors import BookingError, Busy
from .routes.auth import router as auth_router
from .routes.listings import router as listings_router
from .routes.bookings import router as bookings_router
from .routes.reviews import router as reviews_router
from .sweepers import complete_finished_bookings

logger = logging.getLogger("stayfinder.main")


def _truthy(val: str) -> bool:
    return val.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _start_completion_sweeper(interval_seconds: int) -> None:
    """
    Launch a daemon thread that periodically completes stays whose checkout has passed.

    Behavior:
    - Call complete_finished_bookings()
    - Sleep for `interval_seconds`
    Errors are logged and the worker tries again on the next interval.
    """
    def _loop() -> None:
        while True:
            try:
                complete_finished_bookings()
            except Exception:
                logger.exception("completion sweep failed; retrying next interval")
            time.sleep(interval_seconds)

    t = threading.Thread(target=_loop, name="booking-completion-sweeper", daemon=True)
    t.start()


# Parse CORS origins from a comma-separated env var.
# Note: '*' cannot be used with allow_credentials=True; we fall back to explicit localhost origins for dev.
def _parse_cors_origins(env_value: str | None) -> list[str]:
    default_dev_origins = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    if not env_value:
        return default_dev_origins

    origins = [o.strip() for o in env_value.split(",") if o.strip()]
    if "*" in origins:
        return default_dev_origins

    return origins


app = FastAPI(title="StayFinder API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_parse_cors_origins(os.getenv("CORS_ORIGINS")),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    # Domain errors carry their own HTTP status and a stable machine-readable code
    headers = {"Retry-After": "1"} if isinstance(exc, Busy) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
        headers=headers,
    )


@app.on_event("startup")
def on_startup() -> None:
    # For local SQLite, auto-create tables; production DBs rely on Alembic migrations.
    if os.getenv("DATABASE_URL", "sqlite:///./stayfinder.db").startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    if _truthy(os.getenv("COMPLETION_SWEEPER_ENABLED", "true")):
        _start_completion_sweeper(interval_seconds=int(os.getenv("COMPLETION_SWEEP_SECONDS", "3600")))


# Simple liveness endpoint for container orchestrators and uptime checks
@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


# Mount application routers (authentication and domain APIs)
app.include_router(auth_router, prefix="", tags=["auth"])
app.include_router(listings_router, prefix="/api/v1", tags=["listings"])
app.include_router(bookings_router, prefix="/api/v1", tags=["bookings"])
app.include_router(reviews_router, prefix="/api/v1", tags=["reviews"])
