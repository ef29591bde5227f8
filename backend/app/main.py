import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.errors import AppError

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "glampspot.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)

from app.routers import bookings, contact, notifications, properties, reviews

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: launch background scheduler
    scheduler = None
    if settings.scheduler_enabled:
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
            from apscheduler.triggers.interval import IntervalTrigger

            scheduler = AsyncIOScheduler()

            async def _dispatch_outbox():
                from app.database import async_session_factory
                from app.services.notification_dispatcher import notification_dispatcher
                async with async_session_factory() as db:
                    await notification_dispatcher.dispatch_pending(db)

            async def _queue_stay_reminders():
                from app.database import async_session_factory
                from app.services.stay_sweep_service import stay_sweep_service
                async with async_session_factory() as db:
                    count = await stay_sweep_service.queue_stay_reminders(db)
                    if count:
                        logger.info(f"Stay reminders: {count} queued")

            async def _complete_finished_stays():
                from app.database import async_session_factory
                from app.services.stay_sweep_service import stay_sweep_service
                async with async_session_factory() as db:
                    count = await stay_sweep_service.complete_finished_stays(db)
                    if count:
                        logger.info(f"Completed stays: {count} bookings closed")

            scheduler.add_job(
                _dispatch_outbox,
                IntervalTrigger(seconds=settings.outbox_dispatch_interval_seconds),
                id="dispatch_outbox",
                max_instances=1,
                coalesce=True,
            )
            scheduler.add_job(_queue_stay_reminders, CronTrigger(hour=9, minute=0), id="stay_reminders")
            scheduler.add_job(_complete_finished_stays, CronTrigger(hour=12, minute=0), id="complete_stays")

            scheduler.start()
            logger.info("Background scheduler started")
        except Exception as e:
            logger.error(f"Scheduler failed to start: {e}")

    if settings.seed_on_startup:
        try:
            from app.seed import seed
            await seed()
        except Exception as e:
            logger.warning(f"Auto-seed skipped: {e}")

    yield

    # Shutdown
    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")
    from app.services.notification_dispatcher import notification_dispatcher
    await notification_dispatcher.close()


app = FastAPI(
    title="GlampSpot",
    description="Glamping booking backend",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"success": False, "error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500, content={"success": False, "error": "An unexpected error occurred"}
    )


app.include_router(bookings.router, prefix="/api/bookings", tags=["bookings"])
app.include_router(properties.router, prefix="/api/properties", tags=["properties"])
app.include_router(properties.blocked_ranges_router, prefix="/api/blocked-ranges", tags=["properties"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["reviews"])
app.include_router(contact.router, prefix="/api/contact", tags=["contact"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "glampspot"}
