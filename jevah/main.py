import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from jevah.config import settings
from jevah.db.mongo import db, ensure_indexes
from jevah.errors import ServiceError, rate_limit_handler, service_error_handler
from jevah.utils.rate_limit import limiter

from jevah.artists.api import router as artists_router
from jevah.audit.api import router as audit_router
from jevah.auth.api import router as auth_router
from jevah.bookmarks.api import router as bookmarks_router
from jevah.chatbot.api import router as chatbot_router
from jevah.content.api import router as content_router
from jevah.dashboard.api import router as dashboard_router
from jevah.dating.api import router as dating_router
from jevah.devotionals.api import router as devotionals_router
from jevah.games.api import router as games_router
from jevah.interactions.api import router as interactions_router
from jevah.library.api import router as library_router
from jevah.locations.api import router as locations_router
from jevah.media.api import router as media_router
from jevah.merchandise.api import router as merchandise_router
from jevah.notifications.api import router as notifications_router
from jevah.realtime.api import router as realtime_router
from jevah.trending.api import router as trending_router
from jevah.users.api import router as users_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("jevah")

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await ensure_indexes(db)
    logger.info(f"Jevah API started ({settings.ENVIRONMENT})")
    yield
    logger.info("Jevah API stopped")


app = FastAPI(title="Jevah API", version=settings.APP_VERSION, lifespan=lifespan)

# Création dossier statique uploads
upload_dir = Path(settings.LOCAL_UPLOAD_DIR)
upload_dir.mkdir(parents=True, exist_ok=True)

app.mount("/static", StaticFiles(directory=str(upload_dir.parent)), name="static")

app.state.limiter = limiter
app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(artists_router)
app.include_router(media_router)
app.include_router(interactions_router)
app.include_router(content_router)
app.include_router(bookmarks_router)
app.include_router(library_router)
app.include_router(locations_router)
app.include_router(devotionals_router)
app.include_router(games_router)
app.include_router(merchandise_router)
app.include_router(dating_router)
app.include_router(dashboard_router)
app.include_router(trending_router)
app.include_router(notifications_router)
app.include_router(audit_router)
app.include_router(chatbot_router)
app.include_router(realtime_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms)")
    return response


@app.get("/health")
async def health():
    return {
        "status": "OK",
        "timestamp": datetime.utcnow().isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 2),
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
    }


@app.get("/")
async def root():
    return {"message": "Welcome to the Jevah API"}
