"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from buildwatch.config import get_settings
from buildwatch.database import close_pool, close_postgrest, get_pool, get_postgrest
from buildwatch.events import AlertEventBroadcaster
from buildwatch.services.alert_store import PostgresAlertStore
from buildwatch.services.notifier import AlertNotifier, RealtimePublisher
from buildwatch.services.pipeline import AlertPipeline
from buildwatch.services.settings_store import ThresholdProfileStore

logger = logging.getLogger("buildwatch")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings = get_settings()

    # Startup: one pool, one broadcaster, one Realtime publisher per process
    pool = await get_pool()
    broadcaster = AlertEventBroadcaster()
    publishers = [broadcaster]

    realtime: RealtimePublisher | None = None
    if settings.REALTIME_ENABLED:
        realtime = RealtimePublisher(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_KEY,
            timeout=settings.REALTIME_TIMEOUT_SECONDS,
        )
        await realtime.start()
        publishers.append(realtime)

    profiles = ThresholdProfileStore(get_postgrest())
    pipeline = AlertPipeline(
        profiles=profiles,
        store=PostgresAlertStore(pool),
        notifier=AlertNotifier(publishers),
        window=timedelta(minutes=settings.ALERT_DEDUP_WINDOW_MINUTES),
    )

    app.state.broadcaster = broadcaster
    app.state.profiles = profiles
    app.state.pipeline = pipeline
    logger.info(
        "Alert pipeline ready (dedup window %d min, realtime %s)",
        settings.ALERT_DEDUP_WINDOW_MINUTES,
        "on" if realtime else "off",
    )

    yield

    # Shutdown: let in-flight alert checks finish, then release clients
    await pipeline.drain()
    if realtime is not None:
        await realtime.close()
    await close_postgrest()
    await close_pool()


settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


# ── API routers ──
from buildwatch.api.alerts import router as alerts_router
from buildwatch.api.measurements import router as measurements_router
from buildwatch.api.settings import router as settings_router

app.include_router(alerts_router, prefix="/api")
app.include_router(measurements_router, prefix="/api")
app.include_router(settings_router, prefix="/api")
