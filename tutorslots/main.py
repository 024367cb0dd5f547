# tutorslots/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import sessionmaker

from .config import Settings, get_settings
from .database import create_db_engine, create_session_factory, init_db
from .errors import SchedulingError
from .redis_client import create_redis
from .routers import availability, session_groups, slots
from .services.slots.config import SlotsConfig

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    redis: Optional[Redis] = None,
    session_factory: Optional[sessionmaker] = None,
) -> FastAPI:
    """
    Build the API.

    Clients passed in are used as-is and left open; clients built here are
    opened on startup and closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned_engine = None
        owned_redis = None

        if session_factory is None:
            owned_engine = create_db_engine(settings.resolved_database_url)
            init_db(owned_engine)
            app.state.session_factory = create_session_factory(owned_engine)
        else:
            app.state.session_factory = session_factory

        if redis is None:
            owned_redis = create_redis(settings)
            app.state.redis = owned_redis
        else:
            app.state.redis = redis

        logger.info("tutorslots started")
        try:
            yield
        finally:
            if owned_redis is not None:
                owned_redis.close()
            if owned_engine is not None:
                owned_engine.dispose()
            logger.info("tutorslots stopped")

    app = FastAPI(title="Tutor Slots API", lifespan=lifespan)
    app.state.settings = settings
    app.state.slots_config = SlotsConfig(
        cache_ttl_seconds=settings.slot_cache_ttl_seconds,
        lock_ttl_seconds=settings.booking_lock_ttl_seconds,
    )

    @app.exception_handler(SchedulingError)
    async def scheduling_error_handler(request: Request, exc: SchedulingError):
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/health")
    def health(request: Request):
        try:
            redis_ok = bool(request.app.state.redis.ping())
        except RedisError:
            logger.warning("health check: redis unreachable")
            redis_ok = False
        return {"redis": redis_ok}

    app.include_router(availability.router)
    app.include_router(session_groups.router)
    app.include_router(slots.router)
    return app


def run() -> None:
    """Console entry point: `tutorslots`."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)
