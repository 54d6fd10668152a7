import logging
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import sweep_expired
from app.config import get_settings
from app.infrastructure import database
from app.infrastructure.logging import configure_logging
from app.infrastructure.notifications import build_broadcast_channel, build_queue_channel
from app.infrastructure.repositories import NotificationRepository
from app.interfaces.api.errors import register_exception_handlers
from app.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


def _sweep_once() -> int:
    session = database.SessionLocal()
    try:
        return sweep_expired(NotificationRepository(session))
    finally:
        session.close()


async def _sweep_expired_forever(interval: int) -> None:
    while True:
        await anyio.sleep(interval)
        try:
            await anyio.to_thread.run_sync(_sweep_once)
        except SQLAlchemyError:
            logger.exception("Expired notification sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database on startup and release resources on shutdown."""

    settings = get_settings()
    configure_logging(settings.log_level)
    database.initialize_database()
    async with anyio.create_task_group() as group:
        if settings.expiry_sweep_interval_seconds > 0:
            group.start_soon(_sweep_expired_forever, settings.expiry_sweep_interval_seconds)
        yield
        group.cancel_scope.cancel()
    database.engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.broadcast_channel = build_broadcast_channel(settings)
    app.state.queue_channel = build_queue_channel(settings)

    register_exception_handlers(app)
    register_routes(app)
    return app


app = create_app()
