"""Workback API: state, schedule, chat and health routers."""
from __future__ import annotations

import logging

from fastapi import FastAPI

from workback import __version__
from workback.chat.routes import router as chat_router
from workback.common.health import router as health_router
from workback.config import runtime_config
from workback.schedule.routes import router as schedule_router
from workback.state_store.routes import router as state_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="Workback", version=__version__)
    app.include_router(health_router)
    app.include_router(state_router)
    app.include_router(schedule_router)
    app.include_router(chat_router)
    logger.info("Workback config: %s", runtime_config.config_snapshot())
    return app


app = create_app()
