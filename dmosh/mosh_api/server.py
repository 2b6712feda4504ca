"""FastAPI application for the mosh engines."""
from __future__ import annotations

import logging

from fastapi import FastAPI

from dmosh.config.runtime_config import get_log_level
from dmosh.mosh_api.routes import router


def create_app() -> FastAPI:
    logging.getLogger("dmosh").setLevel(get_log_level())
    app = FastAPI(title="Mosh Engines", version="0.1.0")
    app.include_router(router)
    return app


app = create_app()
