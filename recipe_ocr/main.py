from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from recipe_ocr.api.routes import router
from recipe_ocr.core.config import settings
from recipe_ocr.core.logging import configure_logging


def create_app() -> FastAPI:
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logging.getLogger(__name__).info(
            "startup",
            extra={
                "ocr_quality": settings.ocr_quality,
                "on_device_provider": settings.on_device_provider,
                "cloud_provider": settings.cloud_provider,
            },
        )
        yield

    app = FastAPI(title="Recipe OCR", version="0.1.0", lifespan=lifespan)
    app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to the Recipe OCR API",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()
