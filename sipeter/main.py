from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from sipeter.api.router import api_router
from sipeter.core.config import get_settings
from sipeter.core.errors import ValidationFailure
from sipeter.core.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def validation_failure_handler(request: Request, exc: ValidationFailure) -> JSONResponse:
    logger.info("validation_failure", path=request.url.path, field=exc.field, detail=exc.message)
    return JSONResponse(status_code=400, content={"detail": exc.message, "field": exc.field})


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(json_format=settings.log_json, log_level=settings.log_level)

    app = FastAPI(title=settings.app_name)
    app.add_exception_handler(ValidationFailure, validation_failure_handler)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    def health():
        return {"ok": True, "app": settings.app_name, "environment": settings.environment}

    return app


app = create_app()
