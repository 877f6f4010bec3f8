# backend/tranquiloo/interfaces/http/main.py
from __future__ import annotations

import logging
import traceback
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tranquiloo import __version__
from tranquiloo.core.config import get_settings
from tranquiloo.core.events import lifespan
from tranquiloo.domain.chat.service import GenerationError
from tranquiloo.domain.safety.cssrs import ScreeningOrderError
from tranquiloo.schemas.common import ErrorResponse

logger = logging.getLogger("tranquiloo")


def _error(status_code: int, error: str, message, req_id: str, details=None, **meta) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, request_id=req_id, details=details, meta=meta or None)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.APP_NAME, version=__version__, lifespan=lifespan)

    origins = [o.strip() for o in (settings.ALLOWED_ORIGINS or "").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins if settings.ENV == "production" else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # simple liveness
    @app.get("/_/ping")
    def _ping():
        return {"ok": True}

    # every error body carries a request_id that also appears in the server log

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        req_id = str(uuid.uuid4())
        logger.warning("HTTPException %s %s %s", req_id, exc.status_code, exc.detail)
        return _error(exc.status_code, "http_error", exc.detail, req_id, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        req_id = str(uuid.uuid4())
        logger.warning("ValidationError %s %s", req_id, exc)
        return _error(422, "validation_error", "Invalid request payload", req_id, details=jsonable_encoder(exc.errors()))

    @app.exception_handler(ScreeningOrderError)
    async def screening_order_handler(request: Request, exc: ScreeningOrderError):
        req_id = str(uuid.uuid4())
        logger.warning("ScreeningOrderError %s %s", req_id, exc)
        return _error(422, "screening_order", str(exc), req_id)

    @app.exception_handler(GenerationError)
    async def generation_error_handler(request: Request, exc: GenerationError):
        req_id = str(uuid.uuid4())
        logger.error("GenerationError %s %s", req_id, exc)
        return _error(502, "generation_failed", "Failed to get AI response", req_id)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        req_id = str(uuid.uuid4())
        logger.error("Unhandled exception %s %s\n%s", req_id, exc, traceback.format_exc())
        return _error(500, "server_error", str(exc), req_id, type=exc.__class__.__name__)

    # routers are imported here so that importing this module never builds clients
    from tranquiloo.interfaces.http.routers import chat, health, memory, research, safety

    app.include_router(health.router,   prefix="/health",   tags=["health"])
    app.include_router(chat.router,     prefix="/chat",     tags=["chat"])
    app.include_router(safety.router,   prefix="/safety",   tags=["safety"])
    app.include_router(research.router, prefix="/research", tags=["research"])
    app.include_router(memory.router,   prefix="/memory",   tags=["memory"])

    return app


app = create_app()
