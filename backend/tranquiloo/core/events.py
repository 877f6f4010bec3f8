from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Literal, cast

from fastapi import FastAPI

from tranquiloo.core.config import get_settings
from tranquiloo.core.logging import setup_logging

log = logging.getLogger("tranquiloo.core")


def startup_health() -> dict:
    """
    Best-effort "are the basics alive" checks.
    Never raises; logs warnings so the app still boots in dev.
    """
    from tranquiloo.adapters.qdrant_client import qdrant_ping
    from tranquiloo.adapters.supabase_client import supa_ping

    s = get_settings()
    status = {"openai": bool(s.OPENAI_API_KEY), "qdrant": qdrant_ping(), "supabase": supa_ping()}
    if not status["openai"]:
        log.warning("OPENAI_API_KEY missing: crisis checks will use keyword fallback, chat will fail")
    if not status["qdrant"]:
        log.warning("qdrant not reachable (research context disabled)")
    if not status["supabase"]:
        log.warning("supabase not reachable (summaries and chat turns will not persist)")
    return status


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    fmt = cast(Literal["console", "json"], settings.LOG_FORMAT if settings.LOG_FORMAT in ("console", "json") else "console")
    setup_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO, fmt=fmt)
    log.info("starting %s (env=%s)", settings.APP_NAME, settings.ENV)
    startup_health()
    yield
    log.info("shutting down %s", settings.APP_NAME)
