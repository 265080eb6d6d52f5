"""FastAPI application with lifespan startup."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codecoach import __version__
from codecoach.analysis import sonar_client
from codecoach.api.app_state import build_state
from codecoach.api.middleware.auth import ApiKeyMiddleware
from codecoach.api.routes import diagnostics, health
from codecoach.config import Settings
from codecoach.constants import API_KEY_HEADER
from codecoach.execution import judge0
from codecoach.logging_config import setup_logging

_settings = Settings()
setup_logging(_settings.log_level)

_logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # 1. Use module-level settings (single source of truth)
    settings = _settings

    # 2. HTTP clients live for the whole process
    sonar_http = sonar_client.build_http_client(settings)
    judge0_http = judge0.build_http_client(settings)

    try:
        # 3. Content table is loaded once here and never mutated
        app.state.typed = build_state(
            settings, sonar_http=sonar_http, judge0_http=judge0_http
        )

        if not settings.sonarqube_token:
            _logger.warning(
                "event=no_sonarqube_token action=anonymous_requests"
            )
        if not settings.api_key:
            _logger.warning(
                "event=no_api_key action=all_endpoints_public"
            )
        _logger.info(
            "event=startup quality_service=%s execution_service=%s",
            settings.sonarqube_url,
            settings.judge0_url,
        )

        yield
    finally:
        try:
            await sonar_http.aclose()
        finally:
            await judge0_http.aclose()


app = FastAPI(
    title="codecoach",
    description=(
        "Runs learner code and explains lint and quality findings"
    ),
    version=__version__,
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# Middleware stack (Starlette LIFO: last added = outermost = runs first)
#
# Inbound request order:
#   CORSMiddleware (outermost) -> ApiKeyMiddleware -> Router
#
# CORS must be outermost so OPTIONS preflight is answered before
# ApiKeyMiddleware rejects for a missing key header.
app.add_middleware(ApiKeyMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origin_list,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", API_KEY_HEADER],
    allow_credentials=False,
)

app.include_router(health.router)
app.include_router(diagnostics.router)
