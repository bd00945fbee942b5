from contextlib import asynccontextmanager
from functools import lru_cache
import logging
import time

from fastapi import FastAPI, Request

from form_export.api.routers.exports import build_exports_router
from form_export.api.routers.system import router as system_router
from form_export.config import settings
from form_export.forms import FormDataProvider, build_form_provider
from form_export.observability import (
    configure_logging,
    normalize_correlation_id,
    reset_correlation_id,
    sanitize_for_logging,
    set_correlation_id,
)
from form_export.version import APP_VERSION

logger = logging.getLogger("form_export.api")


@lru_cache(maxsize=1)
def _cached_form_provider() -> FormDataProvider:
    return build_form_provider(settings)


def get_form_provider() -> FormDataProvider:
    return _cached_form_provider()


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(settings.log_level)
    logger.info(
        "application_startup",
        extra={"event": "application_startup", "environment": settings.app_env, "provider": settings.form_provider},
    )
    yield
    logger.info("application_shutdown", extra={"event": "application_shutdown"})


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, version=APP_VERSION, lifespan=lifespan)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        request_id = normalize_correlation_id(request.headers.get(settings.request_id_header))
        request.state.request_id = request_id
        token = set_correlation_id(request_id)
        started = time.perf_counter()

        logger.info(
            "request_started",
            extra={
                "event": "request_started",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "query": sanitize_for_logging(dict(request.query_params)),
                "client_ip": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            response.headers[settings.request_id_header] = request_id
            logger.info(
                "request_completed",
                extra={
                    "event": "request_completed",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                },
            )
            return response
        except Exception:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.exception(
                "request_failed",
                extra={
                    "event": "request_failed",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": elapsed_ms,
                },
            )
            raise
        finally:
            reset_correlation_id(token)

    app.include_router(system_router)
    # Resolve getters at call time so tests can monkeypatch this module.
    app.include_router(
        build_exports_router(
            get_form_provider=lambda: get_form_provider(),
        )
    )
    return app


app = create_app()
