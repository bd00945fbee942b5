from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from form_export.config import settings
from form_export.storage import StorageError, build_export_sink
from form_export.version import APP_VERSION


router = APIRouter()


@router.get("/")
def root() -> dict[str, str]:
    return {"service": "form-export", "status": "running", "version": APP_VERSION}


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "environment": settings.app_env}


@router.get("/ready", response_model=None)
def ready() -> JSONResponse:
    payload: dict[str, object] = {
        "status": "ready",
        "environment": settings.app_env,
        "checks": {},
    }
    checks: dict[str, object] = {}
    payload["checks"] = checks

    try:
        sink = build_export_sink(settings.export_location, settings=settings)
    except StorageError as exc:
        payload["status"] = "not_ready"
        checks["storage"] = {"ok": False, "backend": "unknown", "error": str(exc)}
        return JSONResponse(status_code=503, content=payload)

    if sink is None:
        checks["storage"] = {"ok": True, "backend": "disabled"}
        return JSONResponse(status_code=200, content=payload)

    try:
        sink.check_access()
        checks["storage"] = {"ok": True, "backend": sink.sink_id}
    except StorageError as exc:
        payload["status"] = "not_ready"
        checks["storage"] = {"ok": False, "backend": sink.sink_id, "error": str(exc)}
        return JSONResponse(status_code=503, content=payload)

    return JSONResponse(status_code=200, content=payload)
