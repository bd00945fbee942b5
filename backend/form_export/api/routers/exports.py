from __future__ import annotations

import json
import logging
from typing import Callable

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from form_export.api.contracts import ArtifactPayload, ExportFormatChoice, ExportRequest, ExportRunPayload, RenderRequest
from form_export.config import settings
from form_export.export import compose_form_markdown, export_structured
from form_export.forms.base import FormDataProvider, FormProviderError
from form_export.forms.model import SnapshotIntegrityError
from form_export.forms.snapshot_file import parse_snapshot_document
from form_export.runner import EXPORT_FORMATS, ExportRunConfig, run_export

logger = logging.getLogger("form_export.api")

FormProviderGetter = Callable[[], FormDataProvider]


def _selected_formats(choice: ExportFormatChoice) -> tuple[str, ...]:
    if choice == "both":
        return EXPORT_FORMATS
    return (choice,)


def build_exports_router(
    *,
    get_form_provider: FormProviderGetter,
) -> APIRouter:
    router = APIRouter()

    @router.post("/exports")
    def create_export(payload: ExportRequest) -> ExportRunPayload:
        form_id = (payload.form_id or settings.form_id).strip()
        if not form_id:
            raise HTTPException(status_code=422, detail={"message": "No form id given and none configured."})

        try:
            provider = get_form_provider()
        except FormProviderError as exc:
            raise HTTPException(status_code=502, detail={"message": "Form provider unavailable.", "error": str(exc)}) from exc

        # Sink failures are reported per artifact by the runner.
        sink_location = settings.export_location if payload.persist else ""
        config = ExportRunConfig.from_settings(settings, source_id=form_id, sink_location=sink_location)
        result = run_export(provider, config, formats=_selected_formats(payload.format), app_settings=settings)
        if not result.fetched:
            raise HTTPException(
                status_code=502,
                detail={"message": "Form could not be fetched.", "form_id": form_id, "error": result.error},
            )

        return ExportRunPayload(
            form_id=result.form_id,
            ok=result.ok,
            fetched=result.fetched,
            artifacts=[
                ArtifactPayload(
                    format=artifact.format,
                    file_name=artifact.file_name,
                    location=artifact.location,
                    error=artifact.error,
                    content=artifact.content or None,
                )
                for artifact in result.artifacts
            ],
        )

    @router.post("/exports/render")
    def render_export(payload: RenderRequest) -> dict[str, object]:
        try:
            snapshot = parse_snapshot_document(payload.snapshot)
        except ValidationError as exc:
            raise HTTPException(
                status_code=422,
                detail={"message": "Snapshot document is invalid.", "errors": json.loads(exc.json())},
            ) from exc
        except SnapshotIntegrityError as exc:
            raise HTTPException(
                status_code=422,
                detail={"message": "Snapshot document is inconsistent.", "error": str(exc)},
            ) from exc

        formats = _selected_formats(payload.format)
        response: dict[str, object] = {"form_id": snapshot.metadata.form_id}
        if "json" in formats:
            response["json"] = export_structured(snapshot)
        if "markdown" in formats:
            response["markdown"] = compose_form_markdown(snapshot)

        logger.info(
            "snapshot_rendered",
            extra={"event": "snapshot_rendered", "form_id": snapshot.metadata.form_id, "formats": list(formats)},
        )
        return response

    return router
