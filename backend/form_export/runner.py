"""Fetch a form once and produce the requested export artifacts from that snapshot.

Acquisition failure aborts the whole run. After a successful fetch every
artifact is rendered and stored independently, so a failure in one never
blocks or rolls back another.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from form_export.config import Settings, settings
from form_export.export import compose_form_markdown, export_structured, serialize_structured
from form_export.forms.base import FormDataProvider, FormProviderError
from form_export.forms.model import FormSnapshot
from form_export.observability import (
    normalize_correlation_id,
    preview_lines,
    reset_correlation_id,
    set_correlation_id,
)
from form_export.storage import ExportSink, StorageError, build_export_sink

logger = logging.getLogger("form_export.runner")

Clock = Callable[[], datetime]

FILE_NAME_PREFIX = "form_export"
FORMAT_JSON = "json"
FORMAT_MARKDOWN = "markdown"
EXPORT_FORMATS: tuple[str, ...] = (FORMAT_JSON, FORMAT_MARKDOWN)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ExportRunConfig:
    source_id: str
    sink_location: str = ""
    clock: Clock = _utc_now
    timezone: str = ""

    @classmethod
    def from_settings(cls, app_settings: Settings, **overrides: object) -> ExportRunConfig:
        values: dict[str, object] = {
            "source_id": app_settings.form_id,
            "sink_location": app_settings.export_location,
            "timezone": app_settings.export_timezone,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)  # type: ignore[arg-type]


@dataclass(frozen=True)
class _ArtifactSpec:
    format: str
    extension: str
    content_type: str
    render: Callable[[FormSnapshot], str]


_ARTIFACTS: dict[str, _ArtifactSpec] = {
    FORMAT_JSON: _ArtifactSpec(
        format=FORMAT_JSON,
        extension="json",
        content_type="application/json",
        render=lambda snapshot: serialize_structured(export_structured(snapshot)),
    ),
    FORMAT_MARKDOWN: _ArtifactSpec(
        format=FORMAT_MARKDOWN,
        extension="md",
        content_type="text/markdown; charset=utf-8",
        render=compose_form_markdown,
    ),
}


@dataclass(frozen=True)
class ArtifactResult:
    format: str
    file_name: str
    location: str | None = None
    error: str | None = None
    content: str = field(default="", repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ExportRunResult:
    form_id: str
    fetched: bool
    artifacts: tuple[ArtifactResult, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.fetched and all(artifact.ok for artifact in self.artifacts)

    def artifact(self, export_format: str) -> ArtifactResult | None:
        for artifact in self.artifacts:
            if artifact.format == export_format:
                return artifact
        return None


def export_file_name(extension: str, moment: datetime) -> str:
    return f"{FILE_NAME_PREFIX}_{moment.strftime('%Y-%m-%d_%H-%M-%S')}.{extension}"


def export_moment(config: ExportRunConfig) -> datetime:
    moment = config.clock()
    zone_name = config.timezone.strip()
    if not zone_name:
        return moment.astimezone()
    try:
        return moment.astimezone(ZoneInfo(zone_name))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "export_timezone_invalid",
            extra={"event": "export_timezone_invalid", "timezone": zone_name},
        )
        return moment.astimezone()


def _store_artifact(
    spec: _ArtifactSpec,
    file_name: str,
    content: str,
    sink: ExportSink,
) -> ArtifactResult:
    try:
        location = sink.store(file_name, content.encode("utf-8"), content_type=spec.content_type)
    except StorageError as exc:
        logger.error(
            "export_store_failed",
            extra={"event": "export_store_failed", "format": spec.format, "file_name": file_name, "error": str(exc)},
        )
        return ArtifactResult(format=spec.format, file_name=file_name, error=str(exc), content=content)
    except Exception as exc:
        logger.exception(
            "export_store_failed",
            extra={"event": "export_store_failed", "format": spec.format, "file_name": file_name},
        )
        return ArtifactResult(format=spec.format, file_name=file_name, error=str(exc), content=content)
    return ArtifactResult(format=spec.format, file_name=file_name, location=location, content=content)


def _export_artifact(
    spec: _ArtifactSpec,
    snapshot: FormSnapshot,
    moment: datetime,
    *,
    sink: ExportSink | None,
    sink_error: str | None,
) -> ArtifactResult:
    file_name = export_file_name(spec.extension, moment)
    try:
        content = spec.render(snapshot)
    except Exception as exc:
        logger.exception(
            "export_render_failed",
            extra={"event": "export_render_failed", "format": spec.format, "form_id": snapshot.metadata.form_id},
        )
        return ArtifactResult(format=spec.format, file_name=file_name, error=str(exc))

    logger.info(
        "export_rendered",
        extra={
            "event": "export_rendered",
            "format": spec.format,
            "file_name": file_name,
            "characters": len(content),
            **preview_lines(content),
        },
    )

    if sink_error is not None:
        return ArtifactResult(format=spec.format, file_name=file_name, error=sink_error, content=content)
    if sink is None:
        logger.info(
            "export_persist_skipped",
            extra={"event": "export_persist_skipped", "format": spec.format, "file_name": file_name},
        )
        return ArtifactResult(format=spec.format, file_name=file_name, content=content)
    return _store_artifact(spec, file_name, content, sink)


def run_export(
    provider: FormDataProvider,
    config: ExportRunConfig,
    *,
    formats: Sequence[str] = EXPORT_FORMATS,
    sink: ExportSink | None = None,
    app_settings: Settings | None = None,
) -> ExportRunResult:
    unknown = [export_format for export_format in formats if export_format not in _ARTIFACTS]
    if unknown:
        raise ValueError(f"Unsupported export format(s): {', '.join(unknown)}")

    token = set_correlation_id(normalize_correlation_id(None))
    try:
        logger.info(
            "export_run_started",
            extra={
                "event": "export_run_started",
                "form_id": config.source_id,
                "provider": getattr(provider, "provider_id", "unknown"),
                "formats": list(formats),
            },
        )
        try:
            snapshot = provider.fetch_snapshot(config.source_id)
        except FormProviderError as exc:
            logger.error(
                "form_fetch_failed",
                extra={"event": "form_fetch_failed", "form_id": config.source_id, "error": str(exc)},
            )
            return ExportRunResult(form_id=config.source_id, fetched=False, error=str(exc))

        sink_error: str | None = None
        if sink is None:
            try:
                sink = build_export_sink(config.sink_location, settings=app_settings or settings)
            except StorageError as exc:
                sink_error = str(exc)
                logger.error(
                    "export_sink_unavailable",
                    extra={"event": "export_sink_unavailable", "location": config.sink_location, "error": sink_error},
                )

        moment = export_moment(config)
        artifacts = tuple(
            _export_artifact(_ARTIFACTS[export_format], snapshot, moment, sink=sink, sink_error=sink_error)
            for export_format in formats
        )
        result = ExportRunResult(form_id=snapshot.metadata.form_id or config.source_id, fetched=True, artifacts=artifacts)
        logger.info(
            "export_run_completed",
            extra={
                "event": "export_run_completed",
                "form_id": result.form_id,
                "ok": result.ok,
                "failed_formats": [artifact.format for artifact in artifacts if not artifact.ok],
            },
        )
        return result
    finally:
        reset_correlation_id(token)


def run_export_all(
    provider: FormDataProvider,
    config: ExportRunConfig,
    *,
    sink: ExportSink | None = None,
    app_settings: Settings | None = None,
) -> ExportRunResult:
    return run_export(provider, config, formats=EXPORT_FORMATS, sink=sink, app_settings=app_settings)


def run_export_json(
    provider: FormDataProvider,
    config: ExportRunConfig,
    *,
    sink: ExportSink | None = None,
    app_settings: Settings | None = None,
) -> ExportRunResult:
    return run_export(provider, config, formats=(FORMAT_JSON,), sink=sink, app_settings=app_settings)


def run_export_markdown(
    provider: FormDataProvider,
    config: ExportRunConfig,
    *,
    sink: ExportSink | None = None,
    app_settings: Settings | None = None,
) -> ExportRunResult:
    return run_export(provider, config, formats=(FORMAT_MARKDOWN,), sink=sink, app_settings=app_settings)
