from __future__ import annotations

from typing import Any

from form_export.config import Settings
from form_export.forms.base import FormDataProvider, FormProviderError
from form_export.forms.google_forms import GoogleFormsProvider
from form_export.forms.snapshot_file import SnapshotFileProvider


def _normalize_provider_id(value: str) -> str:
    normalized = (value or "").strip().lower()
    if normalized in {"", "google", "google_forms", "forms"}:
        return "google"
    if normalized in {"file", "snapshot", "local"}:
        return "file"
    return normalized


def build_form_provider(
    settings: Settings,
    *,
    provider_id: str | None = None,
    http_client: Any | None = None,
    credentials: Any | None = None,
    s3_client: Any | None = None,
) -> FormDataProvider:
    selected = _normalize_provider_id(provider_id if provider_id is not None else settings.form_provider)
    if selected == "google":
        return GoogleFormsProvider(settings, http_client=http_client, credentials=credentials)
    if selected == "file":
        return SnapshotFileProvider(settings, s3_client=s3_client)
    raise FormProviderError(f"Unsupported form provider '{selected}' (expected google or file).")
