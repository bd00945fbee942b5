from __future__ import annotations

from typing import Protocol

from form_export.forms.model import FormSnapshot


class FormProviderError(RuntimeError):
    """Raised when a provider cannot supply a complete form snapshot."""


class FormDataProvider(Protocol):
    provider_id: str

    def fetch_snapshot(self, form_id: str) -> FormSnapshot:
        ...
