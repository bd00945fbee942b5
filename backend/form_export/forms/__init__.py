from form_export.forms.base import FormDataProvider, FormProviderError
from form_export.forms.google_forms import GoogleFormsProvider
from form_export.forms.model import FormSnapshot, SnapshotIntegrityError
from form_export.forms.registry import build_form_provider
from form_export.forms.snapshot_file import SnapshotFileProvider, parse_snapshot_document

__all__ = [
    "FormDataProvider",
    "FormProviderError",
    "FormSnapshot",
    "GoogleFormsProvider",
    "SnapshotFileProvider",
    "SnapshotIntegrityError",
    "build_form_provider",
    "parse_snapshot_document",
]
