from __future__ import annotations

import json

from form_export.export.normalizer import normalize_item
from form_export.forms.model import FormMetadata, FormSnapshot


def export_structured(snapshot: FormSnapshot) -> dict[str, object]:
    items = [normalize_item(item) for item in snapshot.items]
    return {
        "metadata": metadata_record(snapshot.metadata),
        "items": items,
        "count": len(items),
    }


def metadata_record(metadata: FormMetadata) -> dict[str, object]:
    return {
        "title": metadata.title,
        "id": metadata.form_id,
        "description": metadata.description,
        "publishedUrl": metadata.published_url,
        "editorEmails": list(metadata.editor_emails),
        "count": metadata.item_count,
        "confirmationMessage": metadata.confirmation_message,
        "customClosedFormMessage": metadata.custom_closed_form_message,
    }


def serialize_structured(document: dict[str, object]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)
