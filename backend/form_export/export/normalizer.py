from __future__ import annotations

import logging
from typing import Any, Callable

from form_export.forms.model import (
    ChoiceItem,
    CheckboxItem,
    FormItem,
    ImageItem,
    ListItem,
    MultipleChoiceItem,
    PageBreakItem,
    ScaleItem,
    VideoItem,
)

logger = logging.getLogger("form_export.normalizer")

# Kept for compatibility with earlier export consumers; carries no meaning.
POINTS_PLACEHOLDER = 0

# Keyed by exact item type, so each extractor only sees its own variant.
ExtraFieldExtractor = Callable[[Any], dict[str, object]]


def normalize_item(item: FormItem) -> dict[str, object]:
    record: dict[str, object] = {
        "type": item.type_tag,
        "title": item.title or "",
        "helpText": item.help_text or "",
        "id": item.item_id,
        "index": item.index,
        "isRequired": bool(item.required),
        "points": POINTS_PLACEHOLDER,
    }
    extractor = _EXTRA_FIELD_EXTRACTORS.get(type(item), _no_extra_fields)
    record.update(extractor(item))
    return record


def _no_extra_fields(item: FormItem) -> dict[str, object]:
    del item
    return {}


def _choice_fields(item: ChoiceItem) -> dict[str, object]:
    return {
        "choices": _choice_values(item),
        "hasOtherOption": bool(item.has_other_option),
    }


def _choice_values(item: ChoiceItem) -> list[str]:
    if item.choices is None:
        logger.error(
            "item_choices_unavailable",
            extra={"event": "item_choices_unavailable", "item_id": item.item_id, "item_type": item.type_tag},
        )
        return []
    try:
        return [str(choice.value) for choice in item.choices]
    except (AttributeError, TypeError) as exc:
        logger.error(
            "item_choices_unreadable",
            extra={
                "event": "item_choices_unreadable",
                "item_id": item.item_id,
                "item_type": item.type_tag,
                "error": str(exc),
            },
        )
        return []


def _scale_fields(item: ScaleItem) -> dict[str, object]:
    return {
        "lowerBound": item.lower_bound,
        "upperBound": item.upper_bound,
        "leftLabel": item.left_label or "",
        "rightLabel": item.right_label or "",
    }


def _image_fields(item: ImageItem) -> dict[str, object]:
    return {
        "alignment": item.alignment,
        "imageBlob": {
            "dataAsString": item.image.data_base64,
            "name": item.image.name,
            "isGoogleType": item.image.is_google_type,
        },
    }


def _page_break_fields(item: PageBreakItem) -> dict[str, object]:
    return {"pageNavigationType": item.navigation.kind.value}


def _video_fields(item: VideoItem) -> dict[str, object]:
    # Videos report alignment even though other media-less items carry nothing extra.
    return {"alignment": item.alignment}


_EXTRA_FIELD_EXTRACTORS: dict[type[FormItem], ExtraFieldExtractor] = {
    MultipleChoiceItem: _choice_fields,
    CheckboxItem: _choice_fields,
    ListItem: _choice_fields,
    ScaleItem: _scale_fields,
    ImageItem: _image_fields,
    PageBreakItem: _page_break_fields,
    VideoItem: _video_fields,
}
