"""Snapshot documents stored as JSON.

The accepted document is a superset of the structured export: choices may be
plain strings (as exported) or ``{"value", "navigation"}`` objects, and page
breaks may name their jump target with ``goToPageId``. A previously exported
JSON file can therefore be rendered again without contacting Google.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from form_export.config import Settings
from form_export.forms.base import FormProviderError
from form_export.forms.model import (
    CheckboxItem,
    Choice,
    FormItem,
    FormMetadata,
    FormSnapshot,
    ImageBlob,
    ImageItem,
    ListItem,
    MultipleChoiceItem,
    NavigationDirective,
    NavigationKind,
    PageBreakItem,
    ParagraphTextItem,
    ScaleItem,
    SnapshotIntegrityError,
    TextItem,
    UnclassifiedItem,
    VideoItem,
)
from form_export.storage import StorageError, load_bytes

logger = logging.getLogger("form_export.snapshot_file")


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NavigationPayload(_WireModel):
    type: NavigationKind = NavigationKind.CONTINUE
    target_id: int | None = Field(default=None, alias="targetId")


class ChoicePayload(_WireModel):
    value: str
    navigation: NavigationPayload | None = None


class ImageBlobPayload(_WireModel):
    data_as_string: str = Field(default="", alias="dataAsString")
    name: str = ""
    is_google_type: bool = Field(default=False, alias="isGoogleType")


class ItemPayload(_WireModel):
    type: str = Field(..., min_length=1)
    id: int
    index: int | None = None
    title: str | None = None
    help_text: str | None = Field(default=None, alias="helpText")
    is_required: bool = Field(default=False, alias="isRequired")
    choices: list[ChoicePayload | str] | None = None
    has_other_option: bool = Field(default=False, alias="hasOtherOption")
    lower_bound: int = Field(default=1, alias="lowerBound")
    upper_bound: int = Field(default=5, alias="upperBound")
    left_label: str | None = Field(default=None, alias="leftLabel")
    right_label: str | None = Field(default=None, alias="rightLabel")
    alignment: str = "LEFT"
    image_blob: ImageBlobPayload | None = Field(default=None, alias="imageBlob")
    page_navigation_type: NavigationKind = Field(default=NavigationKind.CONTINUE, alias="pageNavigationType")
    go_to_page_id: int | None = Field(default=None, alias="goToPageId")


class MetadataPayload(_WireModel):
    title: str = ""
    id: str = ""
    description: str = ""
    published_url: str = Field(default="", alias="publishedUrl")
    editor_emails: list[str] = Field(default_factory=list, alias="editorEmails")
    count: int | None = None
    confirmation_message: str = Field(default="", alias="confirmationMessage")
    custom_closed_form_message: str = Field(default="", alias="customClosedFormMessage")


class SnapshotDocument(_WireModel):
    metadata: MetadataPayload = Field(default_factory=MetadataPayload)
    items: list[ItemPayload] = Field(default_factory=list)


def parse_snapshot_document(payload: object, *, fallback_form_id: str = "") -> FormSnapshot:
    document = SnapshotDocument.model_validate(payload)
    items = [_build_item(item, position) for position, item in enumerate(document.items)]
    metadata = document.metadata
    return FormSnapshot(
        metadata=FormMetadata(
            form_id=metadata.id or fallback_form_id,
            title=metadata.title,
            item_count=metadata.count if metadata.count is not None else len(items),
            description=metadata.description,
            published_url=metadata.published_url,
            editor_emails=tuple(metadata.editor_emails),
            confirmation_message=metadata.confirmation_message,
            custom_closed_form_message=metadata.custom_closed_form_message,
        ),
        items=tuple(items),
    )


def _directive(kind: NavigationKind, target_id: int | None) -> NavigationDirective:
    if kind == NavigationKind.GO_TO_PAGE:
        return NavigationDirective(kind=kind, target_id=target_id)
    return NavigationDirective(kind=kind)


def _choices(payload: ItemPayload, *, navigable: bool) -> tuple[Choice, ...] | None:
    if payload.choices is None:
        return None
    choices: list[Choice] = []
    for raw in payload.choices:
        if isinstance(raw, str):
            choices.append(Choice(value=raw, navigation=NavigationDirective.continue_() if navigable else None))
            continue
        navigation = None
        if navigable:
            navigation = (
                _directive(raw.navigation.type, raw.navigation.target_id)
                if raw.navigation is not None
                else NavigationDirective.continue_()
            )
        choices.append(Choice(value=raw.value, navigation=navigation))
    return tuple(choices)


def _common_fields(payload: ItemPayload, position: int) -> dict[str, Any]:
    return {
        "item_id": payload.id,
        "index": payload.index if payload.index is not None else position,
        "title": payload.title or None,
        "help_text": payload.help_text or None,
        "required": payload.is_required,
    }


def _build_choice_item(variant: type[FormItem], *, navigable: bool) -> Callable[[ItemPayload, int], FormItem]:
    def build(payload: ItemPayload, position: int) -> FormItem:
        return variant(
            **_common_fields(payload, position),
            choices=_choices(payload, navigable=navigable),
            has_other_option=payload.has_other_option,
        )

    return build


def _build_scale(payload: ItemPayload, position: int) -> FormItem:
    return ScaleItem(
        **_common_fields(payload, position),
        lower_bound=payload.lower_bound,
        upper_bound=payload.upper_bound,
        left_label=payload.left_label or None,
        right_label=payload.right_label or None,
    )


def _build_image(payload: ItemPayload, position: int) -> FormItem:
    blob = payload.image_blob or ImageBlobPayload()
    return ImageItem(
        **_common_fields(payload, position),
        alignment=payload.alignment,
        image=ImageBlob(data_base64=blob.data_as_string, name=blob.name, is_google_type=blob.is_google_type),
    )


def _build_page_break(payload: ItemPayload, position: int) -> FormItem:
    return PageBreakItem(
        **_common_fields(payload, position),
        navigation=_directive(payload.page_navigation_type, payload.go_to_page_id),
    )


def _build_video(payload: ItemPayload, position: int) -> FormItem:
    return VideoItem(**_common_fields(payload, position), alignment=payload.alignment)


_ITEM_BUILDERS: dict[str, Callable[[ItemPayload, int], FormItem]] = {
    TextItem.TYPE_TAG: lambda payload, position: TextItem(**_common_fields(payload, position)),
    ParagraphTextItem.TYPE_TAG: lambda payload, position: ParagraphTextItem(**_common_fields(payload, position)),
    MultipleChoiceItem.TYPE_TAG: _build_choice_item(MultipleChoiceItem, navigable=True),
    ListItem.TYPE_TAG: _build_choice_item(ListItem, navigable=True),
    CheckboxItem.TYPE_TAG: _build_choice_item(CheckboxItem, navigable=False),
    ScaleItem.TYPE_TAG: _build_scale,
    ImageItem.TYPE_TAG: _build_image,
    PageBreakItem.TYPE_TAG: _build_page_break,
    VideoItem.TYPE_TAG: _build_video,
}


def _build_item(payload: ItemPayload, position: int) -> FormItem:
    tag = payload.type.strip().upper()
    builder = _ITEM_BUILDERS.get(tag)
    if builder is None:
        return UnclassifiedItem(**_common_fields(payload, position), raw_type=tag)
    return builder(payload, position)


class SnapshotFileProvider:
    provider_id = "file"

    def __init__(self, settings: Settings, *, s3_client: Any | None = None) -> None:
        self._settings = settings
        self._s3_client = s3_client

    def resolve_location(self, form_id: str) -> str:
        raw = form_id.strip()
        if raw.lower().startswith("s3://") or raw.lower().endswith(".json") or "/" in raw:
            return raw
        root = self._settings.snapshot_root.rstrip("/")
        return f"{root}/{raw}.json"

    def fetch_snapshot(self, form_id: str) -> FormSnapshot:
        if not form_id.strip():
            raise FormProviderError("No snapshot id or path was given.")
        location = self.resolve_location(form_id)
        try:
            raw = load_bytes(location, settings=self._settings, s3_client=self._s3_client)
            payload = json.loads(raw.decode("utf-8"))
            snapshot = parse_snapshot_document(payload, fallback_form_id=form_id.strip())
        except (StorageError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise FormProviderError(f"Could not read snapshot '{location}': {exc}") from exc
        except (ValidationError, SnapshotIntegrityError) as exc:
            raise FormProviderError(f"Snapshot '{location}' is not a valid form document: {exc}") from exc

        logger.info(
            "snapshot_loaded",
            extra={"event": "snapshot_loaded", "location": location, "item_count": len(snapshot.items)},
        )
        return snapshot
