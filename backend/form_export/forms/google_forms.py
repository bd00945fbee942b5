"""Form provider backed by the Google Forms REST API.

Items are mapped onto the closed set of variants in :mod:`form_export.forms.model`.
Question kinds without a dedicated variant (date, time, grids, uploads, ratings)
become :class:`UnclassifiedItem` so the exports can still mention them.
"""

from __future__ import annotations

import base64
import logging
import zlib
from typing import Any, Callable

import httpx
from google.auth import default as google_auth_default
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

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
    PageBreakItem,
    ParagraphTextItem,
    ScaleItem,
    TextItem,
    UnclassifiedItem,
    VideoItem,
)

logger = logging.getLogger("form_export.google_forms")

GOOGLE_FORMS_SCOPES = [
    "https://www.googleapis.com/auth/forms.body.readonly",
    "https://www.googleapis.com/auth/drive.metadata.readonly",
]
EDITOR_ROLES = {"owner", "writer"}

_CHOICE_VARIANTS: dict[str, type[FormItem]] = {
    "RADIO": MultipleChoiceItem,
    "CHECKBOX": CheckboxItem,
    "DROP_DOWN": ListItem,
}
_GO_TO_ACTIONS: dict[str, Callable[[], NavigationDirective]] = {
    "NEXT_SECTION": NavigationDirective.continue_,
    "SUBMIT_FORM": NavigationDirective.terminate,
    # Restarting the form has no section-level equivalent.
    "RESTART_FORM": NavigationDirective.continue_,
}


def parse_item_id(raw_id: object) -> int:
    """Google hands out hexadecimal item ids; anything else is hashed to a stable integer."""
    text = str(raw_id or "").strip()
    try:
        return int(text, 16)
    except ValueError:
        return zlib.crc32(text.encode("utf-8"))


def _alignment(payload: dict[str, Any]) -> str:
    properties = payload.get("properties")
    if isinstance(properties, dict):
        return str(properties.get("alignment") or "LEFT")
    return "LEFT"


def _option_navigation(option: dict[str, Any]) -> NavigationDirective:
    section_id = option.get("goToSectionId")
    if section_id:
        return NavigationDirective.jump_to(parse_item_id(section_id))
    action = str(option.get("goToAction") or "NEXT_SECTION")
    factory = _GO_TO_ACTIONS.get(action, NavigationDirective.continue_)
    return factory()


def _question_tag(question: dict[str, Any]) -> str:
    if "dateQuestion" in question:
        return "DATETIME" if question["dateQuestion"].get("includeTime") else "DATE"
    if "timeQuestion" in question:
        return "DURATION" if question["timeQuestion"].get("duration") else "TIME"
    if "fileUploadQuestion" in question:
        return "FILE_UPLOAD"
    if "ratingQuestion" in question:
        return "RATING"
    return "QUESTION"


class GoogleFormsProvider:
    provider_id = "google"

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: httpx.Client | None = None,
        credentials: Any | None = None,
    ) -> None:
        self._settings = settings
        self._http = http_client or httpx.Client(timeout=settings.google_request_timeout_seconds)
        self._credentials = credentials

    def _build_credentials(self) -> Any:
        key_path = self._settings.google_application_credentials.strip()
        try:
            if key_path:
                return service_account.Credentials.from_service_account_file(key_path, scopes=GOOGLE_FORMS_SCOPES)
            credentials, _ = google_auth_default(scopes=GOOGLE_FORMS_SCOPES)
            return credentials
        except (GoogleAuthError, OSError, ValueError) as exc:
            raise FormProviderError(f"Could not load Google credentials: {exc}") from exc

    def _auth_headers(self) -> dict[str, str]:
        if self._credentials is None:
            self._credentials = self._build_credentials()
        if not self._credentials.valid:
            try:
                self._credentials.refresh(GoogleAuthRequest())
            except GoogleAuthError as exc:
                raise FormProviderError(f"Could not refresh Google credentials: {exc}") from exc
        return {"Authorization": f"Bearer {self._credentials.token}"}

    def _get_json(self, url: str, *, headers: dict[str, str], params: dict[str, str] | None = None) -> dict[str, Any]:
        try:
            response = self._http.get(url, headers=headers, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise FormProviderError(
                f"Google API returned HTTP {exc.response.status_code} for '{url}'."
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise FormProviderError(f"Google API request to '{url}' failed: {exc}") from exc
        if not isinstance(payload, dict):
            raise FormProviderError(f"Google API returned an unexpected payload for '{url}'.")
        return payload

    def fetch_snapshot(self, form_id: str) -> FormSnapshot:
        form_id = form_id.strip()
        if not form_id:
            raise FormProviderError("No form id configured.")

        headers = self._auth_headers()
        base = self._settings.google_forms_api_base.rstrip("/")
        payload = self._get_json(f"{base}/forms/{form_id}", headers=headers)

        raw_items = payload.get("items") or []
        try:
            items = [self._map_item(raw, position) for position, raw in enumerate(raw_items) if isinstance(raw, dict)]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise FormProviderError(f"Form '{form_id}' returned an item the exporter cannot read: {exc}") from exc
        info = payload.get("info") or {}
        editors = self._fetch_editor_emails(form_id, headers) if self._settings.include_editor_emails else []

        logger.info(
            "form_fetched",
            extra={"event": "form_fetched", "form_id": form_id, "item_count": len(items)},
        )
        return FormSnapshot(
            metadata=FormMetadata(
                form_id=str(payload.get("formId") or form_id),
                title=str(info.get("title") or info.get("documentTitle") or ""),
                item_count=len(items),
                description=str(info.get("description") or ""),
                published_url=str(payload.get("responderUri") or ""),
                editor_emails=tuple(editors),
            ),
            items=tuple(items),
        )

    def _fetch_editor_emails(self, form_id: str, headers: dict[str, str]) -> list[str]:
        base = self._settings.google_drive_api_base.rstrip("/")
        try:
            payload = self._get_json(
                f"{base}/files/{form_id}/permissions",
                headers=headers,
                params={"fields": "permissions(emailAddress,role)", "supportsAllDrives": "true"},
            )
        except FormProviderError as exc:
            logger.warning(
                "editor_emails_unavailable",
                extra={"event": "editor_emails_unavailable", "form_id": form_id, "error": str(exc)},
            )
            return []

        emails: list[str] = []
        for permission in payload.get("permissions") or []:
            if not isinstance(permission, dict) or permission.get("role") not in EDITOR_ROLES:
                continue
            email = str(permission.get("emailAddress") or "").strip()
            if email and email not in emails:
                emails.append(email)
        return emails

    def _download_image(self, item_id: int, content_uri: str) -> str:
        if not content_uri or not self._settings.download_images:
            return ""
        try:
            response = self._http.get(content_uri)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "image_download_failed",
                extra={"event": "image_download_failed", "item_id": item_id, "error": str(exc)},
            )
            return ""
        return base64.b64encode(response.content).decode("ascii")

    def _map_item(self, raw: dict[str, Any], position: int) -> FormItem:
        common: dict[str, Any] = {
            "item_id": parse_item_id(raw.get("itemId")),
            "index": position,
            "title": raw.get("title") or None,
            "help_text": raw.get("description") or None,
        }

        if "questionItem" in raw:
            question = (raw["questionItem"] or {}).get("question") or {}
            return self._map_question(question, common)
        if "questionGroupItem" in raw:
            grid = (raw["questionGroupItem"] or {}).get("grid") or {}
            columns = grid.get("columns") or {}
            tag = "CHECKBOX_GRID" if columns.get("type") == "CHECKBOX" else "GRID"
            return UnclassifiedItem(**common, raw_type=tag)
        if "pageBreakItem" in raw:
            return PageBreakItem(**common, navigation=NavigationDirective.continue_())
        if "textItem" in raw:
            return UnclassifiedItem(**common, raw_type="SECTION_HEADER")
        if "imageItem" in raw:
            image = (raw["imageItem"] or {}).get("image") or {}
            return ImageItem(
                **common,
                alignment=_alignment(image),
                image=ImageBlob(
                    data_base64=self._download_image(common["item_id"], str(image.get("contentUri") or "")),
                    name=str(image.get("altText") or ""),
                ),
            )
        if "videoItem" in raw:
            video = (raw["videoItem"] or {}).get("video") or {}
            return VideoItem(**common, alignment=_alignment(video))
        return UnclassifiedItem(**common, raw_type="UNKNOWN")

    def _map_question(self, question: dict[str, Any], common: dict[str, Any]) -> FormItem:
        common = {**common, "required": bool(question.get("required", False))}

        if "choiceQuestion" in question:
            choice_question = question["choiceQuestion"] or {}
            choice_type = str(choice_question.get("type") or "")
            variant = _CHOICE_VARIANTS.get(choice_type)
            if variant is None:
                return UnclassifiedItem(**common, raw_type=choice_type or "CHOICE")
            choices, has_other = self._map_options(choice_question.get("options"), navigable=variant is not CheckboxItem)
            return variant(**common, choices=choices, has_other_option=has_other)
        if "textQuestion" in question:
            paragraph = bool((question["textQuestion"] or {}).get("paragraph"))
            return ParagraphTextItem(**common) if paragraph else TextItem(**common)
        if "scaleQuestion" in question:
            scale = question["scaleQuestion"] or {}
            # Proto3 JSON omits zero values, so a missing bound means 0.
            return ScaleItem(
                **common,
                lower_bound=int(scale.get("low", 0)),
                upper_bound=int(scale.get("high", 0)),
                left_label=scale.get("lowLabel") or None,
                right_label=scale.get("highLabel") or None,
            )
        return UnclassifiedItem(**common, raw_type=_question_tag(question))

    def _map_options(self, options: object, *, navigable: bool) -> tuple[tuple[Choice, ...] | None, bool]:
        if not isinstance(options, list):
            return None, False
        choices: list[Choice] = []
        has_other = False
        for option in options:
            if not isinstance(option, dict):
                continue
            if option.get("isOther"):
                has_other = True
                continue
            navigation = _option_navigation(option) if navigable else None
            choices.append(Choice(value=str(option.get("value") or ""), navigation=navigation))
        return tuple(choices), has_other
