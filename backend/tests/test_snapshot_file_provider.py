from __future__ import annotations

import json
from pathlib import Path

import pytest

from form_export.config import Settings
from form_export.export import compose_form_markdown, export_structured, serialize_structured
from form_export.forms import FormProviderError, SnapshotFileProvider, parse_snapshot_document
from form_export.forms.model import (
    CheckboxItem,
    Choice,
    FormMetadata,
    FormSnapshot,
    MultipleChoiceItem,
    NavigationDirective,
    NavigationKind,
    PageBreakItem,
    TextItem,
    UnclassifiedItem,
)


def _enriched_document() -> dict[str, object]:
    return {
        "metadata": {"title": "Survey", "id": "form-1", "description": "", "count": 3},
        "items": [
            {"type": "PAGE_BREAK", "id": 10, "title": "Intro"},
            {
                "type": "MULTIPLE_CHOICE",
                "id": 11,
                "title": "Finished?",
                "isRequired": True,
                "choices": [
                    "No",
                    {"value": "Yes", "navigation": {"type": "GO_TO_PAGE", "targetId": 12}},
                ],
                "hasOtherOption": False,
            },
            {"type": "PAGE_BREAK", "id": 12, "title": "End", "pageNavigationType": "SUBMIT"},
        ],
    }


def _write(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_enriched_document_maps_navigation() -> None:
    snapshot = parse_snapshot_document(_enriched_document())

    assert snapshot.metadata.form_id == "form-1"
    assert [item.index for item in snapshot.items] == [0, 1, 2]
    question = snapshot.items[1]
    assert isinstance(question, MultipleChoiceItem)
    assert question.required is True
    assert question.choices == (
        Choice("No", NavigationDirective.continue_()),
        Choice("Yes", NavigationDirective.jump_to(12)),
    )
    end = snapshot.items[2]
    assert isinstance(end, PageBreakItem)
    assert end.navigation.kind == NavigationKind.SUBMIT
    assert "- Yes → **Go to section 2 (End)**" in compose_form_markdown(snapshot).split("\n")


def test_structured_export_can_be_read_back() -> None:
    original = FormSnapshot(
        metadata=FormMetadata(form_id="form-2", title="Pets", item_count=3, editor_emails=("owner@example.org",)),
        items=(
            TextItem(item_id=1, index=0, title="Name", help_text="Full name"),
            CheckboxItem(item_id=2, index=1, title="Pets", choices=(Choice("Cat"), Choice("Dog")), has_other_option=True),
            UnclassifiedItem(item_id=3, index=2, title="Born", raw_type="DATE"),
        ),
    )
    exported = json.loads(serialize_structured(export_structured(original)))

    restored = parse_snapshot_document(exported)

    assert export_structured(restored) == export_structured(original)
    assert isinstance(restored.items[1], CheckboxItem)
    assert restored.items[1].choices == (Choice("Cat"), Choice("Dog"))


def test_count_mismatch_is_an_integrity_error() -> None:
    document = _enriched_document()
    document["metadata"]["count"] = 5  # type: ignore[index]
    with pytest.raises(ValueError, match="5 item"):
        parse_snapshot_document(document)


def test_provider_reads_snapshot_by_id_from_root(tmp_path: Path) -> None:
    _write(tmp_path / "form-1.json", _enriched_document())
    provider = SnapshotFileProvider(Settings(snapshot_root=str(tmp_path)))

    snapshot = provider.fetch_snapshot("form-1")

    assert snapshot.metadata.title == "Survey"
    assert len(snapshot.items) == 3


def test_provider_accepts_explicit_path_and_falls_back_to_id(tmp_path: Path) -> None:
    document = _enriched_document()
    document["metadata"] = {"title": "Untitled id"}
    path = tmp_path / "nested" / "snapshot.json"
    path.parent.mkdir()
    _write(path, document)

    snapshot = SnapshotFileProvider(Settings()).fetch_snapshot(str(path))

    assert snapshot.metadata.form_id == str(path)
    assert snapshot.metadata.item_count == 3


def test_provider_wraps_missing_and_invalid_files(tmp_path: Path) -> None:
    provider = SnapshotFileProvider(Settings(snapshot_root=str(tmp_path)))
    with pytest.raises(FormProviderError, match="Could not read snapshot"):
        provider.fetch_snapshot("missing")

    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(FormProviderError, match="Could not read snapshot"):
        provider.fetch_snapshot("broken")

    _write(tmp_path / "invalid.json", {"items": [{"title": "no type or id"}]})
    with pytest.raises(FormProviderError, match="not a valid form document"):
        provider.fetch_snapshot("invalid")

    with pytest.raises(FormProviderError, match="No snapshot id"):
        provider.fetch_snapshot("  ")
