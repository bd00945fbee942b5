from __future__ import annotations

import pytest

from form_export.forms.model import (
    ITEM_VARIANTS_BY_TAG,
    CheckboxItem,
    FormMetadata,
    FormSnapshot,
    NavigationDirective,
    NavigationKind,
    PageBreakItem,
    SnapshotIntegrityError,
    TextItem,
    UnclassifiedItem,
)


def _metadata(count: int) -> FormMetadata:
    return FormMetadata(form_id="form-1", title="Survey", item_count=count)


def test_snapshot_rejects_count_mismatch() -> None:
    with pytest.raises(SnapshotIntegrityError, match="2 item"):
        FormSnapshot(metadata=_metadata(2), items=(TextItem(item_id=1, index=0, title="Name"),))


def test_snapshot_rejects_index_out_of_sequence() -> None:
    items = (
        TextItem(item_id=1, index=0, title="Name"),
        TextItem(item_id=2, index=5, title="Email"),
    )
    with pytest.raises(SnapshotIntegrityError, match="index 5"):
        FormSnapshot(metadata=_metadata(2), items=items)


def test_snapshot_accepts_list_and_stores_tuple() -> None:
    snapshot = FormSnapshot(metadata=_metadata(1), items=[TextItem(item_id=1, index=0)])  # type: ignore[arg-type]
    assert isinstance(snapshot.items, tuple)


def test_optional_fields_default_to_absent_or_false() -> None:
    item = TextItem(item_id=7, index=0)
    assert item.title is None
    assert item.help_text is None
    assert item.required is False


def test_page_break_defaults_to_continue() -> None:
    assert PageBreakItem(item_id=1, index=0).navigation == NavigationDirective.continue_()


def test_directive_constructors() -> None:
    assert NavigationDirective.terminate().kind == NavigationKind.SUBMIT
    jump = NavigationDirective.jump_to(42)
    assert jump.kind == NavigationKind.GO_TO_PAGE
    assert jump.target_id == 42


def test_unclassified_item_reports_raw_type_tag() -> None:
    assert UnclassifiedItem(item_id=1, index=0, raw_type="GRID").type_tag == "GRID"
    assert CheckboxItem(item_id=1, index=0).type_tag == "CHECKBOX"


def test_variant_lookup_covers_tagged_variants() -> None:
    assert ITEM_VARIANTS_BY_TAG["PAGE_BREAK"] is PageBreakItem
    assert "" not in ITEM_VARIANTS_BY_TAG
