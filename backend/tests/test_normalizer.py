from __future__ import annotations

import logging

from form_export.export.normalizer import normalize_item
from form_export.forms.model import (
    CheckboxItem,
    Choice,
    ImageBlob,
    ImageItem,
    ListItem,
    MultipleChoiceItem,
    NavigationDirective,
    PageBreakItem,
    ScaleItem,
    TextItem,
    UnclassifiedItem,
    VideoItem,
)

COMMON_KEYS = ["type", "title", "helpText", "id", "index", "isRequired", "points"]


def test_text_item_has_only_common_fields() -> None:
    record = normalize_item(TextItem(item_id=11, index=0, title="Name", required=True))
    assert list(record) == COMMON_KEYS
    assert record == {
        "type": "TEXT",
        "title": "Name",
        "helpText": "",
        "id": 11,
        "index": 0,
        "isRequired": True,
        "points": 0,
    }


def test_free_text_is_copied_without_conversion() -> None:
    record = normalize_item(TextItem(item_id=1, index=0, title="<b>Name</b>", help_text="a<br>b"))
    assert record["title"] == "<b>Name</b>"
    assert record["helpText"] == "a<br>b"


def test_choice_items_export_values_and_other_flag() -> None:
    item = MultipleChoiceItem(
        item_id=2,
        index=0,
        title="Colour",
        choices=(
            Choice("Red", NavigationDirective.continue_()),
            Choice("Blue", NavigationDirective.terminate()),
        ),
        has_other_option=True,
    )
    record = normalize_item(item)
    assert record["choices"] == ["Red", "Blue"]
    assert record["hasOtherOption"] is True

    checkbox = normalize_item(CheckboxItem(item_id=3, index=0, choices=(Choice("A"),)))
    assert checkbox["choices"] == ["A"]
    assert checkbox["hasOtherOption"] is False


def test_unavailable_choices_degrade_to_empty_list_with_error_log(caplog) -> None:
    item = ListItem(item_id=4, index=0, title="Pick", choices=None)
    with caplog.at_level(logging.ERROR, logger="form_export.normalizer"):
        record = normalize_item(item)

    assert record["choices"] == []
    assert record["type"] == "LIST"
    failures = [r for r in caplog.records if getattr(r, "event", None) == "item_choices_unavailable"]
    assert failures
    assert failures[0].item_id == 4


def test_unreadable_choice_entries_degrade_to_empty_list(caplog) -> None:
    item = MultipleChoiceItem(item_id=5, index=0, choices=("not-a-choice",))  # type: ignore[arg-type]
    with caplog.at_level(logging.ERROR, logger="form_export.normalizer"):
        record = normalize_item(item)

    assert record["choices"] == []
    assert any(getattr(r, "event", None) == "item_choices_unreadable" for r in caplog.records)


def test_scale_item_fields() -> None:
    record = normalize_item(
        ScaleItem(item_id=6, index=0, lower_bound=0, upper_bound=10, left_label="Never", right_label=None)
    )
    assert record["lowerBound"] == 0
    assert record["upperBound"] == 10
    assert record["leftLabel"] == "Never"
    assert record["rightLabel"] == ""


def test_image_item_fields() -> None:
    record = normalize_item(
        ImageItem(item_id=7, index=0, alignment="CENTER", image=ImageBlob(data_base64="aGk=", name="logo.png"))
    )
    assert record["alignment"] == "CENTER"
    assert record["imageBlob"] == {"dataAsString": "aGk=", "name": "logo.png", "isGoogleType": False}


def test_page_break_reports_navigation_kind() -> None:
    assert normalize_item(PageBreakItem(item_id=8, index=0))["pageNavigationType"] == "CONTINUE"
    record = normalize_item(PageBreakItem(item_id=8, index=0, navigation=NavigationDirective.terminate()))
    assert record["pageNavigationType"] == "SUBMIT"


def test_video_item_reports_alignment_only() -> None:
    record = normalize_item(VideoItem(item_id=9, index=0, alignment="RIGHT"))
    assert list(record) == COMMON_KEYS + ["alignment"]
    assert record["alignment"] == "RIGHT"


def test_unclassified_item_keeps_raw_tag_and_common_fields() -> None:
    record = normalize_item(UnclassifiedItem(item_id=10, index=0, title="When?", raw_type="DATE"))
    assert list(record) == COMMON_KEYS
    assert record["type"] == "DATE"
