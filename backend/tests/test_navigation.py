from __future__ import annotations

from form_export.export.navigation import NavigationResolver, build_section_index
from form_export.forms.model import (
    MultipleChoiceItem,
    NavigationDirective,
    PageBreakItem,
    TextItem,
)


def _items() -> list:
    return [
        TextItem(item_id=100, index=0, title="Name"),
        PageBreakItem(item_id=200, index=1, title="Intro"),
        MultipleChoiceItem(item_id=300, index=2, title="Skip ahead?"),
        PageBreakItem(item_id=400, index=3),
        PageBreakItem(item_id=500, index=4, title="<b>End</b>"),
    ]


def test_section_numbers_are_sequential_over_page_breaks_only() -> None:
    index = build_section_index(_items())
    assert sorted(index) == [1, 3, 4]
    assert [index[position].number for position in sorted(index)] == [1, 2, 3]
    assert index[1].title == "Intro"
    assert index[3].title == "Section 2"


def test_continue_has_no_inline_text_but_a_summary() -> None:
    resolver = NavigationResolver(_items())
    assert resolver.inline_annotation(NavigationDirective.continue_()) == ""
    assert resolver.section_summary(NavigationDirective.continue_()) == "Continue to next section"


def test_submit_renders_bold_label_both_ways() -> None:
    resolver = NavigationResolver(_items())
    assert resolver.inline_annotation(NavigationDirective.terminate()) == " → **Submit form**"
    assert resolver.section_summary(NavigationDirective.terminate()) == "**Submit form**"


def test_forward_jump_resolves_with_converted_title() -> None:
    resolver = NavigationResolver(_items())
    assert resolver.inline_annotation(NavigationDirective.jump_to(500)) == " → **Go to section 3 (**End**)**"


def test_backward_jump_resolves_the_same_way() -> None:
    resolver = NavigationResolver(_items())
    assert resolver.section_summary(NavigationDirective.jump_to(200)) == "**Go to section 1 (Intro)**"


def test_untitled_target_uses_default_section_title() -> None:
    resolver = NavigationResolver(_items())
    assert resolver.section_summary(NavigationDirective.jump_to(400)) == "**Go to section 2 (Section 2)**"


def test_unknown_or_non_section_target_resolves_to_nothing() -> None:
    resolver = NavigationResolver(_items())
    assert resolver.resolve(NavigationDirective.jump_to(999)) is None
    assert resolver.inline_annotation(NavigationDirective.jump_to(999)) == ""
    assert resolver.section_summary(NavigationDirective.jump_to(100)) == ""


def test_missing_directive_resolves_to_nothing() -> None:
    resolver = NavigationResolver(_items())
    assert resolver.inline_annotation(None) == ""
    assert resolver.section_summary(None) == ""
