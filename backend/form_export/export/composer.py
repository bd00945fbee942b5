from __future__ import annotations

from typing import Any, Callable

from form_export.export.navigation import NavigationResolver, build_section_index
from form_export.export.rich_text import to_markdown
from form_export.forms.model import (
    CheckboxItem,
    ChoiceItem,
    FormItem,
    FormSnapshot,
    ListItem,
    MultipleChoiceItem,
    PageBreakItem,
    ParagraphTextItem,
    ScaleItem,
    TextItem,
)

OTHER_OPTION_LINE = "- Other: _text response_"
# The heading counter is incremented before use, so the first question reads "Q2".
_QUESTION_COUNTER_START = 1

# Keyed by exact item type, so each renderer only sees its own variant.
BodyRenderer = Callable[[Any, NavigationResolver], list[str]]


def compose_form_markdown(snapshot: FormSnapshot) -> str:
    items = snapshot.items
    lines: list[str] = [f"# {snapshot.metadata.title}"]
    if snapshot.metadata.description:
        lines.append("")
        lines.append(to_markdown(snapshot.metadata.description))
    lines.append("")

    resolver = NavigationResolver(items, build_section_index(items))
    question_counter = _QUESTION_COUNTER_START
    section_counter = 0
    open_page_break: PageBreakItem | None = None

    for item in items:
        if isinstance(item, PageBreakItem):
            if open_page_break is not None:
                default_navigation = resolver.section_summary(open_page_break.navigation)
                if default_navigation:
                    lines.extend(["", f"_Default: {default_navigation}_", ""])

            section_counter += 1
            open_page_break = item
            if item.title:
                lines.append("")
                lines.append(f"## Section {section_counter}: {to_markdown(item.title)}")
                if item.help_text:
                    lines.append("")
                    lines.append(to_markdown(item.help_text))
                lines.append("")
            continue

        if not item.title:
            continue

        question_counter += 1
        lines.append(f"### Q{question_counter}. {to_markdown(item.title)}")
        if item.help_text:
            lines.append("")
            lines.append(f"_{to_markdown(item.help_text)}_")

        lines.append("")
        lines.extend(render_item_body(item, resolver))
        lines.append("")

    if open_page_break is not None:
        default_navigation = resolver.section_summary(open_page_break.navigation)
        if default_navigation:
            lines.extend(["", f"_Default: {default_navigation}_"])

    return "\n".join(lines)


def render_item_body(item: FormItem, resolver: NavigationResolver) -> list[str]:
    renderer = _BODY_RENDERERS.get(type(item), _render_fallback)
    return renderer(item, resolver)


def _render_text(item: FormItem, resolver: NavigationResolver) -> list[str]:
    del item, resolver
    return ["_Open text response_"]


def _render_paragraph_text(item: FormItem, resolver: NavigationResolver) -> list[str]:
    del item, resolver
    return ["_Long open text response_"]


def _render_navigable_choices(label: str) -> BodyRenderer:
    def render(item: ChoiceItem, resolver: NavigationResolver) -> list[str]:
        lines = [label, ""]
        for choice in item.available_choices:
            navigation_text = resolver.inline_annotation(choice.navigation)
            lines.append(f"- {to_markdown(choice.value)}{navigation_text}")
        if item.has_other_option:
            lines.append(OTHER_OPTION_LINE)
        return lines

    return render


def _render_checkbox(item: CheckboxItem, resolver: NavigationResolver) -> list[str]:
    del resolver
    lines = ["_Select all that apply_", ""]
    lines.extend(f"- {to_markdown(choice.value)}" for choice in item.available_choices)
    if item.has_other_option:
        lines.append(OTHER_OPTION_LINE)
    return lines


def _render_scale(item: ScaleItem, resolver: NavigationResolver) -> list[str]:
    del resolver
    line = f"Scale: {item.lower_bound} to {item.upper_bound}"
    if item.left_label or item.right_label:
        line += f" ({to_markdown(item.left_label or '')} … {to_markdown(item.right_label or '')})"
    return [line]


def _render_fallback(item: FormItem, resolver: NavigationResolver) -> list[str]:
    del resolver
    return [f"_Item type: {item.type_tag} (not specially formatted)_"]


_BODY_RENDERERS: dict[type[FormItem], BodyRenderer] = {
    TextItem: _render_text,
    ParagraphTextItem: _render_paragraph_text,
    MultipleChoiceItem: _render_navigable_choices("_Single choice_"),
    ListItem: _render_navigable_choices("_Dropdown (single choice)_"),
    CheckboxItem: _render_checkbox,
    ScaleItem: _render_scale,
}
