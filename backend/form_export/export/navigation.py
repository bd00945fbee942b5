from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence

from form_export.export.rich_text import to_markdown
from form_export.forms.model import FormItem, NavigationDirective, NavigationKind, PageBreakItem

logger = logging.getLogger("form_export.navigation")

CONTINUE_SUMMARY = "Continue to next section"
SUBMIT_LABEL = "**Submit form**"
INLINE_ARROW = " → "


@dataclass(frozen=True)
class SectionEntry:
    number: int
    title: str


SectionIndex = dict[int, SectionEntry]


def build_section_index(items: Sequence[FormItem]) -> SectionIndex:
    index: SectionIndex = {}
    section_number = 0
    for position, item in enumerate(items):
        if not isinstance(item, PageBreakItem):
            continue
        section_number += 1
        index[position] = SectionEntry(
            number=section_number,
            title=item.title or f"Section {section_number}",
        )
    return index


@dataclass(frozen=True)
class ResolvedNavigation:
    kind: NavigationKind
    section_number: int | None = None
    section_title: str = ""

    def label(self) -> str:
        if self.kind == NavigationKind.SUBMIT:
            return SUBMIT_LABEL
        if self.kind == NavigationKind.GO_TO_PAGE:
            return f"**Go to section {self.section_number} ({self.section_title})**"
        return CONTINUE_SUMMARY


class NavigationResolver:
    """Resolves navigation directives against one snapshot's sections.

    The id-to-position table and the section index are built up front, so a
    jump to a section that appears later in the form resolves the same way as
    a jump backwards.
    """

    def __init__(self, items: Sequence[FormItem], section_index: SectionIndex | None = None) -> None:
        self._section_index = section_index if section_index is not None else build_section_index(items)
        self._positions_by_id: dict[int, int] = {}
        for position, item in enumerate(items):
            self._positions_by_id.setdefault(item.item_id, position)

    @property
    def section_index(self) -> SectionIndex:
        return self._section_index

    def resolve(self, directive: NavigationDirective | None) -> ResolvedNavigation | None:
        if directive is None:
            return None
        if directive.kind == NavigationKind.CONTINUE:
            return ResolvedNavigation(kind=NavigationKind.CONTINUE)
        if directive.kind == NavigationKind.SUBMIT:
            return ResolvedNavigation(kind=NavigationKind.SUBMIT)

        target_id = directive.target_id
        position = self._positions_by_id.get(target_id) if target_id is not None else None
        section = self._section_index.get(position) if position is not None else None
        if section is None:
            # Dangling targets render as nothing; callers are not told.
            logger.debug(
                "navigation_target_unresolved",
                extra={"event": "navigation_target_unresolved", "target_id": target_id},
            )
            return None
        return ResolvedNavigation(
            kind=NavigationKind.GO_TO_PAGE,
            section_number=section.number,
            section_title=to_markdown(section.title),
        )

    def inline_annotation(self, directive: NavigationDirective | None) -> str:
        resolved = self.resolve(directive)
        if resolved is None or resolved.kind == NavigationKind.CONTINUE:
            return ""
        return f"{INLINE_ARROW}{resolved.label()}"

    def section_summary(self, directive: NavigationDirective | None) -> str:
        resolved = self.resolve(directive)
        if resolved is None:
            return ""
        return resolved.label()
