from form_export.export.composer import compose_form_markdown
from form_export.export.navigation import NavigationResolver, ResolvedNavigation, SectionEntry, build_section_index
from form_export.export.normalizer import normalize_item
from form_export.export.rich_text import to_markdown
from form_export.export.structured import export_structured, serialize_structured

__all__ = [
    "NavigationResolver",
    "ResolvedNavigation",
    "SectionEntry",
    "build_section_index",
    "compose_form_markdown",
    "export_structured",
    "normalize_item",
    "serialize_structured",
    "to_markdown",
]
