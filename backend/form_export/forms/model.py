"""Immutable snapshot of a form's structure.

Every item variant is a frozen dataclass sharing the common fields of
:class:`FormItem`. The set of variants is closed; anything a provider cannot
classify becomes an :class:`UnclassifiedItem` carrying its raw type tag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar


class SnapshotIntegrityError(ValueError):
    """Raised when a snapshot's metadata and item sequence disagree."""


class NavigationKind(str, Enum):
    CONTINUE = "CONTINUE"
    SUBMIT = "SUBMIT"
    GO_TO_PAGE = "GO_TO_PAGE"


@dataclass(frozen=True)
class NavigationDirective:
    kind: NavigationKind
    target_id: int | None = None

    @classmethod
    def continue_(cls) -> NavigationDirective:
        return cls(kind=NavigationKind.CONTINUE)

    @classmethod
    def terminate(cls) -> NavigationDirective:
        return cls(kind=NavigationKind.SUBMIT)

    @classmethod
    def jump_to(cls, target_id: int) -> NavigationDirective:
        return cls(kind=NavigationKind.GO_TO_PAGE, target_id=target_id)


@dataclass(frozen=True)
class Choice:
    value: str
    # Always None for checkbox choices.
    navigation: NavigationDirective | None = None


@dataclass(frozen=True)
class ImageBlob:
    data_base64: str
    name: str
    is_google_type: bool = False


@dataclass(frozen=True)
class FormItem:
    TYPE_TAG: ClassVar[str] = ""

    item_id: int
    index: int
    title: str | None = None
    help_text: str | None = None
    required: bool = False

    @property
    def type_tag(self) -> str:
        return self.TYPE_TAG


@dataclass(frozen=True)
class TextItem(FormItem):
    TYPE_TAG: ClassVar[str] = "TEXT"


@dataclass(frozen=True)
class ParagraphTextItem(FormItem):
    TYPE_TAG: ClassVar[str] = "PARAGRAPH_TEXT"


@dataclass(frozen=True)
class ChoiceItem(FormItem):
    # None means the provider could not retrieve the choice list.
    choices: tuple[Choice, ...] | None = ()
    has_other_option: bool = False

    @property
    def available_choices(self) -> tuple[Choice, ...]:
        return self.choices or ()


@dataclass(frozen=True)
class MultipleChoiceItem(ChoiceItem):
    TYPE_TAG: ClassVar[str] = "MULTIPLE_CHOICE"


@dataclass(frozen=True)
class CheckboxItem(ChoiceItem):
    TYPE_TAG: ClassVar[str] = "CHECKBOX"


@dataclass(frozen=True)
class ListItem(ChoiceItem):
    TYPE_TAG: ClassVar[str] = "LIST"


@dataclass(frozen=True)
class ScaleItem(FormItem):
    TYPE_TAG: ClassVar[str] = "SCALE"

    lower_bound: int = 1
    upper_bound: int = 5
    left_label: str | None = None
    right_label: str | None = None


@dataclass(frozen=True)
class ImageItem(FormItem):
    TYPE_TAG: ClassVar[str] = "IMAGE"

    alignment: str = "LEFT"
    image: ImageBlob = field(default_factory=lambda: ImageBlob(data_base64="", name=""))


@dataclass(frozen=True)
class PageBreakItem(FormItem):
    TYPE_TAG: ClassVar[str] = "PAGE_BREAK"

    navigation: NavigationDirective = field(default_factory=NavigationDirective.continue_)


@dataclass(frozen=True)
class VideoItem(FormItem):
    TYPE_TAG: ClassVar[str] = "VIDEO"

    alignment: str = "LEFT"


@dataclass(frozen=True)
class UnclassifiedItem(FormItem):
    raw_type: str = "UNKNOWN"

    @property
    def type_tag(self) -> str:
        return self.raw_type


ITEM_VARIANTS: tuple[type[FormItem], ...] = (
    TextItem,
    ParagraphTextItem,
    MultipleChoiceItem,
    CheckboxItem,
    ListItem,
    ScaleItem,
    ImageItem,
    PageBreakItem,
    VideoItem,
    UnclassifiedItem,
)
ITEM_VARIANTS_BY_TAG: dict[str, type[FormItem]] = {
    variant.TYPE_TAG: variant for variant in ITEM_VARIANTS if variant.TYPE_TAG
}


@dataclass(frozen=True)
class FormMetadata:
    form_id: str
    title: str
    item_count: int
    description: str = ""
    published_url: str = ""
    editor_emails: tuple[str, ...] = ()
    confirmation_message: str = ""
    custom_closed_form_message: str = ""


@dataclass(frozen=True)
class FormSnapshot:
    metadata: FormMetadata
    items: tuple[FormItem, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))
        if self.metadata.item_count != len(self.items):
            raise SnapshotIntegrityError(
                f"Metadata reports {self.metadata.item_count} item(s) but the snapshot holds {len(self.items)}."
            )
        for position, item in enumerate(self.items):
            if item.index != position:
                raise SnapshotIntegrityError(
                    f"Item {item.item_id} has index {item.index} at sequence position {position}."
                )
