"""Form field model definitions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from formbuilder.model.names import derive_id, slugify


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DROPDOWN = "dropdown"
    NUMBER_COMBO = "number-combo"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"
    LABEL = "label"
    TEXTAREA = "textarea"

    @property
    def has_options(self) -> bool:
        return self in CHOICE_TYPES

    @property
    def default_label(self) -> str:
        return self.value[:1].upper() + self.value[1:].replace("-", " ")


CHOICE_TYPES = frozenset(
    {FieldType.DROPDOWN, FieldType.NUMBER_COMBO, FieldType.RADIO, FieldType.CHECKBOX}
)

TEXT_PLACEHOLDER = "Enter text here"


@dataclass(frozen=True, slots=True)
class FieldOption:
    id: str
    label: str
    value: str

    @classmethod
    def from_label(cls, option_id: str, label: str) -> FieldOption:
        return cls(id=option_id, label=label, value=slugify(label))


@dataclass(frozen=True, slots=True)
class FormField:
    id: str
    field_type: FieldType
    name: str
    label: str
    placeholder: str = ""
    required: bool = False
    options: tuple[FieldOption, ...] | None = None
    default_value: Any = None

    def find_option(self, option_id: str) -> FieldOption | None:
        for option in self.options or ():
            if option.id == option_id:
                return option
        return None


def numbered_option(option_id: str, number: int) -> FieldOption:
    return FieldOption(id=option_id, label=f"Option {number}", value=f"option-{number}")


def build_field(field_id: str, field_type: FieldType, name: str) -> FormField:
    """Create a field with the per-type defaults shown when dropped from the palette."""
    placeholder = TEXT_PLACEHOLDER if field_type in (FieldType.TEXT, FieldType.TEXTAREA) else ""
    options = None
    if field_type.has_options:
        options = tuple(
            numbered_option(derive_id(field_id, number), number) for number in (1, 2)
        )
    return FormField(
        id=field_id,
        field_type=field_type,
        name=name,
        label=field_type.default_label,
        placeholder=placeholder,
        options=options,
    )
