"""Document model for grouped form fields and its snapshot wire format."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from formbuilder.model.field import FieldOption, FieldType, FormField


class SnapshotError(ValueError):
    """Raised when a serialized document cannot be parsed."""


@dataclass(frozen=True, slots=True)
class Group:
    id: str
    name: str
    fields: tuple[FormField, ...] = ()

    def find_field(self, field_id: str) -> FormField | None:
        for field in self.fields:
            if field.id == field_id:
                return field
        return None

    def field_index(self, field_id: str) -> int:
        for index, field in enumerate(self.fields):
            if field.id == field_id:
                return index
        return -1

    def field_names(self) -> list[str]:
        return [field.name for field in self.fields]


@dataclass(frozen=True, slots=True)
class FormDocument:
    groups: tuple[Group, ...] = ()
    selected_field_id: str | None = None
    selected_group_id: str | None = None
    last_saved: datetime | None = None
    is_draft: bool = False

    def find_group(self, group_id: str) -> Group | None:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def group_index(self, group_id: str) -> int:
        for index, group in enumerate(self.groups):
            if group.id == group_id:
                return index
        return -1

    def group_names(self) -> list[str]:
        return [group.name for group in self.groups]

    def field_count(self) -> int:
        return sum(len(group.fields) for group in self.groups)


def find_selected(document: FormDocument) -> tuple[Group | None, FormField | None]:
    if document.selected_field_id is None:
        return None, None
    for group in document.groups:
        field = group.find_field(document.selected_field_id)
        if field is not None:
            return group, field
    return None, None


def all_ids(document: FormDocument) -> list[str]:
    ids: list[str] = []
    for group in document.groups:
        ids.append(group.id)
        for field in group.fields:
            ids.append(field.id)
            ids.extend(option.id for option in field.options or ())
    return ids


def to_snapshot(document: FormDocument) -> dict[str, Any]:
    return {
        "fieldsets": [
            {
                "id": group.id,
                "name": group.name,
                "fields": [_field_to_dict(field) for field in group.fields],
            }
            for group in document.groups
        ],
        "selectedFieldId": document.selected_field_id,
        "selectedFieldsetId": document.selected_group_id,
        "lastSaved": document.last_saved.isoformat() if document.last_saved else None,
        "isDraft": document.is_draft,
    }


def from_snapshot(payload: Any) -> FormDocument:
    if not isinstance(payload, dict):
        raise SnapshotError("Snapshot must be a JSON object")

    try:
        groups = tuple(_group_from_dict(raw) for raw in payload.get("fieldsets") or [])
        last_saved_raw = payload.get("lastSaved")
        last_saved = datetime.fromisoformat(_normalize_iso(last_saved_raw)) if last_saved_raw else None
    except SnapshotError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotError(f"Malformed snapshot: {exc}") from exc

    document = FormDocument(
        groups=groups,
        selected_field_id=payload.get("selectedFieldId"),
        selected_group_id=payload.get("selectedFieldsetId"),
        last_saved=last_saved,
        is_draft=bool(payload.get("isDraft", False)),
    )
    return _drop_dangling_selection(document)


def _field_to_dict(field: FormField) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": field.id,
        "type": field.field_type.value,
        "name": field.name,
        "label": field.label,
        "placeholder": field.placeholder,
        "required": field.required,
    }
    if field.options is not None:
        data["options"] = [
            {"id": option.id, "label": option.label, "value": option.value}
            for option in field.options
        ]
    if field.default_value is not None:
        data["defaultValue"] = field.default_value
    return data


def _group_from_dict(raw: Any) -> Group:
    if not isinstance(raw, dict):
        raise SnapshotError("Fieldset entry must be an object")
    return Group(
        id=str(raw["id"]),
        name=str(raw.get("name") or ""),
        fields=tuple(_field_from_dict(item) for item in raw.get("fields") or []),
    )


def _field_from_dict(raw: Any) -> FormField:
    if not isinstance(raw, dict):
        raise SnapshotError("Field entry must be an object")
    field_type = FieldType(raw["type"])

    options = None
    raw_options = raw.get("options")
    if field_type.has_options:
        options = tuple(
            FieldOption(id=str(item["id"]), label=str(item["label"]), value=str(item["value"]))
            for item in raw_options or []
        )

    default_value = raw.get("defaultValue")
    if isinstance(default_value, list):
        default_value = tuple(default_value)

    return FormField(
        id=str(raw["id"]),
        field_type=field_type,
        name=str(raw.get("name") or ""),
        label=str(raw.get("label") or ""),
        placeholder=str(raw.get("placeholder") or ""),
        required=bool(raw.get("required", False)),
        options=options,
        default_value=default_value,
    )


def _normalize_iso(value: Any) -> str:
    text = str(value)
    if text.endswith("Z"):
        return text[:-1] + "+00:00"
    return text


def _drop_dangling_selection(document: FormDocument) -> FormDocument:
    selected_group = document.selected_group_id
    if selected_group is not None and document.find_group(selected_group) is None:
        selected_group = None
    selected_field = document.selected_field_id
    if selected_field is not None and find_selected(document) == (None, None):
        selected_field = None
    if (selected_group, selected_field) == (document.selected_group_id, document.selected_field_id):
        return document
    return FormDocument(
        groups=document.groups,
        selected_field_id=selected_field,
        selected_group_id=selected_group,
        last_saved=document.last_saved,
        is_draft=document.is_draft,
    )
