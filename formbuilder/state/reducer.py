"""Pure state transitions for the form document.

``reduce`` never mutates its input. It returns a new ``FormDocument`` when a
command applies and the very same object when a referenced id cannot be
resolved, so callers can detect no-ops with ``is``. A command that would
introduce an id already present in the document is treated the same way.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import fields as dataclass_fields, replace
from typing import Any

from formbuilder.model.document import FormDocument, Group, all_ids
from formbuilder.model.field import FieldOption, FieldType, FormField, build_field, numbered_option
from formbuilder.model.names import derive_id, generate_name, slugify
from formbuilder.state.commands import (
    AddField,
    AddGroup,
    AddOption,
    Command,
    DuplicateField,
    MarkSaved,
    MoveField,
    MoveGroup,
    RemoveField,
    RemoveGroup,
    RemoveOption,
    ReplaceDocument,
    SelectField,
    SelectGroup,
    UpdateField,
    UpdateGroup,
    UpdateOption,
)

DEFAULT_GROUP_NAME = "Fieldset"

_FIELD_ATTRIBUTES = frozenset(item.name for item in dataclass_fields(FormField)) - {"id"}
_GROUP_ATTRIBUTES = frozenset({"name"})


class InvalidUpdateError(ValueError):
    """Raised when an update names an attribute that cannot be changed."""


def reduce(state: FormDocument, command: Command) -> FormDocument:
    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"Unsupported command: {type(command).__name__}")
    return handler(state, command)


def insert_at(items: tuple, item: Any, position: int | None) -> tuple:
    """Insert at ``position`` when it lies in ``[0, len(items)]``, else append."""
    if position is not None and 0 <= position <= len(items):
        return items[:position] + (item,) + items[position:]
    return items + (item,)


def _replace_group(state: FormDocument, index: int, group: Group, **changes: Any) -> FormDocument:
    groups = state.groups[:index] + (group,) + state.groups[index + 1 :]
    return replace(state, groups=groups, **changes)


def _replace_field(group: Group, index: int, field: FormField) -> Group:
    return replace(group, fields=group.fields[:index] + (field,) + group.fields[index + 1 :])


def _locate_field(state: FormDocument, group_id: str, field_id: str) -> tuple[int, int]:
    group_index = state.group_index(group_id)
    if group_index == -1:
        return -1, -1
    return group_index, state.groups[group_index].field_index(field_id)


def _with_field(
    state: FormDocument,
    group_id: str,
    field_id: str,
    change: Callable[[FormField], FormField | None],
) -> FormDocument:
    """Apply ``change`` to one field; ``None`` from ``change`` means no-op."""
    group_index, field_index = _locate_field(state, group_id, field_id)
    if field_index == -1:
        return state
    group = state.groups[group_index]
    updated = change(group.fields[field_index])
    if updated is None:
        return state
    return _replace_group(state, group_index, _replace_field(group, field_index, updated))


def _ids_taken(state: FormDocument, *ids: str) -> bool:
    existing = set(all_ids(state))
    return any(item in existing for item in ids)


def _add_group(state: FormDocument, command: AddGroup) -> FormDocument:
    if _ids_taken(state, command.group_id):
        return state
    name = command.name or generate_name(DEFAULT_GROUP_NAME, state.group_names())
    group = Group(id=command.group_id, name=name)
    return replace(state, groups=state.groups + (group,))


def _add_field(state: FormDocument, command: AddField) -> FormDocument:
    group_index = state.group_index(command.group_id)
    if group_index == -1:
        return state
    group = state.groups[group_index]
    field_type = FieldType(command.field_type)
    name = generate_name(field_type.value, group.field_names())
    field = build_field(command.field_id, field_type, name)
    if _ids_taken(state, field.id, *(option.id for option in field.options or ())):
        return state
    updated = replace(group, fields=insert_at(group.fields, field, command.position))
    return _replace_group(
        state,
        group_index,
        updated,
        selected_field_id=field.id,
        selected_group_id=group.id,
    )


def _remove_field(state: FormDocument, command: RemoveField) -> FormDocument:
    group_index, field_index = _locate_field(state, command.group_id, command.field_id)
    if field_index == -1:
        return state
    group = state.groups[group_index]
    updated = replace(group, fields=group.fields[:field_index] + group.fields[field_index + 1 :])
    selected = None if state.selected_field_id == command.field_id else state.selected_field_id
    return _replace_group(state, group_index, updated, selected_field_id=selected)


def _remove_group(state: FormDocument, command: RemoveGroup) -> FormDocument:
    group_index = state.group_index(command.group_id)
    if group_index == -1:
        return state
    removed = state.groups[group_index]
    selected_group = state.selected_group_id
    selected_field = state.selected_field_id
    if selected_group == removed.id:
        selected_group = None
        selected_field = None
    if selected_field is not None and removed.find_field(selected_field) is not None:
        selected_field = None
    return replace(
        state,
        groups=state.groups[:group_index] + state.groups[group_index + 1 :],
        selected_group_id=selected_group,
        selected_field_id=selected_field,
    )


def _normalize_field_updates(field: FormField, updates: Mapping[str, Any]) -> dict[str, Any]:
    unknown = set(updates) - _FIELD_ATTRIBUTES
    if unknown:
        raise InvalidUpdateError(f"Cannot update field attribute(s): {', '.join(sorted(unknown))}")

    changes = dict(updates)
    try:
        field_type = FieldType(changes.get("field_type", field.field_type))
    except ValueError as exc:
        raise InvalidUpdateError(f"Unknown field type: {changes['field_type']!r}") from exc
    changes["field_type"] = field_type
    options = changes.get("options", field.options)
    if not field_type.has_options:
        options = None
    elif options is None:
        options = ()
    elif "options" in updates:
        options = tuple(FieldOption.from_label(option.id, option.label) for option in options)
    changes["options"] = options
    if isinstance(changes.get("default_value"), list):
        changes["default_value"] = tuple(changes["default_value"])
    return changes


def _update_field(state: FormDocument, command: UpdateField) -> FormDocument:
    return _with_field(
        state,
        command.group_id,
        command.field_id,
        lambda field: replace(field, **_normalize_field_updates(field, command.updates)),
    )


def _update_group(state: FormDocument, command: UpdateGroup) -> FormDocument:
    group_index = state.group_index(command.group_id)
    if group_index == -1:
        return state
    unknown = set(command.updates) - _GROUP_ATTRIBUTES
    if unknown:
        raise InvalidUpdateError(f"Cannot update group attribute(s): {', '.join(sorted(unknown))}")
    updated = replace(state.groups[group_index], **command.updates)
    return _replace_group(state, group_index, updated)


def _duplicate_field(state: FormDocument, command: DuplicateField) -> FormDocument:
    group_index, field_index = _locate_field(state, command.group_id, command.field_id)
    if field_index == -1:
        return state
    group = state.groups[group_index]
    source = group.fields[field_index]

    options = None
    if source.options is not None:
        options = tuple(
            replace(option, id=derive_id(command.clone_id, number))
            for number, option in enumerate(source.options, start=1)
        )
    clone = replace(
        source,
        id=command.clone_id,
        name=generate_name(source.name, group.field_names()),
        options=options,
    )
    if _ids_taken(state, clone.id, *(option.id for option in clone.options or ())):
        return state
    updated = replace(group, fields=group.fields + (clone,))
    return _replace_group(state, group_index, updated, selected_field_id=clone.id)


def _move_field(state: FormDocument, command: MoveField) -> FormDocument:
    same_group = command.source_group_id == command.target_group_id
    if same_group and command.position is None:
        return state

    source_index, field_index = _locate_field(state, command.source_group_id, command.field_id)
    target_index = state.group_index(command.target_group_id)
    if field_index == -1 or target_index == -1:
        return state

    source = state.groups[source_index]
    field = source.fields[field_index]
    remaining = source.fields[:field_index] + source.fields[field_index + 1 :]

    if same_group:
        if command.position == field_index:
            return state
        moved = replace(source, fields=insert_at(remaining, field, command.position))
        return _replace_group(state, source_index, moved)

    target = state.groups[target_index]
    groups = list(state.groups)
    groups[source_index] = replace(source, fields=remaining)
    groups[target_index] = replace(target, fields=insert_at(target.fields, field, command.position))
    return replace(state, groups=tuple(groups))


def _move_group(state: FormDocument, command: MoveGroup) -> FormDocument:
    current = state.group_index(command.group_id)
    if current == -1 or not 0 <= command.position < len(state.groups):
        return state
    if command.position == current:
        return state
    group = state.groups[current]
    remaining = state.groups[:current] + state.groups[current + 1 :]
    return replace(state, groups=insert_at(remaining, group, command.position))


def _add_option(state: FormDocument, command: AddOption) -> FormDocument:
    if _ids_taken(state, command.option_id):
        return state

    def change(field: FormField) -> FormField | None:
        if field.options is None:
            return None
        option = numbered_option(command.option_id, len(field.options) + 1)
        return replace(field, options=field.options + (option,))

    return _with_field(state, command.group_id, command.field_id, change)


def _update_option(state: FormDocument, command: UpdateOption) -> FormDocument:
    def change(field: FormField) -> FormField | None:
        if field.find_option(command.option_id) is None:
            return None
        options = tuple(
            FieldOption.from_label(option.id, command.label) if option.id == command.option_id else option
            for option in field.options or ()
        )
        return replace(field, options=options)

    return _with_field(state, command.group_id, command.field_id, change)


def _remove_option(state: FormDocument, command: RemoveOption) -> FormDocument:
    def change(field: FormField) -> FormField | None:
        if field.find_option(command.option_id) is None:
            return None
        options = tuple(option for option in field.options or () if option.id != command.option_id)
        return replace(field, options=options)

    return _with_field(state, command.group_id, command.field_id, change)


def _select_field(state: FormDocument, command: SelectField) -> FormDocument:
    return replace(state, selected_field_id=command.field_id)


def _select_group(state: FormDocument, command: SelectGroup) -> FormDocument:
    return replace(state, selected_group_id=command.group_id)


def _replace_document(state: FormDocument, command: ReplaceDocument) -> FormDocument:
    del state
    return command.document


def _mark_saved(state: FormDocument, command: MarkSaved) -> FormDocument:
    return replace(state, last_saved=command.saved_at, is_draft=command.is_draft)


_HANDLERS: dict[type, Callable[[FormDocument, Any], FormDocument]] = {
    AddGroup: _add_group,
    AddField: _add_field,
    RemoveField: _remove_field,
    RemoveGroup: _remove_group,
    UpdateField: _update_field,
    UpdateGroup: _update_group,
    DuplicateField: _duplicate_field,
    MoveField: _move_field,
    MoveGroup: _move_group,
    AddOption: _add_option,
    UpdateOption: _update_option,
    RemoveOption: _remove_option,
    SelectField: _select_field,
    SelectGroup: _select_group,
    ReplaceDocument: _replace_document,
    MarkSaved: _mark_saved,
}
