"""Drag payloads and the flat string data channel that carries them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from formbuilder.model.field import FieldType

PALETTE_ITEM = "palette-item"
FIELD_ITEM = "field-item"
GROUP_ITEM = "group"

KEY_TYPE = "type"
KEY_FIELD_TYPE = "fieldType"
KEY_FIELD_ID = "fieldId"
KEY_SOURCE_GROUP_ID = "sourceGroupId"
KEY_GROUP_ID = "groupId"
KEY_TARGET_GROUP_ID = "targetGroupId"
KEY_TARGET_POSITION = "targetPosition"

CHANNEL_KEYS = (
    KEY_TYPE,
    KEY_FIELD_TYPE,
    KEY_FIELD_ID,
    KEY_SOURCE_GROUP_ID,
    KEY_GROUP_ID,
    KEY_TARGET_GROUP_ID,
    KEY_TARGET_POSITION,
)


@dataclass(frozen=True, slots=True)
class PaletteItem:
    field_type: FieldType


@dataclass(frozen=True, slots=True)
class FieldItem:
    field_id: str
    source_group_id: str


@dataclass(frozen=True, slots=True)
class GroupItem:
    group_id: str


DragPayload = Union[PaletteItem, FieldItem, GroupItem]


def payload_source_id(payload: DragPayload) -> str | None:
    """Id of the dragged element that should be dimmed, if it is on the canvas."""
    if isinstance(payload, FieldItem):
        return payload.field_id
    if isinstance(payload, GroupItem):
        return payload.group_id
    return None


def encode_payload(payload: DragPayload) -> dict[str, str]:
    if isinstance(payload, PaletteItem):
        return {KEY_TYPE: PALETTE_ITEM, KEY_FIELD_TYPE: FieldType(payload.field_type).value}
    if isinstance(payload, FieldItem):
        return {
            KEY_TYPE: FIELD_ITEM,
            KEY_FIELD_ID: payload.field_id,
            KEY_SOURCE_GROUP_ID: payload.source_group_id,
        }
    if isinstance(payload, GroupItem):
        return {KEY_TYPE: GROUP_ITEM, KEY_GROUP_ID: payload.group_id}
    raise TypeError(f"Unsupported drag payload: {payload!r}")


def decode_payload(data: dict[str, str]) -> DragPayload | None:
    """Rebuild a payload from channel data; incomplete data yields ``None``."""
    kind = data.get(KEY_TYPE)
    if kind == PALETTE_ITEM:
        try:
            return PaletteItem(FieldType(data.get(KEY_FIELD_TYPE, "")))
        except ValueError:
            return None
    if kind == FIELD_ITEM:
        field_id = data.get(KEY_FIELD_ID)
        source_group_id = data.get(KEY_SOURCE_GROUP_ID)
        if field_id and source_group_id:
            return FieldItem(field_id=field_id, source_group_id=source_group_id)
        return None
    if kind == GROUP_ITEM:
        group_id = data.get(KEY_GROUP_ID)
        return GroupItem(group_id=group_id) if group_id else None
    return None


def parse_position(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
