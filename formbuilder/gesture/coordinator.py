"""Drag-and-drop session tracking and drop-to-command resolution."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import logging

from formbuilder.gesture.payload import (
    KEY_TARGET_GROUP_ID,
    KEY_TARGET_POSITION,
    DragPayload,
    FieldItem,
    GroupItem,
    PaletteItem,
    decode_payload,
    encode_payload,
    parse_position,
    payload_source_id,
)
from formbuilder.model.document import FormDocument, Group
from formbuilder.state.commands import AddField, AddGroup, Command, MoveField, MoveGroup

logger = logging.getLogger(__name__)


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"
    DROPPED = "dropped"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2.0


@dataclass(frozen=True, slots=True)
class FieldHit:
    field_id: str
    rect: Rect


@dataclass(frozen=True, slots=True)
class GroupHit:
    group_id: str
    rect: Rect


@dataclass(frozen=True, slots=True)
class DropTarget:
    group_id: str | None = None

    @property
    def is_canvas(self) -> bool:
        return self.group_id is None


CANVAS = DropTarget()


@dataclass(frozen=True, slots=True)
class DropEvent:
    """Pointer position and geometry under it at the moment of the drop."""

    pointer: Point | None = None
    field_hit: FieldHit | None = None
    group_hit: GroupHit | None = None


class GestureCoordinator:
    def __init__(
        self,
        dispatch: Callable[[Command], object],
        get_state: Callable[[], FormDocument],
    ) -> None:
        self._dispatch = dispatch
        self._get_state = get_state
        self.phase = DragPhase.IDLE
        self.payload: DragPayload | None = None
        self.dragged_id: str | None = None
        self.last_pointer: Point | None = None
        self._hover_counts: dict[DropTarget, int] = {}

    @property
    def is_dragging(self) -> bool:
        return self.phase in (DragPhase.DRAGGING, DragPhase.HOVERING)

    def start_drag(self, payload: DragPayload) -> dict[str, str]:
        if self.is_dragging:
            self.cancel()
        self.payload = payload
        self.dragged_id = payload_source_id(payload)
        self.phase = DragPhase.DRAGGING
        logger.debug("drag started: %s", payload)
        return encode_payload(payload)

    def drag_enter(self, target: DropTarget) -> None:
        self._hover_counts[target] = self._hover_counts.get(target, 0) + 1
        if self.is_dragging:
            self.phase = DragPhase.HOVERING

    def drag_leave(self, target: DropTarget) -> None:
        count = max(0, self._hover_counts.get(target, 0) - 1)
        if count:
            self._hover_counts[target] = count
        else:
            self._hover_counts.pop(target, None)
        if self.phase is DragPhase.HOVERING and not self._hover_counts:
            self.phase = DragPhase.DRAGGING

    def drag_over(self, target: DropTarget, pointer: Point) -> None:
        del target
        self.last_pointer = pointer

    def is_over(self, target: DropTarget) -> bool:
        return self._hover_counts.get(target, 0) > 0

    def drop(
        self,
        target: DropTarget,
        data: dict[str, str] | None = None,
        event: DropEvent | None = None,
    ) -> list[Command]:
        """Resolve a drop into commands and dispatch them in order."""
        self._hover_counts.pop(target, None)
        channel = dict(data or {})
        if not channel and self.payload is not None:
            channel = encode_payload(self.payload)

        commands = self.resolve(target, channel, event or DropEvent(pointer=self.last_pointer))
        logger.debug("drop on %s resolved to %s", target, commands)
        for command in commands:
            self._dispatch(command)
        self._finish(DragPhase.DROPPED)
        return commands

    def end_drag(self) -> None:
        if self.phase is not DragPhase.IDLE:
            self._finish(DragPhase.CANCELLED)

    def cancel(self) -> None:
        self._finish(DragPhase.CANCELLED)

    def resolve(self, target: DropTarget, data: dict[str, str], event: DropEvent) -> list[Command]:
        payload = decode_payload(data)
        if payload is None:
            return []
        state = self._get_state()
        if not target.is_canvas:
            data[KEY_TARGET_GROUP_ID] = target.group_id

        if isinstance(payload, PaletteItem):
            return self._resolve_palette(state, target, payload)
        if isinstance(payload, FieldItem):
            return self._resolve_field(state, target, payload, data, event)
        return self._resolve_group(state, target, payload, data, event)

    def _resolve_palette(
        self, state: FormDocument, target: DropTarget, payload: PaletteItem
    ) -> list[Command]:
        if not target.is_canvas:
            if state.find_group(target.group_id) is None:
                logger.debug("palette drop skipped: fieldset %s no longer exists", target.group_id)
                return []
            return [AddField(group_id=target.group_id, field_type=payload.field_type)]
        new_group = AddGroup()
        return [new_group, AddField(group_id=new_group.group_id, field_type=payload.field_type)]

    def _resolve_field(
        self,
        state: FormDocument,
        target: DropTarget,
        payload: FieldItem,
        data: dict[str, str],
        event: DropEvent,
    ) -> list[Command]:
        target_group_id = data.get(KEY_TARGET_GROUP_ID)
        if not target_group_id:
            return []

        position = None
        group = state.find_group(target_group_id)
        if group is not None and not target.is_canvas:
            position = self._field_position(group, payload, event)
        if position is None:
            position = parse_position(data.get(KEY_TARGET_POSITION))
        else:
            data[KEY_TARGET_POSITION] = str(position)

        return [
            MoveField(
                source_group_id=payload.source_group_id,
                target_group_id=target_group_id,
                field_id=payload.field_id,
                position=position,
            )
        ]

    def _resolve_group(
        self,
        state: FormDocument,
        target: DropTarget,
        payload: GroupItem,
        data: dict[str, str],
        event: DropEvent,
    ) -> list[Command]:
        position = None
        hit = event.group_hit
        if hit is not None:
            position = self._group_position(state, payload.group_id, hit, event.pointer or self.last_pointer)
        elif not target.is_canvas:
            position = state.group_index(target.group_id)
            if position == -1:
                position = None
        if position is None:
            position = parse_position(data.get(KEY_TARGET_POSITION))
        if position is None:
            logger.debug("group drop skipped: no target position for %s", payload.group_id)
            return []
        data[KEY_TARGET_POSITION] = str(position)
        return [MoveGroup(group_id=payload.group_id, position=position)]

    def _field_position(self, group: Group, payload: FieldItem, event: DropEvent) -> int | None:
        hit = event.field_hit
        pointer = event.pointer or self.last_pointer
        if hit is None or pointer is None:
            return None
        index = group.field_index(hit.field_id)
        if index == -1:
            return None
        position = index if pointer.y < hit.rect.mid_y else index + 1
        if payload.source_group_id == group.id:
            current = group.field_index(payload.field_id)
            if current != -1 and current < position:
                position -= 1
        return position

    @staticmethod
    def _group_position(
        state: FormDocument, group_id: str, hit: GroupHit, pointer: Point | None
    ) -> int | None:
        index = state.group_index(hit.group_id)
        if index == -1:
            return None
        position = index if pointer is None or pointer.y < hit.rect.mid_y else index + 1
        current = state.group_index(group_id)
        if current != -1 and current < position:
            position -= 1
        return position

    def _finish(self, phase: DragPhase) -> None:
        logger.debug("drag session ended: %s", phase.value)
        self.phase = DragPhase.IDLE
        self.payload = None
        self.dragged_id = None
        self.last_pointer = None
        self._hover_counts.clear()
