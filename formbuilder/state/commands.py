"""Commands consumed by the document reducer.

Ids for new entities are minted when a command is constructed, so the
reducer stays deterministic: applying the same command objects to the same
state always produces the same result.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from formbuilder.model.document import FormDocument
from formbuilder.model.field import FieldType
from formbuilder.model.names import generate_id


class Command:
    """Marker base class for all document commands."""

    # Commands that only touch selection or save metadata stay out of undo history.
    undoable = True


@dataclass(frozen=True)
class AddGroup(Command):
    name: str | None = None
    group_id: str = field(default_factory=generate_id)


@dataclass(frozen=True)
class AddField(Command):
    group_id: str
    field_type: FieldType
    position: int | None = None
    field_id: str = field(default_factory=generate_id)


@dataclass(frozen=True)
class RemoveField(Command):
    group_id: str
    field_id: str


@dataclass(frozen=True)
class RemoveGroup(Command):
    group_id: str


@dataclass(frozen=True)
class UpdateField(Command):
    group_id: str
    field_id: str
    updates: Mapping[str, Any]


@dataclass(frozen=True)
class UpdateGroup(Command):
    group_id: str
    updates: Mapping[str, Any]


@dataclass(frozen=True)
class DuplicateField(Command):
    group_id: str
    field_id: str
    clone_id: str = field(default_factory=generate_id)


@dataclass(frozen=True)
class MoveField(Command):
    source_group_id: str
    target_group_id: str
    field_id: str
    position: int | None = None


@dataclass(frozen=True)
class MoveGroup(Command):
    group_id: str
    position: int


@dataclass(frozen=True)
class AddOption(Command):
    group_id: str
    field_id: str
    option_id: str = field(default_factory=generate_id)


@dataclass(frozen=True)
class UpdateOption(Command):
    group_id: str
    field_id: str
    option_id: str
    label: str


@dataclass(frozen=True)
class RemoveOption(Command):
    group_id: str
    field_id: str
    option_id: str


@dataclass(frozen=True)
class SelectField(Command):
    field_id: str | None

    undoable = False


@dataclass(frozen=True)
class SelectGroup(Command):
    group_id: str | None

    undoable = False


@dataclass(frozen=True)
class ReplaceDocument(Command):
    """Hydrate from a loaded snapshot; also resets undo history."""

    document: FormDocument

    undoable = False


@dataclass(frozen=True)
class MarkSaved(Command):
    """Signals that an external save succeeded."""

    saved_at: datetime
    is_draft: bool = False

    undoable = False
