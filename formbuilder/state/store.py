"""In-memory store wrapping the pure reducer with history and subscribers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
import logging

from formbuilder.model.document import FormDocument, Group, find_selected
from formbuilder.model.field import FormField
from formbuilder.state.commands import Command, ReplaceDocument
from formbuilder.state.reducer import reduce

logger = logging.getLogger(__name__)

Listener = Callable[[FormDocument], None]


@dataclass(slots=True)
class FormStore:
    state: FormDocument = field(default_factory=FormDocument)
    history_limit: int = 100
    _undo: list[FormDocument] = field(default_factory=list)
    _redo: list[FormDocument] = field(default_factory=list)
    _listeners: list[Listener] = field(default_factory=list)

    def dispatch(self, command: Command) -> FormDocument:
        previous = self.state
        updated = reduce(previous, command)
        if updated is previous:
            logger.debug("command %s had no effect", type(command).__name__)
            return previous

        if isinstance(command, ReplaceDocument):
            self.clear_history()
        elif command.undoable:
            self._undo.append(previous)
            del self._undo[: -self.history_limit]
            self._redo.clear()

        self.state = updated
        self._notify()
        return updated

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def undo(self) -> FormDocument:
        if not self._undo:
            return self.state
        self._redo.append(self.state)
        self.state = self._with_save_metadata(self._undo.pop())
        self._notify()
        return self.state

    def redo(self) -> FormDocument:
        if not self._redo:
            return self.state
        self._undo.append(self.state)
        self.state = self._with_save_metadata(self._redo.pop())
        self._notify()
        return self.state

    def clear_history(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def selected(self) -> tuple[Group | None, FormField | None]:
        return find_selected(self.state)

    def _with_save_metadata(self, snapshot: FormDocument) -> FormDocument:
        # Save metadata is not part of the undo history; keep the latest values.
        current = self.state
        return FormDocument(
            groups=snapshot.groups,
            selected_field_id=snapshot.selected_field_id,
            selected_group_id=snapshot.selected_group_id,
            last_saved=current.last_saved,
            is_draft=current.is_draft,
        )

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)
