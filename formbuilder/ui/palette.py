"""Field palette: the list of field types that can be dragged onto the canvas."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QAbstractItemView, QListWidget, QListWidgetItem

from formbuilder.gesture.coordinator import GestureCoordinator
from formbuilder.gesture.payload import PaletteItem
from formbuilder.model.field import FieldType
from formbuilder.viewer.canvas import run_drag

PALETTE_ENTRIES: tuple[tuple[FieldType, str], ...] = (
    (FieldType.TEXT, "Text Field"),
    (FieldType.NUMBER, "Number Input"),
    (FieldType.DROPDOWN, "Combo Box / Dropdown"),
    (FieldType.NUMBER_COMBO, "Number Combo Box"),
    (FieldType.RADIO, "Radio Button"),
    (FieldType.CHECKBOX, "Checkbox"),
    (FieldType.DATE, "Datepicker"),
    (FieldType.LABEL, "Label"),
    (FieldType.TEXTAREA, "Text Area"),
)


class FieldPalette(QListWidget):
    def __init__(self, coordinator: GestureCoordinator) -> None:
        super().__init__()
        self._coordinator = coordinator
        self.setDragEnabled(True)
        self.setDragDropMode(QAbstractItemView.DragDropMode.DragOnly)
        self.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.setMaximumWidth(260)

        for field_type, label in PALETTE_ENTRIES:
            item = QListWidgetItem(label)
            item.setData(Qt.ItemDataRole.UserRole, field_type.value)
            self.addItem(item)

    def field_type_at(self, row: int) -> FieldType | None:
        item = self.item(row)
        if item is None:
            return None
        return FieldType(item.data(Qt.ItemDataRole.UserRole))

    def startDrag(self, supportedActions) -> None:  # type: ignore[override]
        del supportedActions
        field_type = self.field_type_at(self.currentRow())
        if field_type is None:
            return
        run_drag(self.viewport(), self._coordinator, PaletteItem(field_type))
