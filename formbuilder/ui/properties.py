"""Properties panel for the selected fieldset and field."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QCheckBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from formbuilder.model.document import FormDocument, Group, find_selected
from formbuilder.model.field import FormField
from formbuilder.model.names import is_name_unique
from formbuilder.state.commands import (
    AddOption,
    Command,
    RemoveOption,
    UpdateField,
    UpdateGroup,
    UpdateOption,
)


class PropertiesPanel(QWidget):
    notice = Signal(str)

    def __init__(self, dispatch: Callable[[Command], object]) -> None:
        super().__init__()
        self._dispatch = dispatch
        self._group: Group | None = None
        self._field: FormField | None = None
        self.setMinimumWidth(280)

        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(12, 12, 12, 12)
        self._placeholder = QLabel("Select a field to edit its properties")
        self._placeholder.setWordWrap(True)
        self._layout.addWidget(self._placeholder)

        self._group_box = QGroupBox("Fieldset")
        group_form = QFormLayout(self._group_box)
        self.group_name_edit = QLineEdit()
        self.group_name_edit.setPlaceholderText("Enter field-set name")
        self.group_name_edit.editingFinished.connect(self._commit_group_name)
        group_form.addRow("Name", self.group_name_edit)
        self._layout.addWidget(self._group_box)

        self._field_box = QGroupBox("Field")
        field_form = QFormLayout(self._field_box)
        self.field_name_edit = QLineEdit()
        self.field_name_edit.setPlaceholderText("Enter field name")
        self.field_name_edit.editingFinished.connect(self._commit_field_name)
        self.field_label_edit = QLineEdit()
        self.field_label_edit.editingFinished.connect(
            lambda: self._commit_field({"label": self.field_label_edit.text()})
        )
        self.placeholder_edit = QLineEdit()
        self.placeholder_edit.editingFinished.connect(
            lambda: self._commit_field({"placeholder": self.placeholder_edit.text()})
        )
        self.required_check = QCheckBox("Required")
        self.required_check.toggled.connect(lambda checked: self._commit_field({"required": checked}))
        field_form.addRow("Name", self.field_name_edit)
        field_form.addRow("Label", self.field_label_edit)
        field_form.addRow("Placeholder", self.placeholder_edit)
        field_form.addRow("", self.required_check)
        self._layout.addWidget(self._field_box)

        self._options_box = QGroupBox("Options")
        self._options_layout = QVBoxLayout(self._options_box)
        self._option_rows = QVBoxLayout()
        self._options_layout.addLayout(self._option_rows)
        self.add_option_button = QPushButton("Add Option")
        self.add_option_button.clicked.connect(self._add_option)
        self._options_layout.addWidget(self.add_option_button)
        self._layout.addWidget(self._options_box)
        self._layout.addStretch(1)

        self._show(None, None)

    def set_document(self, document: FormDocument) -> None:
        group, field = find_selected(document)
        if group is None and document.selected_group_id is not None:
            group = document.find_group(document.selected_group_id)
        if group is self._group and field is self._field:
            return
        self._show(group, field)

    def _show(self, group: Group | None, field: FormField | None) -> None:
        self._group = group
        self._field = field
        self._placeholder.setVisible(group is None)
        self._group_box.setVisible(group is not None)
        self._field_box.setVisible(field is not None)
        self._options_box.setVisible(field is not None and field.options is not None)

        if group is not None:
            self.group_name_edit.setText(group.name)
        if field is not None:
            self.field_name_edit.setText(field.name)
            self.field_label_edit.setText(field.label)
            self.placeholder_edit.setText(field.placeholder)
            self.required_check.blockSignals(True)
            self.required_check.setChecked(field.required)
            self.required_check.blockSignals(False)
        self._rebuild_options()

    def _rebuild_options(self) -> None:
        while self._option_rows.count():
            row = self._option_rows.takeAt(0)
            widget = row.widget()
            if widget is not None:
                widget.deleteLater()

        if self._field is None or self._field.options is None:
            return
        for option in self._field.options:
            row = QWidget()
            row_layout = QHBoxLayout(row)
            row_layout.setContentsMargins(0, 0, 0, 0)
            edit = QLineEdit(option.label)
            edit.editingFinished.connect(
                lambda option_id=option.id, edit=edit: self._update_option(option_id, edit.text())
            )
            remove = QToolButton()
            remove.setText("Remove")
            remove.clicked.connect(lambda _=False, option_id=option.id: self._remove_option(option_id))
            row_layout.addWidget(edit, 1)
            row_layout.addWidget(remove)
            self._option_rows.addWidget(row)

    def _commit_group_name(self) -> None:
        if self._group is None:
            return
        name = self.group_name_edit.text().strip()
        if not name or name == self._group.name:
            return
        self._dispatch(UpdateGroup(self._group.id, {"name": name}))

    def _commit_field_name(self) -> None:
        if self._group is None or self._field is None:
            return
        name = self.field_name_edit.text().strip()
        if not name or name == self._field.name:
            return
        if not is_name_unique(name, self._field.id, self._group.fields):
            self.notice.emit(f'Another field in "{self._group.name}" is already named "{name}".')
        self._dispatch(UpdateField(self._group.id, self._field.id, {"name": name}))

    def _commit_field(self, updates: dict) -> None:
        if self._group is None or self._field is None:
            return
        if all(getattr(self._field, key) == value for key, value in updates.items()):
            return
        self._dispatch(UpdateField(self._group.id, self._field.id, updates))

    def _add_option(self) -> None:
        if self._group is not None and self._field is not None:
            self._dispatch(AddOption(self._group.id, self._field.id))

    def _update_option(self, option_id: str, label: str) -> None:
        if self._group is None or self._field is None:
            return
        option = self._field.find_option(option_id)
        if option is None or option.label == label:
            return
        self._dispatch(UpdateOption(self._group.id, self._field.id, option_id, label))

    def _remove_option(self, option_id: str) -> None:
        if self._group is not None and self._field is not None:
            self._dispatch(RemoveOption(self._group.id, self._field.id, option_id))
