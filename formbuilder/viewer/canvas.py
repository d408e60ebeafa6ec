"""Form canvas widgets: groups and fields as drag sources and drop targets."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QByteArray, QMimeData, QPoint, QPointF, Qt, Signal
from PySide6.QtGui import QDrag, QMouseEvent
from PySide6.QtWidgets import (
    QApplication,
    QFrame,
    QGraphicsOpacityEffect,
    QHBoxLayout,
    QLabel,
    QToolButton,
    QVBoxLayout,
    QWidget,
)
import shiboken6

from formbuilder.gesture.coordinator import (
    CANVAS,
    DropEvent,
    DropTarget,
    FieldHit,
    GestureCoordinator,
    GroupHit,
    Point,
    Rect,
)
from formbuilder.gesture.payload import CHANNEL_KEYS, KEY_TYPE, DragPayload, FieldItem, GroupItem
from formbuilder.model.document import FormDocument, Group
from formbuilder.model.field import FieldType, FormField
from formbuilder.state.commands import (
    Command,
    DuplicateField,
    RemoveField,
    RemoveGroup,
    SelectField,
    SelectGroup,
)

MIME_PREFIX = "application/x-formbuilder."

Dispatch = Callable[[Command], object]


def to_mime(data: dict[str, str]) -> QMimeData:
    mime = QMimeData()
    for key, value in data.items():
        mime.setData(MIME_PREFIX + key, QByteArray(value.encode("utf-8")))
    return mime


def from_mime(mime: QMimeData) -> dict[str, str]:
    data: dict[str, str] = {}
    for key in CHANNEL_KEYS:
        fmt = MIME_PREFIX + key
        if mime.hasFormat(fmt):
            data[key] = bytes(mime.data(fmt).data()).decode("utf-8")
    return data


def has_drag_data(mime: QMimeData) -> bool:
    return mime.hasFormat(MIME_PREFIX + KEY_TYPE)


def global_rect(widget: QWidget) -> Rect:
    top_left = widget.mapToGlobal(QPoint(0, 0))
    return Rect(float(top_left.x()), float(top_left.y()), float(widget.width()), float(widget.height()))


def global_point(widget: QWidget, position: QPointF) -> Point:
    mapped = widget.mapToGlobal(position.toPoint())
    return Point(float(mapped.x()), float(mapped.y()))


def run_drag(source: QWidget, coordinator: GestureCoordinator, payload: DragPayload) -> None:
    """Run a Qt drag for ``payload`` and dim ``source`` while it lasts."""
    data = coordinator.start_drag(payload)
    effect = QGraphicsOpacityEffect(source)
    effect.setOpacity(0.5)
    source.setGraphicsEffect(effect)

    drag = QDrag(source)
    drag.setMimeData(to_mime(data))
    try:
        drag.exec(Qt.DropAction.MoveAction)
    finally:
        coordinator.end_drag()
        # a drop may rebuild the canvas and delete the source widget
        if shiboken6.isValid(source):
            source.setGraphicsEffect(None)


def field_preview(field: FormField) -> str:
    if field.field_type in (FieldType.TEXT, FieldType.TEXTAREA):
        return field.placeholder or "Enter text here"
    if field.field_type is FieldType.NUMBER:
        return "0"
    if field.field_type in (FieldType.DROPDOWN, FieldType.NUMBER_COMBO):
        return "Select an option ▾"
    if field.field_type is FieldType.CHECKBOX:
        return "\n".join(f"☐ {option.label}" for option in field.options or ())
    if field.field_type is FieldType.RADIO:
        return "\n".join(f"○ {option.label}" for option in field.options or ())
    if field.field_type is FieldType.DATE:
        return "Select date"
    return ""


class _DragStartMixin:
    """Starts a drag once the mouse travels past the platform threshold."""

    _press_pos: QPointF | None = None

    def _remember_press(self, event: QMouseEvent) -> None:
        if event.button() == Qt.MouseButton.LeftButton:
            self._press_pos = event.position()

    def _should_start_drag(self, event: QMouseEvent) -> bool:
        if self._press_pos is None or not event.buttons() & Qt.MouseButton.LeftButton:
            return False
        distance = (event.position() - self._press_pos).manhattanLength()
        return distance >= QApplication.startDragDistance()


class FieldWidget(_DragStartMixin, QFrame):
    def __init__(
        self,
        field: FormField,
        group_id: str,
        selected: bool,
        dispatch: Dispatch,
        coordinator: GestureCoordinator,
    ) -> None:
        super().__init__()
        self.field_id = field.id
        self.group_id = group_id
        self._dispatch = dispatch
        self._coordinator = coordinator

        self.setObjectName("fieldItem")
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.set_selected(selected)
        self.setCursor(Qt.CursorShape.OpenHandCursor)

        title = QLabel(f"{field.label} *" if field.required else field.label)
        title.setStyleSheet("font-weight: 600;")

        copy_button = QToolButton()
        copy_button.setText("Copy")
        copy_button.setToolTip("Duplicate field")
        copy_button.clicked.connect(lambda: self._dispatch(DuplicateField(group_id, field.id)))

        delete_button = QToolButton()
        delete_button.setText("Delete")
        delete_button.setToolTip("Delete field")
        delete_button.clicked.connect(lambda: self._dispatch(RemoveField(group_id, field.id)))

        header = QHBoxLayout()
        header.addWidget(title, 1)
        header.addWidget(copy_button)
        header.addWidget(delete_button)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 6, 10, 6)
        layout.addLayout(header)
        preview = field_preview(field)
        if preview:
            preview_label = QLabel(preview)
            preview_label.setStyleSheet("color: #757575;")
            layout.addWidget(preview_label)

    def set_selected(self, selected: bool) -> None:
        border = "2px solid #4a6cf7" if selected else "1px solid #e0e0e0"
        self.setStyleSheet(f"#fieldItem {{ border: {border}; border-radius: 6px; background: white; }}")

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        self._remember_press(event)
        if event.button() == Qt.MouseButton.LeftButton:
            self._dispatch(SelectField(self.field_id))
            self._dispatch(SelectGroup(self.group_id))
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if not self._should_start_drag(event):
            return
        self._press_pos = None
        run_drag(self, self._coordinator, FieldItem(field_id=self.field_id, source_group_id=self.group_id))

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        self._press_pos = None
        super().mouseReleaseEvent(event)


class GroupHeader(_DragStartMixin, QFrame):
    def __init__(self, group: Group, dispatch: Dispatch, coordinator: GestureCoordinator) -> None:
        super().__init__()
        self.group_id = group.id
        self._dispatch = dispatch
        self._coordinator = coordinator
        self.setStyleSheet("background: #fafafa; border-bottom: 1px solid #e0e0e0;")
        self.setCursor(Qt.CursorShape.OpenHandCursor)

        name = QLabel(group.name)
        name.setStyleSheet("font-weight: 600;")
        delete_button = QToolButton()
        delete_button.setText("Delete")
        delete_button.setToolTip("Delete fieldset")
        delete_button.clicked.connect(lambda: self._dispatch(RemoveGroup(group.id)))

        layout = QHBoxLayout(self)
        layout.setContentsMargins(10, 4, 10, 4)
        layout.addWidget(name, 1)
        layout.addWidget(delete_button)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        self._remember_press(event)
        if event.button() == Qt.MouseButton.LeftButton:
            self._dispatch(SelectGroup(self.group_id))
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if not self._should_start_drag(event):
            return
        self._press_pos = None
        run_drag(self.parentWidget() or self, self._coordinator, GroupItem(group_id=self.group_id))

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        self._press_pos = None
        super().mouseReleaseEvent(event)


class GroupWidget(QFrame):
    def __init__(
        self,
        group: Group,
        document: FormDocument,
        dispatch: Dispatch,
        coordinator: GestureCoordinator,
    ) -> None:
        super().__init__()
        self.group_id = group.id
        self.target = DropTarget(group.id)
        self._dispatch = dispatch
        self._coordinator = coordinator
        self.field_widgets: list[FieldWidget] = []

        self.setObjectName("groupItem")
        self.set_selected(document.selected_group_id == group.id)
        self.setAcceptDrops(True)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 8)
        layout.setSpacing(6)
        layout.addWidget(GroupHeader(group, dispatch, coordinator))

        for field in group.fields:
            widget = FieldWidget(
                field,
                group.id,
                document.selected_field_id == field.id,
                dispatch,
                coordinator,
            )
            self.field_widgets.append(widget)
            layout.addWidget(widget)

        if not group.fields:
            empty = QLabel("Drag and drop fields here")
            empty.setAlignment(Qt.AlignmentFlag.AlignCenter)
            empty.setStyleSheet("color: #9e9e9e; padding: 12px;")
            layout.addWidget(empty)

        self.drop_indicator = QLabel("Drop field here")
        self.drop_indicator.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.drop_indicator.setStyleSheet("border: 2px dashed #4a6cf7; color: #4a6cf7; padding: 8px;")
        self.drop_indicator.setVisible(False)
        layout.addWidget(self.drop_indicator)

    def set_selected(self, selected: bool) -> None:
        border = "#4a6cf7" if selected else "#e0e0e0"
        self.setStyleSheet(f"#groupItem {{ border: 1px solid {border}; border-radius: 8px; background: white; }}")

    def apply_selection(self, document: FormDocument) -> None:
        self.set_selected(document.selected_group_id == self.group_id)
        for widget in self.field_widgets:
            widget.set_selected(document.selected_field_id == widget.field_id)

    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        self._dispatch(SelectGroup(self.group_id))
        super().mousePressEvent(event)

    def dragEnterEvent(self, event) -> None:  # type: ignore[override]
        if not has_drag_data(event.mimeData()):
            event.ignore()
            return
        event.acceptProposedAction()
        self._coordinator.drag_enter(self.target)
        self._sync_indicator()

    def dragMoveEvent(self, event) -> None:  # type: ignore[override]
        event.acceptProposedAction()
        self._coordinator.drag_over(self.target, global_point(self, event.position()))

    def dragLeaveEvent(self, event) -> None:  # type: ignore[override]
        del event
        self._coordinator.drag_leave(self.target)
        self._sync_indicator()

    def dropEvent(self, event) -> None:  # type: ignore[override]
        event.acceptProposedAction()
        drop = DropEvent(
            pointer=global_point(self, event.position()),
            field_hit=self._field_hit(event.position().toPoint()),
            group_hit=GroupHit(self.group_id, global_rect(self)),
        )
        self.drop_indicator.setVisible(False)
        self._coordinator.drop(self.target, from_mime(event.mimeData()), drop)

    def _field_hit(self, position: QPoint) -> FieldHit | None:
        child = self.childAt(position)
        while child is not None and child is not self:
            if isinstance(child, FieldWidget):
                return FieldHit(child.field_id, global_rect(child))
            child = child.parentWidget()
        return None

    def _sync_indicator(self) -> None:
        self.drop_indicator.setVisible(bool(self.field_widgets) and self._coordinator.is_over(self.target))


class FormCanvas(QWidget):
    """Renders the document and accepts drops outside any group."""

    group_count_changed = Signal(int)

    def __init__(self, dispatch: Dispatch, coordinator: GestureCoordinator) -> None:
        super().__init__()
        self._dispatch = dispatch
        self._coordinator = coordinator
        self.group_widgets: list[GroupWidget] = []
        self._groups: tuple[Group, ...] | None = None

        self.setAcceptDrops(True)
        self.setMinimumSize(500, 600)
        self.setObjectName("formCanvas")
        self.setStyleSheet("#formCanvas { background: #f7f7f9; }")

        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(16, 16, 16, 16)
        self._layout.setSpacing(16)

        self.empty_label = QLabel(
            "Welcome to the Form Builder!\n"
            "Drag fields from the left panel and drop them here to create your first fieldset"
        )
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.empty_label.setStyleSheet("color: #757575;")

        self.drop_indicator = QLabel("Drop field here to create a new fieldset")
        self.drop_indicator.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.drop_indicator.setStyleSheet("border: 2px dashed #4a6cf7; color: #4a6cf7; padding: 16px;")
        self.drop_indicator.setVisible(False)

    def set_document(self, document: FormDocument) -> None:
        # Selection-only transitions share the groups tuple; restyle in place so
        # a pressed field keeps its mouse grab and can still start a drag.
        if document.groups is self._groups:
            for widget in self.group_widgets:
                widget.apply_selection(document)
            return
        self._groups = document.groups

        while self._layout.count():
            item = self._layout.takeAt(0)
            widget = item.widget()
            if widget is not None and widget not in (self.empty_label, self.drop_indicator):
                widget.hide()
                widget.deleteLater()

        self.group_widgets = [
            GroupWidget(group, document, self._dispatch, self._coordinator) for group in document.groups
        ]
        self.empty_label.setVisible(not self.group_widgets)
        self._layout.addWidget(self.empty_label)
        for widget in self.group_widgets:
            self._layout.addWidget(widget)
        self._layout.addWidget(self.drop_indicator)
        self._layout.addStretch(1)
        self.drop_indicator.setVisible(False)
        self.group_count_changed.emit(len(self.group_widgets))

    def dragEnterEvent(self, event) -> None:  # type: ignore[override]
        if not has_drag_data(event.mimeData()):
            event.ignore()
            return
        event.acceptProposedAction()
        self._coordinator.drag_enter(CANVAS)
        self.drop_indicator.setVisible(self._coordinator.is_over(CANVAS))

    def dragMoveEvent(self, event) -> None:  # type: ignore[override]
        event.acceptProposedAction()
        self._coordinator.drag_over(CANVAS, global_point(self, event.position()))

    def dragLeaveEvent(self, event) -> None:  # type: ignore[override]
        del event
        self._coordinator.drag_leave(CANVAS)
        self.drop_indicator.setVisible(self._coordinator.is_over(CANVAS))

    def dropEvent(self, event) -> None:  # type: ignore[override]
        event.acceptProposedAction()
        self.drop_indicator.setVisible(False)
        drop = DropEvent(
            pointer=global_point(self, event.position()),
            group_hit=self._nearest_group_hit(event.position().y()),
        )
        self._coordinator.drop(CANVAS, from_mime(event.mimeData()), drop)

    def _nearest_group_hit(self, y: float) -> GroupHit | None:
        best: GroupWidget | None = None
        best_distance = 0.0
        for widget in self.group_widgets:
            center = widget.geometry().center().y()
            distance = abs(center - y)
            if best is None or distance < best_distance:
                best, best_distance = widget, distance
        if best is None:
            return None
        return GroupHit(best.group_id, global_rect(best))
