"""Main application window: palette, canvas, properties, save and export."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import logging

from PySide6.QtCore import Qt, QThread, Slot
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QFileDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QScrollArea,
    QSplitter,
    QToolBar,
)

from formbuilder.export.writer import PdfWriteError, write_form_pdf
from formbuilder.gesture.coordinator import GestureCoordinator
from formbuilder.model.document import FormDocument
from formbuilder.persistence.gateway import LoadResult, Notice, PersistenceGateway, SaveResult
from formbuilder.persistence.worker import PersistenceWorker, start_worker
from formbuilder.state.commands import AddGroup, DuplicateField, MarkSaved, RemoveField, ReplaceDocument
from formbuilder.state.store import FormStore
from formbuilder.ui.palette import FieldPalette
from formbuilder.ui.properties import PropertiesPanel
from formbuilder.viewer.canvas import FormCanvas

logger = logging.getLogger(__name__)


def describe_last_saved(last_saved: datetime | None, now: datetime | None = None) -> str:
    if last_saved is None:
        return "Not saved yet"
    if last_saved.tzinfo is None:
        last_saved = last_saved.replace(tzinfo=timezone.utc)
    seconds = ((now or datetime.now(timezone.utc)) - last_saved).total_seconds()
    if seconds < 45:
        return "Changes saved less than a minute ago"
    minutes = round(seconds / 60)
    if minutes < 60:
        unit = "minute" if minutes == 1 else "minutes"
        return f"Changes saved {minutes} {unit} ago"
    hours = round(minutes / 60)
    if hours < 24:
        unit = "hour" if hours == 1 else "hours"
        return f"Changes saved {hours} {unit} ago"
    days = round(hours / 24)
    unit = "day" if days == 1 else "days"
    return f"Changes saved {days} {unit} ago"


class MainWindow(QMainWindow):
    def __init__(
        self,
        store: FormStore | None = None,
        gateway: PersistenceGateway | None = None,
        request_timeout_s: float = 10.0,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Form Builder")
        self.resize(1300, 850)

        self.store = store or FormStore()
        self._gateway = gateway
        self._request_timeout_ms = int(request_timeout_s * 1000)
        self._pending: list[tuple[PersistenceWorker, QThread]] = []

        self.coordinator = GestureCoordinator(self.store.dispatch, lambda: self.store.state)

        self.palette = FieldPalette(self.coordinator)
        self.canvas = FormCanvas(self.store.dispatch, self.coordinator)
        self.properties = PropertiesPanel(self.store.dispatch)
        self.properties.notice.connect(self._show_warning)

        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(True)
        self.scroll_area.setAlignment(Qt.AlignmentFlag.AlignTop)
        self.scroll_area.setWidget(self.canvas)

        splitter = QSplitter()
        splitter.addWidget(self.palette)
        splitter.addWidget(self.scroll_area)
        splitter.addWidget(self.properties)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 4)
        splitter.setStretchFactor(2, 1)
        self.setCentralWidget(splitter)

        self.last_saved_label = QLabel()
        self._build_toolbar()
        self.statusBar().addPermanentWidget(self.last_saved_label)
        self.statusBar().showMessage("Ready")

        self.store.subscribe(self._on_state_changed)
        self._on_state_changed(self.store.state)

    def _build_toolbar(self) -> None:
        toolbar = QToolBar("Main Toolbar")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        add_group_action = QAction("Add Fieldset", self)
        add_group_action.triggered.connect(lambda: self.store.dispatch(AddGroup()))
        toolbar.addAction(add_group_action)

        copy_action = QAction("Copy Field", self)
        copy_action.setShortcut("Ctrl+D")
        copy_action.triggered.connect(self.copy_selected_field)
        toolbar.addAction(copy_action)

        delete_action = QAction("Delete Field", self)
        delete_action.triggered.connect(self.delete_selected_field)
        toolbar.addAction(delete_action)

        toolbar.addSeparator()

        self.undo_action = QAction("Undo", self)
        self.undo_action.setShortcut(QKeySequence.StandardKey.Undo)
        self.undo_action.triggered.connect(self.store.undo)
        toolbar.addAction(self.undo_action)

        self.redo_action = QAction("Redo", self)
        self.redo_action.setShortcut(QKeySequence.StandardKey.Redo)
        self.redo_action.triggered.connect(self.store.redo)
        toolbar.addAction(self.redo_action)

        toolbar.addSeparator()

        export_action = QAction("Export PDF", self)
        export_action.triggered.connect(self.export_pdf)
        toolbar.addAction(export_action)

        draft_action = QAction("Draft", self)
        draft_action.triggered.connect(lambda: self.save_form(as_draft=True))
        toolbar.addAction(draft_action)

        save_action = QAction("Save Form", self)
        save_action.setShortcut(QKeySequence.StandardKey.Save)
        save_action.triggered.connect(lambda: self.save_form(as_draft=False))
        toolbar.addAction(save_action)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.coordinator.cancel()
        for worker, thread in list(self._pending):
            worker.cancel()
            thread.quit()
            thread.wait(self._request_timeout_ms)
        self._pending.clear()
        if self._gateway is not None:
            self._gateway.close()
        super().closeEvent(event)

    def load_form(self) -> None:
        if self._gateway is None:
            self.statusBar().showMessage("No form API configured. Working in offline mode.")
            return
        self.statusBar().showMessage("Loading form builder...")
        self._run_in_background(self._gateway.load, self._on_loaded)

    def save_form(self, as_draft: bool = False) -> None:
        if self._gateway is None:
            self._show_notice(
                Notice("Network error", "No form API configured. Form was not saved.", error=True)
            )
            return
        document = self.store.state
        gateway = self._gateway
        self._run_in_background(lambda: gateway.save(document, as_draft=as_draft), self._on_saved)

    def export_pdf(self) -> None:
        output_path, _ = QFileDialog.getSaveFileName(
            self,
            "Export Fillable PDF",
            str(Path.home() / "form.pdf"),
            "PDF Files (*.pdf)",
        )
        if not output_path:
            return
        try:
            write_form_pdf(self.store.state, output_path)
        except PdfWriteError as exc:
            QMessageBox.critical(self, "Export Failed", str(exc))
            return
        self.statusBar().showMessage(f"Exported: {output_path}")

    def delete_selected_field(self) -> None:
        group, field = self.store.selected()
        if group is None or field is None:
            self.statusBar().showMessage("No selected field to delete.")
            return
        self.store.dispatch(RemoveField(group.id, field.id))
        self.statusBar().showMessage(f"Deleted field. {group.name}: {len(group.fields) - 1} field(s)")

    def copy_selected_field(self) -> None:
        group, field = self.store.selected()
        if group is None or field is None:
            self.statusBar().showMessage("No selected field to copy.")
            return
        self.store.dispatch(DuplicateField(group.id, field.id))
        self.statusBar().showMessage(f"Copied field. {group.name}: {len(group.fields) + 1} field(s)")

    def keyPressEvent(self, event) -> None:  # type: ignore[override]
        if event.key() == Qt.Key.Key_Delete:
            self.delete_selected_field()
            event.accept()
            return
        super().keyPressEvent(event)

    def _run_in_background(self, call, on_finished) -> None:
        self._pending.append(start_worker(self, call, on_finished))

    def _forget_worker(self, worker: object) -> None:
        self._pending = [pair for pair in self._pending if pair[0] is not worker]

    @Slot(object)
    def _on_loaded(self, result: object) -> None:
        self._forget_worker(self.sender())
        if not isinstance(result, LoadResult):
            return
        if result.document is not None:
            self.store.dispatch(ReplaceDocument(result.document))
        if result.notice is not None:
            self._show_notice(result.notice)
        else:
            self.statusBar().showMessage("Ready")

    @Slot(object)
    def _on_saved(self, result: object) -> None:
        self._forget_worker(self.sender())
        if not isinstance(result, SaveResult):
            return
        if result.ok and result.saved_at is not None:
            self.store.dispatch(MarkSaved(saved_at=result.saved_at, is_draft=result.is_draft))
        if result.notice is not None:
            self._show_notice(result.notice)

    def _show_notice(self, notice: Notice) -> None:
        if notice.error:
            logger.warning("%s: %s", notice.title, notice.message)
        self.statusBar().showMessage(f"{notice.title}: {notice.message}", 8000)

    def _show_warning(self, message: str) -> None:
        self.statusBar().showMessage(message, 8000)

    def _on_state_changed(self, document: FormDocument) -> None:
        self.canvas.set_document(document)
        self.properties.set_document(document)
        self.undo_action.setEnabled(self.store.can_undo)
        self.redo_action.setEnabled(self.store.can_redo)
        label = describe_last_saved(document.last_saved)
        if document.last_saved is not None and document.is_draft:
            label += " (draft)"
        self.last_saved_label.setText(label)
