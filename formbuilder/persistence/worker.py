"""Background workers that run gateway calls off the UI thread."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QObject, QThread, Signal, Slot


class PersistenceWorker(QObject):
    finished = Signal(object)  # LoadResult | SaveResult | None when cancelled

    def __init__(self, call: Callable[[], object]) -> None:
        super().__init__()
        self._call = call
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    @Slot()
    def run(self) -> None:
        result = self._call()
        self.finished.emit(None if self._cancelled else result)


def start_worker(
    parent: QObject,
    call: Callable[[], object],
    on_finished: Callable[[object], None],
) -> tuple[PersistenceWorker, QThread]:
    worker = PersistenceWorker(call)
    thread = QThread(parent)
    worker.moveToThread(thread)
    thread.started.connect(worker.run)
    worker.finished.connect(on_finished)
    worker.finished.connect(thread.quit)
    worker.finished.connect(worker.deleteLater)
    thread.finished.connect(thread.deleteLater)
    thread.start()
    return worker, thread
