import logging
import sys

from PySide6.QtWidgets import QApplication

from formbuilder import config
from formbuilder.persistence.gateway import PersistenceGateway
from formbuilder.state.store import FormStore
from formbuilder.ui.main_window import MainWindow


def setup_logging(level: str = "INFO") -> logging.Logger:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("formbuilder")


def main() -> int:
    logger = setup_logging(config.LOG_LEVEL)

    app = QApplication(sys.argv)
    store = FormStore(history_limit=config.HISTORY_LIMIT)

    gateway = None
    if config.API_URL:
        gateway = PersistenceGateway(config.API_URL, timeout=config.REQUEST_TIMEOUT_S)
    else:
        logger.info("FORMBUILDER_API_URL not set; saving is disabled")

    window = MainWindow(store, gateway, request_timeout_s=config.REQUEST_TIMEOUT_S)
    window.show()
    window.load_form()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
