# main.py
import sys
import logging

from PySide6.QtWidgets import QApplication

from core.services.settings_service import load_settings
from ui.main_window import MainWindow


def main() -> int:
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.logging.level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    win = MainWindow(settings)
    win.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
