"""
Application Initialization
==========================
This module constructs the Model-Controller-View chain and starts the Qt
Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Instantiates the step engine (Simulator) and its Qt store.
2. Instantiates the Main Window (View).
3. Passes the store into the View so they can communicate.
"""
import logging
import sys
from PySide6.QtWidgets import QApplication

from spectrolab.app.store import SimulationStore
from spectrolab.config import VISIBLE_APP_NAME
from spectrolab.logging_config import setup_logging
from spectrolab.view.main_window import MainWindow


def main() -> None:
    # 1. Setup Logging
    # Use logging.DEBUG to see every snapshot and rejected action
    setup_logging(level=logging.INFO)

    # 2. Create the Qt Application
    app = QApplication(sys.argv)
    app.setApplicationName(VISIBLE_APP_NAME)

    # 3. Initialize the engine behind its Qt store
    store = SimulationStore()

    # 4. Initialize the Main Window, passing the store
    window = MainWindow(store)
    window.show()

    # 5. Start Event Loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
