"""PySide6 widgets for the F1 chat window.

Import ``f1chat.ui.main_window.MainWindow`` directly; the package itself stays
free of QtWidgets so the Qt-core-only worker module can be loaded headless.
"""
