"""PySide6 front end for the production planner."""

from .main_window import MainWindow

__all__ = ["MainWindow"]
