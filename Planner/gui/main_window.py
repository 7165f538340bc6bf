"""
Main application window for the production planner GUI.

Shows the current target and plan, and drives the calculator through its
public operations only.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from PySide6.QtCore import Slot
from PySide6.QtGui import QAction, QActionGroup
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QStatusBar,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from ..calculator import Calculator
from ..errors import PlannerError
from ..planner_logging import LogLevel
from ..recipe import DEFAULT_METHOD, save_recipes
from ..shell import render_view
from .widgets import RecipeDialog, StackDialog, StepsTableWidget

RECIPE_FILE_FILTER = "Recipe Files (*.txt *.recipes);;All Files (*)"


class MainWindow(QMainWindow):
    """
    Main application window.

    Layout:
    - Top: current target
    - Centre: plan table
    - Bottom: action buttons, status bar
    """

    def __init__(self, calculator: Optional[Calculator] = None,
                 default_method: str = DEFAULT_METHOD):
        super().__init__()

        self._calculator = calculator if calculator is not None else Calculator()
        self._default_method = default_method

        self._setup_ui()
        self._setup_menu()
        self._connect_signals()
        self._refresh()

        self.setWindowTitle("Crafting Planner")
        self.resize(900, 600)
        self.setMinimumSize(600, 400)

    def _setup_ui(self) -> None:
        """Build the main UI layout."""
        central = QWidget()
        self.setCentralWidget(central)

        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(8, 8, 8, 8)

        target_group = QGroupBox("Target")
        target_layout = QHBoxLayout(target_group)
        self._target_label = QLabel()
        self._target_label.setStyleSheet("font-weight: bold; font-size: 14px;")
        target_layout.addWidget(self._target_label, stretch=1)
        main_layout.addWidget(target_group)

        steps_group = QGroupBox("Steps")
        steps_layout = QVBoxLayout(steps_group)
        steps_layout.setContentsMargins(4, 4, 4, 4)
        self._steps_widget = StepsTableWidget()
        steps_layout.addWidget(self._steps_widget)
        main_layout.addWidget(steps_group, stretch=1)

        button_row = QHBoxLayout()
        button_row.setSpacing(12)

        self._target_btn = QPushButton("Set Target")
        self._target_btn.setStyleSheet("""
            QPushButton {
                background-color: #3498db;
                color: white;
                font-weight: bold;
                padding: 8px 24px;
                border-radius: 4px;
            }
            QPushButton:hover {
                background-color: #2980b9;
            }
        """)
        button_row.addWidget(self._target_btn)

        self._recipe_btn = QPushButton("Add Recipe")
        button_row.addWidget(self._recipe_btn)

        self._resource_btn = QPushButton("Add Resource")
        button_row.addWidget(self._resource_btn)

        button_row.addStretch()

        self._load_btn = QPushButton("Load Recipes...")
        button_row.addWidget(self._load_btn)

        main_layout.addLayout(button_row)

        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)
        self._status_bar.showMessage("Ready")

    def _setup_menu(self) -> None:
        """Build the menu bar."""
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")

        load_action = file_menu.addAction("&Load Recipes...")
        load_action.triggered.connect(self._on_load_recipes)

        save_action = file_menu.addAction("&Save Recipes As...")
        save_action.triggered.connect(self._on_save_recipes)

        export_action = file_menu.addAction("&Export Steps...")
        export_action.triggered.connect(self._on_export_steps)

        file_menu.addSeparator()

        exit_action = file_menu.addAction("E&xit")
        exit_action.triggered.connect(self.close)

        # Developer menu
        dev_menu = menubar.addMenu("&Developer")

        log_level_menu = dev_menu.addMenu("Log Level")
        self._log_level_group = QActionGroup(self)
        self._log_level_group.setExclusive(True)

        for level in LogLevel:
            action = QAction(level.name.title(), self)
            action.setCheckable(True)
            action.setChecked(level == self._calculator.logger.level)
            action.setData(level)
            action.triggered.connect(self._on_log_level_changed)
            self._log_level_group.addAction(action)
            log_level_menu.addAction(action)

        dev_menu.addSeparator()

        view_logs_action = dev_menu.addAction("&View Logs...")
        view_logs_action.triggered.connect(self._on_view_logs)

        clear_logs_action = dev_menu.addAction("&Clear Logs")
        clear_logs_action.triggered.connect(self._on_clear_logs)

        help_menu = menubar.addMenu("&Help")
        about_action = help_menu.addAction("&About")
        about_action.triggered.connect(self._on_about)

    def _connect_signals(self) -> None:
        """Connect button signals."""
        self._target_btn.clicked.connect(self._on_set_target)
        self._recipe_btn.clicked.connect(self._on_add_recipe)
        self._resource_btn.clicked.connect(self._on_add_resource)
        self._load_btn.clicked.connect(self._on_load_recipes)

    def _refresh(self) -> None:
        """Redraw the target and plan from the calculator."""
        self._target_label.setText(str(self._calculator.target))
        self._steps_widget.set_steps(self._calculator.steps)

    def _show_error(self, title: str, exc: Exception) -> None:
        QMessageBox.critical(self, title, str(exc))
        self._status_bar.showMessage(f"{title}: {exc}", 5000)

    # -------------------------------------------------------------------------
    # Calculator actions
    # -------------------------------------------------------------------------

    @Slot()
    def _on_set_target(self) -> None:
        dialog = StackDialog("Set Target", self._calculator.target, self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        try:
            self._calculator.set_target(dialog.stack())
        except (PlannerError, ValueError) as e:
            self._show_error("Invalid Target", e)
            return
        self._refresh()
        self._status_bar.showMessage(f"Target set to {self._calculator.target}", 3000)

    @Slot()
    def _on_add_recipe(self) -> None:
        dialog = RecipeDialog(self._default_method, self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        try:
            recipe = dialog.recipe()
            self._calculator.set_recipe(recipe)
        except (PlannerError, ValueError) as e:
            self._show_error("Invalid Recipe", e)
            return
        self._refresh()
        self._status_bar.showMessage(f"Recipe for {recipe.result.item} added", 3000)

    @Slot()
    def _on_add_resource(self) -> None:
        dialog = StackDialog("Add Resource", parent=self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        try:
            stack = dialog.stack()
            self._calculator.add_resource(stack)
        except (PlannerError, ValueError) as e:
            self._show_error("Invalid Resource", e)
            return
        self._refresh()
        self._status_bar.showMessage(f"Added {stack} to storage", 3000)

    # -------------------------------------------------------------------------
    # File handlers
    # -------------------------------------------------------------------------

    @Slot()
    def _on_load_recipes(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Load Recipes", "", RECIPE_FILE_FILTER)
        if not path:
            return
        try:
            recipes = self._calculator.load_file(Path(path), self._default_method)
        except (OSError, PlannerError) as e:
            self._show_error("Load Error", e)
            return
        self._refresh()
        self._status_bar.showMessage(f"Loaded {len(recipes)} recipe(s) from {path}", 5000)

    @Slot()
    def _on_save_recipes(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "Save Recipes", "recipes.txt",
                                              RECIPE_FILE_FILTER)
        if not path:
            return
        try:
            save_recipes(self._calculator.recipes(), Path(path))
        except OSError as e:
            self._show_error("Save Error", e)
            return
        self._status_bar.showMessage(f"Recipes saved to {path}", 5000)

    @Slot()
    def _on_export_steps(self) -> None:
        path, _ = QFileDialog.getSaveFileName(
            self, "Export Steps", "steps.txt", "Text Files (*.txt);;All Files (*)"
        )
        if not path:
            return
        try:
            Path(path).write_text(render_view(self._calculator, "steps"), encoding="utf-8")
        except OSError as e:
            self._show_error("Export Error", e)
            return
        self._status_bar.showMessage(f"Steps exported to {path}", 5000)

    # -------------------------------------------------------------------------
    # Developer menu
    # -------------------------------------------------------------------------

    @Slot()
    def _on_log_level_changed(self) -> None:
        """Handle log level radio button change."""
        action = self._log_level_group.checkedAction()
        if action:
            self._calculator.logger.level = LogLevel(action.data())
            level_name = self._calculator.logger.level.name.title()
            self._status_bar.showMessage(f"Log level set to {level_name}", 3000)

    @Slot()
    def _on_view_logs(self) -> None:
        """Show a dialog with the planner logs."""
        dialog = QDialog(self)
        dialog.setWindowTitle("Planner Logs")
        dialog.resize(800, 600)

        layout = QVBoxLayout(dialog)

        text_edit = QTextEdit()
        text_edit.setReadOnly(True)
        text_edit.setFontFamily("Consolas, Monaco, monospace")
        logs = self._calculator.logger.to_string()
        if logs:
            text_edit.setPlainText(logs)
        else:
            text_edit.setPlainText("(No logs yet. Choose a log level other than Silent.)")
        layout.addWidget(text_edit)

        button_box = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        button_box.rejected.connect(dialog.reject)
        layout.addWidget(button_box)

        dialog.exec()

    @Slot()
    def _on_clear_logs(self) -> None:
        self._calculator.logger.clear()
        self._status_bar.showMessage("Logs cleared", 3000)

    @Slot()
    def _on_about(self) -> None:
        QMessageBox.about(
            self,
            "About Crafting Planner",
            "<h2>Crafting Planner</h2>"
            "<p>Computes an ordered production plan from a recipe catalog.</p>"
            "<p>Version 0.1.0</p>"
            "<p>Built with PySide6</p>",
        )
