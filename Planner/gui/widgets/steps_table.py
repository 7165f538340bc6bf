"""
Plan display widget.

Shows the calculator's steps in execution order, each scaled by its
repeat count.
"""
from __future__ import annotations

from typing import Optional, Sequence

from PySide6.QtCore import Qt
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWidgets import (
    QHeaderView,
    QLabel,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from ...calculator import Step
from ...recipe import IN_STORAGE, RAW_MATERIAL, scaled_ingredients


def describe_ingredients(step: Step) -> str:
    """Comma-separated ingredient stacks for one execution batch of ``step``."""
    return ", ".join(str(stack) for stack in scaled_ingredients(step.recipe, step.repeats))


class StepsTableWidget(QWidget):
    """
    Table displaying the production plan.

    Columns: #, Method, Result, Ingredients
    """

    # Pseudo-recipe rows are tinted so stock and raw inputs stand out
    ROW_COLORS = {
        RAW_MATERIAL: "#7f8c8d",
        IN_STORAGE: "#27ae60",
    }

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._summary = QLabel("No plan yet")
        self._summary.setStyleSheet("font-weight: bold; font-size: 12px;")
        layout.addWidget(self._summary)

        self._table = QTableWidget()
        self._table.setColumnCount(4)
        self._table.setHorizontalHeaderLabels(["#", "Method", "Result", "Ingredients"])
        header = self._table.horizontalHeader()
        header.setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.ResizeToContents)
        self._table.verticalHeader().setVisible(False)
        self._table.setAlternatingRowColors(True)
        self._table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self._table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        layout.addWidget(self._table)

    def clear(self) -> None:
        """Clear the table."""
        self._table.setRowCount(0)
        self._summary.setText("No plan yet")

    def set_steps(self, steps: Sequence[Step]) -> None:
        """Populate the table from a plan."""
        self._table.setRowCount(len(steps))

        for row, step in enumerate(steps):
            index_item = QTableWidgetItem(str(row + 1))
            index_item.setTextAlignment(Qt.AlignmentFlag.AlignCenter)
            self._table.setItem(row, 0, index_item)

            method_item = QTableWidgetItem(step.recipe.method)
            color = self.ROW_COLORS.get(step.recipe.method)
            if color and step.recipe.is_pseudo:
                method_item.setForeground(QBrush(QColor("white")))
                method_item.setBackground(QBrush(QColor(color)))
            self._table.setItem(row, 1, method_item)

            result = step.recipe.result.scaled(step.repeats)
            self._table.setItem(row, 2, QTableWidgetItem(str(result)))
            self._table.setItem(row, 3, QTableWidgetItem(describe_ingredients(step)))

        crafted = sum(1 for step in steps if not step.recipe.is_pseudo)
        self._summary.setText(f"{len(steps)} step(s), {crafted} crafted")
