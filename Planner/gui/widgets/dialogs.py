"""
Input dialogs for stacks and recipes.

The dialogs only collect values; constructing Stack/Recipe objects may still
raise ValueError, which the caller reports.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLineEdit,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from ...recipe import DEFAULT_METHOD, Recipe
from ...stack import Stack

# QSpinBox holds a C int
SPIN_MAX = 2**31 - 1


class StackRow(QWidget):
    """An item name field beside a count spin box."""

    def __init__(self, minimum: int = 1, parent: Optional[QWidget] = None):
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.name_edit = QLineEdit()
        self.name_edit.setPlaceholderText("Item name")
        layout.addWidget(self.name_edit, stretch=1)

        self.count_spin = QSpinBox()
        self.count_spin.setRange(minimum, SPIN_MAX)
        self.count_spin.setValue(max(minimum, 1))
        layout.addWidget(self.count_spin)

    def values(self) -> Tuple[str, int]:
        return self.name_edit.text().strip(), self.count_spin.value()

    def stack(self) -> Stack:
        name, count = self.values()
        return Stack(name, count)


class StackDialog(QDialog):
    """Ask for a single stack, used for the target and for resources."""

    def __init__(self, title: str, initial: Optional[Stack] = None,
                 parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle(title)

        layout = QVBoxLayout(self)
        self._row = StackRow()
        if initial is not None:
            self._row.name_edit.setText(initial.item)
            self._row.count_spin.setValue(min(max(initial.count, 1), SPIN_MAX))
        layout.addWidget(self._row)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        self._row.name_edit.returnPressed.connect(self.accept)
        self._row.name_edit.setFocus()

    def stack(self) -> Stack:
        return self._row.stack()


class RecipeDialog(QDialog):
    """Collect a recipe: result stack, method, and any number of ingredients."""

    def __init__(self, default_method: str = DEFAULT_METHOD,
                 parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle("Add Recipe")
        self.resize(420, 300)
        self._ingredient_rows: List[StackRow] = []

        layout = QVBoxLayout(self)

        form = QFormLayout()
        self._result_row = StackRow()
        form.addRow("Result:", self._result_row)
        self._method_edit = QLineEdit()
        self._method_edit.setPlaceholderText(default_method)
        form.addRow("Method:", self._method_edit)
        layout.addLayout(form)
        self._default_method = default_method

        ingredients_group = QGroupBox("Ingredients")
        self._ingredients_layout = QVBoxLayout(ingredients_group)
        layout.addWidget(ingredients_group, stretch=1)
        self._add_ingredient_row()

        add_btn = QPushButton("+")
        add_btn.setToolTip("Add another ingredient")
        add_btn.clicked.connect(self._add_ingredient_row)
        layout.addWidget(add_btn)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        self._result_row.name_edit.setFocus()

    def _add_ingredient_row(self) -> None:
        row = StackRow()
        self._ingredient_rows.append(row)
        self._ingredients_layout.addWidget(row)

    def recipe(self) -> Recipe:
        """Build the recipe; rows with an empty item name are ignored."""
        ingredients = [row.stack() for row in self._ingredient_rows if row.values()[0]]
        method = self._method_edit.text().strip() or self._default_method
        return Recipe(self._result_row.stack(), method, ingredients)
