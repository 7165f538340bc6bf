"""Widget subpackage for reusable GUI components."""

from .dialogs import RecipeDialog, StackDialog, StackRow
from .steps_table import StepsTableWidget, describe_ingredients

__all__ = [
    "RecipeDialog",
    "StackDialog",
    "StackRow",
    "StepsTableWidget",
    "describe_ingredients",
]
