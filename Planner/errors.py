"""Exception types raised by the production planner."""
from __future__ import annotations

from typing import List, Optional


class PlannerError(Exception):
    """Base class for every error the planner reports."""


class RecipeParseError(PlannerError, ValueError):
    """Raised when recipe or stack text is malformed."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.message = message
        self.line = line
        if line is None:
            super().__init__(message)
        else:
            super().__init__(f"line {line}: {message}")


class CountOverflowError(PlannerError, OverflowError):
    """Raised when count arithmetic leaves the representable range."""


class RecipeCycleError(PlannerError):
    """Raised when an item directly or transitively requires itself."""

    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        super().__init__("Recipe cycle: " + " -> ".join(self.cycle))


class PlanConsistencyError(PlannerError, RuntimeError):
    """Raised when the engine breaks one of its own invariants.

    This signals a defect in the planner rather than bad input.
    """


class ConfigError(PlannerError):
    """Raised when the configuration file is missing or invalid."""
