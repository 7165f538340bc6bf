"""Planner package: ordered production plans from a recipe catalog."""
from .stack import MAX_COUNT, Stack
from .recipe import (
    DEFAULT_METHOD,
    IN_STORAGE,
    RAW_MATERIAL,
    Recipe,
    format_recipes,
    load_recipes,
    parse_recipes,
    save_recipes,
)
from .calculator import Calculator, Step
from .config import PlannerConfig, load_config, save_config
from .errors import (
    ConfigError,
    CountOverflowError,
    PlanConsistencyError,
    PlannerError,
    RecipeCycleError,
    RecipeParseError,
)
from .planner_logging import LogLevel, PlannerLogger, create_logger, create_string_logger

__all__ = [
    "MAX_COUNT",
    "Stack",
    "DEFAULT_METHOD",
    "IN_STORAGE",
    "RAW_MATERIAL",
    "Recipe",
    "format_recipes",
    "load_recipes",
    "parse_recipes",
    "save_recipes",
    "Calculator",
    "Step",
    "PlannerConfig",
    "load_config",
    "save_config",
    # Errors
    "ConfigError",
    "CountOverflowError",
    "PlanConsistencyError",
    "PlannerError",
    "RecipeCycleError",
    "RecipeParseError",
    # Logging
    "LogLevel",
    "PlannerLogger",
    "create_logger",
    "create_string_logger",
]
