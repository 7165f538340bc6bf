"""Load, validate, and save planner configuration from DefaultPlannerConfig.yaml."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError, PlannerError
from .planner_logging import LogLevel
from .recipe import DEFAULT_METHOD
from .stack import MAX_COUNT, Stack

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "DefaultPlannerConfig.yaml"


class PlannerConfig(BaseModel):
    """Start-up settings for the shell, CLI and GUI.

    Field names follow Python conventions; the YAML file uses the camelCase
    aliases (``defaultMethod``, ``recipeFiles``, ``logLevel``, ``logFile``).
    """
    default_method: str = Field(default=DEFAULT_METHOD, min_length=1, alias="defaultMethod")
    recipe_files: List[Path] = Field(default_factory=list, alias="recipeFiles")
    resources: Dict[str, int] = Field(default_factory=dict)
    target: Optional[str] = None
    log_level: str = Field(default="SILENT", alias="logLevel")
    log_file: Optional[Path] = Field(default=None, alias="logFile")

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    @field_validator("resources")
    @classmethod
    def _check_resource_counts(cls, value: Dict[str, int]) -> Dict[str, int]:
        for item, count in value.items():
            if not item:
                raise ValueError("resource names must be non-empty")
            if count < 0 or count > MAX_COUNT:
                raise ValueError(f"resource {item!r} count {count} is outside 0..{MAX_COUNT}")
        return value

    @field_validator("target")
    @classmethod
    def _check_target(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                Stack.parse(value)
            except PlannerError as exc:
                raise ValueError(str(exc)) from exc
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        name = value.strip().upper()
        if name not in LogLevel.__members__:
            raise ValueError(f"unknown log level {value!r}")
        return name

    def target_stack(self) -> Optional[Stack]:
        return Stack.parse(self.target) if self.target is not None else None

    def resource_stacks(self) -> List[Stack]:
        return [Stack(item, count) for item, count in self.resources.items()]

    def resolve_paths(self, base_dir: Path) -> "PlannerConfig":
        """Return a copy whose relative paths are anchored at ``base_dir``."""
        updates: Dict[str, Any] = {
            "recipe_files": [p if p.is_absolute() else (base_dir / p).resolve()
                             for p in self.recipe_files],
        }
        if self.log_file is not None and not self.log_file.is_absolute():
            updates["log_file"] = (base_dir / self.log_file).resolve()
        return self.model_copy(update=updates)


def load_config(path: Optional[Path] = None) -> PlannerConfig:
    """
    Load configuration YAML into a PlannerConfig.

    A missing file yields the defaults. Relative recipe and log paths are
    resolved against the directory holding the file.

    Raises
    ------
    ConfigError
        If the file cannot be read, is not valid YAML, or fails validation.
    """
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        return PlannerConfig()

    try:
        with cfg_path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except OSError as exc:
        raise ConfigError(f"Unable to read {cfg_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {cfg_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Expected a mapping at the top of {cfg_path}")

    try:
        config = PlannerConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {cfg_path}: {exc}") from exc
    return config.resolve_paths(cfg_path.resolve().parent)


def save_config(config: PlannerConfig, path: Optional[Path] = None) -> None:
    """
    Save a PlannerConfig back to YAML.

    Parameters
    ----------
    config : PlannerConfig
        The configuration to save
    path : Path, optional
        Path to save to. Defaults to DefaultPlannerConfig.yaml
    """
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {
        "defaultMethod": config.default_method,
        "recipeFiles": [str(p) for p in config.recipe_files],
        "resources": dict(config.resources),
        "target": config.target,
        "logLevel": config.log_level,
        "logFile": str(config.log_file) if config.log_file is not None else None,
    }

    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, allow_unicode=True, sort_keys=False)
