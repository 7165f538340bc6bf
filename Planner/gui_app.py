#!/usr/bin/env python
"""
GUI entry point for the production planner.

Usage:
    python -m Planner.gui_app [CONFIG]
    python -m Planner.run_planner --gui
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QApplication

from .calculator import Calculator
from .config import load_config
from .errors import PlannerError
from .gui import MainWindow
from .planner_logging import create_string_logger, parse_log_level
from .recipe import DEFAULT_METHOD
from .run_planner import build_calculator


def run_gui(calculator: Calculator, default_method: str = DEFAULT_METHOD) -> int:
    """
    Show the main window for an existing calculator.

    Returns
    -------
    int
        Exit code of the Qt event loop
    """
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("Crafting Planner")
    app.setApplicationVersion("0.1.0")
    app.setStyle("Fusion")

    window = MainWindow(calculator, default_method)
    window.show()

    return app.exec()


def main(config_path: Optional[Path] = None) -> int:
    """
    Launch the GUI application from a config file.

    Parameters
    ----------
    config_path : Path, optional
        Path to planner config YAML. Defaults to Planner/DefaultPlannerConfig.yaml
    """
    try:
        config = load_config(config_path)
        logger, _ = create_string_logger(parse_log_level(config.log_level))
        calculator = build_calculator(config, logger)
    except (OSError, PlannerError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return run_gui(calculator, config.default_method)


if __name__ == "__main__":
    config_arg = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    sys.exit(main(config_arg))
