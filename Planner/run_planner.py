#!/usr/bin/env python
"""CLI entry point for the production planner."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from .calculator import Calculator
from .config import PlannerConfig, load_config
from .errors import PlannerError
from .planner_logging import LogLevel, PlannerLogger, create_logger
from .shell import VIEWS, PlannerShell, render_view
from .stack import Stack


def build_calculator(
    config: PlannerConfig,
    logger: PlannerLogger,
    recipe_files: Sequence[Path] = (),
    resources: Sequence[Stack] = (),
    target: Optional[Stack] = None,
) -> Calculator:
    """
    Create a calculator seeded from the config and any command-line additions.

    Recipe files and resources from the command line are applied after the
    ones named in the config; an explicit ``target`` overrides the config's.
    """
    calculator = Calculator(logger=logger)
    for path in list(config.recipe_files) + list(recipe_files):
        calculator.load_file(path, config.default_method)
    for stack in config.resource_stacks() + list(resources):
        calculator.add_resource(stack)

    target = target or config.target_stack()
    if target is not None:
        calculator.set_target(target)
    return calculator


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compute an ordered production plan from a recipe catalog."
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to planner config YAML (default: Planner/DefaultPlannerConfig.yaml)",
    )
    parser.add_argument(
        "-r",
        "--recipes",
        type=Path,
        action="append",
        default=[],
        help="Recipe file to load (may be given several times)",
    )
    parser.add_argument(
        "-t",
        "--target",
        type=Stack.parse,
        default=None,
        help='Target stack, e.g. "Wooden Shovel (1)"',
    )
    parser.add_argument(
        "-s",
        "--resource",
        dest="resources",
        type=Stack.parse,
        action="append",
        default=[],
        help='Stack already in storage, e.g. "Stick (1)" (may be given several times)',
    )
    parser.add_argument(
        "--print",
        dest="view",
        choices=VIEWS,
        default=None,
        help="Print the selected view and exit instead of starting the shell",
    )
    parser.add_argument(
        "--gui",
        action="store_true",
        help="Start the graphical interface",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=[level.name for level in LogLevel],
        help="Planner log verbosity (default: from config, SILENT)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write planner logs to this file",
    )

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        logger = create_logger(args.log_level or config.log_level, output=sys.stderr,
                               log_file=args.log_file or config.log_file)
    except (OSError, PlannerError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    with logger:
        try:
            calculator = build_calculator(config, logger, args.recipes, args.resources,
                                          args.target)
        except (OSError, PlannerError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

        if args.view:
            sys.stdout.write(render_view(calculator, args.view))
            return 0

        if args.gui:
            # Imported lazily so the CLI works without PySide6 installed
            from .gui_app import run_gui
            return run_gui(calculator, config.default_method)

        PlannerShell(calculator, default_method=config.default_method).run()
        return 0


if __name__ == "__main__":
    sys.exit(main())
