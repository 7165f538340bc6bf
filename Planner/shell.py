"""
Interactive command shell around a Calculator.

Each command is a registry entry with an example, help text and an apply
function. The first word of an input line selects the first command whose
name starts with it; anything unrecognised prints the command list.

Usage:
    from Planner.shell import PlannerShell

    PlannerShell(Calculator()).run()
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, TextIO

from .calculator import Calculator
from .errors import PlannerError
from .recipe import DEFAULT_METHOD, Recipe, format_recipes
from .stack import Stack

PROMPT = "$ "

# Views accepted by `print` and `write`
VIEWS = ("steps", "resources", "recipes")


def render_view(calculator: Calculator, what: str) -> str:
    """Text for one of the VIEWS of the calculator state."""
    if what == "steps":
        return calculator.format_steps()
    if what == "resources":
        return "".join(f"{stack}\n" for stack in calculator.resources())
    if what == "recipes":
        return format_recipes(calculator.recipes())
    raise ValueError(f"Unknown view {what!r}, expected one of {', '.join(VIEWS)}")


@dataclass(frozen=True)
class Command:
    """A shell command: how to call it, what it does, and the handler."""
    name: str
    example: str
    short_help: str
    apply: Callable[["PlannerShell", str], None]
    long_help: Optional[str] = None

    def describe(self) -> str:
        return self.long_help or self.short_help


class PlannerShell:
    """
    Line-oriented front end for a Calculator.

    Parameters
    ----------
    calculator : Calculator
        Engine the commands operate on.
    default_method : str
        Method label for recipe blocks loaded without one.
    stdin, stdout, stderr : TextIO | None
        Streams used for input, normal output, and error reports. Default to
        the process streams.
    """

    def __init__(
        self,
        calculator: Calculator,
        default_method: str = DEFAULT_METHOD,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        self.calculator = calculator
        self.default_method = default_method
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

    # -------------------------------------------------------------------------
    # I/O helpers
    # -------------------------------------------------------------------------

    def write(self, text: str) -> None:
        self.stdout.write(text)
        self.stdout.flush()

    def report(self, message: str) -> None:
        self.stderr.write(message + "\n")
        self.stderr.flush()

    def prompt(self, text: str) -> str:
        """Ask for one line of input. Raises EOFError when input is exhausted."""
        self.write(f"{text}: ")
        line = self.stdin.readline()
        if not line:
            raise EOFError(text)
        return line.strip()

    # -------------------------------------------------------------------------
    # Main loop
    # -------------------------------------------------------------------------

    def find_command(self, word: str) -> Optional[Command]:
        for command in COMMANDS:
            if command.name.startswith(word):
                return command
        return None

    def execute(self, line: str) -> None:
        """Run one input line."""
        words = line.split()
        if not words:
            return
        word = words[0]
        arguments = line.strip()[len(word):].strip()
        command = self.find_command(word)
        if command is None:
            show_help(self, "")
        else:
            command.apply(self, arguments)

    def run(self) -> None:
        """Read and execute commands until end of input."""
        while True:
            self.write(PROMPT)
            line = self.stdin.readline()
            if not line:
                self.write("\n")
                return
            self.execute(line)


# -----------------------------------------------------------------------------
# Command handlers
# -----------------------------------------------------------------------------

def show_help(shell: PlannerShell, arguments: str) -> None:
    if arguments:
        for command in COMMANDS:
            if command.name == arguments:
                shell.write(command.describe() + "\n")
                return
    width = max(len(command.example) for command in COMMANDS)
    for command in COMMANDS:
        shell.write(f"{command.example:<{width}}   {command.short_help}\n")


def load_file(shell: PlannerShell, arguments: str) -> None:
    if not arguments:
        shell.report("Can't load recipes with no `file` argument.")
        return
    try:
        shell.calculator.load_file(Path(arguments), shell.default_method)
    except OSError as exc:
        shell.report(f"Couldn't read recipe file {arguments!r}: {exc}")
    except PlannerError as exc:
        shell.report(f"Couldn't load recipe file {arguments!r}: {exc}")


def print_view(shell: PlannerShell, arguments: str) -> None:
    what = arguments or "steps"
    if what not in VIEWS:
        shell.write(f"Unknown `what`: {what!r}\n")
        return
    shell.write(render_view(shell.calculator, what))


def new_recipe(shell: PlannerShell, arguments: str) -> None:
    try:
        result = Stack.parse(shell.prompt("Enter result (ex: Oak Planks (4))"))
        method = shell.prompt("Enter crafting method") or shell.default_method
        ingredients: List[Stack] = []
        while True:
            text = shell.prompt("Enter ingredient (leave blank to finish)")
            if not text:
                break
            ingredients.append(Stack.parse(text))
        recipe = Recipe(result, method, ingredients)
        shell.calculator.set_recipe(recipe)
    except EOFError:
        shell.report("Couldn't read recipe: input ended")
    except (PlannerError, ValueError) as exc:
        shell.report(f"Couldn't add recipe: {exc}")


def add_resource(shell: PlannerShell, arguments: str) -> None:
    try:
        text = arguments or shell.prompt("Enter resource")
        shell.calculator.add_resource(Stack.parse(text))
    except EOFError:
        shell.report("Couldn't read resource: input ended")
    except PlannerError as exc:
        shell.report(f"Couldn't add resource: {exc}")


def set_target(shell: PlannerShell, arguments: str) -> None:
    if not arguments:
        shell.write(f"Current target is {shell.calculator.target}\n")
        return
    try:
        shell.calculator.set_target(Stack.parse(arguments))
    except PlannerError as exc:
        shell.report(str(exc))


def write_file(shell: PlannerShell, arguments: str) -> None:
    if not arguments:
        shell.report("Can't write state with no `file` argument.")
        return
    filename, what = arguments, "recipes"
    parts = arguments.rsplit(None, 1)
    if len(parts) == 2 and parts[1] in VIEWS:
        filename, what = parts
    try:
        with Path(filename).open("w", encoding="utf-8") as fh:
            fh.write(render_view(shell.calculator, what))
    except OSError as exc:
        shell.report(f"Couldn't write {what} to {filename!r}: {exc}")


COMMANDS: List[Command] = [
    Command(
        "help", "help [cmd]",
        "Print this help message or print detailed help about `cmd`.",
        show_help,
        "Print information about the available commands. "
        "Use `help cmd` to print help about the command `cmd`.",
    ),
    Command("load", "load <file>", "Read recipes from `file`.", load_file),
    Command(
        "print", "print [what]",
        "Print the current state of the calculator.",
        print_view,
        "Print the current state of the calculator.\n"
        "`what` can be `steps`, `resources`, or `recipes`. "
        "If `what` is omitted, it is assumed to be `steps`.",
    ),
    Command(
        "recipe", "recipe",
        "Add a new recipe to the calculator.",
        new_recipe,
        "Prompts for the result, the crafting method and one ingredient per "
        "line until a blank line, then adds that recipe to the calculator.",
    ),
    Command(
        "resource", "resource [stack]",
        "Adds `stack` as a resource that is already available for crafting.",
        add_resource,
        "Adds `stack` as a resource that is already available and therefore "
        "does not need to be crafted.",
    ),
    Command(
        "target", "target [stack]",
        "Sets the calculator to target `stack` or prints the current target.",
        set_target,
        "If `stack` is given, the calculator's target is set to `stack`. "
        "Otherwise, prints the calculator's current target.",
    ),
    Command(
        "write", "write <file> [what]",
        "Similar to `print what` but writes to `file` and defaults to `recipes`.",
        write_file,
        "Write the current state of the calculator to `file`.\n"
        "`what` can be `steps`, `resources`, or `recipes`. "
        "If `what` is omitted, it is assumed to be `recipes`.",
    ),
]
