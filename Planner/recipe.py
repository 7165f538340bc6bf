"""Conversion rules and their text format.

A recipe file is a sequence of blocks separated by blank lines::

    Oak Wood Planks (4): Oak Log (1)

    Charcoal (1) (Furnace): Oak Log (1)

    Wooden Shovel (1):
        Oak Wood Planks (1)
        Stick (2)

The first line of a block names the result stack, an optional method in
parentheses, and either a single ingredient on the same line or nothing,
in which case one or more indented ingredient lines follow. Every line,
including the last one, ends with a newline.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .errors import RecipeParseError
from .stack import COUNT_PATTERN, Stack, checked_mul

# Labels of the pseudo-recipes the calculator puts into plans
RAW_MATERIAL = "Raw Material"
IN_STORAGE = "In Storage"
PSEUDO_METHODS = frozenset({RAW_MATERIAL, IN_STORAGE})

# Method used by recipe blocks that do not name one
DEFAULT_METHOD = "Crafting Table"

INGREDIENT_INDENT = "    "

_HEADER_RE = re.compile(
    rf"^(?P<result>[^(]+\({COUNT_PATTERN}\))"
    r"(?: \((?P<method>[^)]+)\))?"
    r":(?P<rest>.*)$"
)


@dataclass(frozen=True)
class Recipe:
    """A known way to turn a set of ingredient stacks into a result stack.

    Executing the recipe once consumes every ingredient count and yields
    ``result.count`` of ``result.item``.
    """
    result: Stack
    method: str
    ingredients: Tuple[Stack, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept any iterable of stacks but store an immutable tuple
        object.__setattr__(self, "ingredients", tuple(self.ingredients))
        if not isinstance(self.result, Stack):
            raise ValueError(f"Recipe result must be a Stack, got {self.result!r}")
        if self.result.count < 1:
            raise ValueError(f"Recipe for {self.result.item!r} must yield at least 1 item")
        if not self.method:
            raise ValueError("Recipe method must be non-empty")
        for ingredient in self.ingredients:
            if not isinstance(ingredient, Stack):
                raise ValueError(f"Recipe ingredients must be Stacks, got {ingredient!r}")

    @classmethod
    def raw_material(cls, item: str) -> "Recipe":
        """Pseudo-recipe for an item that no known recipe produces."""
        return cls(Stack(item, 1), RAW_MATERIAL)

    @classmethod
    def in_storage(cls, item: str) -> "Recipe":
        """Pseudo-recipe for an item drawn from pre-supplied resources."""
        return cls(Stack(item, 1), IN_STORAGE)

    @property
    def is_pseudo(self) -> bool:
        return self.method in PSEUDO_METHODS and not self.ingredients

    def format(self, repeats: int = 1) -> str:
        """
        Serialize the recipe, scaled by ``repeats``.

        The result and every ingredient count are multiplied by ``repeats``;
        the output always uses the multi-line block form.
        """
        result = self.result.scaled(repeats)
        lines = [f"{result.item} ({result.count}) ({self.method}):"]
        for ingredient in scaled_ingredients(self, repeats):
            lines.append(f"{INGREDIENT_INDENT}{ingredient}")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.format()


def format_recipes(recipes: Iterable[Recipe]) -> str:
    """Serialize recipes as blocks separated by blank lines."""
    return "\n".join(recipe.format() for recipe in recipes)


def _parse_stack(text: str, line_no: int) -> Stack:
    try:
        return Stack.parse(text)
    except RecipeParseError as exc:
        raise RecipeParseError(exc.message, line=line_no) from exc
    except ValueError as exc:
        raise RecipeParseError(str(exc), line=line_no) from exc


def _parse_header(line: str, line_no: int) -> Tuple[Stack, Optional[str], Optional[Stack]]:
    """Split a block's first line into (result, method, inline ingredient)."""
    match = _HEADER_RE.match(line)
    if not match:
        raise RecipeParseError(
            f"Expected '<item> (<count>)[ (<method>)]:', got {line!r}", line=line_no
        )
    result = _parse_stack(match.group("result"), line_no)
    rest = match.group("rest")
    inline: Optional[Stack] = None
    if rest.strip():
        if not rest.startswith(" "):
            raise RecipeParseError(f"Expected a space after ':' in {line!r}", line=line_no)
        inline = _parse_stack(rest, line_no)
    return result, match.group("method"), inline


def parse_recipes(text: str, default_method: str = DEFAULT_METHOD) -> List[Recipe]:
    """
    Parse every recipe block in ``text``.

    Parameters
    ----------
    text : str
        Recipe file contents.
    default_method : str
        Method label for blocks that do not name one.

    Returns
    -------
    list[Recipe]
        Recipes in file order.

    Raises
    ------
    RecipeParseError
        On malformed lines, missing ingredients, bad counts, or a final line
        without its terminating newline.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] != "":
        raise RecipeParseError("Unterminated block: missing trailing newline", line=len(lines))
    lines = [line.rstrip("\r") for line in lines[:-1]]

    recipes: List[Recipe] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if not line.strip():
            i += 1
            continue
        if line[0].isspace():
            raise RecipeParseError("Ingredient line outside of a recipe block", line=i + 1)

        header_no = i + 1
        result, method, inline = _parse_header(line, header_no)
        i += 1
        ingredients: List[Stack] = []
        if inline is not None:
            ingredients.append(inline)
        else:
            while i < len(lines) and lines[i][:1].isspace() and lines[i].strip():
                ingredients.append(_parse_stack(lines[i], i + 1))
                i += 1
            if not ingredients:
                raise RecipeParseError(
                    f"Recipe for {result.item!r} has no ingredients", line=header_no
                )

        try:
            recipes.append(Recipe(result, method or default_method, ingredients))
        except ValueError as exc:
            raise RecipeParseError(str(exc), line=header_no) from exc
    return recipes


def load_recipes(path: Path, default_method: str = DEFAULT_METHOD) -> List[Recipe]:
    """Read and parse a recipe file."""
    with Path(path).open("r", encoding="utf-8") as fh:
        text = fh.read()
    return parse_recipes(text, default_method)


def save_recipes(recipes: Iterable[Recipe], path: Path) -> None:
    """Write recipes to ``path`` in the block format ``load_recipes`` reads."""
    with Path(path).open("w", encoding="utf-8") as fh:
        fh.write(format_recipes(recipes))


def scaled_ingredients(recipe: Recipe, repeats: int) -> List[Stack]:
    """Ingredient stacks needed to execute ``recipe`` ``repeats`` times."""
    return [ingredient.scaled(repeats) for ingredient in recipe.ingredients]


def total_yield(recipe: Recipe, repeats: int) -> int:
    """Number of result items produced by ``repeats`` executions."""
    return checked_mul(recipe.result.count, repeats, f"{recipe.result.item} yield")
