"""Quantity-tagged item references and checked count arithmetic.

A Stack pairs an item name with a non-negative count. Counts are bounded
by MAX_COUNT (an unsigned 64-bit range); any arithmetic that would leave
that range raises CountOverflowError instead of silently producing a
wrong plan quantity.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import CountOverflowError, RecipeParseError

# Largest count a stack (or any derived quantity) may hold
MAX_COUNT = 2**64 - 1

# Digits with optional "_" group separators, e.g. "1_000"
COUNT_PATTERN = r"[0-9][0-9_]*"

_STACK_RE = re.compile(rf"^(?P<item>[^(]+)\((?P<count>{COUNT_PATTERN})\)$")


def check_count(value: int, what: str = "count") -> int:
    """Return ``value`` if it fits in ``[0, MAX_COUNT]``, else raise."""
    if value < 0 or value > MAX_COUNT:
        raise CountOverflowError(f"{what} {value} is outside 0..{MAX_COUNT}")
    return value


def checked_add(a: int, b: int, what: str = "count") -> int:
    """Add two counts, failing loudly on overflow."""
    return check_count(a + b, what)


def checked_mul(a: int, b: int, what: str = "count") -> int:
    """Multiply two counts, failing loudly on overflow."""
    return check_count(a * b, what)


def parse_count(text: str) -> int:
    """
    Parse an unsigned count literal.

    Group separators ("_") are stripped and digits accumulated left to right,
    so ``"1_000"`` and ``"1000"`` are the same count.

    Raises
    ------
    RecipeParseError
        If ``text`` is not a digit sequence or the value exceeds MAX_COUNT.
    """
    text = text.strip()
    if not re.fullmatch(COUNT_PATTERN, text):
        raise RecipeParseError(f"Invalid count {text!r}")
    value = 0
    for char in text:
        if char == "_":
            continue
        value = value * 10 + (ord(char) - ord("0"))
    if value > MAX_COUNT:
        raise RecipeParseError(f"Count {text!r} exceeds {MAX_COUNT}")
    return value


@dataclass(frozen=True)
class Stack:
    """Some number of a single item."""
    item: str
    count: int

    def __post_init__(self) -> None:
        if not isinstance(self.item, str) or not self.item:
            raise ValueError("Stack item must be a non-empty string")
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise ValueError(f"Stack count must be an integer, got {self.count!r}")
        if self.count < 0:
            raise ValueError(f"Stack count must be >= 0, got {self.count}")
        if self.count > MAX_COUNT:
            raise CountOverflowError(f"Stack count {self.count} exceeds {MAX_COUNT}")

    def __str__(self) -> str:
        return f"{self.item} ({self.count})"

    def scaled(self, factor: int) -> "Stack":
        """Return this stack with its count multiplied by ``factor``."""
        return Stack(self.item, checked_mul(self.count, factor, f"{self.item} count"))

    @classmethod
    def parse(cls, text: str) -> "Stack":
        """
        Parse ``"<item> (<count>)"``.

        The item name may contain anything except ``(`` and is trimmed.

        Examples:
            "Oak Log (1)" -> Stack("Oak Log", 1)
            "Cobblestone (1_000)" -> Stack("Cobblestone", 1000)
        """
        match = _STACK_RE.match(text.strip())
        if not match:
            raise RecipeParseError(f"Expected '<item> (<count>)', got {text.strip()!r}")
        item = match.group("item").strip()
        if not item:
            raise RecipeParseError(f"Missing item name in {text.strip()!r}")
        return cls(item, parse_count(match.group("count")))
