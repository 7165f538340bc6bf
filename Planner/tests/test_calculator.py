"""Tests for the Calculator resolution engine.

Validates that:
1. Items without a recipe become a single Raw Material step
2. Repeat counts round up and the excess is reused as surplus
3. Stored resources take precedence over crafting
4. Every step's ingredients are produced by earlier steps
5. Recomputation is idempotent and mutations are atomic
6. Cycles and count overflow are reported as errors
"""
from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from Planner.calculator import DEFAULT_TARGET, Calculator, Step, _CRAFT, _Candidate
from Planner.errors import (
    CountOverflowError,
    PlanConsistencyError,
    PlannerError,
    RecipeCycleError,
)
from Planner.planner_logging import LogLevel, create_string_logger
from Planner.recipe import IN_STORAGE, RAW_MATERIAL, Recipe
from Planner.stack import MAX_COUNT, Stack

SAMPLE_FILE = Path(__file__).resolve().parents[2] / "recipes" / "wooden_tools.txt"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def planks() -> Recipe:
    return Recipe(Stack("Planks", 4), "Crafting Table", [Stack("Log", 1)])


@pytest.fixture
def stick() -> Recipe:
    return Recipe(Stack("Stick", 4), "Crafting Table", [Stack("Planks", 2)])


@pytest.fixture
def shovel() -> Recipe:
    return Recipe(Stack("Shovel", 1), "Crafting Table", [Stack("Planks", 1), Stack("Stick", 2)])


@pytest.fixture
def tools(planks, stick, shovel) -> Calculator:
    calculator = Calculator()
    calculator.add_recipes([planks, stick, shovel])
    return calculator


def raw(item: str, count: int) -> Step:
    return Step(Recipe.raw_material(item), count)


def stored(item: str, count: int) -> Step:
    return Step(Recipe.in_storage(item), count)


def assert_ingredients_come_first(steps) -> None:
    """No step consumes an item that a later step produces."""
    for i, step in enumerate(steps):
        needs = {ingredient.item for ingredient in step.recipe.ingredients}
        for later in steps[i + 1:]:
            assert later.recipe.result.item not in needs, (
                f"{step.recipe.result.item} uses {later.recipe.result.item} "
                f"before it is produced"
            )


def chain(length: int) -> List[Recipe]:
    """Item0 <- Item1 <- ... <- Item{length}, one of each per step."""
    return [
        Recipe(Stack(f"Item{i}", 1), "Press", [Stack(f"Item{i + 1}", 1)])
        for i in range(length)
    ]


# ---------------------------------------------------------------------------
# Tests: construction and accessors
# ---------------------------------------------------------------------------

class TestConstruction:
    """A new calculator has a placeholder target and no plan."""

    def test_defaults(self):
        calculator = Calculator()
        assert calculator.target == DEFAULT_TARGET == Stack("Air", 1)
        assert calculator.steps == ()
        assert calculator.recipes() == []
        assert calculator.resources() == []

    def test_seeded_from_iterable(self, planks, stick):
        calculator = Calculator([planks, stick])
        assert calculator.recipes() == [planks, stick]
        assert calculator.steps == ()

    def test_seeded_from_mapping(self, planks):
        calculator = Calculator({"Planks": planks})
        assert calculator.recipe_for("Planks") is planks
        assert calculator.recipe_for("Log") is None

    def test_first_mutation_computes_placeholder_plan(self):
        calculator = Calculator()
        calculator.add_resource(Stack("Log", 3))
        assert calculator.steps == (raw("Air", 1),)

    def test_step_equals_plain_tuple(self, planks):
        assert Step(planks, 2) == (planks, 2)


# ---------------------------------------------------------------------------
# Tests: documented scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    """Concrete plans for small catalogs."""

    def test_raw_material_only(self):
        calculator = Calculator()
        calculator.set_target(Stack("OakLog", 1))
        assert calculator.steps == (raw("OakLog", 1),)

    def test_one_step(self):
        charcoal = Recipe(Stack("Charcoal", 1), "Furnace", [Stack("OakLog", 1)])
        calculator = Calculator()
        calculator.set_recipe(charcoal)
        calculator.set_target(Stack("Charcoal", 1))
        assert calculator.steps == (raw("OakLog", 1), Step(charcoal, 1))

    def test_leftovers_are_reused(self, tools, planks, stick, shovel):
        tools.set_target(Stack("Shovel", 1))
        assert tools.steps == (
            raw("Log", 1),
            Step(planks, 1),
            Step(stick, 1),
            Step(shovel, 1),
        )

    def test_storage_inserted_before_consumer(self, tools, planks, stick, shovel):
        tools.add_resource(Stack("Stick", 1))
        tools.set_target(Stack("Shovel", 1))
        assert tools.steps == (
            raw("Log", 1),
            Step(planks, 1),
            Step(stick, 1),
            stored("Stick", 1),
            Step(shovel, 1),
        )

    def test_sample_torch_plan(self):
        calculator = Calculator()
        calculator.load_file(SAMPLE_FILE)
        calculator.set_target(Stack("Torch", 16))
        summary = [(step.recipe.method, step.recipe.result.item, step.repeats)
                   for step in calculator.steps]
        assert summary == [
            (RAW_MATERIAL, "Oak Log", 5),
            ("Furnace", "Charcoal", 4),
            ("Crafting Table", "Oak Wood Planks", 1),
            ("Crafting Table", "Stick", 1),
            ("Crafting Table", "Torch", 4),
        ]


# ---------------------------------------------------------------------------
# Tests: plan properties
# ---------------------------------------------------------------------------

class TestPlanProperties:
    """Properties that hold for every plan."""

    @pytest.mark.parametrize("count", [1, 7, 1_000])
    def test_unknown_target_is_single_raw_step(self, tools, count):
        tools.set_target(Stack("Diamond", count))
        assert tools.steps == (raw("Diamond", count),)

    @pytest.mark.parametrize("count,repeats", [(1, 1), (4, 1), (5, 2), (8, 2), (9, 3)])
    def test_repeats_round_up(self, tools, planks, count, repeats):
        tools.set_target(Stack("Planks", count))
        assert tools.steps == (raw("Log", repeats), Step(planks, repeats))

    def test_surplus_feeds_second_consumer(self, tools):
        # Stick and Shovel both consume Planks; one batch of 4 covers 1 + 2
        tools.set_target(Stack("Shovel", 1))
        planks_steps = [s for s in tools.steps if s.recipe.result.item == "Planks"]
        assert planks_steps == [Step(tools.recipe_for("Planks"), 1)]

    def test_surplus_from_oversized_batch(self, tools, planks, stick):
        # 5 sticks need 2 batches (8 sticks) which need 4 planks: exactly one batch
        tools.set_target(Stack("Stick", 5))
        assert tools.steps == (raw("Log", 1), Step(planks, 1), Step(stick, 2))

    def test_storage_covers_demand(self, tools, planks, shovel):
        tools.add_resource(Stack("Stick", 2))
        tools.set_target(Stack("Shovel", 1))
        assert tools.steps == (
            raw("Log", 1),
            Step(planks, 1),
            stored("Stick", 2),
            Step(shovel, 1),
        )
        stick_steps = [s for s in tools.steps
                       if s.recipe.result.item == "Stick" and s.recipe.method != IN_STORAGE]
        assert stick_steps == []

    def test_stored_target(self, tools):
        tools.add_resource(Stack("Shovel", 1))
        tools.set_target(Stack("Shovel", 1))
        assert tools.steps == (stored("Shovel", 1),)

    def test_partially_stored_target(self, tools, shovel):
        tools.add_resource(Stack("Shovel", 1))
        tools.set_target(Stack("Shovel", 3))
        assert tools.steps[-2:] == (Step(shovel, 2), stored("Shovel", 1))

    def test_storage_step_scaled_by_consumer_repeats(self, tools, planks):
        # 1 Log from storage, 1 raw; the storage entry is emitted scaled by
        # the consuming Planks step's 2 repeats
        tools.add_resource(Stack("Log", 1))
        tools.set_target(Stack("Planks", 8))
        assert tools.steps == (raw("Log", 1), stored("Log", 2), Step(planks, 2))

    def test_zero_target(self, tools):
        tools.set_target(Stack("Shovel", 0))
        assert tools.steps == ()

    def test_zero_count_ingredient_is_ignored(self, tools, planks):
        hoe = Recipe(Stack("Hoe", 1), "Crafting Table", [Stack("Blueprint", 0), Stack("Planks", 1)])
        tools.set_recipe(hoe)
        tools.set_target(Stack("Hoe", 1))
        assert tools.steps == (raw("Log", 1), Step(planks, 1), Step(hoe, 1))

    def test_duplicate_raw_steps_are_merged(self):
        calculator = Calculator()
        calculator.load_file(SAMPLE_FILE)
        calculator.set_target(Stack("Torch", 16))
        raw_steps = [s for s in calculator.steps if s.recipe.method == RAW_MATERIAL]
        assert raw_steps == [raw("Oak Log", 5)]

    @pytest.mark.parametrize("target", [
        "Wooden Shovel (1)",
        "Wooden Pickaxe (3)",
        "Torch (16)",
        "Crafting Table (2)",
        "Charcoal (5)",
    ])
    def test_ingredients_precede_consumers(self, target):
        calculator = Calculator()
        calculator.load_file(SAMPLE_FILE)
        calculator.add_resource(Stack("Stick", 3))
        calculator.add_resource(Stack("Oak Log", 1))
        calculator.set_target(Stack.parse(target))
        assert_ingredients_come_first(calculator.steps)
        assert calculator.steps[-1].recipe.result.item == Stack.parse(target).item

    def test_partial_storage_waits_for_craft(self):
        # One Gear in stock covers the Axle; the Crank needs two and must wait
        # for the Gear batch crafted for the remainder.
        calculator = Calculator([
            Recipe(Stack("Engine", 1), "Assembler", [Stack("Axle", 1), Stack("Crank", 1)]),
            Recipe(Stack("Axle", 1), "Lathe", [Stack("Gear", 1)]),
            Recipe(Stack("Crank", 1), "Lathe", [Stack("Gear", 2)]),
            Recipe(Stack("Gear", 1), "Press", [Stack("Plate", 1)]),
            Recipe(Stack("Plate", 1), "Furnace", [Stack("Ore", 1)]),
        ])
        calculator.add_resource(Stack("Gear", 1))
        calculator.set_target(Stack("Engine", 1))

        order = [s.recipe.result.item for s in calculator.steps if not s.recipe.is_pseudo]
        assert order == ["Axle", "Plate", "Gear", "Crank", "Engine"]
        assert calculator.steps[1] == stored("Gear", 1)

    def test_idempotent(self, tools):
        tools.add_resource(Stack("Stick", 1))
        tools.set_target(Stack("Shovel", 3))
        first = tools.steps
        tools.set_target(Stack("Shovel", 3))
        assert tools.steps == first

    def test_resources_accumulate(self, tools):
        tools.add_resource(Stack("Stick", 1))
        tools.add_resource(Stack("Log", 2))
        tools.add_resource(Stack("Stick", 2))
        assert tools.resources() == [Stack("Stick", 3), Stack("Log", 2)]

    def test_later_recipe_wins(self, tools, stick):
        cheap = Recipe(Stack("Planks", 8), "Sawmill", [Stack("Log", 1)])
        tools.set_recipe(cheap)
        tools.set_target(Stack("Stick", 4))
        assert tools.recipe_for("Planks") is cheap
        assert tools.steps == (raw("Log", 1), Step(cheap, 1), Step(stick, 1))


# ---------------------------------------------------------------------------
# Tests: depth queue compaction
# ---------------------------------------------------------------------------

class TestDepthCompaction:
    """A small depth bound forces compaction without changing the plan."""

    def test_compacted_plan_matches_unbounded(self):
        recipes = chain(6)
        unbounded = Calculator(recipes)
        unbounded.set_target(Stack("Item0", 1))

        logger, _ = create_string_logger(LogLevel.DETAILED)
        bounded = Calculator(recipes, logger=logger, max_depth=2)
        bounded.set_target(Stack("Item0", 1))

        assert bounded.steps == unbounded.steps
        assert bounded.steps[0] == raw("Item6", 1)
        assert logger.get_entries_by_category("QUEUE")

    def test_no_headroom_raises(self):
        calculator = Calculator(chain(2), max_depth=0)
        with pytest.raises(CountOverflowError):
            calculator.set_target(Stack("Item0", 1))
        assert calculator.target == DEFAULT_TARGET


# ---------------------------------------------------------------------------
# Tests: errors and atomicity
# ---------------------------------------------------------------------------

class TestErrors:
    """Failures leave the previous state and plan untouched."""

    def test_two_item_cycle(self):
        calculator = Calculator([
            Recipe(Stack("A", 1), "Mix", [Stack("B", 1)]),
            Recipe(Stack("B", 1), "Mix", [Stack("A", 1)]),
        ])
        with pytest.raises(RecipeCycleError) as excinfo:
            calculator.set_target(Stack("A", 1))
        assert excinfo.value.cycle == ["A", "B", "A"]

    def test_self_cycle(self):
        calculator = Calculator()
        calculator.set_recipe(Recipe(Stack("Dirt", 1), "Shovel", [Stack("Sand", 1)]))
        calculator.set_target(Stack("Dirt", 1))
        with pytest.raises(RecipeCycleError) as excinfo:
            calculator.set_recipe(Recipe(Stack("Sand", 2), "Sift", [Stack("Sand", 1)]))
        assert excinfo.value.cycle == ["Sand", "Sand"]

    def test_cycle_rolls_back(self, tools):
        tools.set_target(Stack("Shovel", 1))
        before = tools.steps
        looping = Recipe(Stack("Log", 1), "Grow", [Stack("Planks", 1)])
        with pytest.raises(RecipeCycleError):
            tools.set_recipe(looping)
        assert tools.recipe_for("Log") is None
        assert tools.steps == before

    def test_unreachable_cycle_is_allowed(self, tools):
        tools.add_recipes([
            Recipe(Stack("A", 1), "Mix", [Stack("B", 1)]),
            Recipe(Stack("B", 1), "Mix", [Stack("A", 1)]),
        ])
        tools.set_target(Stack("Shovel", 1))
        assert tools.steps[-1].recipe.result.item == "Shovel"

    def test_resource_overflow(self, tools):
        tools.add_resource(Stack("Stick", MAX_COUNT))
        with pytest.raises(CountOverflowError):
            tools.add_resource(Stack("Stick", 1))
        assert tools.resources() == [Stack("Stick", MAX_COUNT)]

    def test_demand_overflow_rolls_back_target(self):
        calculator = Calculator([Recipe(Stack("Big", 1), "Press", [Stack("Small", MAX_COUNT)])])
        calculator.set_target(Stack("Big", 1))
        before = calculator.steps
        with pytest.raises(CountOverflowError):
            calculator.set_target(Stack("Big", 2))
        assert calculator.target == Stack("Big", 1)
        assert calculator.steps == before

    def test_errors_share_base_class(self):
        calculator = Calculator([Recipe(Stack("A", 1), "Mix", [Stack("A", 1)])])
        with pytest.raises(PlannerError):
            calculator.set_target(Stack("A", 1))

    def test_error_is_logged(self):
        logger, buffer = create_string_logger(LogLevel.MINIMAL)
        calculator = Calculator([Recipe(Stack("A", 1), "Mix", [Stack("A", 1)])], logger=logger)
        with pytest.raises(RecipeCycleError):
            calculator.set_target(Stack("A", 1))
        assert "Recipe cycle: A -> A" in buffer.getvalue()

    def test_stalled_ordering_is_consistency_error(self, shovel):
        calculator = Calculator([shovel])
        orphan = [_Candidate(_CRAFT, "Shovel", shovel, 1)]
        with pytest.raises(PlanConsistencyError):
            calculator._order_steps(orphan)


# ---------------------------------------------------------------------------
# Tests: logging and formatting
# ---------------------------------------------------------------------------

class TestLoggingAndFormat:
    """Diagnostics and plan text."""

    def test_plan_table_logged(self, planks, stick, shovel):
        logger, buffer = create_string_logger(LogLevel.DETAILED)
        calculator = Calculator([planks, stick, shovel], logger=logger)
        calculator.set_target(Stack("Shovel", 1))
        output = buffer.getvalue()
        assert "Production Plan" in output
        assert "Plan for Shovel (1): 4 step(s)" in output
        assert logger.get_entries_by_category("ORDER")

    def test_trace_logs_every_pop(self, planks, stick, shovel):
        logger, _ = create_string_logger(LogLevel.TRACE)
        calculator = Calculator([planks, stick, shovel], logger=logger)
        calculator.set_target(Stack("Shovel", 1))
        pops = [e for e in logger.get_entries_by_category("DEMAND") if e.message.startswith("Pop")]
        assert len(pops) == 5

    def test_load_file_logs_recipes(self):
        logger, _ = create_string_logger(LogLevel.SUMMARY)
        calculator = Calculator(logger=logger)
        recipes = calculator.load_file(SAMPLE_FILE)
        assert len(recipes) == 7
        messages = [e.message for e in logger.get_entries_by_category("RECIPES")]
        assert any("Loaded 7 recipe(s)" in m for m in messages)

    def test_format_steps(self, tools):
        tools.set_target(Stack("Shovel", 2))
        text = tools.format_steps()
        assert text.startswith("Log (1) (Raw Material):\n")
        assert text.endswith(
            "Shovel (2) (Crafting Table):\n"
            "    Planks (2)\n"
            "    Stick (4)\n"
        )
