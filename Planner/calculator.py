"""
Production plan calculator.

Owns the recipe catalog, the target stack and the pool of pre-supplied
resources, and rebuilds an ordered plan from them after every change.

The rebuild runs in two phases:

1. Demand propagation walks the recipe graph from the target, shallowest
   depth first, drawing on crafted surplus and then on storage before
   scheduling a recipe or falling back to a raw material. The result is an
   unordered list of candidate steps.
2. Ordering emits raw materials first, then catalog steps in stages, each
   stage holding the steps whose ingredients are already available. Storage
   draws are placed ahead of the first step consuming them and duplicate
   steps for the same item are merged.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

from .depth_queue import DepthQueue
from .errors import (
    CountOverflowError,
    PlanConsistencyError,
    PlannerError,
    RecipeCycleError,
)
from .planner_logging import LogLevel, PlannerLogger, create_logger
from .recipe import DEFAULT_METHOD, Recipe, load_recipes, total_yield
from .stack import MAX_COUNT, Stack, checked_add, checked_mul

# Placeholder target for a freshly constructed calculator
DEFAULT_TARGET = Stack("Air", 1)

# Candidate step kinds produced by demand propagation
_RAW = "raw"
_STORAGE = "storage"
_CRAFT = "craft"


class Step(NamedTuple):
    """One plan entry: execute ``recipe`` ``repeats`` times."""
    recipe: Recipe
    repeats: int

    def __str__(self) -> str:
        return self.recipe.format(self.repeats)


class _Candidate(NamedTuple):
    kind: str
    item: str
    recipe: Optional[Recipe]
    repeats: int


class Calculator:
    """
    Resolution engine turning a target stack into an ordered plan.

    Parameters
    ----------
    recipes : Mapping[str, Recipe] | Iterable[Recipe] | None
        Initial catalog. Later recipes for the same item replace earlier ones.
    logger : PlannerLogger | None
        Logger for recompute diagnostics. Defaults to a silent logger.
    max_depth : int
        Largest depth key of the propagation queue. Deeper graphs trigger
        queue compaction.

    Notes
    -----
    Construction does not compute a plan; ``steps`` stays empty until the
    first mutating call. Every mutating call is atomic: if recomputation
    fails, the catalog, target, resources and previous plan are restored
    before the error propagates.
    """

    def __init__(
        self,
        recipes: Optional[Union[Mapping[str, Recipe], Iterable[Recipe]]] = None,
        logger: Optional[PlannerLogger] = None,
        max_depth: int = MAX_COUNT,
    ):
        if logger is None:
            logger = create_logger(LogLevel.SILENT)
        self.logger = logger
        self.max_depth = max_depth

        self._recipes: Dict[str, Recipe] = {}
        self._resources: Dict[str, int] = {}
        self._target: Stack = DEFAULT_TARGET
        self._steps: Tuple[Step, ...] = ()

        if recipes is not None:
            values = recipes.values() if isinstance(recipes, Mapping) else recipes
            for recipe in values:
                self._recipes[recipe.result.item] = recipe

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def target(self) -> Stack:
        return self._target

    @property
    def steps(self) -> Tuple[Step, ...]:
        """The plan computed by the last successful mutation."""
        return self._steps

    def recipes(self) -> List[Recipe]:
        """Catalog recipes in registration order."""
        return list(self._recipes.values())

    def recipe_for(self, item: str) -> Optional[Recipe]:
        return self._recipes.get(item)

    def resources(self) -> List[Stack]:
        """Pre-supplied resources in the order they were first added."""
        return [Stack(item, count) for item, count in self._resources.items()]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_resource(self, stack: Stack) -> None:
        """Add ``stack`` to the resource pool and recompute."""
        def apply():
            total = checked_add(self._resources.get(stack.item, 0), stack.count,
                                f"{stack.item} resource count")
            self._resources[stack.item] = total
            self.logger.log_resource_added(stack.item, stack.count, total)
        self._mutate(apply)

    def set_recipe(self, recipe: Recipe) -> None:
        """Register ``recipe``, replacing any recipe for the same item."""
        self.add_recipes([recipe])

    def add_recipes(self, recipes: Iterable[Recipe]) -> None:
        """Register several recipes at once with a single recompute."""
        recipes = list(recipes)

        def apply():
            for recipe in recipes:
                self._recipes[recipe.result.item] = recipe
            self.logger.log_recipes_added(len(recipes), len(self._recipes))
        self._mutate(apply)

    def load_file(self, path: Path, default_method: str = DEFAULT_METHOD) -> List[Recipe]:
        """Parse a recipe file and register all of its recipes."""
        recipes = load_recipes(path, default_method)
        self.logger.log_recipes_loaded(Path(path), len(recipes))
        self.add_recipes(recipes)
        return recipes

    def set_target(self, stack: Stack) -> None:
        """Replace the target and recompute."""
        def apply():
            self._target = stack
            self.logger.log_target_set(stack)
        self._mutate(apply)

    def _mutate(self, apply) -> None:
        snapshot = (dict(self._recipes), dict(self._resources), self._target, self._steps)
        try:
            apply()
            self._recalculate()
        except PlannerError as exc:
            self._recipes, self._resources, self._target, self._steps = snapshot
            self.logger.log_error(str(exc))
            raise

    # -------------------------------------------------------------------------
    # Recompute
    # -------------------------------------------------------------------------

    def _recalculate(self) -> None:
        self.logger.log_recalculate_start(self._target, len(self._recipes),
                                          len(self._resources))
        self._check_cycles(self._target.item)
        candidates = self._propagate_demand()
        steps = self._order_steps(candidates)
        self._steps = tuple(steps)
        self.logger.log_plan(self._target, self._steps)

    def _check_cycles(self, root: str) -> None:
        """Raise RecipeCycleError if an item reachable from ``root`` requires itself."""
        finished = set()
        path: List[str] = []
        on_path = set()
        # One iterator over ingredient names per item on the path
        frames = []

        def enter(item):
            recipe = self._recipes.get(item)
            children = [s.item for s in recipe.ingredients] if recipe else []
            path.append(item)
            on_path.add(item)
            frames.append(iter(children))

        enter(root)
        while frames:
            child = next(frames[-1], None)
            if child is None:
                frames.pop()
                item = path.pop()
                on_path.discard(item)
                finished.add(item)
            elif child in on_path:
                start = path.index(child)
                raise RecipeCycleError(path[start:] + [child])
            elif child not in finished:
                enter(child)

    def _propagate_demand(self) -> List[_Candidate]:
        """Phase A: resolve outstanding demand into unordered candidate steps."""
        storage = dict(self._resources)
        surplus: Dict[str, int] = {}
        demand: Dict[str, int] = {self._target.item: self._target.count}
        queue = DepthQueue(self.max_depth)
        queue.push_increase(self._target.item, 0)
        candidates: List[_Candidate] = []

        while True:
            popped = queue.pop_min()
            if popped is None:
                break
            item, depth = popped
            needed = demand.pop(item, 0)
            self.logger.log_demand(item, depth, needed)
            if needed == 0:
                continue

            taken = min(needed, surplus.get(item, 0))
            if taken:
                surplus[item] -= taken
                needed -= taken
                self.logger.log_surplus_used(item, taken)

            taken = min(needed, storage.get(item, 0))
            if taken:
                storage[item] -= taken
                needed -= taken
                candidates.append(_Candidate(_STORAGE, item, None, taken))
                self.logger.log_storage_used(item, taken)

            if needed == 0:
                continue

            recipe = self._recipes.get(item)
            if recipe is None:
                candidates.append(_Candidate(_RAW, item, None, needed))
                self.logger.log_raw_material(item, needed)
                continue

            per_run = recipe.result.count
            repeats = -(-needed // per_run)
            excess = total_yield(recipe, repeats) - needed
            if excess:
                surplus[item] = excess
            candidates.append(_Candidate(_CRAFT, item, recipe, repeats))
            self.logger.log_craft(item, recipe.method, repeats, excess)

            if recipe.ingredients and depth + 1 > queue.max_priority:
                depth = queue.compact(current=depth)
                if depth + 1 > queue.max_priority:
                    raise CountOverflowError(
                        f"Depth queue cannot hold {len(queue) + 1} distinct depths "
                        f"below {queue.max_priority}"
                    )
                self.logger.log_queue_compacted(len(queue), depth)

            for ingredient in recipe.ingredients:
                amount = checked_mul(ingredient.count, repeats,
                                     f"{ingredient.item} demand")
                demand[ingredient.item] = checked_add(
                    demand.get(ingredient.item, 0), amount, f"{ingredient.item} demand"
                )
                queue.push_increase(ingredient.item, depth + 1)

        if demand:
            raise PlanConsistencyError(
                f"Unresolved demand after propagation: {sorted(demand)}"
            )
        self.logger.log_propagation_complete(len(candidates))
        return candidates

    def _order_steps(self, candidates: List[_Candidate]) -> List[Step]:
        """Phase B: order candidates so every ingredient precedes its consumer."""
        raw: Dict[str, int] = {}
        storage: Dict[str, int] = {}
        pending: List[Step] = []
        for candidate in candidates:
            if candidate.kind == _RAW:
                raw[candidate.item] = checked_add(raw.get(candidate.item, 0),
                                                  candidate.repeats, candidate.item)
            elif candidate.kind == _STORAGE:
                storage[candidate.item] = checked_add(storage.get(candidate.item, 0),
                                                      candidate.repeats, candidate.item)
            else:
                pending.append(Step(candidate.recipe, candidate.repeats))

        plan = [Step(Recipe.raw_material(item), count) for item, count in raw.items()]
        available = set(raw)
        # Items already drawn from storage; these only count as available
        # once no pending step still crafts more of them
        drawn = set()

        stage = 0
        while pending:
            stage += 1
            crafting = {step.recipe.result.item for step in pending}
            ready = available | (drawn - crafting)
            eligible: List[Step] = []
            waiting: List[Step] = []
            for step in pending:
                if self._is_eligible(step, ready, storage):
                    eligible.append(step)
                else:
                    waiting.append(step)
            if not eligible:
                raise PlanConsistencyError(
                    "No step can be scheduled; waiting on "
                    + ", ".join(step.recipe.result.item for step in waiting)
                )

            for step in eligible:
                for ingredient in step.recipe.ingredients:
                    stocked = storage.pop(ingredient.item, None)
                    if stocked is None:
                        continue
                    repeats = checked_mul(stocked, step.repeats,
                                          f"{ingredient.item} storage")
                    plan.append(Step(Recipe.in_storage(ingredient.item), repeats))
                    drawn.add(ingredient.item)

            merged: Dict[str, Step] = {}
            for step in eligible:
                item = step.recipe.result.item
                if item in merged:
                    total = checked_add(merged[item].repeats, step.repeats, item)
                    merged[item] = Step(merged[item].recipe, total)
                else:
                    merged[item] = step
            plan.extend(merged.values())
            available.update(merged)

            self.logger.log_stage(stage, list(merged), len(waiting))
            pending = waiting

        # Storage no step consumed, e.g. the target itself
        plan.extend(Step(Recipe.in_storage(item), count) for item, count in storage.items())
        return plan

    @staticmethod
    def _is_eligible(step: Step, available: set, storage: Dict[str, int]) -> bool:
        for ingredient in step.recipe.ingredients:
            if ingredient.count == 0 or ingredient.item in available:
                continue
            stocked = storage.get(ingredient.item)
            if stocked is None:
                return False
            # In Storage pseudo-recipes yield one item per repeat
            if stocked < checked_mul(ingredient.count, step.repeats, ingredient.item):
                return False
        return True

    def format_steps(self) -> str:
        """The plan in plan-line format, one scaled recipe block per step."""
        return "".join(str(step) for step in self._steps)
