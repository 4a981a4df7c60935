"""Per-order cooking state for one dish attempt.

Two nested state machines decide when a dish can be served:

* each added ingredient walks its recipe prep steps in order and becomes
  ready once all of them are done (ingredients without prep steps are
  ready as soon as they are added);
* the dish-wide final steps advance one at a time, strictly in order.

A tool press advances the first added, not-ready ingredient (in recipe
order) whose next step uses that tool; only when none matches is the next
final step tried.  A step that runs at a timed station is *held* while its
job cooks and is finished by :meth:`DishInstance.complete_held` when the
job is retrieved.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from kitchen.errors import AlreadyAdded, InvalidTransition, NotInRecipe
from recipe_catalog import DishRecipe, IngredientSpec, PrepStep

INGREDIENT_TARGET = "ingredient"
FINAL_TARGET = "final"


@dataclass(frozen=True)
class StepTarget:
    """The step a tool press applies to."""

    kind: str
    index: int
    step: PrepStep
    ingredient_id: Optional[str] = None


@dataclass
class IngredientProgress:
    prep_steps_completed: int = 0
    is_ready: bool = False
    cooking: bool = False


@dataclass
class DishInstance:
    recipe: DishRecipe
    added: Set[str] = field(default_factory=set)
    progress: Dict[str, IngredientProgress] = field(default_factory=dict)
    final_steps_completed: int = 0
    final_step_cooking: bool = False

    @property
    def dish_id(self) -> str:
        return self.recipe.dish_id

    @property
    def is_complete(self) -> bool:
        return self.final_steps_completed == len(self.recipe.final_steps)

    # ------------------------------------------------------------------
    # Ingredients
    # ------------------------------------------------------------------

    def add_ingredient(self, ingredient_id: str) -> IngredientProgress:
        spec = self.recipe.spec(ingredient_id)
        if spec is None:
            raise NotInRecipe(ingredient_id, self.dish_id)
        if ingredient_id in self.added:
            raise AlreadyAdded(ingredient_id)

        state = IngredientProgress(is_ready=not spec.prep_steps)
        self.added.add(ingredient_id)
        self.progress[ingredient_id] = state
        return state

    def is_valid(self) -> bool:
        for spec in self.recipe.required_ingredients:
            state = self.progress.get(spec.ingredient_id)
            if state is None or not state.is_ready:
                return False
        return True

    def missing_required(self) -> List[IngredientSpec]:
        return [spec for spec in self.recipe.required_ingredients if spec.ingredient_id not in self.added]

    def pending_ingredients(self) -> List[IngredientSpec]:
        """Added ingredients that still need preparation, in recipe order."""
        return [
            spec
            for spec in self.recipe.ingredients
            if spec.ingredient_id in self.progress and not self.progress[spec.ingredient_id].is_ready
        ]

    def next_prep_step(self, ingredient_id: str) -> Optional[PrepStep]:
        spec = self.recipe.spec(ingredient_id)
        state = self.progress.get(ingredient_id)
        if spec is None or state is None or state.is_ready:
            return None
        return spec.prep_steps[state.prep_steps_completed]

    def next_final_step(self) -> Optional[PrepStep]:
        if self.is_complete:
            return None
        return self.recipe.final_steps[self.final_steps_completed]

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def match_tool(self, tool_id: str) -> Optional[StepTarget]:
        """Return the step ``tool_id`` would advance, without advancing it."""
        for spec in self.recipe.ingredients:
            state = self.progress.get(spec.ingredient_id)
            if state is None or state.is_ready or state.cooking:
                continue
            step = spec.prep_steps[state.prep_steps_completed]
            if step.tool_id == tool_id:
                return StepTarget(INGREDIENT_TARGET, state.prep_steps_completed, step, spec.ingredient_id)

        step = self.next_final_step()
        if step is not None and not self.final_step_cooking and step.tool_id == tool_id:
            return StepTarget(FINAL_TARGET, self.final_steps_completed, step)
        return None

    def apply_tool(self, tool_id: str) -> Optional[StepTarget]:
        """Advance whatever ``tool_id`` matches; ``None`` means no effect."""
        target = self.match_tool(tool_id)
        if target is not None:
            self.advance(target)
        return target

    def advance(self, target: StepTarget) -> None:
        if target.kind == INGREDIENT_TARGET:
            state = self._current_state(target)
            spec = self.recipe.spec(target.ingredient_id)
            state.prep_steps_completed += 1
            state.cooking = False
            state.is_ready = state.prep_steps_completed >= len(spec.prep_steps)
            return

        self._check_final(target)
        self.final_steps_completed += 1
        self.final_step_cooking = False

    def hold(self, target: StepTarget) -> None:
        """Mark a matched step as cooking at a station."""
        self._set_hold(target, True)

    def release_hold(self, target: StepTarget) -> None:
        self._set_hold(target, False)

    def complete_held(self, ingredient_id: Optional[str]) -> Optional[StepTarget]:
        """Finish the held step for ``ingredient_id`` (``None`` = the final step).

        Returns the advanced target, or ``None`` when nothing was held.
        """
        if ingredient_id is None:
            if not self.final_step_cooking:
                return None
            target = StepTarget(FINAL_TARGET, self.final_steps_completed, self.recipe.final_steps[self.final_steps_completed])
        else:
            state = self.progress.get(ingredient_id)
            if state is None or not state.cooking:
                return None
            spec = self.recipe.spec(ingredient_id)
            target = StepTarget(
                INGREDIENT_TARGET,
                state.prep_steps_completed,
                spec.prep_steps[state.prep_steps_completed],
                ingredient_id,
            )
        self.advance(target)
        return target

    def held_ingredients(self) -> List[str]:
        return [ingredient_id for ingredient_id, state in self.progress.items() if state.cooking]

    def reset(self) -> None:
        self.added.clear()
        self.progress.clear()
        self.final_steps_completed = 0
        self.final_step_cooking = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _current_state(self, target: StepTarget) -> IngredientProgress:
        state = self.progress.get(target.ingredient_id)
        if state is None or state.is_ready or state.prep_steps_completed != target.index:
            raise InvalidTransition(f"Stale step for {target.ingredient_id}")
        return state

    def _check_final(self, target: StepTarget) -> None:
        if self.is_complete or self.final_steps_completed != target.index:
            raise InvalidTransition(f"Stale final step {target.index}")

    def _set_hold(self, target: StepTarget, value: bool) -> None:
        if target.kind == INGREDIENT_TARGET:
            self._current_state(target).cooking = value
        else:
            self._check_final(target)
            self.final_step_cooking = value
