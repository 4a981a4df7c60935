"""Tests for the per-order dish state machines."""
from __future__ import annotations

import copy
import unittest

from kitchen.dish import FINAL_TARGET, INGREDIENT_TARGET, DishInstance
from kitchen.errors import AlreadyAdded, InvalidTransition, NotInRecipe
from recipe_catalog import default_catalog

CATALOG = default_catalog()


def _dish(dish_id: str) -> DishInstance:
    return DishInstance(CATALOG.dish(dish_id))


class TestIngredients(unittest.TestCase):
    def test_ingredient_without_prep_steps_is_ready_on_add(self):
        dish = _dish("fried_chicken")
        state = dish.add_ingredient("salt")
        self.assertTrue(state.is_ready)
        self.assertEqual(0, state.prep_steps_completed)

    def test_ingredient_with_prep_steps_starts_unprepared(self):
        dish = _dish("classic_burger")
        state = dish.add_ingredient("burger_bun")
        self.assertFalse(state.is_ready)
        self.assertIn("burger_bun", dish.added)
        self.assertIn("burger_bun", dish.progress)

    def test_unknown_ingredient_rejected_without_side_effects(self):
        dish = _dish("classic_burger")
        with self.assertRaises(NotInRecipe):
            dish.add_ingredient("pizza_dough")
        self.assertEqual(set(), dish.added)
        self.assertEqual({}, dish.progress)

    def test_duplicate_ingredient_rejected(self):
        dish = _dish("classic_burger")
        dish.add_ingredient("burger_bun")
        dish.apply_tool("slice")
        with self.assertRaises(AlreadyAdded):
            dish.add_ingredient("burger_bun")
        self.assertTrue(dish.progress["burger_bun"].is_ready)


class TestValidity(unittest.TestCase):
    def test_valid_only_when_every_required_ingredient_is_ready(self):
        dish = _dish("classic_burger")
        self.assertFalse(dish.is_valid())

        dish.add_ingredient("burger_bun")
        dish.add_ingredient("beef_patty")
        self.assertFalse(dish.is_valid())

        dish.apply_tool("slice")
        self.assertFalse(dish.is_valid())

        dish.apply_tool("grill")
        self.assertTrue(dish.is_valid())

    def test_optional_ingredients_never_gate_validity(self):
        dish = _dish("classic_burger")
        for ingredient_id in ("burger_bun", "beef_patty", "lettuce"):
            dish.add_ingredient(ingredient_id)
        dish.apply_tool("slice")
        dish.apply_tool("grill")

        self.assertFalse(dish.progress["lettuce"].is_ready)
        self.assertTrue(dish.is_valid())

    def test_missing_required_lists_absent_ingredients_in_recipe_order(self):
        dish = _dish("fried_chicken")
        dish.add_ingredient("salt")
        self.assertEqual(["chicken_breast", "pepper"], [spec.ingredient_id for spec in dish.missing_required()])


class TestTools(unittest.TestCase):
    def test_non_matching_tool_is_a_no_op(self):
        dish = _dish("caesar_salad")
        dish.add_ingredient("chicken_breast")
        before = copy.deepcopy(dish)

        self.assertIsNone(dish.apply_tool("slice"))
        self.assertIsNone(dish.apply_tool("fry"))
        self.assertEqual(before, dish)

    def test_prep_steps_advance_one_unit_in_order(self):
        dish = _dish("caesar_salad")
        dish.add_ingredient("chicken_breast")

        target = dish.apply_tool("grill")
        self.assertEqual(INGREDIENT_TARGET, target.kind)
        self.assertEqual(0, target.index)
        self.assertEqual(1, dish.progress["chicken_breast"].prep_steps_completed)
        self.assertFalse(dish.progress["chicken_breast"].is_ready)

        self.assertIsNone(dish.apply_tool("grill"))
        self.assertEqual(1, dish.progress["chicken_breast"].prep_steps_completed)

        dish.apply_tool("slice")
        self.assertEqual(2, dish.progress["chicken_breast"].prep_steps_completed)
        self.assertTrue(dish.progress["chicken_breast"].is_ready)

    def test_tool_advances_first_matching_ingredient_in_recipe_order(self):
        dish = _dish("classic_burger")
        dish.add_ingredient("tomato")
        dish.add_ingredient("burger_bun")

        first = dish.apply_tool("slice")
        self.assertEqual("burger_bun", first.ingredient_id)
        second = dish.apply_tool("slice")
        self.assertEqual("tomato", second.ingredient_id)

    def test_final_steps_advance_strictly_in_order(self):
        dish = _dish("classic_burger")

        self.assertIsNone(dish.apply_tool("plate"))
        target = dish.apply_tool("assemble")
        self.assertEqual(FINAL_TARGET, target.kind)
        self.assertEqual(1, dish.final_steps_completed)
        self.assertFalse(dish.is_complete)

        dish.apply_tool("plate")
        self.assertTrue(dish.is_complete)
        self.assertIsNone(dish.apply_tool("plate"))
        self.assertEqual(2, dish.final_steps_completed)

    def test_final_steps_do_not_wait_for_ingredient_readiness(self):
        dish = _dish("classic_burger")
        dish.add_ingredient("burger_bun")
        self.assertIsNotNone(dish.apply_tool("assemble"))
        self.assertFalse(dish.is_valid())

    def test_tool_falls_through_to_final_step_once_ingredients_are_prepared(self):
        dish = _dish("pasta_marinara")
        dish.apply_tool("boil")
        self.assertEqual(0, dish.final_steps_completed)

        dish.add_ingredient("pasta")
        dish.apply_tool("boil")
        dish.add_ingredient("tomato_sauce")
        target = dish.apply_tool("mix")
        self.assertEqual(FINAL_TARGET, target.kind)


class TestHeldSteps(unittest.TestCase):
    def test_held_ingredient_is_skipped_until_completed(self):
        dish = _dish("classic_burger")
        dish.add_ingredient("beef_patty")
        target = dish.match_tool("grill")
        dish.hold(target)

        self.assertTrue(dish.progress["beef_patty"].cooking)
        self.assertIsNone(dish.match_tool("grill"))
        self.assertEqual(["beef_patty"], dish.held_ingredients())
        self.assertFalse(dish.is_valid())

        completed = dish.complete_held("beef_patty")
        self.assertEqual(target, completed)
        self.assertTrue(dish.progress["beef_patty"].is_ready)
        self.assertFalse(dish.progress["beef_patty"].cooking)

    def test_held_final_step(self):
        dish = _dish("margherita_pizza")
        target = dish.match_tool("bake")
        dish.hold(target)

        self.assertTrue(dish.final_step_cooking)
        self.assertIsNone(dish.match_tool("bake"))
        self.assertIsNotNone(dish.complete_held(None))
        self.assertEqual(1, dish.final_steps_completed)
        self.assertFalse(dish.final_step_cooking)

    def test_complete_held_without_hold_does_nothing(self):
        dish = _dish("classic_burger")
        dish.add_ingredient("beef_patty")
        self.assertIsNone(dish.complete_held("beef_patty"))
        self.assertIsNone(dish.complete_held(None))
        self.assertEqual(0, dish.progress["beef_patty"].prep_steps_completed)

    def test_release_hold_restores_matching(self):
        dish = _dish("classic_burger")
        dish.add_ingredient("beef_patty")
        target = dish.match_tool("grill")
        dish.hold(target)
        dish.release_hold(target)
        self.assertEqual(target, dish.match_tool("grill"))

    def test_stale_target_rejected(self):
        dish = _dish("classic_burger")
        dish.add_ingredient("beef_patty")
        target = dish.apply_tool("grill")
        with self.assertRaises(InvalidTransition):
            dish.advance(target)


class TestReset(unittest.TestCase):
    def test_reset_is_idempotent_and_matches_fresh_instance(self):
        dish = _dish("caesar_salad")
        dish.add_ingredient("lettuce")
        dish.add_ingredient("chicken_breast")
        dish.apply_tool("chop")
        dish.hold(dish.match_tool("grill"))
        dish.apply_tool("toss")

        dish.reset()
        self.assertEqual(_dish("caesar_salad"), dish)
        dish.reset()
        self.assertEqual(_dish("caesar_salad"), dish)


if __name__ == "__main__":
    unittest.main()
