"""Tests for the KitchenGame command surface and lifecycle."""
from __future__ import annotations

import unittest

from config import EVENT_LOG_LIMIT, SERVE_KEY
from kitchen import KitchenGame, OrderStatus, Rating
from recipe_catalog import (
    DEFAULT_INGREDIENTS,
    DEFAULT_STATIONS,
    DEFAULT_TOOLS,
    DishRecipe,
    IngredientSpec,
    PrepStep,
    RecipeCatalog,
    default_catalog,
)


def _salad_catalog() -> RecipeCatalog:
    salad = DishRecipe(
        dish_id="side_salad",
        display_name="Side Salad",
        station_id="prep",
        base_color="#baffc9",
        ingredients=(IngredientSpec("lettuce", True, (PrepStep("chop", "Chop lettuce", "x"),)),),
        final_steps=(PrepStep("toss", "Toss salad", "'"),),
    )
    return RecipeCatalog(DEFAULT_INGREDIENTS.values(), DEFAULT_TOOLS.values(), DEFAULT_STATIONS.values(), [salad])


class GameTestCase(unittest.TestCase):
    def setUp(self):
        self.game = KitchenGame(default_catalog(), seed=11)

    def _select(self, dish_id: str, time_limit: float = 60.0):
        order = self.game.orders.spawn(dish_id=dish_id, time_limit=time_limit)
        self.assertTrue(self.game.select_order(order.order_id))
        return order


class TestEndToEnd(GameTestCase):
    def test_single_ingredient_recipe_flow(self):
        game = KitchenGame(_salad_catalog())
        order = game.orders.spawn(dish_id="side_salad", time_limit=60.0)
        self.assertTrue(game.select_order(order.order_id))

        self.assertTrue(game.add_ingredient("side_salad", "lettuce"))
        self.assertFalse(game.use_tool("side_salad", "slice"))
        self.assertFalse(order.dish.is_valid())

        self.assertTrue(game.use_tool("side_salad", "chop"))
        self.assertTrue(game.use_tool("side_salad", "toss"))
        self.assertTrue(order.dish.is_valid())
        self.assertTrue(order.dish.is_complete)

        game.tick(10.0)
        result = game.serve_dish()
        self.assertEqual(order.order_id, result.order_id)
        self.assertEqual(Rating.PERFECT, result.rating)
        self.assertEqual(100, result.score)
        self.assertEqual(OrderStatus.COMPLETED, order.status)
        self.assertEqual(100, game.stats()["total_score"])

    def test_burger_with_grill_and_plating(self):
        order = self._select("classic_burger")
        game = self.game
        game.add_ingredient("classic_burger", "burger_bun")
        game.add_ingredient("classic_burger", "beef_patty")
        game.use_tool("classic_burger", "slice")
        game.use_tool("classic_burger", "grill")
        game.tick(3.0)
        self.assertEqual(1, game.retrieve_cooked_items())
        game.use_tool("classic_burger", "assemble")

        result = game.serve_dish()
        self.assertEqual(Rating.PERFECT, result.rating)
        self.assertTrue(order.finished_at is not None)
        self.assertEqual([], game.orders.live_orders())


class TestTimedSteps(GameTestCase):
    def test_grill_step_is_held_until_retrieved(self):
        order = self._select("classic_burger")
        game = self.game
        game.add_ingredient("classic_burger", "beef_patty")

        self.assertTrue(game.use_tool("classic_burger", "grill"))
        patty = order.dish.progress["beef_patty"]
        self.assertTrue(patty.cooking)
        self.assertEqual(0, patty.prep_steps_completed)
        self.assertEqual(1, len(game.stations.jobs("grill")))

        game.tick(2.0)
        self.assertEqual(0, game.retrieve_cooked_items())
        self.assertFalse(patty.is_ready)

        game.tick(1.0)
        self.assertEqual(1, game.retrieve_cooked_items())
        self.assertTrue(patty.is_ready)
        self.assertFalse(patty.cooking)
        self.assertEqual({}, game.stations.jobs("grill"))

    def test_full_station_rejects_step_without_touching_the_dish(self):
        for _ in range(3):
            self.game.stations.submit("grill", None, "grill", 30.0)
        order = self._select("classic_burger")
        self.game.add_ingredient("classic_burger", "beef_patty")

        self.assertFalse(self.game.use_tool("classic_burger", "grill"))
        patty = order.dish.progress["beef_patty"]
        self.assertFalse(patty.cooking)
        self.assertEqual(0, patty.prep_steps_completed)
        self.assertIn("No free slot on grill", self.game.event_log[-1])

    def test_timed_step_without_duration_uses_default_cook_time(self):
        pizza = DishRecipe(
            dish_id="quick_pizza",
            display_name="Quick Pizza",
            station_id="prep",
            base_color="#ffdfba",
            ingredients=(IngredientSpec("pizza_dough", True),),
            final_steps=(PrepStep("bake", "Bake pizza", ".", station_id="stove"),),
        )
        catalog = RecipeCatalog(DEFAULT_INGREDIENTS.values(), DEFAULT_TOOLS.values(), DEFAULT_STATIONS.values(), [pizza])
        game = KitchenGame(catalog)
        order = game.orders.spawn(dish_id="quick_pizza", time_limit=60.0)
        game.select_order(order.order_id)

        self.assertTrue(game.use_tool("quick_pizza", "bake"))
        self.assertEqual(3.0, game.stations.job("stove", 0).duration)
        self.assertTrue(order.dish.final_step_cooking)

    def test_retrieval_returns_items_to_their_own_order(self):
        burger = self._select("classic_burger")
        self.game.add_ingredient("classic_burger", "beef_patty")
        self.game.use_tool("classic_burger", "grill")

        self._select("fried_chicken")
        self.game.tick(3.0)
        self.assertEqual(1, self.game.retrieve_cooked_items())
        self.assertTrue(burger.dish.progress["beef_patty"].is_ready)
        self.assertEqual(OrderStatus.PENDING, burger.status)

    def test_cancel_clears_in_flight_jobs(self):
        order = self._select("classic_burger")
        self.game.add_ingredient("classic_burger", "beef_patty")
        self.game.use_tool("classic_burger", "grill")

        self.game.cancel_current_dish()
        self.assertEqual({}, self.game.stations.jobs("grill"))
        self.assertEqual(OrderStatus.PENDING, order.status)
        self.assertIsNone(self.game.active_order)
        self.assertEqual(set(), order.dish.added)

        self.game.tick(5.0)
        self.assertEqual(0, self.game.retrieve_cooked_items())


class TestCommands(GameTestCase):
    def test_commands_need_the_active_dish(self):
        self.assertFalse(self.game.add_ingredient("classic_burger", "beef_patty"))
        self.assertFalse(self.game.use_tool("classic_burger", "grill"))
        self.assertIsNone(self.game.serve_dish())

        self._select("classic_burger")
        self.assertFalse(self.game.add_ingredient("fried_chicken", "salt"))
        self.assertFalse(self.game.add_ingredient("classic_burger", "pizza_dough"))

    def test_serving_an_invalid_dish_does_nothing(self):
        order = self._select("classic_burger")
        self.game.add_ingredient("classic_burger", "burger_bun")

        self.assertIsNone(self.game.serve_dish())
        self.assertEqual(OrderStatus.ACTIVE, order.status)
        self.assertEqual(0, self.game.stats()["orders_completed"])

    def test_select_by_index(self):
        first = self.game.orders.spawn(dish_id="classic_burger")
        second = self.game.orders.spawn(dish_id="fried_chicken")

        self.assertTrue(self.game.select_order_by_index(2))
        self.assertIs(second, self.game.active_order)
        self.assertTrue(self.game.select_order_by_index(1))
        self.assertIs(first, self.game.active_order)
        self.assertFalse(self.game.select_order_by_index(0))
        self.assertFalse(self.game.select_order_by_index(3))
        self.assertFalse(self.game.select_order("order_42"))

    def test_key_mappings_follow_the_active_dish(self):
        self.assertEqual({}, self.game.key_mappings())
        self._select("classic_burger")
        mappings = self.game.key_mappings()
        self.assertEqual("beef_patty", mappings["b"].target_id)
        self.assertNotIn(SERVE_KEY, mappings)

    def test_help_text_walks_through_the_recipe(self):
        game = self.game
        self.assertEqual("Select an order (1-9) to start cooking!", game.help_text())

        self._select("classic_burger")
        self.assertEqual("Add required ingredients: Burger Bun (J), Beef Patty (B)", game.help_text())

        game.add_ingredient("classic_burger", "burger_bun")
        game.add_ingredient("classic_burger", "beef_patty")
        self.assertEqual("Prepare Burger Bun: Slice bun in half (V)", game.help_text())

        game.use_tool("classic_burger", "slice")
        self.assertEqual("Prepare Beef Patty: Grill patty (Q)", game.help_text())

        game.use_tool("classic_burger", "grill")
        self.assertEqual("Grill patty on Grill Station (3s left)", game.help_text())

        game.tick(3.0)
        self.assertEqual("Grill patty is done! Press ENTER to retrieve.", game.help_text())

        game.retrieve_cooked_items()
        self.assertEqual("Assemble burger ([)", game.help_text())

        game.use_tool("classic_burger", "assemble")
        self.assertEqual("Plate and serve (SPACE)", game.help_text())

    def test_help_text_when_every_step_is_done(self):
        game = KitchenGame(_salad_catalog())
        order = game.orders.spawn(dish_id="side_salad")
        game.select_order(order.order_id)
        game.add_ingredient("side_salad", "lettuce")
        game.use_tool("side_salad", "chop")
        game.use_tool("side_salad", "toss")
        self.assertEqual("Dish ready! Press SPACE to serve.", game.help_text())

    def test_events_are_published(self):
        seen = []
        for event_type in ("order_selected", "ingredient_added", "tool_used", "cooking_started", "dish_cancelled"):
            self.game.events.subscribe(event_type, lambda data, event_type=event_type: seen.append(event_type))

        self._select("classic_burger")
        self.game.add_ingredient("classic_burger", "beef_patty")
        self.game.use_tool("classic_burger", "grill")
        self.game.cancel_current_dish()

        self.assertEqual(
            ["order_selected", "ingredient_added", "cooking_started", "tool_used", "dish_cancelled"],
            seen,
        )

    def test_event_log_is_capped(self):
        self._select("classic_burger")
        for _ in range(EVENT_LOG_LIMIT + 5):
            self.game.use_tool("classic_burger", "fry")
        self.assertEqual(EVENT_LOG_LIMIT, len(self.game.event_log))
        self.assertEqual("Deep Fry has no effect", self.game.event_log[-1])


class TestLifecycle(GameTestCase):
    def test_start_spawns_first_order_immediately(self):
        self.game.start()
        self.assertTrue(self.game.running)
        self.assertEqual(1, len(self.game.orders.live_orders()))

    def test_spawning_follows_interval_and_cap(self):
        game = KitchenGame(default_catalog(), seed=5, max_active_orders=3)
        game.start()
        game.tick(9.0)
        self.assertEqual(1, len(game.orders.live_orders()))
        game.tick(1.0)
        self.assertEqual(2, len(game.orders.live_orders()))
        game.tick(10.0)
        game.tick(10.0)
        self.assertEqual(3, len(game.orders.live_orders()))

    def test_orders_do_not_spawn_before_start(self):
        self.game.tick(30.0)
        self.assertEqual([], self.game.orders.live_orders())

    def test_overdue_orders_expire_on_tick(self):
        order = self.game.orders.spawn(dish_id="classic_burger", time_limit=5.0)
        expired = []
        self.game.events.subscribe("order_expired", lambda data: expired.append(data["order"]))

        self.game.tick(5.0)
        self.assertEqual([order], expired)
        self.assertEqual(Rating.FAILED, order.rating)
        self.assertEqual(-20, self.game.stats()["total_score"])
        self.assertIn("expired", self.game.event_log[-1])

    def test_pause_freezes_orders_and_jobs(self):
        order = self._select("classic_burger")
        self.game.add_ingredient("classic_burger", "beef_patty")
        self.game.use_tool("classic_burger", "grill")

        self.game.pause()
        self.game.tick(30.0)
        self.assertTrue(self.game.paused)
        self.assertEqual(0.0, self.game.clock.now())
        self.assertEqual(60, self.game.orders.remaining_seconds(order.order_id))
        self.assertEqual(0, self.game.retrieve_cooked_items())

        self.game.resume()
        self.game.tick(3.0)
        self.assertEqual(57, self.game.orders.remaining_seconds(order.order_id))
        self.assertEqual(1, self.game.retrieve_cooked_items())

    def test_reset_returns_to_a_fresh_kitchen(self):
        self.game.start()
        self._select("classic_burger")
        self.game.add_ingredient("classic_burger", "beef_patty")
        self.game.use_tool("classic_burger", "grill")
        self.game.tick(4.0)

        self.game.reset()
        self.assertFalse(self.game.running)
        self.assertEqual(0.0, self.game.clock.now())
        self.assertEqual([], self.game.orders.live_orders())
        self.assertEqual({}, self.game.stations.jobs("grill"))
        self.assertEqual(["Kitchen reset"], self.game.event_log)

    def test_stats_include_game_time(self):
        self.game.tick(2.5)
        stats = self.game.stats()
        self.assertEqual(2.5, stats["game_time"])
        self.assertEqual(0, stats["orders_completed"])
        self.assertFalse(stats["paused"])


if __name__ == "__main__":
    unittest.main()
