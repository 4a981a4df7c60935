"""The kitchen orchestrator the view and the headless runner drive."""
from __future__ import annotations

import math
from dataclasses import asdict
from typing import Dict, List, Optional

from config import (
    DEFAULT_COOK_TIME,
    EVENT_LOG_LIMIT,
    MAX_ACTIVE_ORDERS,
    ORDER_SPAWN_INTERVAL,
    RETRIEVE_KEY,
    SERVE_KEY,
)
from kitchen.clock import GameClock
from kitchen.events import EventBus
from kitchen.errors import KitchenError
from kitchen.orders import Order, OrderManager, ServeResult
from kitchen.stations import StationScheduler
from recipe_catalog import KeyBinding, PrepStep, RecipeCatalog, load_recipe_catalog


def key_label(key: str) -> str:
    return key.upper()


class KitchenGame:
    """Command surface over orders, dishes and stations.

    Commands never raise for gameplay mistakes: a :class:`KitchenError`
    from a component is written to :attr:`event_log` and the command
    returns ``False`` (or ``None``).  Time only moves through :meth:`tick`.
    """

    def __init__(
        self,
        catalog: Optional[RecipeCatalog] = None,
        *,
        seed: int = 7,
        clock: Optional[GameClock] = None,
        max_active_orders: int = MAX_ACTIVE_ORDERS,
        spawn_interval: float = ORDER_SPAWN_INTERVAL,
    ) -> None:
        self.catalog = catalog if catalog is not None else load_recipe_catalog()
        self.clock = clock if clock is not None else GameClock()
        self.events = EventBus()
        self.stations = StationScheduler(self.catalog, self.clock)
        self.orders = OrderManager(self.catalog, self.clock, seed=seed)
        self.max_active_orders = max_active_orders
        self.spawn_interval = spawn_interval
        self.order_spawn_timer: float = 0.0
        self.running: bool = False
        self.event_log: List[str] = []
        self._log_event("Kitchen initialized")

    def _log_event(self, message: str) -> None:
        self.event_log.append(message)
        self.event_log = self.event_log[-EVENT_LOG_LIMIT:]

    @property
    def paused(self) -> bool:
        return self.clock.paused

    @property
    def active_order(self) -> Optional[Order]:
        return self.orders.active_order

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.clock.resume()
        self.order_spawn_timer = 0.0
        self._log_event("Service started")
        self.events.publish("game_started")
        self._spawn_order()

    def pause(self) -> None:
        if self.clock.paused:
            return
        self.clock.pause()
        self._log_event("Paused")
        self.events.publish("game_paused")

    def resume(self) -> None:
        if not self.clock.paused:
            return
        self.clock.resume()
        self._log_event("Resumed")
        self.events.publish("game_resumed")

    def toggle_pause(self) -> None:
        if self.clock.paused:
            self.resume()
        else:
            self.pause()

    def reset(self) -> None:
        self.stations.clear()
        self.orders.clear()
        self.clock.reset()
        self.running = False
        self.order_spawn_timer = 0.0
        self.event_log = []
        self._log_event("Kitchen reset")
        self.events.publish("game_reset")

    def tick(self, dt: float) -> None:
        """Advance game time by ``dt`` seconds.

        Nothing moves while paused.  Overdue orders expire before new ones
        are spawned so an expiry frees its queue slot in the same tick.
        Orders only spawn automatically once :meth:`start` was called.
        """
        if self.clock.paused or dt <= 0:
            return
        self.clock.advance(dt)

        for order in self.orders.expire_overdue():
            self.stations.clear_owner(order.order_id)
            self._log_event(f"Order #{order.number} {order.dish_name} expired ({order.score})")
            self.events.publish("order_expired", {"order": order})

        if not self.running:
            return
        self.order_spawn_timer += dt
        while self.order_spawn_timer >= self.spawn_interval:
            self.order_spawn_timer -= self.spawn_interval
            if len(self.orders.live_orders()) < self.max_active_orders:
                self._spawn_order()

    def _spawn_order(self) -> Optional[Order]:
        try:
            order = self.orders.spawn(self.max_active_orders)
        except KitchenError as exc:
            self._log_event(str(exc))
            return None
        self._log_event(f"New order #{order.number}: {order.dish_name} ({math.ceil(order.time_limit)}s)")
        self.events.publish("order_spawned", {"order": order})
        return order

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def select_order(self, order_id: str) -> bool:
        try:
            order = self.orders.select(order_id)
        except KitchenError as exc:
            self._log_event(str(exc))
            return False
        self._log_event(f"Cooking order #{order.number}: {order.dish_name}")
        self.events.publish("order_selected", {"order": order})
        return True

    def select_order_by_index(self, index: int) -> bool:
        """Select the ``index``-th live order, counting from 1."""
        live = self.orders.live_orders()
        if not 1 <= index <= len(live):
            return False
        return self.select_order(live[index - 1].order_id)

    def _order_for(self, dish_id: str) -> Optional[Order]:
        order = self.orders.active_order
        if order is None:
            self._log_event("No order selected")
            return None
        if order.dish_id != dish_id:
            self._log_event(f"Order #{order.number} is not a {dish_id}")
            return None
        return order

    def add_ingredient(self, dish_id: str, ingredient_id: str) -> bool:
        order = self._order_for(dish_id)
        if order is None:
            return False
        try:
            order.dish.add_ingredient(ingredient_id)
        except KitchenError as exc:
            self._log_event(str(exc))
            return False
        ingredient = self.catalog.ingredient(ingredient_id)
        self._log_event(f"Added {ingredient.display_name if ingredient else ingredient_id}")
        self.events.publish("ingredient_added", {"order": order, "ingredient_id": ingredient_id})
        return True

    def use_tool(self, dish_id: str, tool_id: str) -> bool:
        """Apply ``tool_id`` to the active dish.

        A step that runs at a timed station starts a cooking job and stays
        held until :meth:`retrieve_cooked_items` collects it.  Everything
        else advances immediately.
        """
        order = self._order_for(dish_id)
        if order is None:
            return False
        target = order.dish.match_tool(tool_id)
        if target is None:
            tool = self.catalog.tool(tool_id)
            self._log_event(f"{tool.display_name if tool else tool_id} has no effect")
            return False

        station_id = order.dish.recipe.step_station(target.step)
        station = self.catalog.station(station_id)
        if station is not None and station.is_timed:
            duration = target.step.duration if target.step.duration is not None else DEFAULT_COOK_TIME
            try:
                slot_index = self.stations.submit(
                    station_id, target.ingredient_id, tool_id, duration, owner=order.order_id
                )
            except KitchenError as exc:
                self._log_event(str(exc))
                return False
            order.dish.hold(target)
            self._log_event(f"{target.step.description} on {station.display_name} ({duration:g}s)")
            self.events.publish(
                "cooking_started", {"order": order, "station_id": station_id, "slot": slot_index}
            )
        else:
            order.dish.advance(target)
            self._log_event(target.step.description)

        self.events.publish("tool_used", {"order": order, "tool_id": tool_id, "target": target})
        return True

    def retrieve_cooked_items(self) -> int:
        """Collect every finished job and complete its held step.

        Jobs go back to the order that started them, active or not.
        """
        retrieved = 0
        for station_id, slot_index, _ in self.stations.ready_jobs():
            job = self.stations.collect(station_id, slot_index)
            order = self.orders.get(job.owner) if job.owner else None
            if order is None or order.is_terminal:
                continue
            target = order.dish.complete_held(job.ingredient_id)
            if target is None:
                continue
            retrieved += 1
            self._log_event(f"Retrieved: {target.step.description} (order #{order.number})")
            self.events.publish("item_retrieved", {"job": job})
        if not retrieved:
            self._log_event("Nothing ready to retrieve")
        return retrieved

    def serve_dish(self) -> Optional[ServeResult]:
        order = self.orders.active_order
        if order is None:
            self._log_event("No order selected")
            return None
        if not order.dish.is_valid():
            self._log_event(f"{order.dish_name} is not ready to serve")
            return None

        # plating is the serve key itself
        step = order.dish.next_final_step()
        if step is not None and step.key == SERVE_KEY:
            order.dish.apply_tool(step.tool_id)

        try:
            result = self.orders.complete(order.order_id, dish_valid=True)
        except KitchenError as exc:
            self._log_event(str(exc))
            return None
        self.stations.clear_owner(order.order_id)
        self._log_event(f"Served #{order.number} {order.dish_name}: {result.rating.value} (+{result.score})")
        self.events.publish("order_completed", {"order": order})
        return result

    def cancel_current_dish(self) -> None:
        order = self.orders.active_order
        if order is None:
            return
        dropped = self.stations.clear_owner(order.order_id)
        self.orders.deactivate(order.order_id)
        suffix = f", {dropped} job(s) dropped" if dropped else ""
        self._log_event(f"Cancelled {order.dish_name}{suffix}")
        self.events.publish("dish_cancelled", {"order": order})

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def help_text(self) -> str:
        order = self.orders.active_order
        if order is None:
            return "Select an order (1-9) to start cooking!"
        dish = order.dish

        missing = dish.missing_required()
        if missing:
            names = ", ".join(self._ingredient_label(spec.ingredient_id) for spec in missing)
            return f"Add required ingredients: {names}"

        now = self.clock.now()
        for job in self.stations.owned_jobs(order.order_id):
            station = self.catalog.station(job.station_id)
            station_name = station.display_name if station else job.station_id
            step = self._held_step(order, job.ingredient_id)
            description = step.description if step else job.tool_id
            if job.is_ready(now):
                return f"{description} is done! Press {key_label(RETRIEVE_KEY)} to retrieve."
            return f"{description} on {station_name} ({math.ceil(job.remaining(now))}s left)"

        for spec in dish.pending_ingredients():
            if dish.progress[spec.ingredient_id].cooking:
                continue
            step = dish.next_prep_step(spec.ingredient_id)
            name = self._ingredient_name(spec.ingredient_id)
            return f"Prepare {name}: {step.description} ({key_label(step.key)})"

        step = dish.next_final_step()
        if step is not None and not dish.final_step_cooking:
            return f"{step.description} ({key_label(step.key)})"
        return f"Dish ready! Press {key_label(SERVE_KEY)} to serve."

    def key_mappings(self) -> Dict[str, KeyBinding]:
        order = self.orders.active_order
        if order is None:
            return {}
        return self.catalog.key_mappings(order.dish_id)

    def stats(self) -> Dict[str, object]:
        stats: Dict[str, object] = asdict(self.orders.stats())
        stats["game_time"] = self.clock.now()
        stats["paused"] = self.clock.paused
        return stats

    def _ingredient_name(self, ingredient_id: str) -> str:
        ingredient = self.catalog.ingredient(ingredient_id)
        return ingredient.display_name if ingredient else ingredient_id

    def _ingredient_label(self, ingredient_id: str) -> str:
        ingredient = self.catalog.ingredient(ingredient_id)
        if ingredient is None:
            return ingredient_id
        return f"{ingredient.display_name} ({key_label(ingredient.key)})"

    @staticmethod
    def _held_step(order: Order, ingredient_id: Optional[str]) -> Optional[PrepStep]:
        if ingredient_id is None:
            return order.dish.next_final_step()
        return order.dish.next_prep_step(ingredient_id)
