"""Customer orders: spawning, selection, countdown and scoring."""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from config import (
    CRITICAL_RATIO,
    EXPIRED_ORDER_PENALTY,
    GOOD_RATIO,
    MAX_ACTIVE_ORDERS,
    ORDER_BASE_TIME,
    ORDER_DIFFICULTY_TIME,
    ORDER_TIME_JITTER,
    PERFECT_RATIO,
    RATING_SCORES,
    URGENT_RATIO,
)
from kitchen.clock import GameClock
from kitchen.dish import DishInstance
from kitchen.errors import (
    AlreadyTerminal,
    AtCapacity,
    OrderNotActive,
    OrderNotExpired,
    OrderNotFound,
    UnknownDish,
)
from recipe_catalog import DishRecipe, RecipeCatalog


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


class Rating(str, Enum):
    NONE = "none"
    PERFECT = "perfect"
    GOOD = "good"
    AVERAGE = "average"
    BAD = "bad"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.EXPIRED})


@dataclass
class Order:
    """A timed customer order owning its own dish attempt."""

    order_id: str
    number: int
    dish_id: str
    dish_name: str
    created_at: float
    time_limit: float
    dish: DishInstance
    status: OrderStatus = OrderStatus.PENDING
    rating: Rating = Rating.NONE
    score: int = 0
    finished_at: Optional[float] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass
class OrderStats:
    total_score: int = 0
    orders_completed: int = 0
    perfect_orders: int = 0
    active_orders: int = 0
    average_score: int = 0
    perfect_rate: int = 0


@dataclass(frozen=True)
class ServeResult:
    order_id: str
    rating: Rating
    score: int


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def rate_completion(remaining: float, time_limit: float, dish_valid: bool) -> Tuple[Rating, int]:
    """Rate a finished order from the share of its time limit still left.

    ``remaining`` is the whole seconds shown on the countdown, so a
    fraction of a second left counts as a full one.  Both ratio bands are
    exclusive: exactly 75 % left is *good*, exactly 25 % left is *average*.
    """
    if not dish_valid:
        rating = Rating.BAD
    else:
        ratio = remaining / time_limit if time_limit > 0 else 0.0
        if ratio > PERFECT_RATIO:
            rating = Rating.PERFECT
        elif ratio > GOOD_RATIO:
            rating = Rating.GOOD
        elif remaining > 0:
            rating = Rating.AVERAGE
        else:
            rating = Rating.BAD
    return rating, RATING_SCORES[rating.value]


class OrderManager:
    """Owns every order and the running score totals.

    Live orders (pending or active) are kept in spawn order; at most one of
    them is active.  Finished orders are moved to ``completed_orders`` and
    never change again.
    """

    def __init__(self, catalog: RecipeCatalog, clock: GameClock, seed: int = 7, rng: Optional[random.Random] = None) -> None:
        self.catalog = catalog
        self.clock = clock
        self.rng = rng if rng is not None else random.Random(seed)
        self._live: Dict[str, Order] = {}
        self.completed_orders: List[Order] = []
        self._active_id: Optional[str] = None
        self._next_number = 1
        self.total_score = 0
        self.orders_completed = 0
        self.perfect_orders = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def active_order(self) -> Optional[Order]:
        if self._active_id is None:
            return None
        return self._live.get(self._active_id)

    def live_orders(self) -> List[Order]:
        return list(self._live.values())

    def get(self, order_id: str) -> Optional[Order]:
        order = self._live.get(order_id)
        if order is not None:
            return order
        for finished in self.completed_orders:
            if finished.order_id == order_id:
                return finished
        return None

    def _require(self, order_id: str) -> Order:
        order = self.get(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def time_left(self, order_id: str) -> float:
        order = self._require(order_id)
        if order.is_terminal:
            return 0.0
        return max(0.0, order.time_limit - (self.clock.now() - order.created_at))

    def remaining_seconds(self, order_id: str) -> int:
        return math.ceil(self.time_left(order_id))

    def urgency(self, order_id: str) -> str:
        order = self._require(order_id)
        ratio = self.time_left(order_id) / order.time_limit if order.time_limit > 0 else 0.0
        if ratio <= CRITICAL_RATIO:
            return "critical"
        if ratio <= URGENT_RATIO:
            return "urgent"
        return "normal"

    def stats(self) -> OrderStats:
        """Running totals.

        ``total_score`` includes the penalty booked for every expired order.
        ``orders_completed`` counts served orders only, and ``average_score``
        divides the former by the latter.
        """
        average = round_half_up(self.total_score / self.orders_completed) if self.orders_completed else 0
        perfect_rate = round_half_up(self.perfect_orders / self.orders_completed * 100) if self.orders_completed else 0
        return OrderStats(
            total_score=self.total_score,
            orders_completed=self.orders_completed,
            perfect_orders=self.perfect_orders,
            active_orders=len(self._live),
            average_score=average,
            perfect_rate=perfect_rate,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def spawn(
        self,
        max_active: int = MAX_ACTIVE_ORDERS,
        *,
        dish_id: Optional[str] = None,
        time_limit: Optional[float] = None,
    ) -> Order:
        """Create a pending order for ``dish_id`` (random when omitted)."""
        if len(self._live) >= max_active:
            raise AtCapacity(max_active)

        recipe: Optional[DishRecipe]
        if dish_id is None:
            recipe = self.rng.choice(self.catalog.all_dishes())
        else:
            recipe = self.catalog.dish(dish_id)
            if recipe is None:
                raise UnknownDish(dish_id)

        if time_limit is None:
            time_limit = (
                ORDER_BASE_TIME
                + recipe.difficulty * ORDER_DIFFICULTY_TIME
                + self.rng.uniform(0.0, ORDER_TIME_JITTER)
            )

        number = self._next_number
        self._next_number += 1
        order = Order(
            order_id=f"order_{number}",
            number=number,
            dish_id=recipe.dish_id,
            dish_name=recipe.display_name,
            created_at=self.clock.now(),
            time_limit=float(time_limit),
            dish=DishInstance(recipe),
        )
        self._live[order.order_id] = order
        return order

    def select(self, order_id: str) -> Order:
        order = self._require(order_id)
        if order.is_terminal:
            raise AlreadyTerminal(order_id)

        current = self.active_order
        if current is not None and current is not order:
            current.status = OrderStatus.PENDING
        order.status = OrderStatus.ACTIVE
        self._active_id = order.order_id
        return order

    def deactivate(self, order_id: str) -> Order:
        """Return the active order to pending with a fresh dish."""
        order = self._require(order_id)
        if order.status is not OrderStatus.ACTIVE:
            raise OrderNotActive(order_id)
        order.dish.reset()
        order.status = OrderStatus.PENDING
        self._active_id = None
        return order

    def complete(self, order_id: str, dish_valid: bool) -> ServeResult:
        order = self._require(order_id)
        if order.is_terminal:
            raise AlreadyTerminal(order_id)
        if order.status is not OrderStatus.ACTIVE:
            raise OrderNotActive(order_id)

        rating, score = rate_completion(self.remaining_seconds(order_id), order.time_limit, dish_valid)
        self._finish(order, OrderStatus.COMPLETED, rating, score)
        self.orders_completed += 1
        if rating is Rating.PERFECT:
            self.perfect_orders += 1
        return ServeResult(order.order_id, rating, score)

    def expire(self, order_id: str) -> Order:
        order = self._require(order_id)
        if order.is_terminal:
            raise AlreadyTerminal(order_id)
        if self.time_left(order_id) > 0:
            raise OrderNotExpired(order_id)
        self._finish(order, OrderStatus.EXPIRED, Rating.FAILED, EXPIRED_ORDER_PENALTY)
        return order

    def expire_overdue(self) -> List[Order]:
        overdue = [order for order in self._live.values() if self.time_left(order.order_id) <= 0]
        return [self.expire(order.order_id) for order in overdue]

    def clear(self) -> None:
        self._live.clear()
        self.completed_orders.clear()
        self._active_id = None
        self._next_number = 1
        self.total_score = 0
        self.orders_completed = 0
        self.perfect_orders = 0

    def _finish(self, order: Order, status: OrderStatus, rating: Rating, score: int) -> None:
        order.status = status
        order.rating = rating
        order.score = score
        order.finished_at = self.clock.now()
        order.dish.reset()
        self.total_score += score
        del self._live[order.order_id]
        self.completed_orders.append(order)
        if self._active_id == order.order_id:
            self._active_id = None
