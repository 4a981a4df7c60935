"""Recoverable failures raised by the kitchen components.

Every component checks its preconditions and raises before touching any
state, so a caught ``KitchenError`` always means "nothing happened".
:class:`kitchen.game.KitchenGame` turns these into ``False``/``None`` at
the command boundary.
"""
from __future__ import annotations


class KitchenError(Exception):
    """Base class for every recoverable kitchen failure."""


# Reference errors -----------------------------------------------------------


class UnknownReference(KitchenError):
    pass


class UnknownStation(UnknownReference):
    def __init__(self, station_id: str) -> None:
        super().__init__(f"Unknown station: {station_id}")
        self.station_id = station_id


class OrderNotFound(UnknownReference):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order not found: {order_id}")
        self.order_id = order_id


class UnknownDish(UnknownReference):
    def __init__(self, dish_id: str) -> None:
        super().__init__(f"Unknown dish: {dish_id}")
        self.dish_id = dish_id


# Invalid transitions --------------------------------------------------------


class InvalidTransition(KitchenError):
    pass


class NotInRecipe(InvalidTransition):
    def __init__(self, ingredient_id: str, dish_id: str) -> None:
        super().__init__(f"{ingredient_id} is not part of {dish_id}")
        self.ingredient_id = ingredient_id
        self.dish_id = dish_id


class AlreadyAdded(InvalidTransition):
    def __init__(self, ingredient_id: str) -> None:
        super().__init__(f"{ingredient_id} already added")
        self.ingredient_id = ingredient_id


class ToolNotAllowed(InvalidTransition):
    def __init__(self, tool_id: str, station_id: str) -> None:
        super().__init__(f"{tool_id} not allowed on {station_id}")
        self.tool_id = tool_id
        self.station_id = station_id


class NotReady(InvalidTransition):
    def __init__(self, station_id: str, slot_index: int) -> None:
        super().__init__(f"No ready job in {station_id} slot {slot_index}")
        self.station_id = station_id
        self.slot_index = slot_index


class AlreadyTerminal(InvalidTransition):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order {order_id} is already finished")
        self.order_id = order_id


class OrderNotActive(InvalidTransition):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order {order_id} is not the active order")
        self.order_id = order_id


class OrderNotExpired(InvalidTransition):
    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order {order_id} still has time left")
        self.order_id = order_id


# Capacity errors ------------------------------------------------------------


class CapacityError(KitchenError):
    pass


class NoFreeSlot(CapacityError):
    def __init__(self, station_id: str) -> None:
        super().__init__(f"No free slot on {station_id}")
        self.station_id = station_id


class AtCapacity(CapacityError):
    def __init__(self, max_active: int) -> None:
        super().__init__(f"Order queue full ({max_active})")
        self.max_active = max_active
