"""Cook Tap kitchen engine.

Public API:
    from kitchen import KitchenGame, GameClock, EventBus, Order, Rating
"""
from kitchen.clock import GameClock
from kitchen.dish import DishInstance, StepTarget
from kitchen.events import EventBus
from kitchen.game import KitchenGame
from kitchen.orders import Order, OrderManager, OrderStats, OrderStatus, Rating, ServeResult
from kitchen.stations import CookingJob, StationScheduler

__all__ = [
    "CookingJob",
    "DishInstance",
    "EventBus",
    "GameClock",
    "KitchenGame",
    "Order",
    "OrderManager",
    "OrderStats",
    "OrderStatus",
    "Rating",
    "ServeResult",
    "StationScheduler",
    "StepTarget",
]
