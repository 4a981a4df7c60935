"""Publish/subscribe hub the view uses to follow the kitchen.

Events published by :class:`kitchen.game.KitchenGame`:
  "order_spawned"     data: {"order": Order}
  "order_selected"    data: {"order": Order}
  "order_completed"   data: {"order": Order}
  "order_expired"     data: {"order": Order}
  "ingredient_added"  data: {"order": Order, "ingredient_id": str}
  "tool_used"         data: {"order": Order, "tool_id": str, "target": StepTarget}
  "cooking_started"   data: {"order": Order, "station_id": str, "slot": int}
  "item_retrieved"    data: {"job": CookingJob}
  "dish_cancelled"    data: {"order": Order}
  "game_started" / "game_paused" / "game_resumed" / "game_reset"
"""
from __future__ import annotations

from collections import defaultdict
from typing import Callable, Dict, List, Optional

Listener = Callable[[dict], None]


class EventBus:
    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, event_type: str, callback: Listener) -> None:
        self._listeners[event_type].append(callback)

    def unsubscribe(self, event_type: str, callback: Listener) -> None:
        listeners = self._listeners[event_type]
        if callback in listeners:
            listeners.remove(callback)

    def publish(self, event_type: str, data: Optional[dict] = None) -> None:
        for callback in list(self._listeners[event_type]):
            callback(data or {})
