"""Centralised configuration constants for Cook Tap."""
from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# File paths
# ---------------------------------------------------------------------------
RECIPES_FILE: Path = Path("data/recipes.json")

# ---------------------------------------------------------------------------
# Catalog categories
# ---------------------------------------------------------------------------
INGREDIENT_CATEGORIES: frozenset[str] = frozenset(
    {"meat", "vegetable", "dairy", "grain", "sauce", "seasoning"}
)
TOOL_CATEGORIES: frozenset[str] = frozenset({"cut", "cook", "mix", "serve"})
MIN_DIFFICULTY: int = 1
MAX_DIFFICULTY: int = 5

# ---------------------------------------------------------------------------
# Order timing (seconds)
# time limit = base + difficulty * per-level + uniform(0, jitter)
# ---------------------------------------------------------------------------
ORDER_BASE_TIME: float = 45.0
ORDER_DIFFICULTY_TIME: float = 10.0
ORDER_TIME_JITTER: float = 20.0
ORDER_SPAWN_INTERVAL: float = 10.0     # seconds between automatic order spawns
MAX_ACTIVE_ORDERS: int = 5             # live (pending or active) orders at once

# ---------------------------------------------------------------------------
# Scoring: the remaining-time ratio at completion decides the rating
# ---------------------------------------------------------------------------
PERFECT_RATIO: float = 0.75            # ratio strictly above → perfect
GOOD_RATIO: float = 0.25               # ratio strictly above → good
RATING_SCORES: dict[str, int] = {
    "perfect": 100,
    "good": 60,
    "average": 30,
    "bad": 0,
}
EXPIRED_ORDER_PENALTY: int = -20       # score booked when an order times out

# Countdown urgency bands (fraction of the time limit still remaining)
URGENT_RATIO: float = 0.5
CRITICAL_RATIO: float = 0.25

# ---------------------------------------------------------------------------
# Cooking stations
# ---------------------------------------------------------------------------
DEFAULT_COOK_TIME: float = 3.0         # timed step without an explicit duration

# ---------------------------------------------------------------------------
# Input keys handled by the game itself rather than the dish key map
# ---------------------------------------------------------------------------
SERVE_KEY: str = "space"
RETRIEVE_KEY: str = "enter"
CANCEL_KEY: str = "escape"
PAUSE_KEY: str = "tab"              # "p" belongs to pickles
ORDER_SELECT_KEYS: tuple[str, ...] = ("1", "2", "3", "4", "5", "6", "7", "8", "9")

# ---------------------------------------------------------------------------
# Event log
# ---------------------------------------------------------------------------
EVENT_LOG_LIMIT: int = 12

# ---------------------------------------------------------------------------
# Display (pygame front-end only)
# ---------------------------------------------------------------------------
WINDOW_W: int = 1100
WINDOW_H: int = 720
FPS: int = 60
ORDER_CARD_W: int = 200
ORDER_CARD_H: int = 74
STATION_CARD_H: int = 112
