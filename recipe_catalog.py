from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from config import (
    INGREDIENT_CATEGORIES,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    RECIPES_FILE,
    SERVE_KEY,
    TOOL_CATEGORIES,
)

ITEM_ID_RE = re.compile(r"^[a-z][a-z0-9_]*$")
COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
DEFAULT_COLOR = "#cccccc"


@dataclass(frozen=True)
class IngredientDef:
    ingredient_id: str
    display_name: str
    category: str
    key: str
    color: str = DEFAULT_COLOR


@dataclass(frozen=True)
class ToolDef:
    tool_id: str
    display_name: str
    category: str
    key: str
    color: str = DEFAULT_COLOR


@dataclass(frozen=True)
class StationDef:
    """A kitchen station.

    ``slots`` is the number of concurrent cooking jobs.  A single-slot
    station applies its tools immediately and never holds a job; stations
    with more slots run timed jobs (grill, fryer, stove).
    """

    station_id: str
    display_name: str
    allowed_tools: frozenset[str]
    slots: int = 1
    color: str = DEFAULT_COLOR

    @property
    def is_timed(self) -> bool:
        return self.slots > 1

    def allows(self, tool_id: str) -> bool:
        return tool_id in self.allowed_tools


@dataclass(frozen=True)
class PrepStep:
    """One ordered unit of work.

    Used both for an ingredient's preparation and for the dish-wide final
    assembly sequence.  ``station_id`` of ``None`` means the dish's default
    station; ``duration`` of ``None`` means instantaneous (or the default
    cook time when the station is timed).
    """

    tool_id: str
    description: str
    key: str
    station_id: Optional[str] = None
    duration: Optional[float] = None


FinalStep = PrepStep


@dataclass(frozen=True)
class IngredientSpec:
    ingredient_id: str
    required: bool
    prep_steps: tuple[PrepStep, ...] = ()


@dataclass(frozen=True)
class DishRecipe:
    dish_id: str
    display_name: str
    station_id: str
    base_color: str
    ingredients: tuple[IngredientSpec, ...]
    final_steps: tuple[FinalStep, ...]
    difficulty: int = 1
    prep_time: float = 45.0

    def spec(self, ingredient_id: str) -> Optional[IngredientSpec]:
        for spec in self.ingredients:
            if spec.ingredient_id == ingredient_id:
                return spec
        return None

    @property
    def required_ingredients(self) -> tuple[IngredientSpec, ...]:
        return tuple(spec for spec in self.ingredients if spec.required)

    def step_station(self, step: PrepStep) -> str:
        return step.station_id or self.station_id


@dataclass(frozen=True)
class KeyBinding:
    """What a key does while a dish is being prepared."""

    kind: str  # "ingredient" or "tool"
    target_id: str
    label: str
    ingredient_id: Optional[str] = None


class RecipeCatalog:
    """Immutable lookup surface over ingredients, tools, stations and dishes.

    Lookups of unknown ids return ``None``.  Build one with
    :func:`load_recipe_catalog` (validated) or directly from definitions.
    """

    def __init__(
        self,
        ingredients: Iterable[IngredientDef],
        tools: Iterable[ToolDef],
        stations: Iterable[StationDef],
        dishes: Iterable[DishRecipe],
    ) -> None:
        self._ingredients: Mapping[str, IngredientDef] = MappingProxyType(
            {ingredient.ingredient_id: ingredient for ingredient in ingredients}
        )
        self._tools: Mapping[str, ToolDef] = MappingProxyType({tool.tool_id: tool for tool in tools})
        self._stations: Mapping[str, StationDef] = MappingProxyType(
            {station.station_id: station for station in stations}
        )
        ordered = sorted(dishes, key=lambda dish: (dish.difficulty, dish.dish_id))
        self._dishes: Mapping[str, DishRecipe] = MappingProxyType({dish.dish_id: dish for dish in ordered})

    def ingredient(self, ingredient_id: str) -> Optional[IngredientDef]:
        return self._ingredients.get(ingredient_id)

    def tool(self, tool_id: str) -> Optional[ToolDef]:
        return self._tools.get(tool_id)

    def station(self, station_id: str) -> Optional[StationDef]:
        return self._stations.get(station_id)

    def dish(self, dish_id: str) -> Optional[DishRecipe]:
        return self._dishes.get(dish_id)

    def all_dishes(self) -> List[DishRecipe]:
        return list(self._dishes.values())

    def ingredients(self) -> Iterator[IngredientDef]:
        return iter(self._ingredients.values())

    def tools(self) -> Iterator[ToolDef]:
        return iter(self._tools.values())

    def stations(self) -> Iterator[StationDef]:
        return iter(self._stations.values())

    def dish_tools(self, dish_id: str) -> List[ToolDef]:
        """Distinct tools a recipe uses, prep steps first then final steps."""
        dish = self.dish(dish_id)
        if dish is None:
            return []
        seen: Dict[str, ToolDef] = {}
        steps = [step for spec in dish.ingredients for step in spec.prep_steps]
        steps.extend(dish.final_steps)
        for step in steps:
            tool = self.tool(step.tool_id)
            if tool is not None and tool.tool_id not in seen:
                seen[tool.tool_id] = tool
        return list(seen.values())

    def key_mappings(self, dish_id: str) -> Dict[str, KeyBinding]:
        """Map input keys to the ingredients and tools of one dish.

        Final steps bound to the serve key are left out: that key serves
        the dish instead.
        """
        mappings: Dict[str, KeyBinding] = {}
        dish = self.dish(dish_id)
        if dish is None:
            return mappings

        for spec in dish.ingredients:
            ingredient = self.ingredient(spec.ingredient_id)
            if ingredient is not None and ingredient.key:
                mappings[ingredient.key] = KeyBinding("ingredient", ingredient.ingredient_id, ingredient.display_name)
            for step in spec.prep_steps:
                if step.key:
                    mappings[step.key] = KeyBinding("tool", step.tool_id, step.description, spec.ingredient_id)

        for step in dish.final_steps:
            if step.key and step.key != SERVE_KEY:
                mappings[step.key] = KeyBinding("tool", step.tool_id, step.description)
        return mappings


# ---------------------------------------------------------------------------
# Built-in tables
# ---------------------------------------------------------------------------

DEFAULT_INGREDIENTS: Dict[str, IngredientDef] = {
    ingredient.ingredient_id: ingredient
    for ingredient in (
        IngredientDef("beef_patty", "Beef Patty", "meat", "b", "#ffcccb"),
        IngredientDef("chicken_breast", "Chicken Breast", "meat", "c", "#ffcccb"),
        IngredientDef("bacon", "Bacon", "meat", "n", "#ffcccb"),
        IngredientDef("lettuce", "Lettuce", "vegetable", "l", "#90ee90"),
        IngredientDef("tomato", "Tomato", "vegetable", "t", "#90ee90"),
        IngredientDef("onion", "Onion", "vegetable", "o", "#90ee90"),
        IngredientDef("pickles", "Pickles", "vegetable", "p", "#90ee90"),
        IngredientDef("mushrooms", "Mushrooms", "vegetable", "m", "#90ee90"),
        IngredientDef("bell_pepper", "Bell Pepper", "vegetable", "e", "#90ee90"),
        IngredientDef("cheese", "Cheese", "dairy", "h", "#fffacd"),
        IngredientDef("mozzarella", "Mozzarella", "dairy", "z", "#fffacd"),
        IngredientDef("butter", "Butter", "dairy", "u", "#fffacd"),
        IngredientDef("burger_bun", "Burger Bun", "grain", "j", "#daa520"),
        IngredientDef("pizza_dough", "Pizza Dough", "grain", "d", "#daa520"),
        IngredientDef("pasta", "Pasta", "grain", "a", "#daa520"),
        IngredientDef("ketchup", "Ketchup", "sauce", "k", "#ff6347"),
        IngredientDef("mustard", "Mustard", "sauce", "y", "#ff6347"),
        IngredientDef("mayo", "Mayo", "sauce", "w", "#ff6347"),
        IngredientDef("tomato_sauce", "Tomato Sauce", "sauce", "s", "#ff6347"),
        IngredientDef("salt", "Salt", "seasoning", "i", "#dda0dd"),
        IngredientDef("pepper", "Pepper", "seasoning", "r", "#dda0dd"),
        IngredientDef("oregano", "Oregano", "seasoning", "g", "#dda0dd"),
    )
}

DEFAULT_TOOLS: Dict[str, ToolDef] = {
    tool.tool_id: tool
    for tool in (
        ToolDef("chop", "Chop", "cut", "x", "#c0c0c0"),
        ToolDef("slice", "Slice", "cut", "v", "#c0c0c0"),
        ToolDef("grill", "Grill", "cook", "q", "#ffa500"),
        ToolDef("fry", "Deep Fry", "cook", "f", "#ffa500"),
        ToolDef("boil", "Boil", "cook", ",", "#ffa500"),
        ToolDef("bake", "Bake", "cook", ".", "#ffa500"),
        ToolDef("mix", "Mix", "mix", ";", "#87ceeb"),
        ToolDef("toss", "Toss", "mix", "'", "#87ceeb"),
        ToolDef("assemble", "Assemble", "mix", "[", "#87ceeb"),
        ToolDef("plate", "Plate", "serve", SERVE_KEY, "#98fb98"),
    )
}

DEFAULT_STATIONS: Dict[str, StationDef] = {
    station.station_id: station
    for station in (
        StationDef(
            "prep",
            "Prep Station",
            frozenset({"chop", "slice", "mix", "toss", "assemble", "plate"}),
            slots=1,
            color="#28a745",
        ),
        StationDef("grill", "Grill Station", frozenset({"grill"}), slots=3, color="#fd7e14"),
        StationDef("fryer", "Deep Fryer", frozenset({"fry"}), slots=2, color="#ffc107"),
        StationDef("stove", "Stove Station", frozenset({"boil", "bake"}), slots=4, color="#6f42c1"),
    )
}

_PLATE = PrepStep("plate", "Plate and serve", SERVE_KEY)

DEFAULT_DISHES: Dict[str, DishRecipe] = {
    dish.dish_id: dish
    for dish in (
        DishRecipe(
            dish_id="classic_burger",
            display_name="Classic Burger",
            station_id="prep",
            base_color="#ffb3ba",
            ingredients=(
                IngredientSpec("burger_bun", True, (PrepStep("slice", "Slice bun in half", "v"),)),
                IngredientSpec(
                    "beef_patty",
                    True,
                    (PrepStep("grill", "Grill patty", "q", station_id="grill", duration=3.0),),
                ),
                IngredientSpec("lettuce", False, (PrepStep("chop", "Chop lettuce", "x"),)),
                IngredientSpec("tomato", False, (PrepStep("slice", "Slice tomato", "v"),)),
                IngredientSpec("cheese", False),
                IngredientSpec("pickles", False),
                IngredientSpec("ketchup", False),
                IngredientSpec("mustard", False),
            ),
            final_steps=(PrepStep("assemble", "Assemble burger", "["), _PLATE),
            difficulty=2,
            prep_time=45.0,
        ),
        DishRecipe(
            dish_id="margherita_pizza",
            display_name="Margherita Pizza",
            station_id="prep",
            base_color="#ffdfba",
            ingredients=(
                IngredientSpec("pizza_dough", True),
                IngredientSpec("tomato_sauce", True, (PrepStep("mix", "Mix sauce", ";"),)),
                IngredientSpec("mozzarella", True),
                IngredientSpec("oregano", False),
            ),
            final_steps=(
                PrepStep("bake", "Bake pizza", ".", station_id="stove", duration=8.0),
                _PLATE,
            ),
            difficulty=3,
            prep_time=60.0,
        ),
        DishRecipe(
            dish_id="fried_chicken",
            display_name="Fried Chicken",
            station_id="prep",
            base_color="#ffffba",
            ingredients=(
                IngredientSpec(
                    "chicken_breast",
                    True,
                    (PrepStep("fry", "Fry chicken", "f", station_id="fryer", duration=5.0),),
                ),
                IngredientSpec("salt", True),
                IngredientSpec("pepper", True),
            ),
            final_steps=(_PLATE,),
            difficulty=2,
            prep_time=35.0,
        ),
        DishRecipe(
            dish_id="caesar_salad",
            display_name="Caesar Salad",
            station_id="prep",
            base_color="#baffc9",
            ingredients=(
                IngredientSpec("lettuce", True, (PrepStep("chop", "Chop lettuce", "x"),)),
                IngredientSpec(
                    "chicken_breast",
                    True,
                    (
                        PrepStep("grill", "Grill chicken", "q", station_id="grill", duration=4.0),
                        PrepStep("slice", "Slice chicken", "v"),
                    ),
                ),
                IngredientSpec("cheese", False),
                IngredientSpec("mayo", False),
            ),
            final_steps=(PrepStep("toss", "Toss salad", "'"), _PLATE),
            difficulty=3,
            prep_time=50.0,
        ),
        DishRecipe(
            dish_id="pasta_marinara",
            display_name="Pasta Marinara",
            station_id="prep",
            base_color="#ffb3ff",
            ingredients=(
                IngredientSpec(
                    "pasta",
                    True,
                    (PrepStep("boil", "Boil pasta", ",", station_id="stove", duration=6.0),),
                ),
                IngredientSpec("tomato_sauce", True),
                IngredientSpec("oregano", False),
                IngredientSpec("cheese", False),
            ),
            final_steps=(PrepStep("mix", "Mix pasta with sauce", ";"), _PLATE),
            difficulty=2,
            prep_time=40.0,
        ),
    )
}


def default_catalog() -> RecipeCatalog:
    return RecipeCatalog(
        DEFAULT_INGREDIENTS.values(),
        DEFAULT_TOOLS.values(),
        DEFAULT_STATIONS.values(),
        DEFAULT_DISHES.values(),
    )


# ---------------------------------------------------------------------------
# JSON parsing
# ---------------------------------------------------------------------------


def _is_valid_item_id(value: Any) -> bool:
    return isinstance(value, str) and bool(ITEM_ID_RE.fullmatch(value))


def _coerce_name(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def _coerce_key(value: Any) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip().lower()


def _coerce_color(value: Any) -> str | None:
    if value is None:
        return DEFAULT_COLOR
    if not isinstance(value, str) or not COLOR_RE.fullmatch(value):
        return None
    return value


def _coerce_int(value: Any, *, minimum: int | None = None, maximum: int | None = None) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        result = value
    elif isinstance(value, float) and value.is_integer():
        result = int(value)
    else:
        return None

    if minimum is not None and result < minimum:
        return None
    if maximum is not None and result > maximum:
        return None
    return result


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def _parse_ingredient_entry(key: str, entry: Dict[str, Any]) -> IngredientDef | None:
    if not _is_valid_item_id(key):
        return None
    display_name = _coerce_name(entry.get("display_name"))
    category = entry.get("category")
    input_key = _coerce_key(entry.get("key"))
    color = _coerce_color(entry.get("color"))
    if display_name is None or input_key is None or color is None:
        return None
    if category not in INGREDIENT_CATEGORIES:
        return None
    return IngredientDef(key, display_name, category, input_key, color)


def _parse_tool_entry(key: str, entry: Dict[str, Any]) -> ToolDef | None:
    if not _is_valid_item_id(key):
        return None
    display_name = _coerce_name(entry.get("display_name"))
    category = entry.get("category")
    input_key = _coerce_key(entry.get("key"))
    color = _coerce_color(entry.get("color"))
    if display_name is None or input_key is None or color is None:
        return None
    if category not in TOOL_CATEGORIES:
        return None
    return ToolDef(key, display_name, category, input_key, color)


def _parse_station_entry(key: str, entry: Dict[str, Any], tools: Mapping[str, ToolDef]) -> StationDef | None:
    if not _is_valid_item_id(key):
        return None
    display_name = _coerce_name(entry.get("display_name"))
    allowed = entry.get("allowed_tools")
    slots = _coerce_int(entry.get("slots", 1), minimum=1)
    color = _coerce_color(entry.get("color"))
    if display_name is None or slots is None or color is None:
        return None
    if not isinstance(allowed, list) or not allowed:
        return None
    if not all(isinstance(tool_id, str) and tool_id in tools for tool_id in allowed):
        return None
    return StationDef(key, display_name, frozenset(allowed), slots, color)


def _parse_step(
    raw: Any,
    *,
    default_station: str,
    tools: Mapping[str, ToolDef],
    stations: Mapping[str, StationDef],
) -> PrepStep | None:
    if not isinstance(raw, dict):
        return None
    tool_id = raw.get("tool")
    if not isinstance(tool_id, str) or tool_id not in tools:
        return None
    description = _coerce_name(raw.get("description"))
    if description is None:
        return None
    input_key = _coerce_key(raw.get("key", tools[tool_id].key))
    if input_key is None:
        return None

    station_id = raw.get("station")
    if station_id is not None and (not isinstance(station_id, str) or station_id not in stations):
        return None
    if not stations[station_id or default_station].allows(tool_id):
        return None

    duration = raw.get("duration")
    if duration is not None and not _is_positive_number(duration):
        return None

    return PrepStep(
        tool_id=tool_id,
        description=description,
        key=input_key,
        station_id=station_id,
        duration=None if duration is None else float(duration),
    )


def _parse_steps(raw: Any, **context: Any) -> tuple[PrepStep, ...] | None:
    if not isinstance(raw, list):
        return None
    steps = []
    for raw_step in raw:
        step = _parse_step(raw_step, **context)
        if step is None:
            return None
        steps.append(step)
    return tuple(steps)


def _parse_dish_entry(
    key: str,
    entry: Dict[str, Any],
    *,
    ingredients: Mapping[str, IngredientDef],
    tools: Mapping[str, ToolDef],
    stations: Mapping[str, StationDef],
) -> DishRecipe | None:
    if not _is_valid_item_id(key):
        return None

    display_name = _coerce_name(entry.get("display_name"))
    station_id = entry.get("station", "prep")
    base_color = _coerce_color(entry.get("base_color"))
    difficulty = _coerce_int(entry.get("difficulty", 1), minimum=MIN_DIFFICULTY, maximum=MAX_DIFFICULTY)
    prep_time = entry.get("prep_time", 45.0)

    if display_name is None or base_color is None or difficulty is None:
        return None
    if not isinstance(station_id, str) or station_id not in stations:
        return None
    if not _is_positive_number(prep_time):
        return None

    context = {"default_station": station_id, "tools": tools, "stations": stations}

    raw_ingredients = entry.get("ingredients")
    if not isinstance(raw_ingredients, list) or not raw_ingredients:
        return None
    specs: List[IngredientSpec] = []
    for raw_spec in raw_ingredients:
        if not isinstance(raw_spec, dict):
            return None
        ingredient_id = raw_spec.get("id")
        required = raw_spec.get("required", False)
        if not isinstance(ingredient_id, str) or ingredient_id not in ingredients:
            return None
        if not isinstance(required, bool):
            return None
        prep_steps = _parse_steps(raw_spec.get("prep_steps", []), **context)
        if prep_steps is None:
            return None
        specs.append(IngredientSpec(ingredient_id, required, prep_steps))

    ingredient_ids = [spec.ingredient_id for spec in specs]
    if len(set(ingredient_ids)) != len(ingredient_ids):
        return None
    if not any(spec.required for spec in specs):
        return None

    final_steps = _parse_steps(entry.get("final_steps", []), **context)
    if final_steps is None:
        return None

    return DishRecipe(
        dish_id=key,
        display_name=display_name,
        station_id=station_id,
        base_color=base_color,
        ingredients=tuple(specs),
        final_steps=final_steps,
        difficulty=difficulty,
        prep_time=float(prep_time),
    )


def _parse_section(raw: Any, parser, defaults: Dict[str, Any], **context: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        return dict(defaults)
    parsed: Dict[str, Any] = {}
    for key, entry in raw.items():
        if not isinstance(key, str) or not isinstance(entry, dict):
            continue
        definition = parser(key, entry, **context)
        if definition is None:
            continue
        parsed[key] = definition
    return parsed or dict(defaults)


def load_recipe_catalog(path: Path = RECIPES_FILE) -> RecipeCatalog:
    if not path.exists():
        return default_catalog()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError, OSError):
        return default_catalog()

    if not isinstance(raw, dict):
        return default_catalog()

    ingredients = _parse_section(raw.get("ingredients"), _parse_ingredient_entry, DEFAULT_INGREDIENTS)
    tools = _parse_section(raw.get("tools"), _parse_tool_entry, DEFAULT_TOOLS)
    stations = _parse_section(raw.get("stations"), _parse_station_entry, DEFAULT_STATIONS, tools=tools)

    dishes: Dict[str, DishRecipe] = {}
    raw_dishes = raw.get("dishes")
    if isinstance(raw_dishes, dict):
        for key, entry in raw_dishes.items():
            if not isinstance(key, str) or not isinstance(entry, dict):
                continue
            dish = _parse_dish_entry(key, entry, ingredients=ingredients, tools=tools, stations=stations)
            if dish is None:
                continue
            dishes[key] = dish

    if not dishes:
        return default_catalog()

    return RecipeCatalog(ingredients.values(), tools.values(), stations.values(), dishes.values())
