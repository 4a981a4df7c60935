from __future__ import annotations
import argparse
import sys
from typing import Optional, Tuple

try:
    import pygame  # type: ignore
except Exception:
    pygame = None

from config import (
    CANCEL_KEY,
    FPS,
    ORDER_CARD_H,
    ORDER_CARD_W,
    ORDER_SELECT_KEYS,
    PAUSE_KEY,
    RETRIEVE_KEY,
    SERVE_KEY,
    STATION_CARD_H,
    WINDOW_H,
    WINDOW_W,
)
from kitchen import KitchenGame, Order, Rating
from recipe_catalog import load_recipe_catalog

RESET_KEY = "f5"

URGENCY_COLORS = {
    "normal": (106, 212, 148),
    "urgent": (242, 186, 88),
    "critical": (232, 92, 80),
}


def _pick_order(game: KitchenGame) -> Optional[Order]:
    live = game.orders.live_orders()
    if not live:
        return None
    return min(live, key=lambda order: game.orders.time_left(order.order_id))


def autoplay_step(game: KitchenGame) -> str:
    """Take one chef action on ``game`` and return what was done."""
    order = game.active_order
    if order is None:
        target = _pick_order(game)
        if target is None:
            return "idle"
        game.select_order(target.order_id)
        return "select"

    dish = order.dish
    missing = dish.missing_required()
    if missing:
        game.add_ingredient(order.dish_id, missing[0].ingredient_id)
        return "add"

    for spec in dish.pending_ingredients():
        if dish.progress[spec.ingredient_id].cooking:
            continue
        step = dish.next_prep_step(spec.ingredient_id)
        if game.use_tool(order.dish_id, step.tool_id):
            return "prep"

    if game.stations.owned_jobs(order.order_id):
        if game.stations.ready_jobs() and game.retrieve_cooked_items():
            return "retrieve"
        return "wait"

    step = dish.next_final_step()
    if step is not None and step.key != SERVE_KEY and not dish.final_step_cooking:
        if game.use_tool(order.dish_id, step.tool_id):
            return "final"
        return "wait"

    if game.serve_dish() is not None:
        return "serve"
    return "wait"


def run_headless(ticks: int, dt: float, seed: int) -> None:
    game = KitchenGame(load_recipe_catalog(), seed=seed)
    game.start()

    for _ in range(ticks):
        autoplay_step(game)
        game.tick(dt)

    stats = game.orders.stats()
    expired = sum(1 for order in game.orders.completed_orders if order.rating is Rating.FAILED)
    print(
        f"headless_done t={game.clock.now():.1f} served={stats.orders_completed} "
        f"expired={expired} live={stats.active_orders} "
        f"score[total={stats.total_score},avg={stats.average_score},perfect={stats.perfect_rate}%]"
    )


def _hex_to_rgb(color: str) -> Tuple[int, int, int]:
    value = color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


class GameUI:
    def __init__(self, game: KitchenGame):
        if pygame is None:
            raise RuntimeError("pygame is required for graphical mode. Relaunch with --headless.")
        pygame.init()
        pygame.display.init()
        if not pygame.display.get_init():
            raise RuntimeError("Display subsystem is unavailable. Relaunch with --headless.")
        try:
            self.screen = pygame.display.set_mode((WINDOW_W, WINDOW_H))
        except pygame.error as exc:
            raise RuntimeError(f"Could not open a window ({exc}). Relaunch with --headless.") from exc
        pygame.display.set_caption("Cook Tap")
        self.game = game
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("arial", 22)
        self.small = pygame.font.SysFont("arial", 16)
        self.running = True

        self.palette = {
            "bg": (12, 15, 24),
            "panel": (20, 25, 38),
            "panel_border": (46, 56, 80),
            "card": (27, 34, 48),
            "card_border": (56, 68, 94),
            "active": (98, 211, 222),
            "text": (230, 236, 248),
            "muted": (161, 177, 205),
            "help": (255, 236, 160),
        }

    @staticmethod
    def _key_name(ev) -> str:
        name = pygame.key.name(ev.key)
        if name in ("return", "enter", "keypad enter"):
            return RETRIEVE_KEY
        return name

    def handle_key(self, key: str) -> None:
        game = self.game
        if key == RESET_KEY:
            game.reset()
            game.start()
        elif key == PAUSE_KEY:
            game.toggle_pause()
        elif game.paused:
            return
        elif key in ORDER_SELECT_KEYS:
            game.select_order_by_index(ORDER_SELECT_KEYS.index(key) + 1)
        elif key == SERVE_KEY:
            game.serve_dish()
        elif key == RETRIEVE_KEY:
            game.retrieve_cooked_items()
        elif key == CANCEL_KEY:
            game.cancel_current_dish()
        else:
            order = game.active_order
            binding = game.key_mappings().get(key)
            if order is None or binding is None:
                return
            if binding.kind == "ingredient":
                game.add_ingredient(order.dish_id, binding.target_id)
            else:
                game.use_tool(order.dish_id, binding.target_id)

    def handle_input(self) -> None:
        for ev in pygame.event.get():
            if ev.type == pygame.QUIT:
                self.running = False
            if ev.type == pygame.KEYDOWN:
                self.handle_key(self._key_name(ev))

    def _draw_order_card(self, x: int, y: int, index: int, order: Order) -> None:
        orders = self.game.orders
        card = pygame.Rect(x, y, ORDER_CARD_W, ORDER_CARD_H)
        border = self.palette["active"] if order is self.game.active_order else self.palette["card_border"]
        pygame.draw.rect(self.screen, self.palette["card"], card, border_radius=10)
        pygame.draw.rect(self.screen, border, card, width=2, border_radius=10)
        title = f"{index}. {order.dish_name}"
        self.screen.blit(self.small.render(title, True, self.palette["text"]), (x + 10, y + 8))
        remaining = orders.remaining_seconds(order.order_id)
        hue = URGENCY_COLORS[orders.urgency(order.order_id)]
        self.screen.blit(self.font.render(f"{remaining}s", True, hue), (x + 10, y + 30))
        bar_bg = pygame.Rect(x + 70, y + 38, ORDER_CARD_W - 82, 12)
        pygame.draw.rect(self.screen, (43, 49, 63), bar_bg, border_radius=6)
        share = orders.time_left(order.order_id) / order.time_limit if order.time_limit else 0.0
        fill = pygame.Rect(bar_bg.x, bar_bg.y, int(bar_bg.w * share), bar_bg.h)
        pygame.draw.rect(self.screen, hue, fill, border_radius=6)

    def _draw_station_card(self, x: int, y: int, w: int, station_id: str) -> None:
        station = self.game.catalog.station(station_id)
        card = pygame.Rect(x, y, w, STATION_CARD_H)
        pygame.draw.rect(self.screen, self.palette["card"], card, border_radius=10)
        pygame.draw.rect(self.screen, _hex_to_rgb(station.color), card, width=2, border_radius=10)
        self.screen.blit(self.small.render(station.display_name, True, self.palette["text"]), (x + 10, y + 8))

        now = self.game.clock.now()
        jobs = self.game.stations.jobs(station_id)
        for slot_index in range(station.slots):
            row_y = y + 32 + slot_index * 19
            job = jobs.get(slot_index)
            if job is None:
                label, color = f"{slot_index + 1}: empty", self.palette["muted"]
            elif job.is_ready(now):
                label, color = f"{slot_index + 1}: {job.ingredient_id or job.tool_id} READY", URGENCY_COLORS["normal"]
            else:
                label = f"{slot_index + 1}: {job.ingredient_id or job.tool_id} {job.remaining(now):.1f}s"
                color = self.palette["text"]
            self.screen.blit(self.small.render(label, True, color), (x + 10, row_y))

    def draw(self) -> None:
        game = self.game
        self.screen.fill(self.palette["bg"])

        for i, order in enumerate(game.orders.live_orders()):
            self._draw_order_card(10 + i * (ORDER_CARD_W + 10), 10, i + 1, order)

        stations = [station.station_id for station in game.catalog.stations()]
        station_w = (WINDOW_W - 10 * (len(stations) + 1)) // max(1, len(stations))
        station_y = 20 + ORDER_CARD_H
        for i, station_id in enumerate(stations):
            self._draw_station_card(10 + i * (station_w + 10), station_y, station_w, station_id)

        panel_y = station_y + STATION_CARD_H + 10
        panel = pygame.Rect(0, panel_y, WINDOW_W, WINDOW_H - panel_y)
        pygame.draw.rect(self.screen, self.palette["panel"], panel)
        pygame.draw.line(self.screen, self.palette["panel_border"], panel.topleft, panel.topright, 2)

        order = game.active_order
        heading = f"Cooking: {order.dish_name}" if order else "No order selected"
        if game.paused:
            heading += "  [PAUSED]"
        self.screen.blit(self.font.render(heading, True, self.palette["text"]), (10, panel_y + 10))
        self.screen.blit(self.small.render(game.help_text(), True, self.palette["help"]), (10, panel_y + 40))

        row_y = panel_y + 70
        for key, binding in game.key_mappings().items():
            text = f"{key.upper():>5}  {binding.label}"
            self.screen.blit(self.small.render(text, True, self.palette["muted"]), (10, row_y))
            row_y += 19

        log_x = WINDOW_W // 2
        for i, line in enumerate(game.event_log):
            self.screen.blit(self.small.render(line, True, self.palette["muted"]), (log_x, panel_y + 10 + i * 19))

        stats = game.orders.stats()
        footer = (
            f"Score: {stats.total_score} | Served: {stats.orders_completed} | Avg: {stats.average_score} "
            f"| Perfect: {stats.perfect_rate}% | 1-9 select, SPACE serve, ENTER retrieve, ESC cancel, "
            f"TAB pause, F5 reset"
        )
        self.screen.blit(self.small.render(footer, True, self.palette["text"]), (10, WINDOW_H - 26))

        pygame.display.flip()

    def run(self) -> None:
        self.game.start()
        while self.running:
            dt = self.clock.tick(FPS) / 1000.0
            self.handle_input()
            self.game.tick(dt)
            self.draw()
        pygame.quit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Cook Tap kitchen game")
    parser.add_argument("--headless", action="store_true", help="run the kitchen with an autoplay chef, no graphics")
    parser.add_argument("--ticks", type=int, default=1200, help="headless ticks to run")
    parser.add_argument("--dt", type=float, default=0.1, help="headless timestep (seconds)")
    parser.add_argument("--seed", type=int, default=7, help="random seed for order spawning")
    args = parser.parse_args()

    if args.headless:
        run_headless(args.ticks, args.dt, args.seed)
        return

    try:
        ui = GameUI(KitchenGame(load_recipe_catalog(), seed=args.seed))
    except RuntimeError as exc:
        print(f"Startup error: {exc}", file=sys.stderr)
        sys.exit(1)
    ui.run()


if __name__ == "__main__":
    main()
