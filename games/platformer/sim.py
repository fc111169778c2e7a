"""Fifteen-level platformer with an ATM, a glitch terminal and a skin shop."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any

from core.input_latch import InputSnapshot
from core.physics import Rect, aabb_overlap, clamp, distance
from core.status import Status
from data.kv_store import KeyValueStore
from games.base_game import Action, Game, SessionOutcome, StepResult
from games.platformer.levels import DEFAULT_LEVELS_PATH, LevelDefinition, load_levels
from games.platformer.progress import LEVEL_KEY, PlatformerProgress


MENU_ATM = "atm"
MENU_TERMINAL = "terminal"
MENU_SHOP = "shop"


@dataclass(frozen=True)
class Player:
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    on_ground: bool = False
    scale_x: float = 1.0
    scale_y: float = 1.0


@dataclass(frozen=True)
class PlatformerState:
    level: int
    player: Player
    collected: tuple[int, ...] = ()
    status: Status = Status.PLAYING
    menu: str | None = None
    atm_message: str = ""
    terminal_input: str = ""
    atm_used: frozenset[int] = frozenset()
    terminal_used: frozenset[int] = frozenset()
    glitch_level: bool = False
    skin: str = "default"

    @property
    def score(self) -> int:
        return len(self.collected)


class PlatformerGame(Game):
    """Reach each level's goal; coins collected on the way go to the wallet on a win.

    ArrowLeft wins over ArrowRight. ArrowUp or space jumps from the ground.
    Menus (ATM, terminal, shop) are driven through ``actions``.
    """

    name = "platformer"
    tracks_high_score = False

    def __init__(self, params: dict[str, Any], store: KeyValueStore) -> None:
        super().__init__(params=params, store=store)
        self.width = float(params["width"])
        self.height = float(params["height"])
        self.size = float(params["player_size"])
        self.levels = load_levels(params.get("levels_path", DEFAULT_LEVELS_PATH))
        self.progress = PlatformerProgress(store, len(self.levels))

    @property
    def last_level(self) -> int:
        return len(self.levels) - 1

    def _fresh(self, level: int, previous: PlatformerState | None = None) -> PlatformerState:
        start = self.levels[level].player_start
        return PlatformerState(
            level=level,
            player=Player(x=start[0], y=start[1]),
            atm_used=previous.atm_used if previous is not None else frozenset(),
            terminal_used=previous.terminal_used if previous is not None else frozenset(),
            glitch_level=level < int(self.params["glitch_levels"]) and not self.progress.glitch_fixed,
            skin=self.progress.equipped_skin,
        )

    def initial_state(self, rng: random.Random, previous: Any = None) -> PlatformerState:
        return self._fresh(self.progress.current_level, previous)

    def score_of(self, state: PlatformerState) -> int:
        return state.score

    def auto_restart_ms(self, state: PlatformerState) -> float | None:
        if state.status is Status.WON and state.level < self.last_level:
            return float(self.params["next_level_delay_ms"])
        return None

    def settle(self, state: PlatformerState, ticks: int) -> SessionOutcome:
        coins = 0
        updates: dict[str, int] = {}
        if state.status is Status.WON and state.level < self.last_level:
            coins = state.score
            updates[LEVEL_KEY] = state.level + 1
        return SessionOutcome(
            game=self.name,
            status=state.status,
            score=state.score,
            ticks=ticks,
            currency_delta=coins,
            updates=updates,
        )

    def step(self, state: PlatformerState, inputs: InputSnapshot, rng: random.Random) -> StepResult:
        level = self.levels[state.level]
        p = state.player
        size = self.size
        cues: list[str] = []

        vx = p.vx
        move = float(self.params["move_speed"])
        if inputs.is_pressed("ArrowLeft"):
            vx = -move
        elif inputs.is_pressed("ArrowRight"):
            vx = move
        vx *= float(self.params["friction"])
        if abs(vx) < 0.1:
            vx = 0.0
        x = clamp(p.x + vx, 0.0, self.width - size)

        vy = p.vy + float(self.params["gravity"])
        y = p.y + vy

        on_ground = False
        for plat in level.platforms:
            # One-way platforms: only a body that was fully above lands.
            if aabb_overlap(Rect(x, y, size, size), plat) and p.y + size <= plat.y and vy >= 0:
                y = plat.y - size
                vy = 0.0
                on_ground = True

        scale_x, scale_y = p.scale_x, p.scale_y
        if inputs.is_pressed("ArrowUp", " ") and on_ground:
            vy = float(self.params["jump_force"])
            scale_x, scale_y = 0.7, 1.3
            cues.append("jump")
        if not p.on_ground and on_ground:
            scale_x, scale_y = 1.3, 0.7
        scale_x += (1 - scale_x) * 0.2
        scale_y += (1 - scale_y) * 0.2

        cx, cy = x + size / 2, y + size / 2
        radius = float(self.params["coin_radius"])
        collected = list(state.collected)
        for index, (coin_x, coin_y) in enumerate(level.coins):
            if index not in collected and distance(cx, cy, coin_x + radius, coin_y + radius) < size / 2 + radius:
                collected.append(index)
        if len(collected) > len(state.collected):
            cues.append("coin")

        status = Status.PLAYING
        body = Rect(x, y, size, size)
        if any(aabb_overlap(body, h) for h in level.hazards) or y > self.height + float(self.params["fall_margin"]):
            status = Status.LOST
        gx, gy = level.goal.center
        if distance(cx, cy, gx, gy) < size / 2 + level.goal.size / 2:
            status = Status.WON
        if status is Status.LOST:
            cues.append("hurt")
        elif status is Status.WON:
            cues.append("win")

        next_state = replace(
            state,
            player=Player(x=x, y=y, vx=vx, vy=vy, on_ground=on_ground, scale_x=scale_x, scale_y=scale_y),
            collected=tuple(collected),
            status=status,
        )
        if status is Status.PLAYING:
            next_state = self._check_prompts(next_state, level)
        return StepResult(next_state, tuple(cues))

    def _near(self, player: Player, rect: Rect) -> bool:
        rx, ry = rect.center
        return distance(player.x + self.size / 2, player.y + self.size / 2, rx, ry) < self.size / 2 + rect.width

    def _check_prompts(self, state: PlatformerState, level: LevelDefinition) -> PlatformerState:
        if level.atm is not None and state.level not in state.atm_used and self._near(state.player, level.atm):
            return replace(state, status=Status.PAUSED, menu=MENU_ATM)
        if (
            level.terminal is not None
            and state.level not in state.terminal_used
            and not self.progress.glitch_fixed
            and self._near(state.player, level.terminal)
        ):
            return replace(state, status=Status.IN_SUB_MENU, menu=MENU_TERMINAL)
        return state

    def actions(self) -> dict[str, Action]:
        return {
            "atm_submit": self.atm_submit,
            "atm_cancel": self.atm_cancel,
            "terminal_key": self.terminal_key,
            "close_terminal": self.close_terminal,
            "open_shop": self.open_shop,
            "close_shop": self.close_shop,
            "buy_skin": self.buy_skin,
            "equip_skin": self.equip_skin,
            "skip_level": self.skip_level,
            "reset_progress": self.reset_progress,
        }

    def atm_submit(self, state: PlatformerState, code: str = "") -> StepResult:
        if state.menu != MENU_ATM:
            return StepResult(state)
        if str(code)[:4] != self.params["atm_code"]:
            return StepResult(replace(state, atm_message="Incorrect code."), ("error",))
        reward = int(self.params["atm_reward"])
        self.progress.add_coins(reward)
        next_state = replace(
            state,
            status=Status.PLAYING,
            menu=None,
            atm_message=f"Success! {reward} coins added.",
            atm_used=state.atm_used | {state.level},
        )
        return StepResult(next_state, ("coin",))

    def atm_cancel(self, state: PlatformerState) -> StepResult:
        if state.menu != MENU_ATM:
            return StepResult(state)
        return StepResult(replace(state, status=Status.PLAYING, menu=None, atm_message=""))

    def terminal_key(self, state: PlatformerState, key: str = "") -> StepResult:
        if state.menu != MENU_TERMINAL or self.progress.glitch_fixed:
            return StepResult(state)
        text = state.terminal_input
        if key == "Backspace":
            text = text[:-1]
        elif len(key) == 1 and key.isascii() and key.isalpha():
            text = (text + key.upper())[:5]
        if text != self.params["terminal_code"]:
            return StepResult(replace(state, terminal_input=text))
        self.progress.set_glitch_fixed(True)
        next_state = replace(
            state,
            status=Status.PLAYING,
            menu=None,
            terminal_input="",
            terminal_used=state.terminal_used | {state.level},
            glitch_level=False,
        )
        return StepResult(next_state, ("glitch-fixed",))

    def close_terminal(self, state: PlatformerState) -> StepResult:
        if state.menu != MENU_TERMINAL:
            return StepResult(state)
        next_state = replace(
            state,
            status=Status.PLAYING,
            menu=None,
            terminal_input="",
            terminal_used=state.terminal_used | {state.level},
        )
        return StepResult(next_state)

    def open_shop(self, state: PlatformerState) -> StepResult:
        if state.status is not Status.PLAYING:
            return StepResult(state)
        return StepResult(replace(state, status=Status.IN_SUB_MENU, menu=MENU_SHOP))

    def close_shop(self, state: PlatformerState) -> StepResult:
        if state.menu != MENU_SHOP:
            return StepResult(state)
        return StepResult(replace(state, status=Status.PLAYING, menu=None))

    def buy_skin(self, state: PlatformerState, skin: str = "") -> StepResult:
        if not self.progress.buy_skin(skin):
            return StepResult(state)
        return StepResult(replace(state, skin=skin), ("purchase",))

    def equip_skin(self, state: PlatformerState, skin: str = "") -> StepResult:
        if not self.progress.equip_skin(skin):
            return StepResult(state)
        return StepResult(replace(state, skin=skin))

    def skip_level(self, state: PlatformerState) -> StepResult:
        if state.level >= self.last_level or not self.progress.spend(int(self.params["skip_cost"])):
            return StepResult(state)
        self.progress.set_current_level(state.level + 1)
        return StepResult(self._fresh(state.level + 1, state), ("purchase",))

    def reset_progress(self, state: PlatformerState) -> StepResult:
        self.progress.reset()
        return StepResult(self._fresh(0, state))


GAME_NAME = "platformer"
GameClass = PlatformerGame
