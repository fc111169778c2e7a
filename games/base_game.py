"""Base game plugin contract."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from core.input_latch import InputSnapshot
from core.status import Status
from data.kv_store import KeyValueStore


@dataclass(frozen=True)
class StepResult:
    """Next state plus fire-and-forget cue identifiers raised by the update."""

    state: Any
    cues: tuple[str, ...] = ()


@dataclass(frozen=True)
class SessionOutcome:
    """Key/value effects of a finished round."""

    game: str
    status: Status
    score: int
    ticks: int
    currency_delta: int = 0
    high_score: int = 0
    new_high_score: bool = False
    updates: Mapping[str, int] = field(default_factory=dict)


class UnknownActionError(LookupError):
    """Raised when a game has no action with the requested name."""


Action = Callable[..., StepResult]


class Game(ABC):
    """Abstract game plugin interface.

    A game owns no mutable state of its own: every update takes a frozen state
    value and returns the next one. The persistence collaborator is only used
    for cross-session data (progress, purchases) read at mount time and written
    by actions.
    """

    name = "game"
    tracks_high_score = True

    def __init__(self, params: dict[str, Any], store: KeyValueStore) -> None:
        """Store plugin parameters and the persistence collaborator.

        Args:
            params: Plugin-specific validated parameters.
            store: Key/value store for totals and progress.
        """
        self.params = params
        self.store = store

    @abstractmethod
    def initial_state(self, rng: random.Random, previous: Any = None) -> Any:
        """Build a fresh state.

        ``previous`` is the state being replaced on restart, for data that
        survives a round within one mount.
        """

    @abstractmethod
    def step(self, state: Any, inputs: InputSnapshot, rng: random.Random) -> StepResult:
        """Advance a ``PLAYING`` state by one fixed tick."""

    def advance(self, state: Any, inputs: InputSnapshot, rng: random.Random) -> StepResult:
        # A stray tick after a status change leaves the state untouched.
        if state.status is not Status.PLAYING:
            return StepResult(state)
        return self.step(state, inputs, rng)

    def spawn(self, state: Any, rng: random.Random) -> StepResult:
        """Secondary spawner tick. Games without a spawner keep the default."""
        return StepResult(state)

    def advance_spawn(self, state: Any, rng: random.Random) -> StepResult:
        if state.status is not Status.PLAYING:
            return StepResult(state)
        return self.spawn(state, rng)

    def playfield_size(self) -> tuple[float, float]:
        """Logical playfield used to map pointer input."""
        return (float(self.params["width"]), float(self.params["height"]))

    def tick_interval_ms(self, state: Any) -> float | None:
        if state.status is not Status.PLAYING:
            return None
        return float(self.params["tick_ms"])

    def spawn_interval_ms(self, state: Any) -> float | None:
        return None

    def auto_restart_ms(self, state: Any) -> float | None:
        return None

    def score_of(self, state: Any) -> int:
        return int(state.score)

    def settle(self, state: Any, ticks: int) -> SessionOutcome:
        """Describe the persistent effects of a terminal state."""
        return SessionOutcome(
            game=self.name,
            status=state.status,
            score=self.score_of(state),
            ticks=ticks,
        )

    def actions(self) -> dict[str, Action]:
        """Named menu/shop operations, called as ``fn(state, **kwargs)``."""
        return {}

    def perform(self, state: Any, action: str, **kwargs: Any) -> StepResult:
        available = self.actions()
        if action not in available:
            names = ", ".join(sorted(available)) or "<none>"
            raise UnknownActionError(
                f"Game '{self.name}' has no action '{action}'. Available actions: {names}"
            )
        return available[action](state, **kwargs)
