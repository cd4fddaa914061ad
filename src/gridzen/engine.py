"""Entry points a host (window, test, script) drives the game through.

The facade owns the esper world, the event bus and every system. Its public
methods never raise: unexpected errors are logged, the selection is cleared
and a safe value is returned so a host frame loop keeps running.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List

from gridzen.components.board import Board
from gridzen.components.game_state import GameMode
from gridzen.components.progress_tracker import PlayerProfile
from gridzen.components.puzzle import PuzzleDefinition, PuzzleRef
from gridzen.components.result_record import ResultRecord
from gridzen.components.round_state import RoundState
from gridzen.components.tile import PuzzleMode
from gridzen.constants import MAX_TIME_REMAINING, RANDOM_AWARD_CHANCE, RANDOM_AWARD_INTERVAL, TICK_SECONDS
from gridzen.events.bus import EVENT_TICK, EventBus
from gridzen.storage import KeyValueStorage
from gridzen.systems.board_system import BoardSystem
from gridzen.systems.feedback_system import FeedbackSink, FeedbackSystem
from gridzen.systems.power_up_system import PowerUpSystem
from gridzen.systems.progress_system import ProgressSystem
from gridzen.systems.round_system import RoundSystem
from gridzen.systems.timer_system import TimerSystem
from gridzen.utils.game_state import get_game_mode, set_game_mode
from gridzen.utils.round_ops import clear_rounds, get_round
from gridzen.world import create_world

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EngineConfig:
    award_on_moves: bool = True
    award_in_fixed_puzzles: bool = True
    move_award_chance: float = RANDOM_AWARD_CHANCE
    move_award_interval: int = RANDOM_AWARD_INTERVAL
    tick_seconds: float = TICK_SECONDS
    max_time: int = MAX_TIME_REMAINING
    save_dir: Path | None = None
    seed: int | None = None


class Engine:
    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        storage: KeyValueStorage | None = None,
        feedback_sink: FeedbackSink | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.rng = rng or random.Random(self.config.seed)
        self.world = create_world(rng=self.rng)
        self.event_bus = EventBus()

        self.progress = ProgressSystem(
            self.world,
            self.event_bus,
            storage=storage,
            save_dir=self.config.save_dir,
        )
        self.board_system = BoardSystem(self.world, self.event_bus)
        self.timer = TimerSystem(
            self.world,
            self.event_bus,
            tick_seconds=self.config.tick_seconds,
            max_time=self.config.max_time,
        )
        self.power_ups = PowerUpSystem(
            self.world,
            self.event_bus,
            rng=self.rng,
            award_on_moves=self.config.award_on_moves,
            award_in_fixed_puzzles=self.config.award_in_fixed_puzzles,
            move_award_chance=self.config.move_award_chance,
            move_award_interval=self.config.move_award_interval,
            max_time=self.config.max_time,
        )
        self.rounds = RoundSystem(
            self.world,
            self.event_bus,
            rng=self.rng,
            player_label_provider=lambda: self.progress.profile.player_name,
        )
        self.feedback: FeedbackSystem | None = None
        if feedback_sink is not None:
            self.feedback = FeedbackSystem(
                self.event_bus,
                feedback_sink,
                enabled=lambda: self.progress.profile.sound_enabled,
            )

    # Rounds ------------------------------------------------------------

    def start_round(
        self,
        mode: PuzzleMode = PuzzleMode.CLASSIC,
        size: int | None = None,
        *,
        puzzle_ref: PuzzleRef | str | None = None,
        puzzle: PuzzleDefinition | None = None,
        player_label: str | None = None,
    ) -> RoundState | None:
        try:
            self.rounds.start_round(
                mode,
                size,
                puzzle_ref=puzzle_ref,
                puzzle=puzzle,
                player_label=player_label,
            )
        except Exception:
            logger.exception("Could not start %s round (size=%s, puzzle=%s)", mode, size, puzzle_ref)
            return None
        return self.round_state()

    def generate(
        self,
        mode: PuzzleMode = PuzzleMode.CLASSIC,
        size: int | None = None,
        puzzle: PuzzleDefinition | PuzzleRef | str | None = None,
    ) -> Board | None:
        """Start a round and hand back its opening board."""
        if isinstance(puzzle, PuzzleDefinition):
            started = self.start_round(mode, size, puzzle=puzzle)
        else:
            started = self.start_round(mode, size, puzzle_ref=puzzle)
        if started is None:
            return None
        return self.board()

    def tile_press(self, index: int) -> bool:
        return self._guard("tile_press", False, self.board_system.press, index)

    def apply_power_up(self, power_up_id: int) -> bool:
        return self._guard("apply_power_up", False, self.power_ups.apply, power_up_id)

    def tick(self, dt: float) -> None:
        self._guard("tick", None, self.event_bus.emit, EVENT_TICK, dt=dt)

    def pause(self) -> bool:
        return self._guard("pause", False, self.timer.pause)

    def resume(self) -> bool:
        return self._guard("resume", False, self.timer.resume)

    def return_to_menu(self) -> None:
        self._guard("return_to_menu", None, self._return_to_menu)

    def _return_to_menu(self) -> None:
        clear_rounds(self.world)
        set_game_mode(self.world, self.event_bus, GameMode.MENU)

    def _guard(self, name: str, fallback: Any, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception:
            logger.exception("Engine call '%s' failed", name)
            try:
                self.board_system.deselect(reason="error")
            except Exception:
                logger.exception("Could not clear selection after '%s' failure", name)
            return fallback

    # Queries -----------------------------------------------------------

    def round_state(self) -> RoundState | None:
        entry = get_round(self.world)
        return entry[1] if entry is not None else None

    def board(self) -> Board | None:
        entry = get_round(self.world)
        return entry[2] if entry is not None else None

    @property
    def game_mode(self) -> GameMode | None:
        return get_game_mode(self.world)

    @property
    def last_message(self) -> str | None:
        return self.rounds.last_message

    def subscribe(self, event: str, handler: Callable[..., None]) -> None:
        self.event_bus.subscribe(event, handler)

    def unsubscribe(self, event: str, handler: Callable[..., None]) -> None:
        self.event_bus.unsubscribe(event, handler)

    # Progress ----------------------------------------------------------

    @property
    def profile(self) -> PlayerProfile:
        return self.progress.profile

    def highscores(self, bucket_key: str) -> List[ResultRecord]:
        return self.progress.highscores(bucket_key)

    def unlocked_packs(self) -> Dict[str, bool]:
        return {name: progress.unlocked for name, progress in self.progress.unlock_state().items()}


def create_engine(config: EngineConfig | None = None, **kwargs: Any) -> Engine:
    return Engine(config, **kwargs)
