from __future__ import annotations

import logging
import random
import re
from datetime import datetime, timezone
from typing import Callable

from esper import World

from gridzen.components.game_state import GameMode
from gridzen.components.puzzle import PuzzleDefinition, PuzzleRef
from gridzen.components.result_record import ResultRecord
from gridzen.components.round_state import RoundState, RoundStatus
from gridzen.components.tile import PuzzleMode
from gridzen.constants import DEFAULT_PLAYER_LABEL
from gridzen.events.bus import (
    EVENT_BOARD_COMPLETED,
    EVENT_BOARD_GENERATED,
    EVENT_MOVE_BUDGET_EXCEEDED,
    EVENT_ROUND_LOST,
    EVENT_ROUND_START_REQUEST,
    EVENT_ROUND_STARTED,
    EVENT_ROUND_WON,
    EVENT_TIME_EXPIRED,
    EventBus,
)
from gridzen.factories.puzzles import get_pack, resolve
from gridzen.systems.completion import board_complete
from gridzen.systems.grid_generator import generate_board
from gridzen.systems.progress_system import bucket_key_for_puzzle, bucket_key_for_size
from gridzen.systems.timer_system import time_limit_for
from gridzen.utils.game_state import set_game_mode
from gridzen.utils.round_ops import clear_rounds, get_round, lock_completed_rows

logger = logging.getLogger(__name__)

_SLUG = re.compile(r"[^a-z0-9]+")


def bucket_key_for_round(state: RoundState) -> str:
    """Leaderboard bucket a finished round is filed under."""
    if state.puzzle is not None:
        return bucket_key_for_puzzle(state.puzzle.pack, state.puzzle.index)
    if state.is_fixed_puzzle:
        slug = _SLUG.sub("-", (state.puzzle_name or "custom").lower()).strip("-")
        return f"puzzle-custom-{slug or 'custom'}"
    return bucket_key_for_size(state.mode, state.size)


def win_message(state: RoundState) -> str:
    if not state.is_fixed_puzzle:
        return f"You won in {state.move_count} moves with {state.time_remaining} seconds remaining!"
    message = f"Puzzle solved in {state.move_count}/{state.max_moves} moves!"
    if state.puzzle is not None and state.puzzle.index < len(get_pack(state.puzzle.pack)) - 1:
        message += "\nNext puzzle unlocked!"
    return message


def loss_message(state: RoundState) -> str:
    if state.is_fixed_puzzle:
        return f"Puzzle failed! You used {state.move_count}/{state.max_moves} moves."
    return "You ran out of time. Try again!"


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class RoundSystem:
    """Starts rounds and turns terminal board/timer events into results."""

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        rng: random.Random | None = None,
        player_label_provider: Callable[[], str] | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self._rng = rng or getattr(world, "random", None) or random.Random()
        self._player_label_provider = player_label_provider
        self._clock = clock
        self.last_message: str | None = None
        self.event_bus.subscribe(EVENT_ROUND_START_REQUEST, self._on_start_request)
        self.event_bus.subscribe(EVENT_BOARD_COMPLETED, self._on_board_completed)
        self.event_bus.subscribe(EVENT_MOVE_BUDGET_EXCEEDED, self._on_move_budget_exceeded)
        self.event_bus.subscribe(EVENT_TIME_EXPIRED, self._on_time_expired)

    def _on_start_request(self, sender, **payload) -> None:
        self.start_round(
            payload.get("mode", PuzzleMode.CLASSIC),
            payload.get("size"),
            puzzle_ref=payload.get("puzzle_ref"),
            puzzle=payload.get("puzzle"),
            player_label=payload.get("player_label"),
        )

    def start_round(
        self,
        mode: PuzzleMode = PuzzleMode.CLASSIC,
        size: int | None = None,
        *,
        puzzle_ref: PuzzleRef | str | None = None,
        puzzle: PuzzleDefinition | None = None,
        player_label: str | None = None,
    ) -> int:
        """Replace any current round with a fresh one and return its entity.

        ``puzzle_ref`` names a pack puzzle; ``puzzle`` supplies an ad-hoc
        definition. Either forces classic mode and the puzzle's own size,
        move budget and clock.
        """
        if isinstance(puzzle_ref, str):
            puzzle_ref = PuzzleRef.parse(puzzle_ref)
        if puzzle_ref is not None:
            puzzle = resolve(puzzle_ref)
        if puzzle is not None:
            mode = PuzzleMode.CLASSIC
            size = puzzle.size
        if size is None:
            raise ValueError("A grid size is required for free-play rounds")

        clear_rounds(self.world)
        board, fell_back = generate_board(mode, size, puzzle, self._rng)
        state = RoundState(
            mode=mode,
            size=board.size,
            time_remaining=puzzle.time_limit_seconds if puzzle is not None else time_limit_for(board.size),
            player_label=self._resolve_label(player_label),
            puzzle=puzzle_ref,
            puzzle_name=puzzle.name if puzzle is not None else None,
            max_moves=puzzle.max_moves if puzzle is not None else None,
            used_fallback=fell_back,
        )
        entity = self.world.create_entity(board, state)
        if not board_complete(board, board.size, mode):
            # Rows that happen to start solved are locked without ceremony.
            lock_completed_rows(self.world, entity)
        self.last_message = None
        set_game_mode(self.world, self.event_bus, GameMode.ROUND)
        logger.info("Round started: %s %sx%s%s", mode.value, board.size, board.size, f" ({puzzle_ref})" if puzzle_ref else "")
        self.event_bus.emit(EVENT_BOARD_GENERATED, round_entity=entity, size=board.size, used_fallback=fell_back)
        self.event_bus.emit(
            EVENT_ROUND_STARTED,
            round_entity=entity,
            mode=mode,
            size=board.size,
            puzzle=puzzle_ref,
            time_remaining=state.time_remaining,
            max_moves=state.max_moves,
        )
        return entity

    def _resolve_label(self, player_label: str | None) -> str:
        if player_label:
            return player_label
        if self._player_label_provider is not None:
            provided = self._player_label_provider()
            if provided:
                return provided
        return DEFAULT_PLAYER_LABEL

    def _on_board_completed(self, sender, **payload) -> None:
        entry = get_round(self.world)
        if entry is None:
            return
        _, state, _ = entry
        if state.status != RoundStatus.WON:
            return
        record = ResultRecord(
            player_label=state.player_label,
            moves=state.move_count,
            time_remaining=state.time_remaining,
            timestamp=self._clock().isoformat(timespec="seconds"),
            mode=state.mode,
            size=state.size,
            puzzle_ref=str(state.puzzle) if state.puzzle is not None else None,
            max_moves=state.max_moves,
        )
        self.last_message = win_message(state)
        set_game_mode(self.world, self.event_bus, GameMode.RESULT)
        self.event_bus.emit(
            EVENT_ROUND_WON,
            record=record,
            bucket_key=bucket_key_for_round(state),
            message=self.last_message,
        )

    def _on_move_budget_exceeded(self, sender, **payload) -> None:
        self._finish_lost(reason="move_budget")

    def _on_time_expired(self, sender, **payload) -> None:
        self._finish_lost(reason="time_expired")

    def _finish_lost(self, *, reason: str) -> None:
        entry = get_round(self.world)
        if entry is None:
            return
        _, state, _ = entry
        self.last_message = loss_message(state)
        set_game_mode(self.world, self.event_bus, GameMode.RESULT)
        self.event_bus.emit(EVENT_ROUND_LOST, status=state.status, reason=reason, message=self.last_message)
