from __future__ import annotations

import random
from collections.abc import Callable
from typing import Dict, List

from esper import World

from gridzen.components.board import Board
from gridzen.components.power_up import OVERRIDE_KINDS, PowerUp, PowerUpKind
from gridzen.components.round_state import RoundState
from gridzen.components.tile import PuzzleMode
from gridzen.constants import MAX_TIME_REMAINING, RANDOM_AWARD_CHANCE, RANDOM_AWARD_INTERVAL
from gridzen.events.bus import (
    EVENT_BOARD_CHANGED,
    EVENT_POWER_UP_APPLIED,
    EVENT_POWER_UP_APPLY_REQUEST,
    EVENT_POWER_UP_AWARDED,
    EVENT_ROW_COMPLETED,
    EVENT_ROW_HINT,
    EVENT_TILES_SWAPPED,
    EventBus,
)
from gridzen.factories.power_ups import draw_power_up
from gridzen.systems.completion import first_incomplete_row
from gridzen.systems.timer_system import apply_time_bonus, emit_timer_changed
from gridzen.utils.round_ops import color_row_targets, get_active_round, set_board, tile_fits_slot

Handler = Callable[[int, RoundState, Board, PowerUp], List[int]]


def auto_complete(board: Board, locked: set[int], mode, limit: int) -> tuple[Board, List[int]]:
    """Move up to ``limit`` correct tiles into misplaced slots.

    Slots are scanned in row-major order; for each misplaced, unlocked slot the
    first later tile that belongs there (and is not already home) is swapped in.
    Color rows aim at the goals from ``color_row_targets``, fixed before the
    first move. Returns the new board and the slots that were touched.
    """
    row_colors = color_row_targets(board) if mode == PuzzleMode.COLOR else None
    affected: List[int] = []
    fixed = 0
    for slot in range(len(board)):
        if fixed >= limit:
            break
        if slot in locked or tile_fits_slot(board, board.tile_at(slot), slot, mode, row_colors):
            continue
        for source in range(slot + 1, len(board)):
            if source in locked:
                continue
            candidate = board.tile_at(source)
            if not tile_fits_slot(board, candidate, slot, mode, row_colors):
                continue
            if tile_fits_slot(board, candidate, source, mode, row_colors):
                continue
            board = board.swapped(slot, source)
            affected.extend((slot, source))
            fixed += 1
            break
    return board, affected


class PowerUpSystem:
    """Awards power-ups on row completion and applies them on request."""

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        rng: random.Random | None = None,
        award_on_moves: bool = True,
        award_in_fixed_puzzles: bool = True,
        move_award_chance: float = RANDOM_AWARD_CHANCE,
        move_award_interval: int = RANDOM_AWARD_INTERVAL,
        max_time: int = MAX_TIME_REMAINING,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self._rng = rng or getattr(world, "random", None) or random.SystemRandom()
        self.award_on_moves = award_on_moves
        self.award_in_fixed_puzzles = award_in_fixed_puzzles
        self.move_award_chance = move_award_chance
        self.move_award_interval = max(1, int(move_award_interval))
        self.max_time = max_time
        self._handlers: Dict[PowerUpKind, Handler] = {
            PowerUpKind.FREEZE_TIME: self._apply_freeze_time,
            PowerUpKind.TELEPORT_SWAP: self._arm_override,
            PowerUpKind.FREE_MOVE: self._arm_override,
            PowerUpKind.AUTO_COMPLETE: self._apply_auto_complete,
            PowerUpKind.ROW_HINT: self._apply_row_hint,
        }
        self.event_bus.subscribe(EVENT_ROW_COMPLETED, self._on_row_completed)
        self.event_bus.subscribe(EVENT_TILES_SWAPPED, self._on_tiles_swapped)
        self.event_bus.subscribe(EVENT_POWER_UP_APPLY_REQUEST, self._on_apply_request)

    # Awards -------------------------------------------------------------

    def _on_row_completed(self, sender, **payload) -> None:
        entry = get_active_round(self.world)
        if entry is None:
            return
        state = entry[1]
        if state.is_fixed_puzzle and not self.award_in_fixed_puzzles:
            return
        self.award(state, reason="row_completed")

    def _on_tiles_swapped(self, sender, **payload) -> None:
        if not self.award_on_moves or payload.get("free"):
            return
        entry = get_active_round(self.world)
        if entry is None:
            return
        state = entry[1]
        if state.is_fixed_puzzle:
            return
        if state.move_count == 0 or state.move_count % self.move_award_interval != 0:
            return
        if self._rng.random() < self.move_award_chance:
            self.award(state, reason="lucky_move")

    def award(self, state: RoundState, *, reason: str) -> PowerUp:
        power_up = draw_power_up(self._rng)
        state.active_power_ups.append(power_up)
        self.event_bus.emit(EVENT_POWER_UP_AWARDED, power_up=power_up, reason=reason)
        return power_up

    # Application --------------------------------------------------------

    def _on_apply_request(self, sender, **payload) -> None:
        power_up_id = payload.get("power_up_id")
        if power_up_id is None:
            return
        self.apply(power_up_id)

    def apply(self, power_up_id: int) -> bool:
        """Consume the token with ``power_up_id`` and run its effect."""
        entry = get_active_round(self.world)
        if entry is None:
            return False
        entity, state, board = entry
        token = next((p for p in state.active_power_ups if p.id == power_up_id), None)
        if token is None:
            return False
        if token.kind in OVERRIDE_KINDS and state.pending_override is not None:
            # One override slot; a second one waits until the first is spent.
            return False
        state.active_power_ups.remove(token)
        affected = self._handlers[token.kind](entity, state, board, token)
        self.event_bus.emit(EVENT_POWER_UP_APPLIED, power_up=token, affected=affected)
        return True

    def _apply_freeze_time(self, entity: int, state: RoundState, board: Board, token: PowerUp) -> List[int]:
        delta = apply_time_bonus(state, token.magnitude, self.max_time)
        emit_timer_changed(self.event_bus, entity, state, delta)
        return []

    def _arm_override(self, entity: int, state: RoundState, board: Board, token: PowerUp) -> List[int]:
        state.pending_override = token.kind
        return []

    def _apply_auto_complete(self, entity: int, state: RoundState, board: Board, token: PowerUp) -> List[int]:
        new_board, affected = auto_complete(board, state.locked_indices, state.mode, token.magnitude)
        if not affected:
            return []
        set_board(self.world, entity, new_board)
        if state.selected_index in affected:
            state.selected_index = None
        self.event_bus.emit(EVENT_BOARD_CHANGED, reason="auto_complete", indices=list(affected))
        return affected

    def _apply_row_hint(self, entity: int, state: RoundState, board: Board, token: PowerUp) -> List[int]:
        state.hint_row = first_incomplete_row(board, state.size, state.mode, state.completed_rows)
        self.event_bus.emit(EVENT_ROW_HINT, row=state.hint_row)
        if state.hint_row is None:
            return []
        return list(board.row_indices(state.hint_row))
