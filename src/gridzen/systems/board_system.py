from __future__ import annotations

from esper import World

from gridzen.components.board import Board, is_adjacent
from gridzen.components.power_up import PowerUpKind
from gridzen.components.round_state import RoundState, RoundStatus
from gridzen.events.bus import (
    EVENT_BOARD_CHANGED,
    EVENT_BOARD_COMPLETED,
    EVENT_MOVE_BUDGET_EXCEEDED,
    EVENT_OVERRIDE_CONSUMED,
    EVENT_ROW_COMPLETED,
    EVENT_TILE_DESELECTED,
    EVENT_TILE_PRESS,
    EVENT_TILE_SELECTED,
    EVENT_TILES_SWAPPED,
    EventBus,
)
from gridzen.utils.round_ops import get_active_round, get_round, is_solved, lock_completed_rows, set_board


class BoardSystem:
    """Selection state machine and swap engine for the active round.

    Idle -> OneSelected(index) on a press; a second press on the same tile
    deselects, on an adjacent tile (or any tile while Teleport is armed) swaps,
    and anywhere else moves the selection.
    """

    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.event_bus.subscribe(EVENT_TILE_PRESS, self.on_tile_press)
        self.event_bus.subscribe(EVENT_BOARD_CHANGED, self.on_board_changed)

    def on_tile_press(self, sender, **kwargs):
        index = kwargs.get('index')
        if index is None:
            return
        self.press(index)

    def on_board_changed(self, sender, **kwargs):
        # Swaps evaluate inline; other board edits (power-ups) are re-checked here.
        if kwargs.get('reason') == 'swap':
            return
        entry = get_active_round(self.world)
        if entry is None:
            return
        self.evaluate(entry[0])

    def press(self, index: int) -> bool:
        """Handle a tile press; returns True when round state changed."""
        entry = get_active_round(self.world)
        if entry is None:
            return False
        entity, state, board = entry
        if not isinstance(index, int) or not board.in_bounds(index):
            return False
        if index in state.locked_indices:
            return False
        selected = state.selected_index
        if selected is None:
            state.selected_index = index
            self.event_bus.emit(EVENT_TILE_SELECTED, index=index)
            return True
        if selected == index:
            state.selected_index = None
            self.event_bus.emit(EVENT_TILE_DESELECTED, index=index, reason='same_tile')
            return True
        teleport = state.pending_override == PowerUpKind.TELEPORT_SWAP
        if teleport or is_adjacent(selected, index, state.size):
            return self._swap(entity, state, board, selected, index)
        state.selected_index = index
        self.event_bus.emit(EVENT_TILE_SELECTED, index=index)
        return True

    def deselect(self, reason: str = 'cancel') -> None:
        entry = get_round(self.world)
        if entry is None:
            return
        state = entry[1]
        prev = state.selected_index
        if prev is not None:
            state.selected_index = None
            self.event_bus.emit(EVENT_TILE_DESELECTED, index=prev, reason=reason)

    def _swap(self, entity: int, state: RoundState, board: Board, src: int, dst: int) -> bool:
        override = state.pending_override
        free = override == PowerUpKind.FREE_MOVE
        if state.is_fixed_puzzle and not free and state.move_count >= (state.max_moves or 0):
            state.selected_index = None
            state.status = RoundStatus.FAILED
            self.event_bus.emit(
                EVENT_MOVE_BUDGET_EXCEEDED,
                round_entity=entity,
                move_count=state.move_count,
                max_moves=state.max_moves,
                message=f"You've used all {state.max_moves} moves for this puzzle.",
            )
            return True
        set_board(self.world, entity, board.swapped(src, dst))
        state.selected_index = None
        if not free:
            state.move_count += 1
        if override is not None:
            state.pending_override = None
            self.event_bus.emit(EVENT_OVERRIDE_CONSUMED, kind=override)
        self.event_bus.emit(
            EVENT_TILES_SWAPPED,
            round_entity=entity,
            src=src,
            dst=dst,
            move_count=state.move_count,
            free=free,
            override=override,
        )
        self.event_bus.emit(EVENT_BOARD_CHANGED, reason='swap', indices=[src, dst])
        newly = self.evaluate(entity)
        state.streak = state.streak + 1 if newly else 0
        return True

    def evaluate(self, entity: int) -> list[int]:
        """Lock newly completed rows, announce them, and detect the win."""
        state = self.world.component_for_entity(entity, RoundState)
        if state.is_terminal:
            return []
        newly = lock_completed_rows(self.world, entity)
        for row in newly:
            self.event_bus.emit(EVENT_ROW_COMPLETED, round_entity=entity, row=row, streak=state.streak + 1)
        if is_solved(self.world, entity):
            state.status = RoundStatus.WON
            state.selected_index = None
            self.event_bus.emit(EVENT_BOARD_COMPLETED, round_entity=entity, move_count=state.move_count)
        return newly
