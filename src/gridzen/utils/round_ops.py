from __future__ import annotations

from collections import Counter
from typing import Dict, List, Mapping, Tuple

from esper import World

from gridzen.components.board import Board
from gridzen.components.round_state import RoundState
from gridzen.components.tile import (
    RGB,
    ColorPayload,
    NumberPayload,
    PatternPayload,
    PuzzleMode,
    Tile,
)
from gridzen.systems.completion import board_complete, row_complete

RoundEntry = Tuple[int, RoundState, Board]


def get_round(world: World) -> RoundEntry | None:
    for entity, state in world.get_component(RoundState):
        try:
            board = world.component_for_entity(entity, Board)
        except KeyError:
            continue
        return entity, state, board
    return None


def get_active_round(world: World) -> RoundEntry | None:
    entry = get_round(world)
    if entry is None or not entry[1].is_active:
        return None
    return entry


def set_board(world: World, entity: int, board: Board) -> None:
    # Boards are immutable; replacing the component is the only way to move tiles.
    world.add_component(entity, board)


def clear_rounds(world: World) -> None:
    for entity, _ in list(world.get_component(RoundState)):
        world.delete_entity(entity, immediate=True)


def lock_completed_rows(world: World, entity: int) -> List[int]:
    """Lock every row that became complete and return the new row indices."""
    state = world.component_for_entity(entity, RoundState)
    board = world.component_for_entity(entity, Board)
    newly = [
        row
        for row in range(state.size)
        if row not in state.completed_rows and row_complete(board, state.size, row, state.mode)
    ]
    if not newly:
        return []
    for row in newly:
        state.lock_row(row)
    set_board(world, entity, board.with_locked(state.locked_indices))
    if state.hint_row in state.completed_rows:
        state.hint_row = None
    if state.selected_index in state.locked_indices:
        state.selected_index = None
    return newly


def is_solved(world: World, entity: int) -> bool:
    state = world.component_for_entity(entity, RoundState)
    board = world.component_for_entity(entity, Board)
    return board_complete(board, state.size, state.mode)


def color_row_targets(board: Board) -> Dict[int, RGB]:
    """Goal color for each row of a color board.

    A color row is complete in any single color, so each row aims at the color
    most of its tiles already carry. Rows holding the most of one color claim
    first and no two rows share a goal; ties go to the row's home color.
    """
    size = board.size
    home = {
        tile.id // size: tile.payload.target_color
        for tile in board.tiles
        if tile.id % size == 0 and isinstance(tile.payload, ColorPayload)
    }
    palette = [home[row] for row in sorted(home)]
    counts = {
        row: Counter(
            tile.payload.target_color for tile in board.row_slice(row) if isinstance(tile.payload, ColorPayload)
        )
        for row in range(size)
    }

    def rank(row: int, color: RGB) -> tuple:
        return (-counts[row][color], color != home.get(row), palette.index(color) if color in palette else size)

    targets: Dict[int, RGB] = {}
    claimed: set = set()
    for row in sorted(range(size), key=lambda r: (-max(counts[r].values(), default=0), r)):
        ranked = sorted(counts[row], key=lambda color: rank(row, color))
        leftovers = [color for color in [home.get(row), *palette] if color is not None]
        choice = next((color for color in [*ranked, *leftovers] if color not in claimed), home.get(row))
        if choice is None:
            continue
        targets[row] = choice
        claimed.add(choice)
    return targets


def tile_fits_slot(
    board: Board,
    tile: Tile,
    slot: int,
    mode: PuzzleMode,
    row_colors: Mapping[int, RGB] | None = None,
) -> bool:
    """Whether ``tile`` at ``slot`` is what the solved board would show there.

    Tile ids follow solved order, so the tile whose id equals ``slot`` is the
    reference for what belongs in that slot. Color boards use ``row_colors``
    (see ``color_row_targets``) when given instead of the home colors.
    """
    payload = tile.payload
    if mode == PuzzleMode.CLASSIC:
        return isinstance(payload, NumberPayload) and payload.number == slot + 1
    if mode == PuzzleMode.COLOR and row_colors is not None:
        return isinstance(payload, ColorPayload) and payload.target_color == row_colors.get(slot // board.size)
    home = next((candidate for candidate in board.tiles if candidate.id == slot), None)
    if home is None:
        return False
    if mode == PuzzleMode.COLOR:
        return (
            isinstance(payload, ColorPayload)
            and isinstance(home.payload, ColorPayload)
            and payload.target_color == home.payload.target_color
        )
    if mode == PuzzleMode.PATTERN:
        return (
            isinstance(payload, PatternPayload)
            and isinstance(home.payload, PatternPayload)
            and payload.pattern.name == home.payload.pattern.name
        )
    return False
