"""Row and board completion predicates, one per puzzle mode."""
from __future__ import annotations

from typing import Callable, Dict, Sequence, Set

from gridzen.components.board import Board
from gridzen.components.tile import (
    ColorPayload,
    NumberPayload,
    PatternPayload,
    PuzzleMode,
    Tile,
)
from gridzen.factories.catalog import pattern_names

RowPredicate = Callable[[Sequence[Tile], int, int], bool]


def _classic_row(row_tiles: Sequence[Tile], size: int, row: int) -> bool:
    for col, tile in enumerate(row_tiles):
        payload = tile.payload
        if not isinstance(payload, NumberPayload) or payload.number != row * size + col + 1:
            return False
    return True


def _color_row(row_tiles: Sequence[Tile], size: int, row: int) -> bool:
    first = row_tiles[0].payload
    if not isinstance(first, ColorPayload):
        return False
    for tile in row_tiles:
        payload = tile.payload
        if not isinstance(payload, ColorPayload) or payload.target_color != first.target_color:
            return False
    return True


def _pattern_row(row_tiles: Sequence[Tile], size: int, row: int) -> bool:
    names = []
    for tile in row_tiles:
        payload = tile.payload
        if not isinstance(payload, PatternPayload):
            return False
        names.append(payload.pattern.name)
    # Distinct and complete must both hold: a set match alone would accept duplicates on short rows.
    return len(set(names)) == len(names) and set(names) == pattern_names(size)


_ROW_PREDICATES: Dict[PuzzleMode, RowPredicate] = {
    PuzzleMode.CLASSIC: _classic_row,
    PuzzleMode.COLOR: _color_row,
    PuzzleMode.PATTERN: _pattern_row,
}


def row_complete(board: Board, size: int, row: int, mode: PuzzleMode) -> bool:
    if not 0 <= row < size:
        return False
    return _ROW_PREDICATES[mode](board.row_slice(row), size, row)


def board_complete(board: Board, size: int, mode: PuzzleMode) -> bool:
    return all(row_complete(board, size, row, mode) for row in range(size))


def completed_rows(board: Board, size: int, mode: PuzzleMode) -> Set[int]:
    return {row for row in range(size) if row_complete(board, size, row, mode)}


def first_incomplete_row(board: Board, size: int, mode: PuzzleMode, skip: Set[int] | None = None) -> int | None:
    skip = skip or set()
    for row in range(size):
        if row in skip:
            continue
        if not row_complete(board, size, row, mode):
            return row
    return None
