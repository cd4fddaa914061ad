"""Initial board construction for every puzzle mode.

Random boards are plain uniform shuffles. Any permutation can be reached by
adjacent swaps, so no solvability check is needed; the only rejection is the
already-solved classic board, retried a bounded number of times.
"""
from __future__ import annotations

import logging
import random
from typing import List, Sequence

from gridzen.components.board import Board
from gridzen.components.puzzle import PuzzleDefinition
from gridzen.components.tile import (
    ColorPayload,
    NumberPayload,
    PatternPayload,
    PuzzleMode,
    Tile,
    TilePayload,
)
from gridzen.constants import GRID_SIZES, SHUFFLE_MAX_ATTEMPTS
from gridzen.factories.catalog import colors, patterns

logger = logging.getLogger(__name__)


def _place(payloads: Sequence[TilePayload], order: Sequence[int], size: int) -> Board:
    """Build a board where slot ``i`` holds the tile created ``order[i]``-th."""
    tiles = tuple(
        Tile(id=tile_id, payload=payloads[tile_id], current_index=index)
        for index, tile_id in enumerate(order)
    )
    return Board(size=size, tiles=tiles)


def _classic_payloads(size: int) -> List[TilePayload]:
    return [NumberPayload(number=n) for n in range(1, size * size + 1)]


def _color_payloads(size: int, rng: random.Random | None) -> List[TilePayload]:
    palette = colors(size, rng)
    payloads: List[TilePayload] = []
    for row in range(size):
        for _ in range(size):
            payloads.append(ColorPayload(color=palette[row], target_color=palette[row]))
    return payloads


def _pattern_payloads(size: int) -> List[TilePayload]:
    catalog = patterns(size)
    return [
        PatternPayload(pattern=catalog[col], target_row=row, target_col=col)
        for row in range(size)
        for col in range(size)
    ]


def _payloads_for(mode: PuzzleMode, size: int, rng: random.Random | None) -> List[TilePayload]:
    if mode == PuzzleMode.CLASSIC:
        return _classic_payloads(size)
    if mode == PuzzleMode.COLOR:
        return _color_payloads(size, rng)
    if mode == PuzzleMode.PATTERN:
        return _pattern_payloads(size)
    raise ValueError(f"Unsupported puzzle mode {mode!r}")


def _shuffled_order(count: int, rng: random.Random, *, reject_identity: bool) -> List[int]:
    identity = list(range(count))
    order = list(identity)
    for _ in range(SHUFFLE_MAX_ATTEMPTS):
        rng.shuffle(order)
        if not reject_identity or order != identity:
            break
    return order


def solved_board(mode: PuzzleMode, size: int) -> Board:
    """Board already satisfying every row; used as the generation fallback."""
    payloads = _payloads_for(mode, size, None)
    return _place(payloads, range(len(payloads)), size)


def build_board(
    mode: PuzzleMode,
    size: int,
    puzzle: PuzzleDefinition | None = None,
    rng: random.Random | None = None,
) -> Board:
    """Strict variant of ``generate_board`` that raises on bad input."""
    if puzzle is not None:
        if mode != PuzzleMode.CLASSIC:
            raise ValueError("Fixed puzzles are classic boards")
        size = puzzle.size
        payloads = _classic_payloads(size)
        return _place(payloads, [number - 1 for number in puzzle.start_board], size)
    if size not in GRID_SIZES:
        raise ValueError(f"Grid size {size} not in {GRID_SIZES}")
    rng = rng or random.Random()
    payloads = _payloads_for(mode, size, rng)
    order = _shuffled_order(len(payloads), rng, reject_identity=mode == PuzzleMode.CLASSIC)
    return _place(payloads, order, size)


def generate_board(
    mode: PuzzleMode,
    size: int,
    puzzle: PuzzleDefinition | None = None,
    rng: random.Random | None = None,
) -> tuple[Board, bool]:
    """Return ``(board, fell_back)``; never raises for a supported mode.

    On any failure the solved board for ``mode``/``size`` is returned and
    ``fell_back`` is True so callers and tests can tell the round is trivial.
    """
    try:
        return build_board(mode, size, puzzle, rng), False
    except Exception:
        fallback_size = puzzle.size if puzzle is not None else size
        if fallback_size not in GRID_SIZES:
            fallback_size = GRID_SIZES[0]
        logger.exception("Board generation failed for %s %sx%s; using solved board", mode, fallback_size, fallback_size)
        return solved_board(mode, fallback_size), True
