"""Hand-made puzzle packs.

Every start board is the solved board with a few line rotations applied.
Rotating a line of ``k`` tiles displaces each tile by one slot, so exactly
``k - 1`` adjacent swaps undo it and the packs' move budgets can be checked
against ``minimum_moves``.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from gridzen.components.puzzle import PuzzleDefinition, PuzzleRef

Cycle = Sequence[int]

PACK_ORDER: Tuple[str, ...] = ("beginner", "intermediate", "advanced")


def permutation_from_cycles(size: int, cycles: Iterable[Cycle]) -> Tuple[int, ...]:
    """Solved board of ``size`` with each cycle rotated one step.

    Slot ``cycle[j]`` receives the tile that belongs at ``cycle[j + 1]``.
    """
    board = list(range(1, size * size + 1))
    for cycle in cycles:
        values = [board[i] for i in cycle]
        rotated = values[1:] + values[:1]
        for slot, value in zip(cycle, rotated):
            board[slot] = value
    return tuple(board)


def row_cycle(size: int, row: int, *, reverse: bool = False) -> List[int]:
    cycle = [row * size + col for col in range(size)]
    return cycle[::-1] if reverse else cycle


def column_cycle(size: int, col: int, *, start_row: int = 0) -> List[int]:
    return [row * size + col for row in range(start_row, size)]


def minimum_moves(start_board: Sequence[int], size: int) -> int:
    """Lower bound on adjacent swaps: total Manhattan displacement halved.

    Each swap moves two tiles by one slot each. For boards built from
    disjoint line rotations the bound is exact.
    """
    total = 0
    for index, number in enumerate(start_board):
        row, col = divmod(index, size)
        target_row, target_col = divmod(number - 1, size)
        total += abs(row - target_row) + abs(col - target_col)
    return total // 2


def _puzzle(name: str, size: int, max_moves: int, time_limit: int, cycles: Iterable[Cycle]) -> PuzzleDefinition:
    return PuzzleDefinition(
        name=name,
        size=size,
        max_moves=max_moves,
        time_limit_seconds=time_limit,
        start_board=permutation_from_cycles(size, cycles),
    )


_PUZZLE_PACKS: Mapping[str, Tuple[PuzzleDefinition, ...]] = {
    "beginner": (
        _puzzle("First Steps", 4, 3, 45, [(0, 1)]),
        _puzzle("Corner Twist", 4, 5, 60, [(8, 12)]),
        _puzzle("Ring Around", 4, 7, 75, [row_cycle(4, 0), row_cycle(4, 1)]),
        _puzzle("Cross Pattern", 4, 9, 90, [(1, 5), (10, 14)]),
        _puzzle("Diagonal Shift", 4, 11, 105, [(0, 4), (5, 9), (10, 14)]),
    ),
    "intermediate": (
        _puzzle("Pentagon", 5, 12, 120, [(0, 1)]),
        _puzzle("Star Pattern", 5, 15, 150, [(2, 7), (12, 17)]),
        _puzzle("Spiral", 5, 18, 180, [row_cycle(5, row) for row in range(4)]),
    ),
    "advanced": (
        _puzzle("Hexagon", 6, 20, 240, [row_cycle(6, 0), column_cycle(6, 0, start_row=1)]),
        _puzzle("Double Helix", 6, 25, 300, [row_cycle(6, 1), row_cycle(6, 2, reverse=True), row_cycle(6, 4)]),
        _puzzle(
            "Master Challenge",
            6,
            30,
            360,
            [row_cycle(6, row, reverse=bool(row % 2)) for row in range(6)],
        ),
    ),
}


def all_packs() -> Dict[str, Tuple[PuzzleDefinition, ...]]:
    return {name: _PUZZLE_PACKS[name] for name in PACK_ORDER}


def get_pack(name: str) -> Tuple[PuzzleDefinition, ...]:
    try:
        return _PUZZLE_PACKS[name]
    except KeyError as exc:
        raise KeyError(f"Unknown puzzle pack '{name}'") from exc


def get_puzzle(pack: str, index: int) -> PuzzleDefinition:
    puzzles = get_pack(pack)
    if not 0 <= index < len(puzzles):
        raise IndexError(f"Pack '{pack}' has no puzzle {index}")
    return puzzles[index]


def resolve(ref: PuzzleRef) -> PuzzleDefinition:
    return get_puzzle(ref.pack, ref.index)


def previous_pack(name: str) -> str | None:
    position = PACK_ORDER.index(name)
    return PACK_ORDER[position - 1] if position > 0 else None
