from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

RGB = Tuple[int, int, int]


class PuzzleMode(Enum):
    """Row completion rule in force for a round."""
    CLASSIC = "classic"
    COLOR = "color"
    PATTERN = "pattern"


@dataclass(frozen=True, slots=True)
class Pattern:
    symbol: str
    name: str
    color: RGB


@dataclass(frozen=True, slots=True)
class NumberPayload:
    number: int


@dataclass(frozen=True, slots=True)
class ColorPayload:
    color: RGB
    target_color: RGB


@dataclass(frozen=True, slots=True)
class PatternPayload:
    pattern: Pattern
    target_row: int
    target_col: int


TilePayload = Union[NumberPayload, ColorPayload, PatternPayload]


@dataclass(frozen=True, slots=True)
class Tile:
    """Value object for a single tile on the board.

    ``id`` is the tile's identity and never changes; ``current_index`` is the
    row-major slot it occupies and is rewritten whenever the tile moves.
    """
    id: int
    payload: TilePayload
    current_index: int
    locked: bool = False

    def row(self, size: int) -> int:
        return self.current_index // size

    def col(self, size: int) -> int:
        return self.current_index % size
