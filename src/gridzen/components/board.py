from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Tuple

from gridzen.components.tile import Tile


@dataclass(frozen=True, slots=True)
class Board:
    """Row-major tile sequence for one round.

    Boards are never mutated in place; ``swapped`` and ``with_locked`` return a
    new Board so that a tile's identity and its slot cannot drift apart.
    """
    size: int
    tiles: Tuple[Tile, ...]

    def __post_init__(self) -> None:
        if len(self.tiles) != self.size * self.size:
            raise ValueError(f"Board of size {self.size} needs {self.size * self.size} tiles, got {len(self.tiles)}")
        for index, tile in enumerate(self.tiles):
            if tile.current_index != index:
                raise ValueError(f"Tile {tile.id} claims index {tile.current_index} but sits at {index}")

    def __len__(self) -> int:
        return len(self.tiles)

    def tile_at(self, index: int) -> Tile:
        return self.tiles[index]

    def row_slice(self, row: int) -> Tuple[Tile, ...]:
        start = row * self.size
        return self.tiles[start:start + self.size]

    def row_indices(self, row: int) -> range:
        start = row * self.size
        return range(start, start + self.size)

    def in_bounds(self, index: int) -> bool:
        return 0 <= index < len(self.tiles)

    def swapped(self, a: int, b: int) -> Board:
        if a == b:
            return self
        tiles = list(self.tiles)
        tile_a = tiles[a]
        tile_b = tiles[b]
        tiles[a] = replace(tile_b, current_index=a)
        tiles[b] = replace(tile_a, current_index=b)
        return Board(size=self.size, tiles=tuple(tiles))

    def with_locked(self, indices: Iterable[int]) -> Board:
        locked = set(indices)
        tiles = tuple(
            tile if tile.locked == (tile.current_index in locked) else replace(tile, locked=tile.current_index in locked)
            for tile in self.tiles
        )
        return Board(size=self.size, tiles=tiles)


def index_of(row: int, col: int, size: int) -> int:
    return row * size + col


def position_of(index: int, size: int) -> Tuple[int, int]:
    return divmod(index, size)


def is_adjacent(a: int, b: int, size: int) -> bool:
    ar, ac = position_of(a, size)
    br, bc = position_of(b, size)
    return (abs(ar - br) == 1 and ac == bc) or (abs(ac - bc) == 1 and ar == br)
