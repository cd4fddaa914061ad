from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, slots=True)
class PuzzleDefinition:
    """Hand-made classic board with a move budget and its own clock."""

    name: str
    size: int
    max_moves: int
    time_limit_seconds: int
    start_board: Tuple[int, ...]

    def __post_init__(self) -> None:
        expected = set(range(1, self.size * self.size + 1))
        if len(self.start_board) != self.size * self.size or set(self.start_board) != expected:
            raise ValueError(f"Puzzle '{self.name}' start board is not a permutation of 1..{self.size * self.size}")


@dataclass(frozen=True, slots=True)
class PuzzleRef:
    pack: str
    index: int

    def __str__(self) -> str:
        return f"{self.pack}:{self.index}"

    @classmethod
    def parse(cls, value: str) -> PuzzleRef:
        pack, _, index = value.rpartition(":")
        if not pack:
            raise ValueError(f"Malformed puzzle reference '{value}'")
        return cls(pack=pack, index=int(index))
