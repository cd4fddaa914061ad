from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Set

from gridzen.components.power_up import PowerUp, PowerUpKind
from gridzen.components.puzzle import PuzzleRef
from gridzen.components.tile import PuzzleMode


class RoundStatus(Enum):
    PLAYING = auto()
    PAUSED = auto()
    WON = auto()
    LOST = auto()
    FAILED = auto()


TERMINAL_STATUSES = frozenset({RoundStatus.WON, RoundStatus.LOST, RoundStatus.FAILED})


@dataclass(slots=True)
class RoundState:
    """Mutable per-round bookkeeping that sits next to the round's Board.

    ``locked_indices`` always mirrors ``completed_rows`` expanded to slots.
    ``pending_override`` holds at most one armed power-up override and is
    cleared by the next accepted swap.
    """

    mode: PuzzleMode
    size: int
    time_remaining: int
    player_label: str = ""
    selected_index: int | None = None
    completed_rows: Set[int] = field(default_factory=set)
    locked_indices: Set[int] = field(default_factory=set)
    move_count: int = 0
    streak: int = 0
    active_power_ups: List[PowerUp] = field(default_factory=list)
    pending_override: PowerUpKind | None = None
    hint_row: int | None = None
    status: RoundStatus = RoundStatus.PLAYING
    puzzle: PuzzleRef | None = None
    puzzle_name: str | None = None
    max_moves: int | None = None
    used_fallback: bool = False

    @property
    def is_fixed_puzzle(self) -> bool:
        return self.max_moves is not None

    @property
    def is_active(self) -> bool:
        return self.status == RoundStatus.PLAYING

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def lock_row(self, row: int) -> None:
        self.completed_rows.add(row)
        start = row * self.size
        self.locked_indices.update(range(start, start + self.size))
