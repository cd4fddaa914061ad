from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from gridzen.components.tile import PuzzleMode


@dataclass(frozen=True, slots=True)
class ResultRecord:
    """A finished, won round as stored on a leaderboard."""

    player_label: str
    moves: int
    time_remaining: int
    timestamp: str
    mode: PuzzleMode
    size: int
    puzzle_ref: str | None = None
    max_moves: int | None = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.player_label,
            "moves": self.moves,
            "timeRemaining": self.time_remaining,
            "date": self.timestamp,
            "mode": self.mode.value,
            "size": self.size,
        }
        if self.puzzle_ref is not None:
            payload["puzzleRef"] = self.puzzle_ref
        if self.max_moves is not None:
            payload["maxMoves"] = self.max_moves
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ResultRecord":
        max_moves = payload.get("maxMoves")
        return cls(
            player_label=str(payload.get("name", "")),
            moves=int(payload["moves"]),
            time_remaining=int(payload.get("timeRemaining", 0)),
            timestamp=str(payload.get("date", "")),
            mode=PuzzleMode(payload.get("mode", PuzzleMode.CLASSIC.value)),
            size=int(payload.get("size", 0)),
            puzzle_ref=payload.get("puzzleRef"),
            max_moves=int(max_moves) if max_moves is not None else None,
        )
