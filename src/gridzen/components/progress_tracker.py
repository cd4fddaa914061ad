from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set

from gridzen.components.result_record import ResultRecord


@dataclass(slots=True)
class PlayerProfile:
    player_name: str = ""
    dark_mode: bool = False
    sound_enabled: bool = False
    last_mode: str = "classic"
    last_size: int = 4


@dataclass(slots=True)
class PackProgress:
    """Derived view of one puzzle pack; rebuilt from the leaderboards."""

    unlocked: bool = False
    completed_indices: Set[int] = field(default_factory=set)


@dataclass(slots=True)
class ProgressTracker:
    """Persisted results and settings shared across rounds."""

    highscores: Dict[str, List[ResultRecord]] = field(default_factory=dict)
    profile: PlayerProfile = field(default_factory=PlayerProfile)
    # Cache only; ProgressSystem recomputes it from ``highscores``.
    packs: Dict[str, PackProgress] = field(default_factory=dict)
