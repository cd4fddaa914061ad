from dataclasses import dataclass
from enum import Enum


class PowerUpKind(Enum):
    FREEZE_TIME = "freeze_time"
    TELEPORT_SWAP = "teleport_swap"
    AUTO_COMPLETE = "auto_complete"
    FREE_MOVE = "free_move"
    ROW_HINT = "row_hint"


class Rarity(Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"


# Kinds that arm a one-shot override for the next accepted swap instead of acting immediately.
OVERRIDE_KINDS = frozenset({PowerUpKind.TELEPORT_SWAP, PowerUpKind.FREE_MOVE})


@dataclass(frozen=True, slots=True)
class PowerUp:
    """Single-use token held in ``RoundState.active_power_ups`` until applied."""

    id: int
    kind: PowerUpKind
    rarity: Rarity = Rarity.COMMON
    magnitude: int = 1
