from __future__ import annotations

import itertools
import random
from dataclasses import dataclass
from typing import Iterable

from gridzen.components.power_up import PowerUp, PowerUpKind, Rarity
from gridzen.constants import AUTO_COMPLETE_TILES, FREEZE_TIME_BONUS


@dataclass(frozen=True, slots=True)
class PowerUpDefinition:
    """Static description of a power-up kind."""

    kind: PowerUpKind
    display_name: str
    icon: str
    description: str = ""
    rarity: Rarity = Rarity.COMMON
    magnitude: int = 1


class PowerUpRegistry:
    """In-memory catalog of power-up definitions."""

    def __init__(self) -> None:
        self._definitions: dict[PowerUpKind, PowerUpDefinition] = {}

    def register(self, definition: PowerUpDefinition) -> None:
        if definition.kind in self._definitions:
            raise ValueError(f"Power-up '{definition.kind.value}' already registered")
        self._definitions[definition.kind] = definition

    def get(self, kind: PowerUpKind) -> PowerUpDefinition:
        try:
            return self._definitions[kind]
        except KeyError as exc:
            raise KeyError(f"Power-up '{kind.value}' is not registered") from exc

    def has(self, kind: PowerUpKind) -> bool:
        return kind in self._definitions

    def kinds(self) -> tuple[PowerUpKind, ...]:
        return tuple(self._definitions.keys())

    def all(self) -> Iterable[PowerUpDefinition]:
        return tuple(self._definitions.values())


default_power_up_registry = PowerUpRegistry()
_ids = itertools.count(1)


def ensure_default_power_ups_registered() -> None:
    """Register the built-in power-up catalog if it is not already present."""

    def _register(definition: PowerUpDefinition) -> None:
        if default_power_up_registry.has(definition.kind):
            return
        default_power_up_registry.register(definition)

    _register(
        PowerUpDefinition(
            kind=PowerUpKind.FREEZE_TIME,
            display_name="Freeze Time",
            icon="❄",
            description=f"+{FREEZE_TIME_BONUS} seconds",
            magnitude=FREEZE_TIME_BONUS,
        )
    )
    _register(
        PowerUpDefinition(
            kind=PowerUpKind.TELEPORT_SWAP,
            display_name="Teleport",
            icon="⇄",
            description="Swap any two tiles",
            rarity=Rarity.UNCOMMON,
        )
    )
    _register(
        PowerUpDefinition(
            kind=PowerUpKind.AUTO_COMPLETE,
            display_name="Auto-Complete",
            icon="✨",
            description=f"Auto-solve {AUTO_COMPLETE_TILES} tiles",
            rarity=Rarity.RARE,
            magnitude=AUTO_COMPLETE_TILES,
        )
    )
    _register(
        PowerUpDefinition(
            kind=PowerUpKind.FREE_MOVE,
            display_name="Free Move",
            icon="⚡",
            description="Next move is free",
        )
    )
    _register(
        PowerUpDefinition(
            kind=PowerUpKind.ROW_HINT,
            display_name="Row Hint",
            icon="☞",
            description="Highlight the next row to solve",
        )
    )


def create_power_up(kind: PowerUpKind) -> PowerUp:
    ensure_default_power_ups_registered()
    definition = default_power_up_registry.get(kind)
    return PowerUp(id=next(_ids), kind=kind, rarity=definition.rarity, magnitude=definition.magnitude)


def draw_power_up(rng: random.Random) -> PowerUp:
    """Pick a kind uniformly from the catalog and mint a token for it."""
    ensure_default_power_ups_registered()
    kind = rng.choice(default_power_up_registry.kinds())
    return create_power_up(kind)
