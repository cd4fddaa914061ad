from __future__ import annotations

import random
from typing import Any, Dict, List, Sequence, Tuple

from gridzen.components.board import Board
from gridzen.components.game_state import GameMode
from gridzen.components.round_state import RoundState
from gridzen.components.tile import NumberPayload, PuzzleMode, Tile
from gridzen.engine import Engine, EngineConfig
from gridzen.events.bus import EventBus
from gridzen.storage import InMemoryStorage
from gridzen.utils.game_state import set_game_mode
from gridzen.utils.round_ops import clear_rounds


def classic_board(numbers: Sequence[int], size: int = 4) -> Board:
    """Classic board whose slot ``i`` shows ``numbers[i]``; tile id is ``number - 1``."""
    tiles = tuple(
        Tile(id=number - 1, payload=NumberPayload(number=number), current_index=index)
        for index, number in enumerate(numbers)
    )
    return Board(size=size, tiles=tiles)


def solved_numbers(size: int = 4) -> List[int]:
    return list(range(1, size * size + 1))


def make_engine(storage: InMemoryStorage | None = None, seed: int = 7, **config: Any) -> Engine:
    config.setdefault("award_on_moves", False)
    return Engine(
        EngineConfig(**config),
        storage=storage if storage is not None else InMemoryStorage(),
        rng=random.Random(seed),
    )


def install_round(engine: Engine, board: Board, mode: PuzzleMode = PuzzleMode.CLASSIC, **state_fields: Any) -> int:
    """Put a hand-built board in play without going through generation."""
    clear_rounds(engine.world)
    state_fields.setdefault("time_remaining", 60)
    state = RoundState(mode=mode, size=board.size, **state_fields)
    entity = engine.world.create_entity(board, state)
    set_game_mode(engine.world, engine.event_bus, GameMode.ROUND)
    return entity


class EventRecorder:
    """Collects (event, payload) pairs for the given event names."""

    def __init__(self, bus: EventBus, *names: str) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        for name in names:
            bus.subscribe(name, self._handler_for(name))

    def _handler_for(self, name: str):
        def handler(sender, **payload):
            self.events.append((name, payload))

        return handler

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def payloads(self, name: str) -> List[Dict[str, Any]]:
        return [payload for event, payload in self.events if event == name]
