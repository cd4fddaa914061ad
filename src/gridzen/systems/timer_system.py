from __future__ import annotations

from esper import World

from gridzen.components.round_state import RoundState, RoundStatus
from gridzen.constants import DEFAULT_TIME_LIMIT, MAX_TIME_REMAINING, TICK_SECONDS, TIME_LIMITS
from gridzen.events.bus import (
    EVENT_ROUND_PAUSED,
    EVENT_ROUND_RESUMED,
    EVENT_ROUND_STARTED,
    EVENT_TICK,
    EVENT_TIME_EXPIRED,
    EVENT_TIMER_CHANGED,
    EventBus,
)
from gridzen.utils.round_ops import get_active_round, get_round


def time_limit_for(size: int) -> int:
    return TIME_LIMITS.get(size, DEFAULT_TIME_LIMIT)


def apply_time_bonus(state: RoundState, seconds: int, cap: int = MAX_TIME_REMAINING) -> int:
    """Add ``seconds`` to the clock, never past ``cap``; returns the change.

    A clock already above the cap (long fixed puzzles) is left as is.
    """
    current = state.time_remaining
    state.time_remaining = max(current, min(cap, current + max(0, seconds)))
    return state.time_remaining - current


def emit_timer_changed(event_bus: EventBus, entity: int, state: RoundState, delta: int) -> None:
    event_bus.emit(
        EVENT_TIMER_CHANGED,
        round_entity=entity,
        time_remaining=state.time_remaining,
        delta=delta,
    )


class TimerSystem:
    """Counts the round clock down once per ``tick_seconds`` of host time.

    Host frames arrive as ``EVENT_TICK`` with a float ``dt``; they are summed
    and only whole ticks decrement the clock. Nothing accrues while the round
    is paused or finished, so a resumed round never fires a burst of ticks.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        tick_seconds: float = TICK_SECONDS,
        max_time: int = MAX_TIME_REMAINING,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.tick_seconds = tick_seconds
        self.max_time = max_time
        self._accumulator = 0.0
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)
        self.event_bus.subscribe(EVENT_ROUND_STARTED, self.on_round_started)

    def on_round_started(self, sender, **payload) -> None:
        self._accumulator = 0.0

    def on_tick(self, sender, **payload) -> None:
        dt = payload.get("dt")
        if dt is None:
            return
        try:
            dt_value = float(dt)
        except (TypeError, ValueError):
            return
        if dt_value <= 0.0:
            return
        entry = get_active_round(self.world)
        if entry is None:
            return
        entity, state, _ = entry
        self._accumulator += dt_value
        while self._accumulator >= self.tick_seconds and state.is_active:
            self._accumulator -= self.tick_seconds
            self._decrement(entity, state)

    def _decrement(self, entity: int, state: RoundState) -> None:
        if state.time_remaining <= 0:
            self._expire(entity, state)
            return
        state.time_remaining -= 1
        emit_timer_changed(self.event_bus, entity, state, -1)
        if state.time_remaining == 0:
            self._expire(entity, state)

    def _expire(self, entity: int, state: RoundState) -> None:
        state.status = RoundStatus.FAILED if state.is_fixed_puzzle else RoundStatus.LOST
        state.selected_index = None
        self._accumulator = 0.0
        self.event_bus.emit(EVENT_TIME_EXPIRED, round_entity=entity, status=state.status)

    def add_time(self, seconds: int) -> int:
        entry = get_active_round(self.world)
        if entry is None:
            return 0
        entity, state, _ = entry
        delta = apply_time_bonus(state, seconds, self.max_time)
        emit_timer_changed(self.event_bus, entity, state, delta)
        return delta

    def pause(self) -> bool:
        entry = get_active_round(self.world)
        if entry is None:
            return False
        entity, state, _ = entry
        state.status = RoundStatus.PAUSED
        self.event_bus.emit(EVENT_ROUND_PAUSED, round_entity=entity)
        return True

    def resume(self) -> bool:
        entry = get_round(self.world)
        if entry is None:
            return False
        entity, state, _ = entry
        if state.status != RoundStatus.PAUSED:
            return False
        state.status = RoundStatus.PLAYING
        self.event_bus.emit(EVENT_ROUND_RESUMED, round_entity=entity)
        return True
