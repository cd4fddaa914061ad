from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from gridzen.events.bus import (
    EVENT_ROUND_LOST,
    EVENT_ROUND_WON,
    EVENT_ROW_COMPLETED,
    EVENT_TILES_SWAPPED,
    EventBus,
)

logger = logging.getLogger(__name__)

FEEDBACK_SWAP = "swap"
FEEDBACK_ROW_COMPLETE = "row_complete"
FEEDBACK_WIN = "win"
FEEDBACK_LOSS = "loss"


class FeedbackSink(Protocol):
    """Sound or haptics back-end. Return values are ignored."""

    def notify(self, event: str, **details: Any) -> None: ...


class FeedbackSystem:
    """Forwards gameplay moments to a feedback sink when the player enabled it."""

    def __init__(
        self,
        event_bus: EventBus,
        sink: FeedbackSink,
        *,
        enabled: Callable[[], bool] = lambda: True,
    ) -> None:
        self.event_bus = event_bus
        self.sink = sink
        self._enabled = enabled
        self.event_bus.subscribe(EVENT_TILES_SWAPPED, self._on_swap)
        self.event_bus.subscribe(EVENT_ROW_COMPLETED, self._on_row_completed)
        self.event_bus.subscribe(EVENT_ROUND_WON, self._on_round_won)
        self.event_bus.subscribe(EVENT_ROUND_LOST, self._on_round_lost)

    def _on_swap(self, sender, **payload) -> None:
        self._notify(FEEDBACK_SWAP, src=payload.get("src"), dst=payload.get("dst"))

    def _on_row_completed(self, sender, **payload) -> None:
        self._notify(FEEDBACK_ROW_COMPLETE, row=payload.get("row"), streak=payload.get("streak"))

    def _on_round_won(self, sender, **payload) -> None:
        self._notify(FEEDBACK_WIN, message=payload.get("message"))

    def _on_round_lost(self, sender, **payload) -> None:
        self._notify(FEEDBACK_LOSS, message=payload.get("message"))

    def _notify(self, event: str, **details: Any) -> None:
        if not self._enabled():
            return
        try:
            self.sink.notify(event, **details)
        except Exception:
            logger.exception("Feedback sink failed on '%s'", event)
