from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Strong references so systems that are not stored elsewhere still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                # payload: dt=float
EVENT_TIMER_CHANGED = "timer_changed"              # payload: round_entity=int, time_remaining=int, delta=int
EVENT_TIME_EXPIRED = "time_expired"                # payload: round_entity=int, status=RoundStatus


# ============================================================================
# INPUT & SELECTION
# ============================================================================
EVENT_MOUSE_PRESS = "mouse_press"                  # payload: x, y, button
EVENT_TILE_PRESS = "tile_press"                    # payload: index=int
EVENT_TILE_SELECTED = "tile_selected"              # payload: index=int
EVENT_TILE_DESELECTED = "tile_deselected"          # payload: index=int, reason=str


# ============================================================================
# BOARD
# ============================================================================
EVENT_BOARD_GENERATED = "board_generated"          # payload: round_entity=int, size=int, used_fallback=bool
EVENT_TILES_SWAPPED = "tiles_swapped"              # payload: round_entity=int, src=int, dst=int, move_count=int, free=bool, override=PowerUpKind|None
EVENT_BOARD_CHANGED = "board_changed"              # payload: reason=str, indices=list[int]
EVENT_ROW_COMPLETED = "row_completed"              # payload: round_entity=int, row=int, streak=int
EVENT_BOARD_COMPLETED = "board_completed"          # payload: round_entity=int, move_count=int
EVENT_MOVE_BUDGET_EXCEEDED = "move_budget_exceeded"  # payload: round_entity=int, move_count=int, max_moves=int, message=str


# ============================================================================
# POWER-UPS
# ============================================================================
EVENT_POWER_UP_AWARDED = "power_up_awarded"        # payload: power_up=PowerUp, reason=str
EVENT_POWER_UP_APPLY_REQUEST = "power_up_apply_request"  # payload: power_up_id=int
EVENT_POWER_UP_APPLIED = "power_up_applied"        # payload: power_up=PowerUp, affected=list[int]
EVENT_OVERRIDE_CONSUMED = "override_consumed"      # payload: kind=PowerUpKind
EVENT_ROW_HINT = "row_hint"                        # payload: row=int|None


# ============================================================================
# ROUND FLOW
# ============================================================================
EVENT_ROUND_START_REQUEST = "round_start_request"  # payload: mode, size, puzzle_ref, puzzle, player_label
EVENT_ROUND_STARTED = "round_started"              # payload: round_entity=int, mode, size, puzzle, time_remaining, max_moves
EVENT_ROUND_WON = "round_won"                      # payload: record=ResultRecord, bucket_key=str, message=str
EVENT_ROUND_LOST = "round_lost"                    # payload: status=RoundStatus, reason=str, message=str
EVENT_ROUND_PAUSED = "round_paused"                # payload: round_entity=int
EVENT_ROUND_RESUMED = "round_resumed"              # payload: round_entity=int
EVENT_GAME_MODE_CHANGED = "game_mode_changed"      # payload: previous_mode=GameMode|None, new_mode=GameMode


# ============================================================================
# PROGRESS & SETTINGS
# ============================================================================
EVENT_RESULT_RECORDED = "result_recorded"          # payload: bucket_key=str, record=ResultRecord, rank=int|None
EVENT_HIGHSCORES_RESET = "highscores_reset"        # payload: None
EVENT_UNLOCKS_CHANGED = "unlocks_changed"          # payload: unlocked=dict[str,bool]
EVENT_SETTINGS_CHANGED = "settings_changed"        # payload: profile=PlayerProfile
