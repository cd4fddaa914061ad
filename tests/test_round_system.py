from datetime import datetime, timezone

from gridzen.components.game_state import GameMode
from gridzen.components.puzzle import PuzzleDefinition, PuzzleRef
from gridzen.components.round_state import RoundStatus
from gridzen.components.tile import PuzzleMode
from gridzen.events.bus import (
    EVENT_BOARD_GENERATED,
    EVENT_MOVE_BUDGET_EXCEEDED,
    EVENT_ROUND_LOST,
    EVENT_ROUND_START_REQUEST,
    EVENT_ROUND_STARTED,
    EVENT_ROUND_WON,
)
from gridzen.systems.round_system import bucket_key_for_round, loss_message, win_message
from tests.helpers import EventRecorder, make_engine


def _tail(size=4):
    return list(range(3, size * size + 1))


def test_free_play_round_uses_size_clock_and_menu_profile():
    engine = make_engine()
    recorder = EventRecorder(engine.event_bus, EVENT_BOARD_GENERATED, EVENT_ROUND_STARTED)
    state = engine.start_round(PuzzleMode.PATTERN, 5)

    assert state.mode == PuzzleMode.PATTERN
    assert state.size == 5
    assert state.time_remaining == 90
    assert state.status == RoundStatus.PLAYING
    assert not state.is_fixed_puzzle
    assert engine.game_mode == GameMode.ROUND
    assert recorder.names() == [EVENT_BOARD_GENERATED, EVENT_ROUND_STARTED]
    assert engine.profile.last_mode == "pattern"
    assert engine.profile.last_size == 5


def test_pack_puzzle_prelocks_solved_rows():
    engine = make_engine()
    state = engine.start_round(puzzle_ref="beginner:0")

    assert state.puzzle == PuzzleRef("beginner", 0)
    assert state.max_moves == 3
    assert state.time_remaining == 45
    assert state.completed_rows == {1, 2, 3}
    assert state.locked_indices == set(range(4, 16))


def test_one_swap_puzzle_wins_and_unlocks_next():
    engine = make_engine()
    recorder = EventRecorder(engine.event_bus, EVENT_ROUND_WON)
    engine.start_round(PuzzleMode.COLOR, 6, puzzle_ref=PuzzleRef("beginner", 0))
    assert engine.round_state().mode == PuzzleMode.CLASSIC

    engine.tile_press(0)
    engine.tile_press(1)

    won = recorder.payloads(EVENT_ROUND_WON)[0]
    assert won["bucket_key"] == "puzzle-beginner-0"
    assert won["message"] == "Puzzle solved in 1/3 moves!\nNext puzzle unlocked!"
    record = won["record"]
    assert record.moves == 1
    assert record.max_moves == 3
    assert record.puzzle_ref == "beginner:0"
    assert engine.game_mode == GameMode.RESULT
    assert engine.progress.is_puzzle_completed("beginner", 0)
    assert engine.progress.is_puzzle_unlocked("beginner", 1)


def test_custom_puzzle_with_budget_of_one():
    engine = make_engine()
    puzzle = PuzzleDefinition("One Swap", 4, 1, 45, tuple([2, 1] + _tail()))
    engine.start_round(puzzle=puzzle)

    engine.tile_press(1)
    engine.tile_press(0)

    state = engine.round_state()
    assert state.status == RoundStatus.WON
    assert state.move_count == 1
    assert bucket_key_for_round(state) == "puzzle-custom-one-swap"
    assert engine.highscores("puzzle-custom-one-swap")[0].moves == 1
    assert engine.last_message == "Puzzle solved in 1/1 moves!"


def test_move_budget_exceeded_fails_without_swapping():
    engine = make_engine()
    recorder = EventRecorder(engine.event_bus, EVENT_MOVE_BUDGET_EXCEEDED, EVENT_ROUND_LOST)
    puzzle = PuzzleDefinition("Tight", 4, 1, 45, tuple([2, 3, 1] + list(range(4, 17))))
    engine.start_round(puzzle=puzzle)

    engine.tile_press(0)
    engine.tile_press(1)
    before = engine.board()
    engine.tile_press(1)
    engine.tile_press(2)

    state = engine.round_state()
    assert state.status == RoundStatus.FAILED
    assert state.move_count == 1
    assert engine.board() is before
    assert recorder.payloads(EVENT_MOVE_BUDGET_EXCEEDED)[0]["message"] == "You've used all 1 moves for this puzzle."
    lost = recorder.payloads(EVENT_ROUND_LOST)[0]
    assert lost["status"] == RoundStatus.FAILED
    assert lost["reason"] == "move_budget"
    assert lost["message"] == "Puzzle failed! You used 1/1 moves."
    assert engine.highscores("puzzle-custom-tight") == []
    assert not engine.tile_press(0)


def test_start_request_event_replaces_round():
    engine = make_engine()
    engine.start_round(PuzzleMode.CLASSIC, 4)
    first = engine.round_state()
    engine.event_bus.emit(EVENT_ROUND_START_REQUEST, mode=PuzzleMode.COLOR, size=6)
    second = engine.round_state()

    assert second is not first
    assert second.mode == PuzzleMode.COLOR
    assert len(list(engine.world.get_component(type(second)))) == 1


def test_player_label_comes_from_profile_or_default():
    engine = make_engine()
    assert engine.start_round(PuzzleMode.CLASSIC, 4).player_label == "Player"
    engine.progress.set_player_name("  Grace ")
    assert engine.start_round(PuzzleMode.CLASSIC, 4).player_label == "Grace"
    assert engine.start_round(PuzzleMode.CLASSIC, 4, player_label="Linus").player_label == "Linus"


def test_result_timestamp_uses_injected_clock():
    engine = make_engine()
    engine.rounds._clock = lambda: datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    engine.start_round(puzzle_ref="beginner:0")
    engine.tile_press(0)
    engine.tile_press(1)
    assert engine.highscores("puzzle-beginner-0")[0].timestamp == "2026-01-02T03:04:05+00:00"


def test_messages_for_last_pack_puzzle_and_free_play():
    engine = make_engine()
    state = engine.start_round(puzzle_ref="beginner:4")
    assert win_message(state) == "Puzzle solved in 0/11 moves!"
    free = engine.start_round(PuzzleMode.CLASSIC, 4)
    assert loss_message(free) == "You ran out of time. Try again!"
