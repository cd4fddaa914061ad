import random

from gridzen.components.board import Board
from gridzen.components.power_up import PowerUpKind
from gridzen.components.round_state import RoundStatus
from gridzen.components.tile import ColorPayload, PuzzleMode, Tile
from gridzen.events.bus import (
    EVENT_OVERRIDE_CONSUMED,
    EVENT_POWER_UP_APPLIED,
    EVENT_POWER_UP_APPLY_REQUEST,
    EVENT_POWER_UP_AWARDED,
    EVENT_ROW_HINT,
    EVENT_TIMER_CHANGED,
)
from gridzen.factories.power_ups import (
    create_power_up,
    default_power_up_registry,
    draw_power_up,
    ensure_default_power_ups_registered,
)
from gridzen.systems.completion import board_complete, row_complete
from gridzen.systems.grid_generator import generate_board, solved_board
from gridzen.systems.power_up_system import auto_complete
from gridzen.utils.round_ops import color_row_targets
from tests.helpers import EventRecorder, classic_board, install_round, make_engine, solved_numbers

REVERSED = list(range(16, 0, -1))


def _grant(engine, kind):
    token = create_power_up(kind)
    engine.round_state().active_power_ups.append(token)
    return token


def test_catalog_defaults():
    ensure_default_power_ups_registered()
    freeze = default_power_up_registry.get(PowerUpKind.FREEZE_TIME)
    assert freeze.magnitude == 15
    assert default_power_up_registry.get(PowerUpKind.AUTO_COMPLETE).magnitude == 2
    assert set(default_power_up_registry.kinds()) == set(PowerUpKind)
    rng = random.Random(0)
    drawn = {draw_power_up(rng).kind for _ in range(200)}
    assert drawn == set(PowerUpKind)


def test_freeze_time_is_capped():
    engine = make_engine()
    install_round(engine, classic_board(REVERSED), time_remaining=295)
    recorder = EventRecorder(engine.event_bus, EVENT_TIMER_CHANGED, EVENT_POWER_UP_APPLIED)
    token = _grant(engine, PowerUpKind.FREEZE_TIME)

    assert engine.apply_power_up(token.id)
    state = engine.round_state()
    assert state.time_remaining == 300
    assert state.active_power_ups == []
    assert recorder.payloads(EVENT_TIMER_CHANGED)[0]["delta"] == 5
    assert recorder.payloads(EVENT_POWER_UP_APPLIED)[0]["power_up"] == token


def test_freeze_time_never_shortens_long_clock():
    engine = make_engine()
    install_round(engine, classic_board(REVERSED), time_remaining=360, max_moves=30)
    token = _grant(engine, PowerUpKind.FREEZE_TIME)
    engine.apply_power_up(token.id)
    assert engine.round_state().time_remaining == 360


def test_teleport_swaps_distant_tiles_once():
    engine = make_engine()
    install_round(engine, classic_board(REVERSED))
    recorder = EventRecorder(engine.event_bus, EVENT_OVERRIDE_CONSUMED)
    token = _grant(engine, PowerUpKind.TELEPORT_SWAP)
    engine.apply_power_up(token.id)
    assert engine.round_state().pending_override == PowerUpKind.TELEPORT_SWAP

    engine.tile_press(0)
    engine.tile_press(15)

    state = engine.round_state()
    board = engine.board()
    assert board.tile_at(0).payload.number == 1
    assert board.tile_at(15).payload.number == 16
    assert state.pending_override is None
    assert state.move_count == 1
    assert recorder.payloads(EVENT_OVERRIDE_CONSUMED) == [{"kind": PowerUpKind.TELEPORT_SWAP}]

    engine.tile_press(1)
    engine.tile_press(14)
    assert engine.round_state().selected_index == 14


def test_free_move_does_not_count():
    engine = make_engine()
    install_round(engine, classic_board(REVERSED))
    token = _grant(engine, PowerUpKind.FREE_MOVE)
    engine.apply_power_up(token.id)

    engine.tile_press(0)
    engine.tile_press(1)
    state = engine.round_state()
    assert state.move_count == 0
    assert state.pending_override is None

    engine.tile_press(0)
    engine.tile_press(1)
    assert engine.round_state().move_count == 1


def test_free_move_allows_swap_past_exhausted_budget():
    engine = make_engine()
    install_round(engine, classic_board(REVERSED), max_moves=2, move_count=2)
    token = _grant(engine, PowerUpKind.FREE_MOVE)
    engine.apply_power_up(token.id)

    engine.tile_press(0)
    engine.tile_press(1)

    state = engine.round_state()
    assert state.status == RoundStatus.PLAYING
    assert state.move_count == 2
    assert engine.board().tile_at(0).payload.number == 15


def test_second_override_is_rejected_and_kept():
    engine = make_engine()
    install_round(engine, classic_board(REVERSED))
    teleport = _grant(engine, PowerUpKind.TELEPORT_SWAP)
    free = _grant(engine, PowerUpKind.FREE_MOVE)

    assert engine.apply_power_up(teleport.id)
    assert not engine.apply_power_up(free.id)
    state = engine.round_state()
    assert state.pending_override == PowerUpKind.TELEPORT_SWAP
    assert state.active_power_ups == [free]


def test_unknown_token_is_rejected():
    engine = make_engine()
    install_round(engine, classic_board(REVERSED))
    assert not engine.apply_power_up(987654)


def test_auto_complete_places_two_tiles_and_can_win():
    numbers = solved_numbers()
    numbers[0], numbers[1] = numbers[1], numbers[0]
    numbers[14], numbers[15] = numbers[15], numbers[14]
    engine = make_engine()
    install_round(engine, classic_board(numbers), completed_rows={1, 2}, locked_indices=set(range(4, 12)))
    recorder = EventRecorder(engine.event_bus, EVENT_POWER_UP_APPLIED)
    token = _grant(engine, PowerUpKind.AUTO_COMPLETE)

    assert engine.apply_power_up(token.id)

    state = engine.round_state()
    assert recorder.payloads(EVENT_POWER_UP_APPLIED)[0]["affected"] == [0, 1, 14, 15]
    assert state.move_count == 0
    assert state.completed_rows == {0, 1, 2, 3}
    assert state.status == RoundStatus.WON


def test_auto_complete_respects_locks():
    numbers = solved_numbers()
    numbers[0], numbers[1] = numbers[1], numbers[0]
    board = classic_board(numbers)
    new_board, affected = auto_complete(board, {1}, PuzzleMode.CLASSIC, 2)
    assert affected == []
    assert new_board is board


RED, GREEN, BLUE, YELLOW = (220, 40, 40), (40, 200, 60), (40, 80, 220), (230, 210, 40)


def _color_board(rows):
    """Color board from per-slot colors; ids are assigned so each color's home is its row."""
    home_row = {RED: 0, GREEN: 1, BLUE: 2, YELLOW: 3}
    next_id = {color: row * 4 for color, row in home_row.items()}
    tiles = []
    for index, color in enumerate(color for row in rows for color in row):
        tiles.append(Tile(next_id[color], ColorPayload(color=color, target_color=color), index))
        next_id[color] += 1
    return Board(size=4, tiles=tuple(tiles))


def test_auto_complete_in_color_mode_moves_matching_tiles():
    board, _ = generate_board(PuzzleMode.COLOR, 4, rng=random.Random(11))
    goals = color_row_targets(board)
    new_board, affected = auto_complete(board, set(), PuzzleMode.COLOR, 2)
    assert len(affected) == 4
    for slot in affected[::2]:
        assert new_board.tile_at(slot).payload.target_color == goals[slot // 4]


def test_color_rows_aim_at_their_majority_color():
    board = _color_board([
        [GREEN, GREEN, GREEN, RED],
        [RED, RED, RED, GREEN],
        [BLUE] * 4,
        [YELLOW] * 4,
    ])
    assert color_row_targets(board) == {0: GREEN, 1: RED, 2: BLUE, 3: YELLOW}

    new_board, affected = auto_complete(board, set(range(8, 16)), PuzzleMode.COLOR, 2)

    assert affected == [3, 7]
    assert row_complete(new_board, 4, 0, PuzzleMode.COLOR)
    assert row_complete(new_board, 4, 1, PuzzleMode.COLOR)


def test_auto_complete_in_pattern_mode():
    board = solved_board(PuzzleMode.PATTERN, 4).swapped(0, 1).swapped(4, 6)
    new_board, affected = auto_complete(board, set(), PuzzleMode.PATTERN, 2)
    assert affected == [0, 1, 4, 6]
    assert board_complete(new_board, 4, PuzzleMode.PATTERN)


def test_auto_complete_with_nothing_misplaced_still_consumes():
    engine = make_engine()
    install_round(engine, classic_board(solved_numbers()))
    token = _grant(engine, PowerUpKind.AUTO_COMPLETE)
    assert engine.apply_power_up(token.id)
    assert engine.round_state().active_power_ups == []


def test_row_hint_points_at_first_open_row():
    numbers = solved_numbers()
    numbers[4], numbers[5] = numbers[5], numbers[4]
    engine = make_engine()
    install_round(engine, classic_board(numbers), completed_rows={0}, locked_indices={0, 1, 2, 3})
    recorder = EventRecorder(engine.event_bus, EVENT_ROW_HINT)
    board_before = engine.board()
    token = _grant(engine, PowerUpKind.ROW_HINT)

    engine.event_bus.emit(EVENT_POWER_UP_APPLY_REQUEST, power_up_id=token.id)

    assert engine.round_state().hint_row == 1
    assert recorder.payloads(EVENT_ROW_HINT) == [{"row": 1}]
    assert engine.board() is board_before

    engine.tile_press(4)
    engine.tile_press(5)
    assert engine.round_state().hint_row is None


def test_row_completion_awards_a_power_up():
    numbers = solved_numbers()
    numbers[0], numbers[1] = numbers[1], numbers[0]
    numbers[4], numbers[5] = numbers[5], numbers[4]
    engine = make_engine()
    install_round(engine, classic_board(numbers), completed_rows={2, 3}, locked_indices=set(range(8, 16)))
    recorder = EventRecorder(engine.event_bus, EVENT_POWER_UP_AWARDED)

    engine.tile_press(0)
    engine.tile_press(1)

    awards = recorder.payloads(EVENT_POWER_UP_AWARDED)
    assert [a["reason"] for a in awards] == ["row_completed"]
    assert engine.round_state().active_power_ups == [awards[0]["power_up"]]


def test_row_completion_awards_can_be_disabled_for_fixed_puzzles():
    numbers = solved_numbers()
    numbers[0], numbers[1] = numbers[1], numbers[0]
    numbers[4], numbers[5] = numbers[5], numbers[4]
    engine = make_engine(award_in_fixed_puzzles=False)
    install_round(engine, classic_board(numbers), max_moves=5, completed_rows={2, 3}, locked_indices=set(range(8, 16)))

    engine.tile_press(0)
    engine.tile_press(1)
    assert engine.round_state().active_power_ups == []


def test_lucky_move_award_every_interval():
    engine = make_engine(award_on_moves=True, move_award_chance=1.0, move_award_interval=2)
    install_round(engine, classic_board(REVERSED))
    recorder = EventRecorder(engine.event_bus, EVENT_POWER_UP_AWARDED)

    engine.tile_press(0)
    engine.tile_press(1)
    assert recorder.payloads(EVENT_POWER_UP_AWARDED) == []
    engine.tile_press(0)
    engine.tile_press(1)
    assert [a["reason"] for a in recorder.payloads(EVENT_POWER_UP_AWARDED)] == ["lucky_move"]


def test_no_lucky_awards_in_fixed_puzzles():
    engine = make_engine(award_on_moves=True, move_award_chance=1.0, move_award_interval=1)
    install_round(engine, classic_board(REVERSED), max_moves=10)
    recorder = EventRecorder(engine.event_bus, EVENT_POWER_UP_AWARDED)
    engine.tile_press(0)
    engine.tile_press(1)
    assert recorder.payloads(EVENT_POWER_UP_AWARDED) == []
