"""Arcade host for the engine: forwards frames and clicks, draws a plain grid."""
from __future__ import annotations

import logging
from typing import Any, Dict

import arcade

from gridzen.components.game_state import GameMode
from gridzen.components.round_state import RoundStatus
from gridzen.components.tile import ColorPayload, NumberPayload, PatternPayload, PuzzleMode, Tile
from gridzen.constants import DEFAULT_GRID_SIZE, GRID_SIZES, WINDOW_HEIGHT, WINDOW_WIDTH
from gridzen.engine import Engine
from gridzen.events.bus import EVENT_MOUSE_PRESS
from gridzen.factories.catalog import colors
from gridzen.factories.power_ups import default_power_up_registry
from gridzen.systems.feedback_system import FEEDBACK_LOSS, FEEDBACK_ROW_COMPLETE, FEEDBACK_SWAP, FEEDBACK_WIN
from gridzen.systems.round_system import bucket_key_for_round
from gridzen.ui.layout import compute_board_geometry, index_at_point, tile_rect

logger = logging.getLogger(__name__)

_MODE_KEYS = {
    arcade.key.C: PuzzleMode.CLASSIC,
    arcade.key.K: PuzzleMode.COLOR,
    arcade.key.P: PuzzleMode.PATTERN,
}
_SIZE_KEYS = {arcade.key.KEY_4: 4, arcade.key.KEY_5: 5, arcade.key.KEY_6: 6}
_POWER_UP_KEYS = (
    arcade.key.KEY_1,
    arcade.key.KEY_2,
    arcade.key.KEY_3,
    arcade.key.KEY_4,
    arcade.key.KEY_5,
    arcade.key.KEY_6,
    arcade.key.KEY_7,
    arcade.key.KEY_8,
    arcade.key.KEY_9,
)

_SOUNDS = {
    FEEDBACK_SWAP: ":resources:sounds/rockHit2.wav",
    FEEDBACK_ROW_COMPLETE: ":resources:sounds/coin1.wav",
    FEEDBACK_WIN: ":resources:sounds/upgrade1.wav",
    FEEDBACK_LOSS: ":resources:sounds/gameover1.wav",
}


class ArcadeSoundSink:
    """Plays arcade's bundled sounds for feedback events."""

    def __init__(self) -> None:
        self._sounds: Dict[str, Any] = {}
        for event, path in _SOUNDS.items():
            try:
                self._sounds[event] = arcade.load_sound(path)
            except Exception:
                logger.warning("Sound '%s' unavailable; '%s' stays silent", path, event, exc_info=True)

    def notify(self, event: str, **details: Any) -> None:
        sound = self._sounds.get(event)
        if sound is not None:
            arcade.play_sound(sound)


class GridZenWindow(arcade.Window):
    def __init__(self, engine: Engine | None = None):
        super().__init__(WINDOW_WIDTH, WINDOW_HEIGHT, "GridZen", resizable=True)
        self.set_update_rate(1 / 60)
        self.engine = engine or Engine(feedback_sink=ArcadeSoundSink())
        profile = self.engine.profile
        self.menu_mode = PuzzleMode(profile.last_mode) if profile.last_mode in {m.value for m in PuzzleMode} else PuzzleMode.CLASSIC
        self.menu_size = profile.last_size if profile.last_size in GRID_SIZES else DEFAULT_GRID_SIZE
        self.engine.subscribe(EVENT_MOUSE_PRESS, self._on_board_click)
        self._apply_theme()

    def _apply_theme(self) -> None:
        background = (18, 18, 24) if self.engine.profile.dark_mode else (236, 236, 242)
        arcade.set_background_color(background)

    @property
    def _text_color(self):
        return (235, 235, 245) if self.engine.profile.dark_mode else (30, 30, 40)

    # Arcade callbacks ---------------------------------------------------

    def on_update(self, delta_time: float):
        if self.engine.game_mode == GameMode.ROUND:
            self.engine.tick(delta_time)

    def on_mouse_press(self, x: float, y: float, button: int, modifiers: int):
        self.engine.event_bus.emit(EVENT_MOUSE_PRESS, x=x, y=y, button=button)

    def _on_board_click(self, sender, **payload) -> None:
        if self.engine.game_mode != GameMode.ROUND:
            return
        board = self.engine.board()
        if board is None:
            return
        geometry = compute_board_geometry(self.width, self.height, board.size)
        index = index_at_point(payload.get("x", -1), payload.get("y", -1), geometry)
        if index is not None:
            self.engine.tile_press(index)

    def on_key_press(self, symbol: int, modifiers: int):
        mode = self.engine.game_mode
        if mode == GameMode.ROUND:
            self._round_key(symbol)
        elif mode == GameMode.RESULT:
            self.engine.return_to_menu()
        else:
            self._menu_key(symbol, modifiers)

    def _menu_key(self, symbol: int, modifiers: int) -> None:
        if symbol in _SIZE_KEYS:
            self.menu_size = _SIZE_KEYS[symbol]
        elif symbol in _MODE_KEYS:
            self.menu_mode = _MODE_KEYS[symbol]
            self.engine.start_round(self.menu_mode, self.menu_size)
        elif symbol == arcade.key.ENTER:
            ref = self.engine.progress.next_playable_puzzle()
            if ref is not None:
                self.engine.start_round(puzzle_ref=ref)
        elif symbol == arcade.key.D:
            self.engine.progress.update_settings(dark_mode=not self.engine.profile.dark_mode)
            self._apply_theme()
        elif symbol == arcade.key.S:
            self.engine.progress.update_settings(sound_enabled=not self.engine.profile.sound_enabled)
        elif symbol == arcade.key.R and modifiers & arcade.key.MOD_SHIFT:
            self.engine.progress.reset_highscores()

    def _round_key(self, symbol: int) -> None:
        state = self.engine.round_state()
        if state is None:
            return
        if symbol == arcade.key.ESCAPE:
            self.engine.return_to_menu()
        elif symbol == arcade.key.SPACE:
            if state.status == RoundStatus.PAUSED:
                self.engine.resume()
            else:
                self.engine.pause()
        elif symbol in _POWER_UP_KEYS:
            slot = _POWER_UP_KEYS.index(symbol)
            if slot < len(state.active_power_ups):
                self.engine.apply_power_up(state.active_power_ups[slot].id)

    # Drawing ------------------------------------------------------------

    def on_draw(self):
        self.clear()
        mode = self.engine.game_mode
        if mode == GameMode.ROUND:
            self._draw_round()
        elif mode == GameMode.RESULT:
            self._draw_round()
            self._draw_result()
        else:
            self._draw_menu()

    def _draw_menu(self) -> None:
        lines = [
            "GridZen",
            f"Grid {self.menu_size}x{self.menu_size}   (4 / 5 / 6 to change)",
            "C classic   K color   P pattern   ENTER next puzzle",
            f"D dark mode   S sound {'on' if self.engine.profile.sound_enabled else 'off'}   Shift+R reset scores",
        ]
        y = self.height * 0.7
        for i, line in enumerate(lines):
            arcade.draw_text(
                line,
                self.width / 2,
                y - i * 40,
                self._text_color,
                28 if i == 0 else 16,
                anchor_x="center",
                anchor_y="center",
                bold=i == 0,
            )

    def _draw_round(self) -> None:
        state = self.engine.round_state()
        board = self.engine.board()
        if state is None or board is None:
            return
        geometry = compute_board_geometry(self.width, self.height, board.size)
        palette = colors(board.size * board.size)
        for index, tile in enumerate(board.tiles):
            left, right, bottom, top = tile_rect(index, geometry)
            fill = self._tile_fill(tile, palette)
            arcade.draw_lrbt_rectangle_filled(left, right, bottom, top, fill)
            if tile.locked:
                arcade.draw_lrbt_rectangle_outline(left, right, bottom, top, (255, 255, 255), 3)
            elif index == state.selected_index:
                arcade.draw_lrbt_rectangle_outline(left, right, bottom, top, (255, 215, 0), 4)
            elif state.hint_row is not None and index // board.size == state.hint_row:
                arcade.draw_lrbt_rectangle_outline(left, right, bottom, top, (0, 200, 255), 2)
            label = self._tile_label(tile)
            if label:
                arcade.draw_text(
                    label,
                    (left + right) / 2,
                    (bottom + top) / 2,
                    (255, 255, 255),
                    max(10, int(geometry.tile_size * 0.3)),
                    anchor_x="center",
                    anchor_y="center",
                    bold=True,
                )
        self._draw_status(state, geometry.start_y + geometry.extent)

    def _draw_status(self, state, board_top: float) -> None:
        moves = f"Moves {state.move_count}" + (f"/{state.max_moves}" if state.max_moves is not None else "")
        status = f"Time {state.time_remaining}s   {moves}   Streak {state.streak}"
        if state.status == RoundStatus.PAUSED:
            status += "   PAUSED"
        arcade.draw_text(status, 16, self.height - 28, self._text_color, 14)
        tokens = []
        for slot, power_up in enumerate(state.active_power_ups, start=1):
            definition = default_power_up_registry.get(power_up.kind)
            tokens.append(f"{slot}:{definition.icon} {definition.display_name}")
        if tokens:
            arcade.draw_text("   ".join(tokens), 16, self.height - 52, self._text_color, 12)
        if state.pending_override is not None:
            armed = default_power_up_registry.get(state.pending_override).display_name
            arcade.draw_text(f"{armed} armed", 16, min(board_top + 8, self.height - 76), self._text_color, 12)

    def _draw_result(self) -> None:
        message = self.engine.last_message or ""
        state = self.engine.round_state()
        lines = message.split("\n")
        if state is not None:
            best = self.engine.highscores(bucket_key_for_round(state))
            lines.extend(f"{rank}. {record.player_label}  {record.moves} moves" for rank, record in enumerate(best, start=1))
        lines.append("Press any key")
        arcade.draw_lrbt_rectangle_filled(
            self.width * 0.2, self.width * 0.8, self.height * 0.2, self.height * 0.8, (40, 46, 70, 230)
        )
        for i, line in enumerate(lines):
            arcade.draw_text(
                line,
                self.width / 2,
                self.height * 0.72 - i * 28,
                (240, 240, 255),
                18 if i == 0 else 14,
                anchor_x="center",
                anchor_y="center",
            )

    @staticmethod
    def _tile_fill(tile: Tile, palette):
        payload = tile.payload
        if isinstance(payload, NumberPayload):
            return palette[(payload.number - 1) % len(palette)]
        if isinstance(payload, ColorPayload):
            return payload.color
        if isinstance(payload, PatternPayload):
            return payload.pattern.color
        return (128, 128, 128)

    @staticmethod
    def _tile_label(tile: Tile) -> str:
        payload = tile.payload
        if isinstance(payload, NumberPayload):
            return str(payload.number)
        if isinstance(payload, PatternPayload):
            return payload.pattern.symbol
        return ""
