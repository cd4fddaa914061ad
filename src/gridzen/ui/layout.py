from typing import NamedTuple

from gridzen.constants import BOARD_MAX_HEIGHT_PCT, BOARD_MAX_WIDTH_PCT, BOTTOM_MARGIN, MIN_TILE_SIZE, TILE_GAP


class BoardGeometry(NamedTuple):
    tile_size: int
    start_x: float
    start_y: float
    size: int

    @property
    def extent(self) -> int:
        return self.tile_size * self.size


def compute_board_geometry(window_width: int, window_height: int, size: int) -> BoardGeometry:
    """Square board centred horizontally, sitting on the bottom margin.

    Rendering and hit-testing both go through this so clicks line up with
    what is drawn after a resize.
    """
    max_board_w = window_width * BOARD_MAX_WIDTH_PCT
    max_board_h = (window_height - BOTTOM_MARGIN) * BOARD_MAX_HEIGHT_PCT
    tile_size = int(min(max_board_w, max_board_h) / size)
    if tile_size < MIN_TILE_SIZE:
        tile_size = MIN_TILE_SIZE
    start_x = (window_width - size * tile_size) / 2
    start_y = BOTTOM_MARGIN
    return BoardGeometry(tile_size, start_x, start_y, size)


def index_at_point(x: float, y: float, geometry: BoardGeometry) -> int | None:
    """Map a window point to a row-major board index; row 0 is drawn on top."""
    if x < geometry.start_x or x >= geometry.start_x + geometry.extent:
        return None
    if y < geometry.start_y or y >= geometry.start_y + geometry.extent:
        return None
    col = int((x - geometry.start_x) // geometry.tile_size)
    row_from_bottom = int((y - geometry.start_y) // geometry.tile_size)
    row = geometry.size - 1 - row_from_bottom
    if not (0 <= row < geometry.size and 0 <= col < geometry.size):
        return None
    return row * geometry.size + col


def tile_rect(index: int, geometry: BoardGeometry) -> tuple[float, float, float, float]:
    """(left, right, bottom, top) of the drawn tile, inset by the gap."""
    row, col = divmod(index, geometry.size)
    left = geometry.start_x + col * geometry.tile_size
    bottom = geometry.start_y + (geometry.size - 1 - row) * geometry.tile_size
    inset = min(TILE_GAP / 2, geometry.tile_size / 4)
    return (
        left + inset,
        left + geometry.tile_size - inset,
        bottom + inset,
        bottom + geometry.tile_size - inset,
    )
