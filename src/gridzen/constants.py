# ============================================================================
# GRID
# ============================================================================
GRID_SIZES = (4, 5, 6)
DEFAULT_GRID_SIZE = 4
# Classic shuffles are redrawn while they come out already solved.
SHUFFLE_MAX_ATTEMPTS = 10


# ============================================================================
# TIMER
# ============================================================================
# Seconds on the clock for free-play rounds, by grid size.
TIME_LIMITS = {4: 60, 5: 90, 6: 120}
DEFAULT_TIME_LIMIT = 60
TICK_SECONDS = 1.0
MAX_TIME_REMAINING = 300


# ============================================================================
# POWER-UPS
# ============================================================================
FREEZE_TIME_BONUS = 15
AUTO_COMPLETE_TILES = 2
# Free-play moves may also award a power-up: every Nth counted move rolls the chance.
RANDOM_AWARD_INTERVAL = 8
RANDOM_AWARD_CHANCE = 0.15


# ============================================================================
# PROGRESS & STORAGE
# ============================================================================
LEADERBOARD_LIMIT = 5
STORAGE_KEY_HIGHSCORES = "gridzen_highscores"
STORAGE_KEY_PROFILE = "gridzen_profile"
STORAGE_KEY_PUZZLE_PROGRESS = "gridzen_puzzle_progress"
DEFAULT_PLAYER_LABEL = "Player"


# ============================================================================
# LAYOUT
# ============================================================================
WINDOW_WIDTH = 800
WINDOW_HEIGHT = 600
BOTTOM_MARGIN = 40
# Board footprint relative to window; the layout keeps the board inside both caps.
BOARD_MAX_WIDTH_PCT = 0.80
BOARD_MAX_HEIGHT_PCT = 0.80
TILE_GAP = 6
MIN_TILE_SIZE = 24
