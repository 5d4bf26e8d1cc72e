"""
Rating system constants.

These follow the published national rating regulations:

K factor: Controls rating volatility (how much a rating moves per game)
  - New players (fewer than 30 games) use K=40 so they converge quickly
  - Below 2100 uses K=32
  - 2100-2399 uses K=24
  - 2400 and above uses K=16

Floor: No rating on any track may drop below 800. Unrated players start
there.

Established status: A track becomes "established" once 30 games have been
played on it. Before that it is "provisional".

Bulk upload bonus: Rating officer imports add +100 to every track that
already holds a real rating (801 or above). Tracks at the floor stay at
800 with no games counted.
"""

# Minimum rating on every track
FLOOR_RATING = 800

# Games needed before a track's status becomes established
ESTABLISHED_GAMES = 30

# Players with fewer games than this get the new-player K-factor.
# Two thresholds exist in older call sites (10 and 30); 30 matches the
# provisional/established boundary and is the default.
NEW_PLAYER_GAMES = 30
LEGACY_NEW_PLAYER_GAMES = 10

# Elo spread: a 400 point gap means 10:1 expected odds
RATING_SPREAD = 400

# K-factor bands, checked top to bottom after the new-player check.
# Format: (exclusive upper rating bound, K). None = no upper bound.
K_NEW_PLAYER = 40
K_BANDS: tuple[tuple[int | None, int], ...] = (
    (2100, 32),
    (2400, 24),
    (None, 16),
)

# Bulk upload (+100) rule
BULK_BONUS = 100
BULK_BONUS_MIN_RATING = 801

# Rating tracks, one per time-control format
CLASSICAL = "classical"
RAPID = "rapid"
BLITZ = "blitz"
TRACKS: tuple[str, ...] = (CLASSICAL, RAPID, BLITZ)
DEFAULT_TRACK = CLASSICAL

# Track status values
PROVISIONAL = "provisional"
ESTABLISHED = "established"
UNRATED = "unrated"

# History reasons written by the engine
INITIAL_RATING_REASON = "Initial rating"
BULK_ADJUSTMENT_REASON = "Bulk rating adjustment"
TOURNAMENT_REASON_TEMPLATE = "Tournament: {name}"

# Game result tokens (PGN style, always from white's point of view)
WHITE_WIN = "1-0"
BLACK_WIN = "0-1"
DRAW = "1/2-1/2"
UNPLAYED = "*"
RESULT_SCORES = {
    WHITE_WIN: 1.0,
    BLACK_WIN: 0.0,
    DRAW: 0.5,
}
