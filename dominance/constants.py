# constants.py
# Centralized constants used by the dominance report. Do not change values without bumping schema_version.

SCHEMA_VERSION = "1.0.0"

# Requested window defaults
DEFAULT_START_WEEK = 1
DEFAULT_END_WEEK = 17
DEFAULT_PLAYOFF_START_WEEK = 15
MIN_INFERRED_PLAYOFF_START = 15
DEFAULT_PLAYOFF_TEAMS = 6

# Season chain walking
MAX_CHAIN_DEPTH = 15
NO_PREVIOUS_LEAGUE = {"", "0", "none", "null"}

# Badge thresholds
SMALL_SAMPLE_GAMES = 4
PERFECT_SWEEP_MIN = 3
RIVAL_MIN_GAMES = 5
RIVAL_MAX_ABS_SCORE = 0.20
MARGIN_OVERRIDE_SCORE = 1.0
STRONG_SIGNAL_GAMES = 10
STRONG_SIGNAL_SCORE = 0.35
MEDIUM_SIGNAL_GAMES = 6
MEDIUM_SIGNAL_SCORE = 0.40

# Insight credibility floors
MIN_GAMES_COUNTABLE = 3
MIN_GAMES_FOR_STORYLINE = 5
MIN_GAMES_FOR_PERSONAL = 5
MIN_WINS_FOR_UNTOUCHABLE = 3
SEVERE_OWNED_SCORE = 0.4
SEVERE_NEMESIS_SCORE = -0.4
MIN_LEAGUE_GAMES_FOR_PUNCHING_BAG = 20
MAX_CHOKE_JOBS = 5
MAX_DETAIL_GAMES = 8
CLOSE_LOSS_MARGIN = 5.0
BLOWOUT_WIN_MARGIN = 30.0
SHOOTOUT_COMBINED = 260.0
PLAYOFF_CHOKER_MAX_SEED = 4
PLAYOFF_CHOKER_MIN_LOSSES = 2
PAPER_CHAMPION_PF_RATIO = 0.95

# Formatting
SCORE_PLACES = 2
POINTS_PLACES = 2

# Throttling defaults
DEFAULT_MIN_INTERVAL_SEC = 0.10  # ~600 rpm
DEFAULT_TIMEOUT_SEC = 20.0
DEFAULT_MAX_WORKERS = 4

AVATAR_BASE_URL = "https://sleepercdn.com/avatars"
