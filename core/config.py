"""Configuration constants for kanatype."""

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

# Mastery scoring
MIN_ATTEMPTS_FOR_SCORE = 3      # Fewer attempts than this always score 0
RECENT_TIMES_WINDOW = 10        # Response times kept per unit
SPEED_FLOOR_MS = 100
CONSISTENCY_STDDEV_CEILING_MS = 500
MASTERY_WEIGHT_ACCURACY = 0.30
MASTERY_WEIGHT_SPEED = 0.25
MASTERY_WEIGHT_CONSISTENCY = 0.20
MASTERY_WEIGHT_HINT_FREEDOM = 0.25
RECENCY_DECAY_PER_DAY = 0.03
RECENCY_DECAY_FLOOR = 0.5
NEVER_SEEN_DAYS = 30

# Mastery levels
LEVEL_NEW = 'new'
LEVEL_LEARNING = 'learning'
LEVEL_REVIEWING = 'reviewing'
LEVEL_MASTERED = 'mastered'
LEARNING_THRESHOLD = 0.4        # Scores below this are "learning"
MASTERED_THRESHOLD = 0.75       # Scores at or above this are "mastered"

# Review intervals (ms) by level and performance
REVIEW_INTERVALS = {
    LEVEL_NEW: {'good': 5 * MINUTE_MS, 'ok': 2 * MINUTE_MS, 'bad': 1 * MINUTE_MS},
    LEVEL_LEARNING: {'good': 30 * MINUTE_MS, 'ok': 10 * MINUTE_MS, 'bad': 5 * MINUTE_MS},
    LEVEL_REVIEWING: {'good': 1 * DAY_MS, 'ok': 4 * HOUR_MS, 'bad': 1 * HOUR_MS},
    LEVEL_MASTERED: {'good': 3 * DAY_MS, 'ok': 1 * DAY_MS, 'bad': 4 * HOUR_MS},
}

# Intrinsic unit difficulty tiers (katakana value in the second slot)
TIER_VOWEL = (0.8, 1.1)
TIER_BASIC = (1.0, 1.2)
TIER_VOICED = (1.1, 1.3)
TIER_SMALL = (1.3, 1.5)
UNKNOWN_UNIT_DIFFICULTY = 2.5

# Sentence difficulty
KANJI_SEGMENT_PENALTY = 0.8
MASTERY_MULTIPLIER_BASE = 1.5
UNKNOWN_RATIO_THRESHOLD = 0.5
UNKNOWN_PENALTY_SCALE = 2
LENGTH_FREE_SEGMENTS = 4
LENGTH_FACTOR_PER_SEGMENT = 0.1
BASE_DIFFICULTY_WEIGHT = 0.4
CHAR_DIFFICULTY_WEIGHT = 0.6

# Selection
DIFFICULTY_CAPS = [        # (profile difficulty below, max static difficulty)
    (1.2, 1.2),
    (1.5, 1.5),
    (2.0, 2.0),
    (3.0, 2.5),
]
DIFFICULTY_CAP_MAX = 3.5
KANJI_READY_UNITS = 30
RECENT_EXCLUDE_COUNT = 15
RECENT_RELAXED_COUNT = 3
MIN_POOL_SIZE = 3
TOP_CANDIDATES = 5
SUBSET_PICK_COUNT = 3
FIT_WEIGHT_DIFFICULTY = 0.5
FIT_WEIGHT_REVIEW = 0.3
FIT_WEIGHT_NEW_CHARS = 0.2
REVIEW_BONUS_PER_UNIT = 0.1
REVIEW_BONUS_CAP = 0.3
NEW_CHAR_BONUS = 0.2
NEW_CHAR_PENALTY = -0.3
NEW_CHAR_IDEAL = (1, 3)
NEW_CHAR_TOO_MANY = 5

BEGINNER_BELOW = 1.5
BEGINNER_WEIGHTS = [0.40, 0.65, 0.85, 0.95, 1.00]   # cumulative
INTERMEDIATE_BELOW = 2.5
INTERMEDIATE_PROBE = 0.10
INTERMEDIATE_COMFORT = 0.20
INTERMEDIATE_COMFORT_RATIO = 0.9
ADVANCED_PROBE = 0.15
ADVANCED_COMFORT = 0.20
ADVANCED_PROBE_RATIO = 1.2
ADVANCED_COMFORT_RATIO = 0.8

# Difficulty adjustment
MIN_DIFFICULTY = 0.8
MAX_DIFFICULTY = 5.0
DEFAULT_DIFFICULTY = 1.0
CRUSHING_ACCURACY = 0.95
CRUSHING_SPEED_RATIO = 0.9
CRUSHING_STREAK = 5
CRUSHING_FACTOR = 1.08
STRUGGLING_ACCURACY = 0.7
STRUGGLING_STREAK = 2
STRUGGLING_FACTOR = 0.90
STEADY_ACCURACY = 0.9
STEADY_FACTOR = 1.01

# Speed baseline
DEFAULT_SPEED_BASELINE_MS = 1000
MIN_SPEED_BASELINE_MS = 200
MAX_SPEED_BASELINE_MS = 3000
BASELINE_KEEP = 0.8
BASELINE_RECENT = 0.2
