import os

from pydantic import BaseModel, ConfigDict


class Settings:
    PROJECT_NAME: str = "lingotrainer"
    DEBUG: bool = os.environ.get("LINGOTRAINER_DEBUG", "0") == "1"
    LOG_DIR: str = os.environ.get("LINGOTRAINER_LOG_DIR", "log")
    LOG_FILE: str = "lingotrainer.log"
    LOG_TO_DB: bool = os.environ.get("LINGOTRAINER_LOG_TO_DB", "0") == "1"
    DB_DIR: str = os.environ.get("LINGOTRAINER_DB_DIR", "db")
    DB_FILE: str = "lingotrainer.db"
    VOCAB_DIR: str = os.environ.get("LINGOTRAINER_VOCAB_DIR", "vocabulary")
    DECK_SIZE: int = int(os.environ.get("LINGOTRAINER_DECK_SIZE", "15"))
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")


settings = Settings()


class ScoringConfig(BaseModel):
    """Tuning constants of the adaptive scoring model.

    None of these are hard invariants except the score range; every value can
    be overridden per controller, e.g. ``ScoringConfig(STREAK_BASE=1.2)``.
    """

    model_config = ConfigDict(frozen=True)

    MIN_SCORE: float = 0.5
    MAX_SCORE: float = 5.5
    SCORE_DECIMALS: int = 2

    # Category boundaries: score <= EASY is easy, score > HARD is hard.
    EASY_THRESHOLD: float = 2.0
    HARD_THRESHOLD: float = 4.0

    EASY_CORRECT_DECREMENT: float = 0.8
    MEDIUM_CORRECT_DECREMENT: float = 0.6
    HARD_CORRECT_DECREMENT: float = 0.4

    EASY_INCORRECT_INCREMENT: float = 1.2
    MEDIUM_INCORRECT_INCREMENT: float = 0.8
    HARD_INCORRECT_INCREMENT: float = 0.4

    LEARNING_RATE_EASY: float = 1.2
    LEARNING_RATE_MEDIUM: float = 1.0
    LEARNING_RATE_HARD: float = 0.8

    # Session-wide streak: min(STREAK_BASE ** streak, STREAK_MAX_MULTIPLIER)
    STREAK_BASE: float = 1.1
    STREAK_MAX_MULTIPLIER: float = 1.6

    # Same-word streak, linear
    WORD_STREAK_STEP: float = 0.05
    WORD_STREAK_MAX_BONUS: float = 0.25

    MASTERY_THRESHOLD: float = 1.0
    MASTERY_BONUS: float = 0.2

    RECENCY_FULL_HOURS: float = 24.0
    RECENCY_WEIGHT: float = 0.3

    RECENT_WINDOW: int = 5
    FAILURE_STEP: float = 0.2
    FAILURE_MAX_PENALTY: float = 1.0

    DEFAULT_RESPONSE_TIME_MS: float = 5000.0
    FAST_RATIO: float = 1.0
    SLOW_RATIO: float = 1.5
    TIMING_BONUS_SLOPE: float = 0.8
    TIMING_MAX_BONUS: float = 0.4
    TIMING_PENALTY_SLOPE: float = 0.2
    TIMING_MAX_PENALTY: float = 0.4
    TIMING_FACTOR_MIN: float = 0.5
    TIMING_FACTOR_MAX: float = 1.5

    AWAY_THRESHOLD_MS: float = 30000.0
    AWAY_DAMPENING: float = 0.5
    AWAY_AVERAGE_MULTIPLE: float = 3.0
    AWAY_OUTLIER_MULTIPLE: float = 2.0
    OUTLIER_AVERAGE_MULTIPLE: float = 4.0

    # Deck ordering: harder and recently failed words come first
    PRIORITY_FAILURE_WEIGHT: float = 0.5
    PRIORITY_DECAY_HOURS: float = 24.0
    PRIORITY_JITTER: float = 0.3


DEFAULT_SCORING = ScoringConfig()
