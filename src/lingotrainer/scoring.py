"""
Adaptive word scoring

Re-estimates how hard a word is for the learner after every answer.

- Internal score: 0.5 - 5.5, continuous
- Display level: 1 - 5, the internal score rounded half up
- Correct answers move the score down (easier), incorrect ones move it up

Every intermediate term ends up in the returned ScoreBreakdown so the UI can
show the learner why the score moved.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

from .config import DEFAULT_SCORING, ScoringConfig
from .errors import InvalidInput, InvalidState
from .models import (
    Answer,
    DifficultyCategory,
    ScoreBreakdown,
    StudyResponse,
    WordProgress,
)

logger = logging.getLogger("lingotrainer.scoring")

DIFFICULTY_LABELS = {
    1: "Very Easy",
    2: "Easy",
    3: "Medium",
    4: "Hard",
    5: "Very Hard",
}

SPEED_LABELS = [
    (0.5, "Lightning"),
    (0.7, "Very Fast"),
    (0.9, "Fast"),
    (1.1, "Normal"),
    (1.5, "Slow"),
]


# --- Display level mapping ---
def score_to_display_level(score: float) -> int:
    """Convert an internal score (0.5-5.5) to a display level (1-5)."""
    level = math.floor(score + 0.5)
    return max(1, min(5, level))


def display_level_to_score(level: int, config: ScoringConfig = DEFAULT_SCORING) -> float:
    """Convert a display level (1-5) to the internal score it rounds from."""
    return max(config.MIN_SCORE, min(config.MAX_SCORE, float(level)))


def difficulty_label(level: int) -> str:
    return DIFFICULTY_LABELS.get(level, "Unknown")


def speed_label(time_ratio: float) -> str:
    for upper, label in SPEED_LABELS:
        if time_ratio < upper:
            return label
    return "Very Slow"


def classify(score: float, config: ScoringConfig = DEFAULT_SCORING) -> DifficultyCategory:
    if score <= config.EASY_THRESHOLD:
        return DifficultyCategory.EASY
    if score > config.HARD_THRESHOLD:
        return DifficultyCategory.HARD
    return DifficultyCategory.MEDIUM


# --- Response time helpers ---
def is_likely_away(
    response_time_ms: float,
    average_response_time_ms: float,
    recent_response_times: Sequence[float],
    config: ScoringConfig = DEFAULT_SCORING,
) -> bool:
    """Guess whether a long answer means the learner left the page.

    A response is "away" when it exceeds the absolute threshold, or when it
    is both much longer than the word's average and at least twice as long as
    anything seen recently.
    """
    if response_time_ms > config.AWAY_THRESHOLD_MS:
        return True
    much_longer = response_time_ms > average_response_time_ms * config.AWAY_AVERAGE_MULTIPLE
    is_outlier = bool(recent_response_times) and response_time_ms > (
        max(recent_response_times) * config.AWAY_OUTLIER_MULTIPLE
    )
    return much_longer and is_outlier


def smart_average_response_time(
    response_times: Sequence[float],
    current_response_time: float,
    previous_average: Optional[float] = None,
    config: ScoringConfig = DEFAULT_SCORING,
) -> float:
    """Running average of a word's response times that ignores away time.

    Without a previous average this is the median of the plausible times.
    With one, it is an exponential moving average whose alpha shrinks as the
    new time drifts further from the average.
    """
    if not response_times:
        return current_response_time

    if previous_average:
        difference = abs(current_response_time - previous_average) / previous_average
        if difference > 2:
            alpha = 0.1
        elif difference > 1:
            alpha = 0.2
        else:
            alpha = 0.4
        return previous_average * (1 - alpha) + current_response_time * alpha

    limit = config.DEFAULT_RESPONSE_TIME_MS * config.OUTLIER_AVERAGE_MULTIPLE
    valid = [t for t in response_times if t <= config.AWAY_THRESHOLD_MS and t <= limit]
    if not valid:
        valid = [current_response_time]

    ordered = sorted(valid)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def count_recent_failures(
    history: Sequence[StudyResponse], config: ScoringConfig = DEFAULT_SCORING
) -> int:
    window = history[-config.RECENT_WINDOW:] if config.RECENT_WINDOW > 0 else []
    return sum(1 for r in window if not r.is_known)


def calculate_word_priority(
    score: float,
    recent_responses: Sequence[StudyResponse],
    hours_since_studied: Optional[float] = None,
    config: ScoringConfig = DEFAULT_SCORING,
) -> float:
    """How urgently a word should be studied; higher comes first.

    The score is raised by every failure in ``recent_responses``. Words
    studied within the last PRIORITY_DECAY_HOURS keep only part of their
    priority, down to half for a word studied just now.
    """
    failures = sum(1 for r in recent_responses if not r.is_known)
    priority = score + failures * config.PRIORITY_FAILURE_WEIGHT
    if hours_since_studied is not None and config.PRIORITY_DECAY_HOURS > 0:
        decay = min(max(hours_since_studied, 0.0) / config.PRIORITY_DECAY_HOURS, 1.0)
        priority *= 0.5 + 0.5 * decay
    return priority


# --- Individual terms ---
def _base_terms(category: DifficultyCategory, is_known: bool, config: ScoringConfig) -> Tuple[float, float]:
    """Return (base magnitude, learning rate) for a category."""
    if category is DifficultyCategory.EASY:
        base = config.EASY_CORRECT_DECREMENT if is_known else config.EASY_INCORRECT_INCREMENT
        return base, config.LEARNING_RATE_EASY
    if category is DifficultyCategory.HARD:
        base = config.HARD_CORRECT_DECREMENT if is_known else config.HARD_INCORRECT_INCREMENT
        return base, config.LEARNING_RATE_HARD
    base = config.MEDIUM_CORRECT_DECREMENT if is_known else config.MEDIUM_INCORRECT_INCREMENT
    return base, config.LEARNING_RATE_MEDIUM


def streak_multiplier(session_streak: int, config: ScoringConfig = DEFAULT_SCORING) -> float:
    if session_streak <= 0:
        return 1.0
    # Cap the exponent first so long streaks cannot overflow
    exponent = min(session_streak, 1000)
    return min(config.STREAK_BASE ** exponent, config.STREAK_MAX_MULTIPLIER)


def word_streak_bonus(consecutive_correct: int, config: ScoringConfig = DEFAULT_SCORING) -> float:
    if consecutive_correct <= 0:
        return 0.0
    return min(consecutive_correct * config.WORD_STREAK_STEP, config.WORD_STREAK_MAX_BONUS)


def recency_factor(hours_since_studied: float, config: ScoringConfig = DEFAULT_SCORING) -> float:
    if hours_since_studied <= 0 or config.RECENCY_FULL_HOURS <= 0:
        return 1.0
    decay = min(hours_since_studied / config.RECENCY_FULL_HOURS, 1.0)
    return 1.0 + config.RECENCY_WEIGHT * decay


def timing_terms(
    is_known: bool,
    time_ratio: float,
    away: bool,
    config: ScoringConfig = DEFAULT_SCORING,
) -> Tuple[float, float, float, float]:
    """Return (bonus, raw penalty, applied penalty, timing factor)."""
    bonus = 0.0
    if is_known and time_ratio < config.FAST_RATIO:
        bonus = min((config.FAST_RATIO - time_ratio) * config.TIMING_BONUS_SLOPE, config.TIMING_MAX_BONUS)

    raw_penalty = 0.0
    if time_ratio > config.SLOW_RATIO:
        raw_penalty = min((time_ratio - config.SLOW_RATIO) * config.TIMING_PENALTY_SLOPE, config.TIMING_MAX_PENALTY)

    penalty = raw_penalty * config.AWAY_DAMPENING if away else raw_penalty

    if is_known:
        factor = 1.0 + bonus - penalty
    else:
        factor = 1.0 + penalty
    factor = max(config.TIMING_FACTOR_MIN, min(config.TIMING_FACTOR_MAX, factor))
    return bonus, raw_penalty, penalty, factor


# --- Main entry point ---
def compute_score(
    progress: WordProgress,
    answer: Answer,
    session_streak: int = 0,
    config: ScoringConfig = DEFAULT_SCORING,
    word_text: str = "",
) -> Tuple[float, ScoreBreakdown]:
    """
    Compute a word's new internal score after an answer.

    Args:
        progress: The word's progress before this answer (not modified)
        answer: Correctness, response time and hours since last studied
        session_streak: Correct answers in a row this session, before this one
        config: Tuning constants
        word_text: Shown in the breakdown only

    Returns:
        (new_score, ScoreBreakdown)

    Raises:
        InvalidState: progress score outside the legal range
        InvalidInput: negative or non-finite response time
    """
    previous = progress.internal_score
    if not math.isfinite(previous) or not (config.MIN_SCORE <= previous <= config.MAX_SCORE):
        raise InvalidState(
            f"Score {previous} of word {progress.word_id} is outside "
            f"[{config.MIN_SCORE}, {config.MAX_SCORE}]"
        )
    response_time = answer.response_time_ms
    if not math.isfinite(response_time) or response_time < 0:
        raise InvalidInput(f"Response time must be a non-negative number, got {response_time}")

    is_known = answer.is_known
    category = classify(previous, config)
    base, learning_rate = _base_terms(category, is_known, config)

    hours = answer.hours_since_last_studied or 0.0
    if not math.isfinite(hours) or hours < 0:
        hours = 0.0
    time_factor = recency_factor(hours, config)

    # Timing against the word's own history
    average = progress.average_response_time_ms or config.DEFAULT_RESPONSE_TIME_MS
    time_ratio = response_time / average
    recent_times: List[float] = [
        r.response_time_ms for r in progress.response_history[-config.RECENT_WINDOW:] if r.response_time_ms > 0
    ]
    away = is_likely_away(response_time, average, recent_times, config)
    timing_bonus, raw_penalty, timing_penalty, timing_factor = timing_terms(is_known, time_ratio, away, config)

    streak = max(session_streak, 0)
    word_streak = progress.consecutive_correct_for_word

    if is_known:
        multiplier = streak_multiplier(streak, config)
        word_bonus = word_streak_bonus(word_streak, config)
        mastery = config.MASTERY_BONUS if previous <= config.MASTERY_THRESHOLD else 0.0
        failures = 0
        failure_penalty = 0.0
        magnitude = (
            base * learning_rate * time_factor * multiplier * (1.0 + word_bonus) * timing_factor
            + mastery
        )
        total_adjustment = -magnitude
    else:
        multiplier = 1.0
        word_bonus = 0.0
        mastery = 0.0
        failures = count_recent_failures(progress.response_history, config)
        failure_penalty = min(failures * config.FAILURE_STEP, config.FAILURE_MAX_PENALTY)
        magnitude = base * learning_rate * time_factor * timing_factor + failure_penalty
        total_adjustment = magnitude

    new_score = round(previous + total_adjustment, config.SCORE_DECIMALS)
    new_score = max(config.MIN_SCORE, min(config.MAX_SCORE, new_score))

    breakdown = ScoreBreakdown(
        word_id=progress.word_id,
        word=word_text,
        is_known=is_known,
        previous_score=previous,
        new_score=new_score,
        score_change=new_score - previous,
        previous_level=score_to_display_level(previous),
        new_level=score_to_display_level(new_score),
        category=category,
        learning_rate=learning_rate,
        base_adjustment=base,
        session_streak=streak,
        streak_multiplier=multiplier,
        consecutive_correct_for_word=word_streak,
        word_streak_bonus=word_bonus,
        mastery_bonus=mastery,
        hours_since_studied=hours,
        time_factor=time_factor,
        recent_failures=failures,
        recent_failure_penalty=failure_penalty,
        response_time_ms=response_time,
        average_response_time_ms=average,
        time_ratio=time_ratio,
        timing_bonus=timing_bonus,
        raw_timing_penalty=raw_penalty,
        timing_penalty=timing_penalty,
        timing_factor=timing_factor,
        is_likely_away=away,
        total_adjustment=total_adjustment,
    )

    logger.debug(
        f"Word {progress.word_id} [{category.value}] known={is_known}: "
        f"{previous:.2f} -> {new_score:.2f} (adj={total_adjustment:+.3f}, "
        f"timing={timing_factor:.2f}, ratio={time_ratio:.2f}, away={away})"
    )
    return new_score, breakdown
