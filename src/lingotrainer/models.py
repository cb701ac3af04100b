from datetime import datetime
from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, Field


# --- Enums ---
class DifficultyCategory(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETE = "complete"


# --- Vocabulary ---
class Word(BaseModel):
    id: int
    word: str
    translation: str
    difficulty: int = Field(3, ge=1, le=5)
    is_evaluated: bool = True
    topic: str = ""
    # Carried over from earlier sessions when the store has them
    internal_score: Optional[float] = None
    average_response_time_ms: Optional[float] = None
    consecutive_correct_for_word: int = Field(0, ge=0)


class Answer(BaseModel):
    is_known: bool
    response_time_ms: float
    hours_since_last_studied: Optional[float] = None


# --- Engine records ---
class StudyResponse(BaseModel):
    word_id: int
    is_known: bool
    response_time_ms: float
    previous_score: float
    new_score: float
    session_streak: int = 0
    consecutive_correct_for_word: int = 0
    timestamp: datetime

    @property
    def score_change(self) -> float:
        return self.new_score - self.previous_score


class WordProgress(BaseModel):
    word_id: int
    internal_score: float
    consecutive_correct_for_word: int = 0
    response_history: List[StudyResponse] = Field(default_factory=list)
    average_response_time_ms: Optional[float] = None
    last_studied_at: Optional[datetime] = None


class StudySession(BaseModel):
    id: str
    start_time: datetime
    deck: List[Word]
    current_index: int = 0
    responses: List[StudyResponse] = Field(default_factory=list)
    end_time: Optional[datetime] = None
    paused: bool = False
    answered_ids: Set[int] = Field(default_factory=set)
    skipped_ids: Set[int] = Field(default_factory=set)

    @property
    def is_exhausted(self) -> bool:
        return self.current_index >= len(self.deck)

    @property
    def is_active(self) -> bool:
        return not self.is_exhausted and self.end_time is None and not self.paused


class ScoreBreakdown(BaseModel):
    """Every term that went into one score change, for the learner to see."""

    word_id: int
    word: str = ""
    is_known: bool
    previous_score: float
    new_score: float
    score_change: float
    previous_level: int
    new_level: int
    category: DifficultyCategory
    learning_rate: float
    base_adjustment: float
    session_streak: int
    streak_multiplier: float
    consecutive_correct_for_word: int
    word_streak_bonus: float
    mastery_bonus: float
    hours_since_studied: float
    time_factor: float
    recent_failures: int
    recent_failure_penalty: float
    response_time_ms: float
    average_response_time_ms: float
    time_ratio: float
    timing_bonus: float
    raw_timing_penalty: float
    timing_penalty: float
    timing_factor: float
    is_likely_away: bool
    total_adjustment: float

    @property
    def is_easy(self) -> bool:
        return self.category is DifficultyCategory.EASY

    @property
    def is_medium(self) -> bool:
        return self.category is DifficultyCategory.MEDIUM

    @property
    def is_hard(self) -> bool:
        return self.category is DifficultyCategory.HARD


class SessionStats(BaseModel):
    total_words: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    accuracy: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0
    avg_score_change: float = 0.0


class SessionSummary(BaseModel):
    session_id: str
    start_time: datetime
    end_time: datetime
    duration_seconds: float
    deck_size: int
    answered: int
    skipped: int
    completed: bool
    stats: SessionStats
    responses: List[StudyResponse]
