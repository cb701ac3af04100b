"""
Study Session Controller

Walks the learner through a fixed deck of words, scores every answer and
keeps enough state for the UI to render progress, streaks and the score
breakdown of the last answer.

States: IDLE -> ACTIVE <-> PAUSED, ACTIVE -> COMPLETE. A session completes when
the deck is exhausted or end_session() is called.
"""

import logging
import random
import string
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from .clock import Clock, SystemClock
from .config import DEFAULT_SCORING, ScoringConfig
from .errors import (
    EmptyDeck,
    InvalidInput,
    InvalidNavigation,
    NoActiveSession,
    NothingToRollback,
    WordAlreadyAnswered,
)
from .models import (
    Answer,
    ScoreBreakdown,
    SessionState,
    SessionStats,
    SessionSummary,
    StudyResponse,
    StudySession,
    Word,
    WordProgress,
)
from .scoring import (
    compute_score,
    display_level_to_score,
    score_to_display_level,
    smart_average_response_time,
)
from .stats import calculate_session_stats, trailing_streak

logger = logging.getLogger("lingotrainer.session")

DifficultyCallback = Callable[[int, int], None]


def generate_session_id(clock: Clock) -> str:
    millis = int(clock.now().timestamp() * 1000)
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"study_{millis}_{suffix}"


@dataclass
class _UndoEntry:
    """What a single respond() changed, so it can be reverted."""

    word_id: int
    progress_before: WordProgress
    completed_session: bool
    was_skipped: bool = False


class SessionController:
    """Owns one study session at a time plus the progress of every word seen."""

    def __init__(
        self,
        on_difficulty_update: Optional[DifficultyCallback] = None,
        clock: Optional[Clock] = None,
        config: ScoringConfig = DEFAULT_SCORING,
    ):
        self.on_difficulty_update = on_difficulty_update
        self.clock = clock or SystemClock()
        self.config = config
        self.session: Optional[StudySession] = None
        self.progress: Dict[int, WordProgress] = {}
        self.last_breakdown: Optional[ScoreBreakdown] = None
        self._undo: Optional[_UndoEntry] = None

    # --- State queries ---
    @property
    def state(self) -> SessionState:
        if self.session is None:
            return SessionState.IDLE
        if self.session.is_active:
            return SessionState.ACTIVE
        if self.session.paused and not self.session.is_exhausted and self.session.end_time is None:
            return SessionState.PAUSED
        return SessionState.COMPLETE

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def has_next_word(self) -> bool:
        return self.is_active and self.session.current_index < len(self.session.deck) - 1

    @property
    def has_previous_word(self) -> bool:
        return self.is_active and self.session.current_index > 0

    @property
    def can_rollback(self) -> bool:
        return self._undo is not None

    def get_current_word(self) -> Optional[Word]:
        if self.state not in (SessionState.ACTIVE, SessionState.PAUSED):
            return None
        return self.session.deck[self.session.current_index]

    def get_stats(self) -> SessionStats:
        if self.session is None:
            return SessionStats()
        return calculate_session_stats(self.session.responses)

    def get_progress(self) -> float:
        if self.session is None or not self.session.deck:
            return 0.0
        return self.session.current_index / len(self.session.deck)

    def get_word_progress(self, word_id: int) -> Optional[WordProgress]:
        return self.progress.get(word_id)

    # --- Session control ---
    def start_session(self, deck: Sequence[Word]) -> StudySession:
        if not deck:
            raise EmptyDeck("No words available")

        if self.state in (SessionState.ACTIVE, SessionState.PAUSED):
            logger.warning(f"Abandoning session {self.session.id} at word {self.session.current_index}")

        words: List[Word] = list(deck)
        for word in words:
            if word.id not in self.progress:
                self.progress[word.id] = self._initial_progress(word)

        self.session = StudySession(
            id=generate_session_id(self.clock),
            start_time=self.clock.now(),
            deck=words,
        )
        self.last_breakdown = None
        self._undo = None
        logger.info(f"Study session started: {self.session.id} with {len(words)} words")
        return self.session

    def end_session(self) -> SessionSummary:
        if self.session is None:
            raise NoActiveSession("No session to end")

        session = self.session
        if session.end_time is None:
            session.end_time = self.clock.now()
            logger.info(
                f"Study session ended: {session.id} "
                f"({len(session.responses)}/{len(session.deck)} answered)"
            )
        self._undo = None
        return self._summary(session)

    def pause_session(self) -> None:
        session = self._require_active()
        session.paused = True
        logger.info(f"Study session paused: {session.id}")

    def resume_session(self) -> None:
        if self.state is not SessionState.PAUSED:
            raise NoActiveSession(f"Session is {self.state.value}, not paused")
        self.session.paused = False
        logger.info(f"Study session resumed: {self.session.id}")

    # --- Word interaction ---
    def respond(self, is_known: bool, response_time_ms: float) -> ScoreBreakdown:
        session = self._require_active()
        word = session.deck[session.current_index]
        if word.id in session.answered_ids:
            raise WordAlreadyAnswered(f"Word {word.id} was already answered in this session")

        progress = self.progress[word.id]
        now = self.clock.now()
        hours = None
        if progress.last_studied_at is not None:
            hours = max((now - progress.last_studied_at).total_seconds() / 3600, 0.0)

        try:
            answer = Answer(
                is_known=is_known,
                response_time_ms=response_time_ms,
                hours_since_last_studied=hours,
            )
        except ValidationError as e:
            raise InvalidInput(f"Malformed answer: {e.errors()[0]['msg']}") from e
        is_known = answer.is_known
        response_time_ms = answer.response_time_ms

        session_streak = trailing_streak(session.responses)
        new_score, breakdown = compute_score(
            progress, answer, session_streak, self.config, word_text=word.word
        )

        before = progress.model_copy(deep=True)
        was_skipped = word.id in session.skipped_ids

        word_streak = progress.consecutive_correct_for_word + 1 if is_known else 0
        response = StudyResponse(
            word_id=word.id,
            is_known=is_known,
            response_time_ms=response_time_ms,
            previous_score=progress.internal_score,
            new_score=new_score,
            session_streak=session_streak + 1 if is_known else 0,
            consecutive_correct_for_word=word_streak,
            timestamp=now,
        )

        times = [r.response_time_ms for r in progress.response_history if r.response_time_ms > 0]
        if response_time_ms > 0:
            times.append(response_time_ms)
            progress.average_response_time_ms = smart_average_response_time(
                times, response_time_ms, progress.average_response_time_ms, self.config
            )
        progress.internal_score = new_score
        progress.consecutive_correct_for_word = word_streak
        progress.last_studied_at = now
        progress.response_history.append(response)

        session.responses.append(response)
        session.answered_ids.add(word.id)
        session.skipped_ids.discard(word.id)
        session.current_index += 1

        self._notify(word.id, new_score)

        completed = session.is_exhausted
        self._undo = _UndoEntry(
            word_id=word.id,
            progress_before=before,
            completed_session=completed,
            was_skipped=was_skipped,
        )
        self.last_breakdown = breakdown

        logger.info(
            f"Word \"{word.word}\" known={is_known}: "
            f"{breakdown.previous_score:.2f} -> {new_score:.2f} (level {breakdown.new_level})"
        )
        if completed:
            logger.info(f"Study session completed: {session.id}")
        return breakdown

    def skip(self) -> None:
        session = self._require_active()
        if not self.has_next_word:
            raise InvalidNavigation("No next word to skip to")
        word = session.deck[session.current_index]
        if word.id not in session.answered_ids:
            session.skipped_ids.add(word.id)
        session.current_index += 1
        self._undo = None

    def go_to_previous(self) -> None:
        session = self._require_active()
        if session.current_index == 0:
            raise InvalidNavigation("Already at the first word")
        session.current_index -= 1
        self._undo = None

    def rollback_response(self) -> None:
        session = self.session
        if session is None or session.end_time is not None or session.paused:
            raise NoActiveSession("No session to roll back")
        undo = self._undo
        if undo is None:
            raise NothingToRollback("Nothing to roll back")

        response = session.responses.pop()
        self.progress[undo.word_id] = undo.progress_before
        session.answered_ids.discard(undo.word_id)
        if undo.was_skipped:
            session.skipped_ids.add(undo.word_id)
        session.current_index -= 1
        self._undo = None
        self.last_breakdown = None

        self._notify(undo.word_id, undo.progress_before.internal_score)
        logger.info(
            f"Rolled back word {undo.word_id}: "
            f"{response.new_score:.2f} -> {response.previous_score:.2f}"
        )
        if undo.completed_session:
            logger.info(f"Study session reopened: {session.id}")

    # --- Internals ---
    def _require_active(self) -> StudySession:
        if not self.is_active:
            raise NoActiveSession(f"Session is {self.state.value}")
        return self.session

    def _initial_progress(self, word: Word) -> WordProgress:
        score = word.internal_score
        if score is None:
            score = display_level_to_score(word.difficulty, self.config)
        return WordProgress(
            word_id=word.id,
            internal_score=score,
            consecutive_correct_for_word=word.consecutive_correct_for_word,
            average_response_time_ms=word.average_response_time_ms,
        )

    def _notify(self, word_id: int, score: float) -> None:
        if self.on_difficulty_update is None:
            return
        self.on_difficulty_update(word_id, score_to_display_level(score))

    def _summary(self, session: StudySession) -> SessionSummary:
        end_time = session.end_time or self.clock.now()
        return SessionSummary(
            session_id=session.id,
            start_time=session.start_time,
            end_time=end_time,
            duration_seconds=(end_time - session.start_time).total_seconds(),
            deck_size=len(session.deck),
            answered=len(session.responses),
            skipped=len(session.skipped_ids),
            completed=session.is_exhausted,
            stats=calculate_session_stats(session.responses),
            responses=list(session.responses),
        )
