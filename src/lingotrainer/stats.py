from typing import Sequence

from .models import SessionStats, StudyResponse


def trailing_streak(responses: Sequence[StudyResponse]) -> int:
    """Number of correct answers at the end of the response log."""
    streak = 0
    for response in reversed(responses):
        if not response.is_known:
            break
        streak += 1
    return streak


def calculate_session_stats(responses: Sequence[StudyResponse]) -> SessionStats:
    """Project the response log onto the counters shown during and after a session."""
    total = len(responses)
    if total == 0:
        return SessionStats()

    correct = sum(1 for r in responses if r.is_known)

    longest = 0
    running = 0
    for response in responses:
        if response.is_known:
            running += 1
            longest = max(longest, running)
        else:
            running = 0

    return SessionStats(
        total_words=total,
        correct_answers=correct,
        incorrect_answers=total - correct,
        accuracy=correct * 100 / total,
        current_streak=running,
        longest_streak=longest,
        avg_score_change=sum(r.score_change for r in responses) / total,
    )
