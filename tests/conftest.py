import pytest

from lingotrainer.clock import FixedClock
from lingotrainer.models import Word
from lingotrainer.session import SessionController


def make_word(word_id, score=None, difficulty=2, average=None, text=None):
    return Word(
        id=word_id,
        word=text or f"wort{word_id}",
        translation=f"word{word_id}",
        difficulty=difficulty,
        internal_score=score,
        average_response_time_ms=average,
    )


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def updates():
    """Every (word_id, level) pair sent to the word store."""
    return []


@pytest.fixture
def controller(clock, updates):
    return SessionController(
        on_difficulty_update=lambda word_id, level: updates.append((word_id, level)),
        clock=clock,
    )


@pytest.fixture
def deck():
    return [make_word(1, 2.0), make_word(2, 2.0), make_word(3, 2.0)]
