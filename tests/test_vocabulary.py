import random
from datetime import datetime, timedelta

import pytest

from lingotrainer.models import StudyResponse, WordProgress
from lingotrainer.vocabulary import VocabularyManager


@pytest.fixture
def vocab_dir(tmp_path):
    (tmp_path / "animals.csv").write_text(
        "word,translation,difficulty,is_evaluated\n"
        "Hund,dog,2,true\n"
        "Katze,cat,5,true\n"
        "Vogel,bird,,false\n",
        encoding="utf-8",
    )
    (tmp_path / "food_basics.csv").write_text(
        "word,translation\nBrot,bread\nKäse,cheese\n", encoding="utf-8"
    )
    (tmp_path / "broken.csv").write_text("foo,bar\n1,2\n", encoding="utf-8")
    return tmp_path


def test_load_all(vocab_dir):
    manager = VocabularyManager(str(vocab_dir))
    manager.load_all()

    assert set(manager.vocab_sets) == {"animals", "food_basics"}
    topics = manager.get_topics()
    assert [t["name"] for t in topics] == ["Animals", "Food Basics"]
    assert topics[1]["count"] == 2

    animals = manager.get_words("animals")
    assert [w.word for w in animals] == ["Hund", "Katze", "Vogel"]
    assert animals[1].difficulty == 5
    assert animals[2].difficulty == 3
    assert animals[2].is_evaluated is False
    assert manager.get_word(animals[0].id) is animals[0]
    # ids are unique across sets
    assert len(manager.words_by_id) == 5


def test_dummy_data_when_empty(tmp_path):
    manager = VocabularyManager(str(tmp_path / "missing"))
    manager.load_all()

    assert list(manager.vocab_sets) == ["default_dummy"]
    assert (tmp_path / "missing").exists()


def test_get_deck_filters_and_limits(vocab_dir):
    manager = VocabularyManager(str(vocab_dir))
    manager.load_all()

    deck = manager.get_deck("animals", 10, rng=random.Random(1))
    assert sorted(w.word for w in deck) == ["Hund", "Katze"]

    everything = manager.get_deck("animals", 10, evaluated_only=False, rng=random.Random(1))
    assert len(everything) == 3

    assert len(manager.get_deck("food_basics", 1)) == 1
    assert manager.get_deck("unknown", 5) == []


@pytest.mark.parametrize("seed", range(10))
def test_get_deck_puts_harder_words_first(vocab_dir, seed):
    manager = VocabularyManager(str(vocab_dir))
    manager.load_all()

    deck = manager.get_deck("animals", 10, rng=random.Random(seed))
    assert [w.word for w in deck] == ["Katze", "Hund"]


@pytest.mark.parametrize("seed", range(10))
def test_get_deck_uses_study_progress(vocab_dir, seed):
    manager = VocabularyManager(str(vocab_dir))
    manager.load_all()
    hund, katze = manager.get_words("animals")[:2]
    now = datetime(2024, 1, 3, 12, 0)

    misses = [
        StudyResponse(
            word_id=hund.id,
            is_known=False,
            response_time_ms=4000,
            previous_score=3.5,
            new_score=4.0,
            timestamp=now - timedelta(hours=48),
        )
        for _ in range(2)
    ]
    progress = {
        # 4.0 + 2 misses, long ago: full priority 5.0
        hund.id: WordProgress(
            word_id=hund.id, internal_score=4.0, response_history=misses,
            last_studied_at=now - timedelta(hours=48),
        ),
        # Hardest score, but studied just now: half priority 2.75
        katze.id: WordProgress(word_id=katze.id, internal_score=5.5, last_studied_at=now),
    }

    deck = manager.get_deck("animals", 10, rng=random.Random(seed), progress=progress, now=now)
    assert [w.word for w in deck] == ["Hund", "Katze"]


def test_update_difficulty(vocab_dir):
    manager = VocabularyManager(str(vocab_dir))
    manager.load_all()
    bird = manager.get_words("animals")[2]

    manager.update_difficulty(bird.id, 4)
    assert bird.difficulty == 4
    assert bird.is_evaluated is True

    manager.update_difficulty(bird.id, 9)
    assert bird.difficulty == 5

    # unknown ids are ignored
    manager.update_difficulty(999, 2)
