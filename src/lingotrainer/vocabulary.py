import glob
import logging
import os
import random
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from .config import DEFAULT_SCORING, ScoringConfig
from .models import Word, WordProgress
from .scoring import calculate_word_priority, display_level_to_score

logger = logging.getLogger("lingotrainer.vocabulary")

REQUIRED_COLUMNS = ("word", "translation")

DUMMY_WORDS = [
    {"word": "Hund", "translation": "dog"},
    {"word": "Katze", "translation": "cat"},
    {"word": "Baum", "translation": "tree"},
    {"word": "Haus", "translation": "house"},
    {"word": "Wasser", "translation": "water"},
]


def _difficulty(value: Any) -> int:
    if pd.isna(value):
        return 3
    try:
        level = int(round(float(value)))
    except (TypeError, ValueError):
        return 3
    return max(1, min(5, level))


def _flag(value: Any, default: bool = True) -> bool:
    if pd.isna(value):
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


class VocabularyManager:
    """Loads vocabulary sets from CSV files and serves them as study decks."""

    def __init__(self, directory: str):
        self.directory = directory
        self.vocab_sets: Dict[str, List[Word]] = {}
        self.words_by_id: Dict[int, Word] = {}

    def load_all(self):
        self.vocab_sets = {}
        self.words_by_id = {}
        if not os.path.exists(self.directory):
            os.makedirs(self.directory)
            logger.warning(f"Created directory {self.directory}. Please add CSV files.")

        csv_files = sorted(glob.glob(os.path.join(self.directory, "*.csv")))
        for file_path in csv_files:
            file_name = os.path.splitext(os.path.basename(file_path))[0]
            try:
                df = pd.read_csv(file_path, encoding="utf-8")
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load {file_path}: {e}")
                continue
            if not all(column in df.columns for column in REQUIRED_COLUMNS):
                logger.error(f"Skipping {file_name}: Missing columns.")
                continue
            df = df.dropna(subset=list(REQUIRED_COLUMNS))
            self._add_set(file_name, df.to_dict("records"))
            logger.info(f"Loaded {len(df)} words from {file_name}")

        if not self.vocab_sets:
            logger.warning("No CSV files found. Loading dummy data.")
            self._add_set("default_dummy", DUMMY_WORDS)

    def _add_set(self, topic: str, records: List[Dict[str, Any]]):
        words = []
        for record in records:
            word = Word(
                id=len(self.words_by_id) + 1,
                word=str(record["word"]).strip(),
                translation=str(record["translation"]).strip(),
                difficulty=_difficulty(record.get("difficulty")),
                is_evaluated=_flag(record.get("is_evaluated")),
                topic=topic,
            )
            self.words_by_id[word.id] = word
            words.append(word)
        self.vocab_sets[topic] = words

    def get_words(self, topic: str) -> List[Word]:
        return self.vocab_sets.get(topic, [])

    def get_word(self, word_id: int) -> Optional[Word]:
        return self.words_by_id.get(word_id)

    def get_topics(self) -> List[Dict[str, Any]]:
        topics = []
        for key, words in self.vocab_sets.items():
            display_name = key.replace("_", " ").title()
            topics.append({"id": key, "name": display_name, "count": len(words)})
        topics.sort(key=lambda x: x["name"])
        return topics

    def get_deck(
        self,
        topic: str,
        size: int,
        evaluated_only: bool = True,
        rng: Optional[random.Random] = None,
        progress: Optional[Mapping[int, WordProgress]] = None,
        now: Optional[datetime] = None,
        config: ScoringConfig = DEFAULT_SCORING,
    ) -> List[Word]:
        """Randomly pick up to `size` eligible words from a topic.

        The picked words are ordered by study priority with some random
        jitter, so hard and recently failed words tend to come first.
        """
        words = self.get_words(topic)
        if evaluated_only:
            words = [w for w in words if w.is_evaluated]
        if not words or size <= 0:
            return []
        rng = rng or random.Random()
        deck = rng.sample(words, min(size, len(words)))

        weights = {}
        for word in deck:
            priority = self.word_priority(word, progress, now, config)
            weights[word.id] = priority * rng.uniform(1.0 - config.PRIORITY_JITTER, 1.0)
        deck.sort(key=lambda w: weights[w.id], reverse=True)
        return deck

    def word_priority(
        self,
        word: Word,
        progress: Optional[Mapping[int, WordProgress]] = None,
        now: Optional[datetime] = None,
        config: ScoringConfig = DEFAULT_SCORING,
    ) -> float:
        entry = progress.get(word.id) if progress else None
        if entry is None:
            score = word.internal_score
            if score is None:
                score = display_level_to_score(word.difficulty, config)
            return calculate_word_priority(score, [], config=config)

        hours = None
        if entry.last_studied_at is not None and now is not None:
            hours = (now - entry.last_studied_at).total_seconds() / 3600
        recent = entry.response_history[-config.RECENT_WINDOW:] if config.RECENT_WINDOW > 0 else []
        return calculate_word_priority(entry.internal_score, recent, hours, config)

    def update_difficulty(self, word_id: int, level: int):
        word = self.words_by_id.get(word_id)
        if word is None:
            logger.warning(f"Difficulty update for unknown word {word_id}")
            return
        word.difficulty = max(1, min(5, level))
        word.is_evaluated = True
        logger.debug(f"Word {word_id} ({word.word}) now at level {word.difficulty}")
