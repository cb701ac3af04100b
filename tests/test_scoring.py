"""
Unit tests for the adaptive scoring model.
"""

from datetime import datetime

import pytest

from lingotrainer.config import ScoringConfig
from lingotrainer.errors import InvalidInput, InvalidState
from lingotrainer.models import Answer, DifficultyCategory, StudyResponse, WordProgress
from lingotrainer.scoring import (
    calculate_word_priority,
    classify,
    compute_score,
    difficulty_label,
    display_level_to_score,
    is_likely_away,
    score_to_display_level,
    smart_average_response_time,
    speed_label,
    streak_multiplier,
    word_streak_bonus,
)


def progress(score, history=None, average=None, consecutive=0):
    return WordProgress(
        word_id=1,
        internal_score=score,
        response_history=history or [],
        average_response_time_ms=average,
        consecutive_correct_for_word=consecutive,
    )


def response(is_known, ms=5000.0):
    return StudyResponse(
        word_id=1,
        is_known=is_known,
        response_time_ms=ms,
        previous_score=3.0,
        new_score=3.0,
        timestamp=datetime(2024, 1, 1),
    )


def answer(is_known, ms=5000.0, hours=None):
    return Answer(is_known=is_known, response_time_ms=ms, hours_since_last_studied=hours)


class TestScoreRange:
    @pytest.mark.parametrize("score", [0.5, 0.7, 1.0, 2.0, 3.3, 4.0, 4.01, 5.5])
    @pytest.mark.parametrize("is_known", [True, False])
    def test_new_score_stays_in_range(self, score, is_known):
        for ms in (0, 1000, 5000, 12000, 60000):
            for hours in (None, 0.5, 48):
                for streak in (0, 3, 20):
                    new_score, breakdown = compute_score(
                        progress(score, [response(False)] * 6), answer(is_known, ms, hours), streak
                    )
                    assert 0.5 <= new_score <= 5.5
                    assert breakdown.new_score == new_score

    def test_clamps_at_lower_bound(self):
        new_score, breakdown = compute_score(progress(0.5), answer(True, 1000))
        assert new_score == 0.5
        assert breakdown.score_change == 0.0

    def test_clamps_at_upper_bound(self):
        new_score, _ = compute_score(progress(5.5), answer(False, 5000))
        assert new_score == 5.5

    def test_out_of_range_score_is_invalid_state(self):
        with pytest.raises(InvalidState):
            compute_score(progress(5.6), answer(True))
        with pytest.raises(InvalidState):
            compute_score(progress(0.4), answer(False))

    def test_negative_response_time_is_invalid_input(self):
        with pytest.raises(InvalidInput):
            compute_score(progress(3.0), answer(True, -1))


class TestCategories:
    def test_classify_boundaries(self):
        assert classify(0.5) is DifficultyCategory.EASY
        assert classify(2.0) is DifficultyCategory.EASY
        assert classify(2.01) is DifficultyCategory.MEDIUM
        assert classify(4.0) is DifficultyCategory.MEDIUM
        assert classify(4.01) is DifficultyCategory.HARD
        assert classify(5.5) is DifficultyCategory.HARD

    def test_breakdown_flags_follow_category(self):
        _, breakdown = compute_score(progress(4.5), answer(True))
        assert breakdown.is_hard
        assert not breakdown.is_easy and not breakdown.is_medium
        assert breakdown.learning_rate == 0.8
        assert breakdown.base_adjustment == 0.4

    def test_easy_words_drop_faster_than_hard_words(self):
        easy_new, _ = compute_score(progress(2.0), answer(True))
        hard_new, _ = compute_score(progress(5.0), answer(True))
        assert (2.0 - easy_new) > (5.0 - hard_new)

    def test_correct_below_mastery_stays_easy(self):
        for score in (0.5, 0.8, 1.0):
            new_score, _ = compute_score(progress(score), answer(True, 20000))
            assert classify(new_score) is DifficultyCategory.EASY


class TestScenarios:
    def test_fast_correct_answer_lowers_score_with_timing_bonus(self):
        new_score, breakdown = compute_score(progress(2.0), answer(True, 2000))

        assert new_score < 2.0
        assert breakdown.timing_factor > 1.0
        assert breakdown.time_ratio == pytest.approx(0.4)
        assert breakdown.total_adjustment < 0
        assert breakdown.is_likely_away is False

    def test_normal_speed_medium_word(self):
        new_score, breakdown = compute_score(progress(3.0), answer(True, 5000))

        assert breakdown.timing_factor == 1.0
        assert breakdown.streak_multiplier == 1.0
        assert new_score == pytest.approx(2.4)

    def test_long_gap_gives_larger_decrement(self):
        fresh, _ = compute_score(progress(3.0), answer(True, 5000, hours=0))
        overdue, breakdown = compute_score(progress(3.0), answer(True, 5000, hours=48))

        assert breakdown.time_factor == pytest.approx(1.3)
        assert overdue == pytest.approx(2.22)
        assert overdue < fresh

    def test_mastery_bonus_only_for_correct_mastered_words(self):
        _, mastered = compute_score(progress(1.0), answer(True))
        _, not_mastered = compute_score(progress(1.1), answer(True))
        _, missed = compute_score(progress(0.8), answer(False))

        assert mastered.mastery_bonus == 0.2
        assert not_mastered.mastery_bonus == 0.0
        assert missed.mastery_bonus == 0.0

    def test_recent_failures_push_score_up_faster(self):
        _, isolated = compute_score(progress(3.0), answer(False))
        _, repeated = compute_score(progress(3.0, [response(False), response(True), response(False)]), answer(False))

        assert isolated.recent_failures == 0
        assert isolated.recent_failure_penalty == 0.0
        assert repeated.recent_failures == 2
        assert repeated.recent_failure_penalty == pytest.approx(0.4)
        assert repeated.new_score > isolated.new_score

    def test_failure_window_only_counts_recent_answers(self):
        history = [response(False)] * 3 + [response(True)] * 5
        _, breakdown = compute_score(progress(3.0, history), answer(False))
        assert breakdown.recent_failures == 0

    def test_session_streak_amplifies_correct_answers(self):
        plain, _ = compute_score(progress(3.0), answer(True), session_streak=0)
        streaked, breakdown = compute_score(progress(3.0), answer(True), session_streak=3)

        assert breakdown.streak_multiplier == pytest.approx(1.1 ** 3)
        assert streaked < plain

    def test_word_streak_bonus_applies_to_correct_only(self):
        _, correct = compute_score(progress(3.0, consecutive=2), answer(True))
        _, wrong = compute_score(progress(3.0, consecutive=2), answer(False))

        assert correct.word_streak_bonus == pytest.approx(0.1)
        assert wrong.word_streak_bonus == 0.0

    def test_away_answer_dampens_timing_penalty(self):
        new_score, breakdown = compute_score(progress(3.0), answer(True, 60000))

        assert breakdown.is_likely_away is True
        assert breakdown.raw_timing_penalty == pytest.approx(0.4)
        assert breakdown.timing_penalty < breakdown.raw_timing_penalty
        assert breakdown.timing_penalty == pytest.approx(0.2)
        assert breakdown.base_adjustment == 0.6
        assert new_score < 3.0

    def test_slow_answer_without_away_keeps_full_penalty(self):
        _, known = compute_score(progress(3.0), answer(True, 9000))
        _, missed = compute_score(progress(3.0), answer(False, 9000))

        assert known.is_likely_away is False
        assert known.timing_penalty == pytest.approx(0.06)
        assert known.timing_factor == pytest.approx(0.94)
        assert missed.timing_factor == pytest.approx(1.06)
        assert missed.timing_bonus == 0.0

    def test_uses_word_average_when_known(self):
        _, breakdown = compute_score(progress(3.0, average=2000), answer(True, 2000))
        assert breakdown.average_response_time_ms == 2000
        assert breakdown.time_ratio == pytest.approx(1.0)

    def test_compute_does_not_mutate_progress(self):
        before = progress(3.0, [response(False)], average=4000, consecutive=1)
        snapshot = before.model_dump()
        compute_score(before, answer(False, 7000, hours=3), session_streak=2)
        assert before.model_dump() == snapshot

    def test_custom_config(self):
        config = ScoringConfig(MEDIUM_CORRECT_DECREMENT=1.0)
        new_score, _ = compute_score(progress(3.0), answer(True), config=config)
        assert new_score == pytest.approx(2.0)


class TestHelpers:
    def test_display_level_mapping(self):
        assert score_to_display_level(0.5) == 1
        assert score_to_display_level(1.49) == 1
        assert score_to_display_level(1.5) == 2
        assert score_to_display_level(2.5) == 3
        assert score_to_display_level(5.5) == 5
        assert display_level_to_score(3) == 3.0
        assert display_level_to_score(1) == 1.0

    def test_labels(self):
        assert difficulty_label(1) == "Very Easy"
        assert difficulty_label(5) == "Very Hard"
        assert difficulty_label(9) == "Unknown"
        assert speed_label(0.4) == "Lightning"
        assert speed_label(1.0) == "Normal"
        assert speed_label(3.0) == "Very Slow"

    def test_streak_multiplier_is_capped(self):
        assert streak_multiplier(0) == 1.0
        assert streak_multiplier(1) == pytest.approx(1.1)
        assert streak_multiplier(100) == 1.6
        assert streak_multiplier(10 ** 6) == 1.6

    def test_word_streak_bonus_is_linear_then_capped(self):
        assert word_streak_bonus(0) == 0.0
        assert word_streak_bonus(1) == pytest.approx(0.05)
        assert word_streak_bonus(3) == pytest.approx(0.15)
        assert word_streak_bonus(10) == 0.25

    def test_is_likely_away(self):
        assert is_likely_away(31000, 5000, [])
        assert is_likely_away(8000, 2000, [1500, 2500])
        assert not is_likely_away(8000, 2000, [5000])
        assert not is_likely_away(8000, 2000, [])

    def test_smart_average_response_time(self):
        assert smart_average_response_time([], 2500) == 2500
        assert smart_average_response_time([1000, 3000, 2000], 2000) == 2000
        assert smart_average_response_time([1000, 3000], 3000) == 2000
        # Away times are ignored when there is no previous average
        assert smart_average_response_time([2000, 45000], 45000) == 2000

    def test_smart_average_adapts_alpha(self):
        assert smart_average_response_time([2400], 2400, 2000) == pytest.approx(2160)
        assert smart_average_response_time([10000], 10000, 2000) == pytest.approx(2800)
        assert smart_average_response_time([5000], 5000, 2000) == pytest.approx(2600)

    def test_smart_average_drops_outliers_from_the_median(self):
        # 25 s is under the away threshold but over four times the 5 s default
        assert smart_average_response_time([2000, 3000, 25000], 25000) == 2500
        assert smart_average_response_time([25000], 25000) == 25000
        # The moving average takes the new time as is
        assert smart_average_response_time([2000, 25000], 25000, 5000) == pytest.approx(7000)

    def test_word_priority(self):
        assert calculate_word_priority(3.0, []) == 3.0
        failures = [response(False), response(True), response(False)]
        assert calculate_word_priority(3.0, failures) == 4.0
        # Studied just now keeps half, after a day the full priority
        assert calculate_word_priority(4.0, [], 0.0) == pytest.approx(2.0)
        assert calculate_word_priority(4.0, [], 12.0) == pytest.approx(3.0)
        assert calculate_word_priority(4.0, [], 72.0) == pytest.approx(4.0)
