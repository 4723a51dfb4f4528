"""Unit tests for kanatype core module."""

import json
import os
import random
import tempfile
import unittest
from datetime import date, timedelta
from unittest.mock import MagicMock

from core.kana import tokenize, to_hiragana, is_punctuation, PhoneticToken
from core.romaji import (
    MatchOutcome, match_romaji, needs_double_n, spell_token, canonical_romaji
)
from core.models import (
    SentenceToken, Sentence, CharacterStats, UserProfile, CharacterAttempt, SentenceResult
)
from core.mastery import (
    normalized_variance, calculate_mastery_score, get_mastery_level,
    schedule_next_review, apply_attempt, due_for_review, calculate_overall_skill
)
from core.difficulty import get_intrinsic_difficulty, calculate_sentence_difficulty, extract_units
from core.selection import (
    ScoredSentence, build_pool, choose, filter_by_level, get_max_allowed_difficulty,
    is_ready_for_kanji, select_candidate, select_next_sentence
)
from core.adaptation import adjust_difficulty, update_speed_baseline, apply_sentence_result
from core.corpus import SENTENCES, load_corpus, get_corpus, get_sentence
from core.utils import day_streak, days_since
from core.config import (
    MINUTE_MS, DAY_MS, LEVEL_NEW, LEVEL_LEARNING, LEVEL_REVIEWING, LEVEL_MASTERED,
    MIN_DIFFICULTY, MAX_DIFFICULTY
)

NOW = 1_700_000_000_000


def kana_sentence(sentence_id: str, reading: str, difficulty: float = 1) -> Sentence:
    return Sentence(sentence_id, [SentenceToken(c, c) for c in reading], difficulty)


def make_stats(unit: str, correct: int = 3, incorrect: int = 0, times: list = None,
               level: str = LEVEL_MASTERED, score: float = 1.0, last_seen: int = NOW) -> CharacterStats:
    stats = CharacterStats(unit)
    stats.correct = correct
    stats.incorrect = incorrect
    stats.hint_shown = correct + incorrect
    times = times if times is not None else [500] * (correct + incorrect)
    stats.recent_times = list(times)
    stats.total_time_ms = sum(times)
    stats.attempt_count = len(times)
    stats.mastery_score = score
    stats.level = level
    stats.last_seen = last_seen
    return stats


# ============================================================================
# Test Cases
# ============================================================================

class TestTokenize(unittest.TestCase):
    """Tests for the reading tokenizer."""

    def test_single_characters(self):
        units = [t.unit for t in tokenize('あいう')]
        self.assertEqual(units, ['あ', 'い', 'う'])

    def test_combination_is_one_unit(self):
        tokens = tokenize('きゃく')
        self.assertEqual([t.unit for t in tokens], ['きゃ', 'く'])
        self.assertEqual(tokens[0].romanizations, ('kya',))

    def test_katakana_folds_to_hiragana(self):
        tokens = tokenize('カッパ')
        self.assertEqual([t.unit for t in tokens], ['か', 'っ', 'ぱ'])
        self.assertEqual(tokens[0].source, 'カ')
        self.assertTrue(tokens[0].is_katakana)
        self.assertTrue(tokens[1].is_doubling_marker)
        self.assertEqual(tokens[1].romanizations, ())

    def test_long_vowel_mark_kept(self):
        self.assertEqual(to_hiragana('コーヒー'), 'こーひー')
        tokens = tokenize('コーヒー')
        self.assertEqual(tokens[1].unit, 'ー')
        self.assertEqual(tokens[1].romanizations, ('-',))

    def test_unknown_character_matches_literally(self):
        tokens = tokenize('漢。')
        self.assertEqual(tokens[0], PhoneticToken('漢', ['漢']))
        self.assertEqual(tokens[1].romanizations, ('。',))

    def test_empty_reading(self):
        self.assertEqual(tokenize(''), [])

    def test_tokenize_is_deterministic(self):
        readings = [s.reading for s in SENTENCES] + [
            'カッパ', 'きゃっきゃ', 'しんよう', 'あんない', 'コーヒー', 'ちょっと', 'ジュース。']
        for reading in readings:
            self.assertEqual(tokenize(reading), tokenize(reading), reading)

    def test_is_punctuation(self):
        self.assertTrue(is_punctuation('。'))
        self.assertTrue(is_punctuation(' 、'))
        self.assertFalse(is_punctuation('あ'))
        self.assertFalse(is_punctuation(''))


class TestMatchRomaji(unittest.TestCase):
    """Tests for the romaji matcher."""

    def test_exact_and_partial(self):
        tokens = tokenize('か')
        self.assertEqual(match_romaji(tokens, 0, 'k'), MatchOutcome(False, 0, True))
        self.assertEqual(match_romaji(tokens, 0, 'ka'), MatchOutcome(True, 2, False))
        self.assertEqual(match_romaji(tokens, 0, 'ki'), MatchOutcome(False, 0, False))

    def test_alternate_spellings(self):
        tokens = tokenize('し')
        self.assertTrue(match_romaji(tokens, 0, 'si').matched)
        self.assertTrue(match_romaji(tokens, 0, 'shi').matched)
        self.assertTrue(match_romaji(tokens, 0, 'sh').partial)
        self.assertFalse(match_romaji(tokens, 0, 'sa').matched)
        self.assertFalse(match_romaji(tokens, 0, 'sa').partial)

    def test_overflow_consumes_only_spelling(self):
        self.assertEqual(match_romaji(tokenize('か'), 0, 'kak'), MatchOutcome(True, 2, False))

    def test_doubling_marker(self):
        tokens = tokenize('かっぱ')
        self.assertTrue(match_romaji(tokens, 0, 'ka').matched)
        self.assertEqual(match_romaji(tokens, 1, 'p'), MatchOutcome(True, 1, False))
        self.assertTrue(match_romaji(tokens, 2, 'pa').matched)
        self.assertFalse(match_romaji(tokens, 1, 'k').matched)
        self.assertFalse(match_romaji(tokens, 1, 'k').partial)

    def test_doubling_marker_escape(self):
        tokens = tokenize('かっぱ')
        self.assertTrue(match_romaji(tokens, 1, 'x').partial)
        self.assertEqual(match_romaji(tokens, 1, 'xtu'), MatchOutcome(True, 3, False))

    def test_trailing_doubling_marker(self):
        tokens = tokenize('あっ')
        self.assertTrue(match_romaji(tokens, 1, 'xt').partial)
        self.assertEqual(match_romaji(tokens, 1, 'xtu'), MatchOutcome(True, 3, False))
        self.assertEqual(match_romaji(tokens, 1, 'xtsu'), MatchOutcome(True, 4, False))
        self.assertFalse(match_romaji(tokens, 1, 't').matched)

    def test_nasal_before_vowel_needs_double(self):
        tokens = tokenize('あんい')
        self.assertTrue(needs_double_n(tokens, 1))
        self.assertEqual(match_romaji(tokens, 1, 'n'), MatchOutcome(False, 0, True))
        self.assertEqual(match_romaji(tokens, 1, 'nn'), MatchOutcome(True, 2, False))

    def test_nasal_before_consonant(self):
        tokens = tokenize('あんた')
        self.assertFalse(needs_double_n(tokens, 1))
        self.assertEqual(match_romaji(tokens, 1, 'n'), MatchOutcome(True, 1, False))

    def test_nasal_before_y_row(self):
        tokens = tokenize('こんや')
        self.assertTrue(needs_double_n(tokens, 1))

    def test_nasal_at_end(self):
        tokens = tokenize('ほん')
        self.assertFalse(needs_double_n(tokens, 1))
        self.assertTrue(match_romaji(tokens, 1, 'n').matched)

    def test_index_out_of_range(self):
        tokens = tokenize('か')
        self.assertEqual(match_romaji(tokens, 1, 'ka'), MatchOutcome(False, 0, False))
        self.assertEqual(match_romaji(tokens, -1, 'ka'), MatchOutcome(False, 0, False))

    def test_spell_token(self):
        tokens = tokenize('がっこう')
        self.assertEqual(spell_token(tokens, 1), 'k')
        self.assertEqual(spell_token(tokenize('あっ'), 1), 'xtu')

    def test_canonical_romaji(self):
        self.assertEqual(canonical_romaji(tokenize('がっこう')), 'gakkou')
        self.assertEqual(canonical_romaji(tokenize('かんい')), 'kanni')
        self.assertEqual(canonical_romaji(tokenize('コーヒー')), 'ko-hi-')


class TestMastery(unittest.TestCase):
    """Tests for per-unit mastery and review scheduling."""

    def test_normalized_variance_neutral(self):
        self.assertEqual(normalized_variance([]), 0.5)
        self.assertEqual(normalized_variance([300]), 0.5)
        self.assertEqual(normalized_variance([0, 0]), 0.5)
        self.assertEqual(normalized_variance([400, 400, 400]), 0.0)

    def test_normalized_variance_capped(self):
        self.assertEqual(normalized_variance([0, 2000]), 1.0)

    def test_too_few_attempts_score_zero(self):
        stats = make_stats('か', correct=2)
        self.assertEqual(calculate_mastery_score(stats, 1000, NOW), 0.0)

    def test_perfect_recent_unit(self):
        stats = make_stats('か', correct=3, times=[500, 500, 500])
        self.assertAlmostEqual(calculate_mastery_score(stats, 1000, NOW), 1.0)

    def test_never_seen_decays_to_floor(self):
        stats = make_stats('か', correct=3, times=[500, 500, 500], last_seen=None)
        self.assertAlmostEqual(calculate_mastery_score(stats, 1000, NOW), 0.5)

    def test_score_within_bounds(self):
        stats = make_stats('か', correct=0, incorrect=5, times=[3000, 100, 5000, 200, 9000])
        stats.hint_used = 5
        score = calculate_mastery_score(stats, 1000, NOW)
        self.assertGreaterEqual(score, 0.0)
        self.assertLessEqual(score, 1.0)

    def test_levels(self):
        self.assertEqual(get_mastery_level(0.9, 2), LEVEL_NEW)
        self.assertEqual(get_mastery_level(0.39, 3), LEVEL_LEARNING)
        self.assertEqual(get_mastery_level(0.4, 3), LEVEL_REVIEWING)
        self.assertEqual(get_mastery_level(0.75, 3), LEVEL_MASTERED)

    def test_review_intervals(self):
        self.assertEqual(schedule_next_review(LEVEL_NEW, 'good', NOW), NOW + 5 * MINUTE_MS)
        self.assertEqual(schedule_next_review(LEVEL_LEARNING, 'bad', NOW), NOW + 5 * MINUTE_MS)
        self.assertEqual(schedule_next_review(LEVEL_MASTERED, 'good', NOW), NOW + 3 * DAY_MS)

    def test_apply_attempt_creates_stats(self):
        stats = apply_attempt(None, CharacterAttempt('か', 400, True), 1000, NOW)
        self.assertEqual(stats.character, 'か')
        self.assertEqual(stats.correct, 1)
        self.assertEqual(stats.hint_shown, 1)
        self.assertEqual(stats.best_time_ms, 400)
        self.assertEqual(stats.level, LEVEL_NEW)
        self.assertEqual(stats.next_review_at, NOW + 5 * MINUTE_MS)
        self.assertEqual(stats.last_seen, NOW)

    def test_apply_attempt_performance(self):
        hinted = apply_attempt(None, CharacterAttempt('か', 400, True, hint_used=True), 1000, NOW)
        self.assertEqual(hinted.next_review_at, NOW + 2 * MINUTE_MS)
        self.assertEqual(hinted.hint_rate, 1.0)
        wrong = apply_attempt(None, CharacterAttempt('か', 400, False), 1000, NOW)
        self.assertEqual(wrong.incorrect, 1)
        self.assertEqual(wrong.next_review_at, NOW + MINUTE_MS)

    def test_apply_attempt_does_not_mutate(self):
        original = make_stats('か')
        apply_attempt(original, CharacterAttempt('か', 400, False), 1000, NOW)
        self.assertEqual(original.incorrect, 0)

    def test_three_clean_attempts_master_unit(self):
        stats = None
        for _ in range(3):
            stats = apply_attempt(stats, CharacterAttempt('か', 500, True), 1000, NOW)
        self.assertAlmostEqual(stats.mastery_score, 1.0)
        self.assertEqual(stats.level, LEVEL_MASTERED)
        self.assertEqual(stats.next_review_at, NOW + 3 * DAY_MS)

    def test_recent_times_window(self):
        stats = None
        for i in range(12):
            stats = apply_attempt(stats, CharacterAttempt('か', 100 + i, True), 1000, NOW)
        self.assertEqual(len(stats.recent_times), 10)
        self.assertEqual(stats.recent_times[-1], 111)
        self.assertEqual(stats.attempt_count, 12)

    def test_due_for_review(self):
        early = make_stats('か')
        early.next_review_at = NOW - 10
        later = make_stats('き')
        later.next_review_at = NOW - 100
        future = make_stats('く')
        future.next_review_at = NOW + 100
        due = due_for_review({'か': early, 'き': later, 'く': future}, NOW)
        self.assertEqual([s.character for s in due], ['き', 'か'])

    def test_overall_skill(self):
        self.assertEqual(calculate_overall_skill({}), 0.0)
        stats_map = {
            'か': make_stats('か', score=0.8),
            'き': make_stats('き', score=0.4),
            'く': make_stats('く', correct=1, score=0.0)
        }
        self.assertAlmostEqual(calculate_overall_skill(stats_map), 0.6)


class TestDifficulty(unittest.TestCase):
    """Tests for the difficulty estimator."""

    def test_intrinsic_tiers(self):
        self.assertEqual(get_intrinsic_difficulty('あ'), 0.8)
        self.assertEqual(get_intrinsic_difficulty('あ', 'ア'), 1.1)
        self.assertEqual(get_intrinsic_difficulty('か'), 1.0)
        self.assertEqual(get_intrinsic_difficulty('が'), 1.1)
        self.assertEqual(get_intrinsic_difficulty('きゃ'), 1.3)
        self.assertEqual(get_intrinsic_difficulty('っ'), 1.3)
        self.assertEqual(get_intrinsic_difficulty('ー'), 0.0)
        self.assertEqual(get_intrinsic_difficulty('。'), 0.0)
        self.assertEqual(get_intrinsic_difficulty('漢'), 2.5)

    def test_extract_units_skips_punctuation(self):
        sentence = get_sentence(SENTENCES, '10')
        self.assertEqual([t.unit for t in extract_units(sentence)], ['こ', 'ひ'])

    def test_unknown_sentence(self):
        sentence = get_sentence(SENTENCES, '1')
        self.assertAlmostEqual(calculate_sentence_difficulty(sentence, {}), 2.332)

    def test_mastery_lowers_difficulty(self):
        sentence = get_sentence(SENTENCES, '1')
        stats_map = {u: make_stats(u) for u in 'あいうえお'}
        mastered = calculate_sentence_difficulty(sentence, stats_map)
        self.assertAlmostEqual(mastered, 0.704)
        self.assertLess(mastered, calculate_sentence_difficulty(sentence, {}))

    def test_whitespace_is_free(self):
        self.assertEqual(get_intrinsic_difficulty(' '), 0.0)
        self.assertEqual(get_intrinsic_difficulty('　'), 0.0)
        spaced = Sentence('s', [SentenceToken('あ い', 'あ い')], 1)
        plain = Sentence('p', [SentenceToken('あい', 'あい')], 1)
        self.assertEqual([t.unit for t in extract_units(spaced)], ['あ', 'い'])
        self.assertAlmostEqual(calculate_sentence_difficulty(spaced, {}),
                               calculate_sentence_difficulty(plain, {}))

    def test_kanji_raises_difficulty(self):
        plain = Sentence('a', [SentenceToken('ほん', 'ほん')], 2)
        kanji = Sentence('b', [SentenceToken('本', 'ほん', True)], 2)
        self.assertAlmostEqual(
            calculate_sentence_difficulty(kanji, {}) - calculate_sentence_difficulty(plain, {}),
            0.8 * 0.4)


class TestSelection(unittest.TestCase):
    """Tests for next-sentence selection."""

    def test_difficulty_caps(self):
        profile = UserProfile()
        self.assertEqual(get_max_allowed_difficulty(profile), 1.2)
        profile.current_difficulty = 2.9
        self.assertEqual(get_max_allowed_difficulty(profile), 2.5)
        profile.current_difficulty = 4.0
        self.assertEqual(get_max_allowed_difficulty(profile), 3.5)

    def test_kanji_readiness(self):
        stats_map = {str(i): make_stats(str(i), level=LEVEL_REVIEWING) for i in range(29)}
        self.assertFalse(is_ready_for_kanji(stats_map))
        stats_map['x'] = make_stats('x', level=LEVEL_MASTERED)
        self.assertTrue(is_ready_for_kanji(stats_map))

    def test_beginner_filter(self):
        filtered = filter_by_level(SENTENCES, UserProfile(), {})
        self.assertEqual([s.id for s in filtered], [str(i) for i in range(1, 9)])

    def test_kanji_excluded_until_ready(self):
        profile = UserProfile()
        profile.current_difficulty = 3.0
        filtered = filter_by_level(SENTENCES, profile, {})
        self.assertTrue(filtered)
        self.assertFalse(any(s.has_kanji for s in filtered))

    def test_build_pool_relaxes(self):
        candidates = [kana_sentence(i, 'あ') for i in 'abcd']
        self.assertEqual([s.id for s in build_pool(candidates, [])], ['a', 'b', 'c', 'd'])
        self.assertEqual([s.id for s in build_pool(candidates, ['a', 'b', 'c'])], ['d'])
        self.assertEqual([s.id for s in build_pool(candidates, ['a', 'b', 'c', 'd'])], ['d'])
        self.assertEqual([s.id for s in build_pool(candidates[:1], ['a'])], ['a'])

    def test_build_pool_falls_back_to_corpus(self):
        corpus = [kana_sentence(i, 'あ') for i in 'abc']
        self.assertEqual([s.id for s in build_pool(corpus[:1], ['a'], corpus)], ['b', 'c'])
        self.assertEqual([s.id for s in build_pool([], ['b'], corpus)], ['a', 'c'])
        self.assertEqual([s.id for s in build_pool([], ['a'], corpus[:1])], ['a'])

    def test_selection_stays_in_level(self):
        rng = random.Random(7)
        allowed = {str(i) for i in range(1, 9)}
        for _ in range(50):
            chosen = select_next_sentence(UserProfile(), SENTENCES, {}, [], rng, NOW)
            self.assertIn(chosen.id, allowed)

    def test_never_repeats_most_recent(self):
        corpus = [kana_sentence('a', 'あい'), kana_sentence('b', 'かき')]
        for seed in range(30):
            chosen = select_next_sentence(UserProfile(), corpus, {}, ['a', 'b'], random.Random(seed), NOW)
            self.assertEqual(chosen.id, 'b')
            chosen = select_next_sentence(UserProfile(), corpus, {}, ['b', 'a'], random.Random(seed), NOW)
            self.assertEqual(chosen.id, 'a')

    def test_single_sentence_corpus(self):
        corpus = [kana_sentence('only', 'あ')]
        chosen = select_next_sentence(UserProfile(), corpus, {}, ['only'], random.Random(1), NOW)
        self.assertEqual(chosen.id, 'only')

    def test_empty_corpus(self):
        self.assertIsNone(select_candidate(UserProfile(), [], {}, []))

    def test_level_pool_exhausted_uses_corpus(self):
        corpus = [kana_sentence('a', 'あ', 1), kana_sentence('b', 'か', 3)]
        picks = {select_next_sentence(UserProfile(), corpus, {}, ['a'], random.Random(seed), NOW).id
                 for seed in range(20)}
        self.assertEqual(picks, {'b'})

    def test_nothing_in_level_uses_corpus(self):
        corpus = [kana_sentence('x1', 'あ', 2), kana_sentence('x2', 'い', 2)]
        for seed in range(20):
            chosen = select_next_sentence(UserProfile(), corpus, {}, ['x1'], random.Random(seed), NOW)
            self.assertEqual(chosen.id, 'x2')
        kanji = [Sentence('k1', [SentenceToken('本', 'ほん', True)], 3),
                 Sentence('k2', [SentenceToken('私', 'わたし', True)], 3)]
        candidate = select_candidate(UserProfile(), kanji, {}, ['k2'], random.Random(0), NOW)
        self.assertEqual(candidate.sentence.id, 'k1')

    def test_deterministic_with_seed(self):
        first = [select_next_sentence(UserProfile(), SENTENCES, {}, [], random.Random(3), NOW).id
                 for _ in range(3)]
        self.assertEqual(len(set(first)), 1)

    def test_beginner_choice_uses_cumulative_weights(self):
        scored = [ScoredSentence(kana_sentence(str(i), 'あ'), 1.0, 1.0 - i * 0.1) for i in range(5)]
        rng = MagicMock()
        rng.random.return_value = 0.5
        choice, reason = choose(scored, 1.0, rng)
        self.assertEqual(choice.sentence.id, '1')
        rng.random.return_value = 0.1
        choice, _ = choose(scored, 1.0, rng)
        self.assertEqual(choice.sentence.id, '0')

    def test_advanced_probe_picks_harder(self):
        scored = [ScoredSentence(kana_sentence('easy', 'あ'), 3.0, 0.9),
                  ScoredSentence(kana_sentence('hard', 'あ'), 4.5, 0.5)]
        rng = MagicMock()
        rng.random.return_value = 0.05
        rng.randrange.return_value = 0
        choice, reason = choose(scored, 3.0, rng)
        self.assertEqual(choice.sentence.id, 'hard')
        self.assertEqual(reason, 'advanced probe')


class TestAdaptation(unittest.TestCase):
    """Tests for difficulty adjustment."""

    def crushing(self) -> SentenceResult:
        return SentenceResult('s', accuracy=1.0, avg_time_ms=500, total_time_ms=2500,
                              hints_used=0, total_chars=5, correct_chars=5)

    def struggling(self) -> SentenceResult:
        return SentenceResult('s', accuracy=0.5, avg_time_ms=1500, total_time_ms=3000,
                              total_chars=2, correct_chars=1, had_errors=True)

    def test_five_crushing_sentences_raise_difficulty(self):
        profile = UserProfile()
        for i in range(4):
            profile.apply(adjust_difficulty(profile, self.crushing()))
            self.assertEqual(profile.consecutive_perfect, i + 1)
            self.assertEqual(profile.current_difficulty, 1.0)
        profile.apply(adjust_difficulty(profile, self.crushing()))
        self.assertAlmostEqual(profile.current_difficulty, 1.08)
        self.assertEqual(profile.consecutive_perfect, 0)

    def test_two_struggles_lower_difficulty(self):
        profile = UserProfile()
        profile.current_difficulty = 2.0
        profile.apply(adjust_difficulty(profile, self.struggling()))
        self.assertEqual(profile.current_difficulty, 2.0)
        self.assertEqual(profile.consecutive_struggle, 1)
        profile.apply(adjust_difficulty(profile, self.struggling()))
        self.assertAlmostEqual(profile.current_difficulty, 1.8)
        self.assertEqual(profile.consecutive_struggle, 0)

    def test_struggle_resets_perfect_streak(self):
        profile = UserProfile()
        profile.consecutive_perfect = 4
        profile.apply(adjust_difficulty(profile, self.struggling()))
        self.assertEqual(profile.consecutive_perfect, 0)

    def test_clamped_to_bounds(self):
        profile = UserProfile()
        profile.current_difficulty = 4.9
        profile.consecutive_perfect = 4
        self.assertEqual(adjust_difficulty(profile, self.crushing())['current_difficulty'], MAX_DIFFICULTY)
        profile.current_difficulty = 0.85
        profile.consecutive_struggle = 1
        self.assertEqual(adjust_difficulty(profile, self.struggling())['current_difficulty'], MIN_DIFFICULTY)

    def test_steady_nudge(self):
        profile = UserProfile()
        profile.consecutive_perfect = 3
        hinted = SentenceResult('s', accuracy=1.0, avg_time_ms=500, hints_used=1,
                                total_chars=5, correct_chars=5)
        updates = adjust_difficulty(profile, hinted)
        self.assertAlmostEqual(updates['current_difficulty'], 1.01)
        self.assertEqual(updates['consecutive_perfect'], 0)

    def test_speed_baseline(self):
        self.assertAlmostEqual(update_speed_baseline(1000, 500), 900)
        self.assertEqual(update_speed_baseline(1000, 10000), 2800)
        self.assertEqual(update_speed_baseline(200, 0), 200)

    def test_apply_sentence_result(self):
        profile = UserProfile()
        stats_map = {'か': make_stats('か', score=0.5)}
        updates = apply_sentence_result(profile, self.crushing(), stats_map, NOW)
        self.assertAlmostEqual(updates['speed_baseline_ms'], 900)
        self.assertAlmostEqual(updates['overall_skill'], 0.5)
        self.assertEqual(updates['chars_typed_total'], 5)
        self.assertEqual(updates['total_practice_ms'], 2500)
        self.assertEqual(updates['updated_at'], NOW)

    def test_empty_result_keeps_baseline(self):
        empty = SentenceResult('s', accuracy=0.0, avg_time_ms=0.0)
        updates = apply_sentence_result(UserProfile(), empty, {})
        self.assertNotIn('speed_baseline_ms', updates)

    def test_unknown_profile_field(self):
        with self.assertRaises(AttributeError):
            UserProfile().apply({'level': 3})


class TestModels(unittest.TestCase):
    """Tests for model serialization."""

    def test_sentence_properties(self):
        sentence = get_sentence(SENTENCES, '11')
        self.assertEqual(sentence.surface, '今日はいい天気です。')
        self.assertEqual(sentence.reading, 'きょうはいいてんきです。')
        self.assertTrue(sentence.has_kanji)
        self.assertEqual(sentence.kanji_count, 2)
        self.assertEqual(sentence.char_count, 11)

    def test_sentence_from_dict(self):
        sentence = Sentence.from_dict({
            'id': 7,
            'tokens': [{'surface': '本', 'reading': 'ほん', 'isKanji': True}],
            'difficulty': 2,
            'jlpt': 'N5'
        })
        self.assertEqual(sentence.id, '7')
        self.assertTrue(sentence.tokens[0].is_kanji)
        self.assertEqual(sentence.to_dict()['tokens'][0]['isKanji'], True)

    def test_stats_roundtrip(self):
        stats = make_stats('きゃ', correct=4, incorrect=1)
        stats.next_review_at = NOW + 1
        restored = CharacterStats.from_dict(stats.to_dict())
        self.assertEqual(restored.to_dict(), stats.to_dict())
        self.assertAlmostEqual(restored.accuracy, 0.8)

    def test_result_from_attempts(self):
        attempts = [CharacterAttempt('か', 300, True),
                    CharacterAttempt('き', 500, False, hint_used=True)]
        result = SentenceResult.from_attempts('s', attempts)
        self.assertEqual(result.accuracy, 0.5)
        self.assertEqual(result.avg_time_ms, 400)
        self.assertEqual(result.hints_used, 1)
        self.assertTrue(result.had_errors)


class TestCorpus(unittest.TestCase):
    """Tests for corpus loading."""

    def test_builtin_ids_unique(self):
        ids = [s.id for s in SENTENCES]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(len(get_corpus()), len(SENTENCES))

    def test_load_corpus(self):
        data = [{'id': 'x1', 'tokens': [{'surface': 'ねこ', 'reading': 'ねこ', 'isKanji': False}],
                 'difficulty': 1}]
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, 'corpus.json')
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False)
            corpus = get_corpus(path)
        self.assertEqual(len(corpus), 1)
        self.assertEqual(corpus[0].reading, 'ねこ')
        self.assertIsNone(get_sentence(corpus, 'missing'))

    def test_load_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_corpus('/nonexistent/corpus.json')


class TestUtils(unittest.TestCase):
    """Tests for date helpers."""

    def test_days_since(self):
        self.assertEqual(days_since(None, NOW), 30)
        self.assertEqual(days_since(NOW - 2 * DAY_MS, NOW), 2)

    def test_day_streak(self):
        today = date(2024, 5, 10)
        days = [today, today - timedelta(days=1), today - timedelta(days=3)]
        self.assertEqual(day_streak(days, today), 2)

    def test_streak_from_yesterday(self):
        today = date(2024, 5, 10)
        self.assertEqual(day_streak([today - timedelta(days=1)], today), 1)

    def test_broken_streak(self):
        today = date(2024, 5, 10)
        self.assertEqual(day_streak([today - timedelta(days=2)], today), 0)
        self.assertEqual(day_streak([], today), 0)


if __name__ == '__main__':
    unittest.main()
