"""Next-sentence selection.

Hard filters (static difficulty cap, kanji readiness, recency) are applied
deterministically; the final pick among ranked candidates is random, using
the caller's random source so tests can seed it.
"""

import logging
import random

from .config import (
    DIFFICULTY_CAPS, DIFFICULTY_CAP_MAX, KANJI_READY_UNITS,
    LEVEL_REVIEWING, LEVEL_MASTERED,
    RECENT_EXCLUDE_COUNT, RECENT_RELAXED_COUNT, MIN_POOL_SIZE,
    TOP_CANDIDATES, SUBSET_PICK_COUNT,
    FIT_WEIGHT_DIFFICULTY, FIT_WEIGHT_REVIEW, FIT_WEIGHT_NEW_CHARS,
    REVIEW_BONUS_PER_UNIT, REVIEW_BONUS_CAP,
    NEW_CHAR_BONUS, NEW_CHAR_PENALTY, NEW_CHAR_IDEAL, NEW_CHAR_TOO_MANY,
    BEGINNER_BELOW, BEGINNER_WEIGHTS, INTERMEDIATE_BELOW,
    INTERMEDIATE_PROBE, INTERMEDIATE_COMFORT, INTERMEDIATE_COMFORT_RATIO,
    ADVANCED_PROBE, ADVANCED_COMFORT, ADVANCED_PROBE_RATIO, ADVANCED_COMFORT_RATIO
)
from .difficulty import calculate_sentence_difficulty, extract_units, is_unknown
from .models import Sentence, CharacterStats, UserProfile
from .utils import now_ms

logger = logging.getLogger(__name__)


class ScoredSentence:
    """A candidate with its dynamic difficulty and fit score."""

    def __init__(self, sentence: Sentence, difficulty: float, fit_score: float):
        self.sentence = sentence
        self.difficulty = difficulty
        self.fit_score = fit_score

    def __repr__(self):
        return f"ScoredSentence({self.sentence.id!r}, difficulty={self.difficulty:.2f}, fit={self.fit_score:.2f})"


def get_max_allowed_difficulty(profile: UserProfile) -> float:
    for below, cap in DIFFICULTY_CAPS:
        if profile.current_difficulty < below:
            return cap
    return DIFFICULTY_CAP_MAX


def is_ready_for_kanji(stats_map: dict[str, CharacterStats]) -> bool:
    solid = sum(1 for s in stats_map.values() if s.level in (LEVEL_REVIEWING, LEVEL_MASTERED))
    return solid >= KANJI_READY_UNITS


def filter_by_level(sentences: list[Sentence], profile: UserProfile,
                    stats_map: dict[str, CharacterStats]) -> list[Sentence]:
    cap = get_max_allowed_difficulty(profile)
    kanji_ready = is_ready_for_kanji(stats_map)
    return [s for s in sentences
            if s.difficulty <= cap and (kanji_ready or not s.has_kanji)]


def _excluding(sentences: list[Sentence], ids: list[str]) -> list[Sentence]:
    excluded = set(ids)
    return [s for s in sentences if s.id not in excluded]


def build_pool(candidates: list[Sentence], recent_ids: list[str],
               corpus: list[Sentence] = None) -> list[Sentence]:
    """Drop recently shown items, relaxing the window when too few remain.

    When nothing in candidates survives even the single most recent
    exclusion, the whole corpus (if given) is tried the same way.
    """
    pool = _excluding(candidates, recent_ids[:RECENT_EXCLUDE_COUNT])
    if len(pool) >= MIN_POOL_SIZE:
        return pool
    pool = _excluding(candidates, recent_ids[:RECENT_RELAXED_COUNT])
    if pool:
        logger.debug(f"Relaxed recency window to {RECENT_RELAXED_COUNT}: {len(pool)} candidates")
        return pool
    pool = _excluding(candidates, recent_ids[:1])
    if pool:
        logger.debug(f"Relaxed recency window to 1: {len(pool)} candidates")
        return pool
    if corpus:
        pool = _excluding(corpus, recent_ids[:1])
        if pool:
            logger.debug(f"Level filter exhausted, using full corpus: {len(pool)} candidates")
            return pool
        return list(corpus)
    return list(candidates)


def calculate_fit_score(sentence: Sentence, difficulty: float, target: float,
                        stats_map: dict[str, CharacterStats], now: int) -> float:
    difficulty_match = 1 - abs(difficulty - target) / max(1, target)

    review_due = 0
    new_units = 0
    for unit in {t.unit for t in extract_units(sentence)}:
        stats = stats_map.get(unit)
        if stats and stats.next_review_at is not None and stats.next_review_at <= now:
            review_due += 1
        if is_unknown(stats):
            new_units += 1

    review_bonus = min(REVIEW_BONUS_CAP, review_due * REVIEW_BONUS_PER_UNIT)
    if NEW_CHAR_IDEAL[0] <= new_units <= NEW_CHAR_IDEAL[1]:
        new_char_bonus = NEW_CHAR_BONUS
    elif new_units > NEW_CHAR_TOO_MANY:
        new_char_bonus = NEW_CHAR_PENALTY
    else:
        new_char_bonus = 0.0

    return (difficulty_match * FIT_WEIGHT_DIFFICULTY +
            review_bonus * FIT_WEIGHT_REVIEW +
            new_char_bonus * FIT_WEIGHT_NEW_CHARS)


def score_candidates(pool: list[Sentence], target: float,
                     stats_map: dict[str, CharacterStats], now: int) -> list[ScoredSentence]:
    """Score every candidate and sort best fit first (stable on ties)."""
    scored = []
    for sentence in pool:
        difficulty = calculate_sentence_difficulty(sentence, stats_map)
        fit = calculate_fit_score(sentence, difficulty, target, stats_map, now)
        scored.append(ScoredSentence(sentence, difficulty, fit))
    scored.sort(key=lambda s: s.fit_score, reverse=True)
    return scored


def _pick_from_subset(scored: list[ScoredSentence], subset: list[ScoredSentence],
                      rng: random.Random) -> ScoredSentence:
    if not subset:
        return scored[0]
    return subset[rng.randrange(min(SUBSET_PICK_COUNT, len(subset)))]


def _pick_top(scored: list[ScoredSentence], rng: random.Random) -> ScoredSentence:
    return scored[rng.randrange(min(TOP_CANDIDATES, len(scored)))]


def choose(scored: list[ScoredSentence], target: float, rng: random.Random) -> tuple[ScoredSentence, str]:
    """Tiered random pick among ranked candidates. Returns (choice, reason)."""
    roll = rng.random()

    if target < BEGINNER_BELOW:
        top_n = min(TOP_CANDIDATES, len(scored))
        idx = 0
        for i in range(top_n):
            if roll < BEGINNER_WEIGHTS[i]:
                idx = i
                break
        return scored[idx], f"beginner, idx={idx}"

    if target < INTERMEDIATE_BELOW:
        if roll < INTERMEDIATE_PROBE:
            harder = [s for s in scored if s.difficulty > target]
            return _pick_from_subset(scored, harder, rng), "intermediate probe"
        if roll < INTERMEDIATE_PROBE + INTERMEDIATE_COMFORT:
            easier = [s for s in scored if s.difficulty < target * INTERMEDIATE_COMFORT_RATIO]
            return _pick_from_subset(scored, easier, rng), "intermediate comfort"
        return _pick_top(scored, rng), "intermediate target"

    if roll < ADVANCED_PROBE:
        harder = [s for s in scored if s.difficulty > target * ADVANCED_PROBE_RATIO]
        return _pick_from_subset(scored, harder, rng), "advanced probe"
    if roll < ADVANCED_PROBE + ADVANCED_COMFORT:
        easier = [s for s in scored if s.difficulty < target * ADVANCED_COMFORT_RATIO]
        return _pick_from_subset(scored, easier, rng), "advanced comfort"
    return _pick_top(scored, rng), "advanced target"


def select_candidate(profile: UserProfile, sentences: list[Sentence],
                     stats_map: dict[str, CharacterStats], recent_ids: list[str],
                     rng: random.Random = None, now: int = None) -> ScoredSentence | None:
    """Pick the next sentence to present, with its dynamic difficulty.

    recent_ids is most-recent-first. Returns None only for an empty corpus.
    """
    if not sentences:
        return None
    rng = rng or random.Random()
    now = now if now is not None else now_ms()
    target = profile.current_difficulty

    levelled = filter_by_level(sentences, profile, stats_map)
    logger.debug(f"Selecting: difficulty={target:.2f}, cap={get_max_allowed_difficulty(profile)}, "
                 f"kanji_ready={is_ready_for_kanji(stats_map)}, "
                 f"level filter {len(levelled)}/{len(sentences)}")

    pool = build_pool(levelled, recent_ids, sentences)
    if not levelled:
        logger.warning(f"No sentence passes the level filter, picking from {len(pool)} in the full corpus")

    scored = score_candidates(pool, target, stats_map, now)
    for i, candidate in enumerate(scored[:TOP_CANDIDATES]):
        logger.debug(f"  {i + 1}. [{candidate.sentence.id}] diff={candidate.difficulty:.2f} "
                     f"fit={candidate.fit_score:.2f} {candidate.sentence.surface[:20]}")

    selected, reason = choose(scored, target, rng)

    if recent_ids and selected.sentence.id == recent_ids[0]:
        alternative = next((s for s in scored if s.sentence.id != recent_ids[0]), None)
        if alternative:
            selected = alternative
            reason += " (avoided repeat)"

    logger.debug(f"Selected [{selected.sentence.id}] ({reason})")
    return selected


def select_next_sentence(profile: UserProfile, sentences: list[Sentence],
                         stats_map: dict[str, CharacterStats], recent_ids: list[str],
                         rng: random.Random = None, now: int = None) -> Sentence | None:
    candidate = select_candidate(profile, sentences, stats_map, recent_ids, rng, now)
    return candidate.sentence if candidate else None
