"""Per-unit mastery scoring and review scheduling."""

import math

from .config import (
    MIN_ATTEMPTS_FOR_SCORE, RECENT_TIMES_WINDOW, SPEED_FLOOR_MS,
    CONSISTENCY_STDDEV_CEILING_MS,
    MASTERY_WEIGHT_ACCURACY, MASTERY_WEIGHT_SPEED,
    MASTERY_WEIGHT_CONSISTENCY, MASTERY_WEIGHT_HINT_FREEDOM,
    RECENCY_DECAY_PER_DAY, RECENCY_DECAY_FLOOR,
    LEVEL_NEW, LEVEL_LEARNING, LEVEL_REVIEWING, LEVEL_MASTERED,
    LEARNING_THRESHOLD, MASTERED_THRESHOLD, REVIEW_INTERVALS
)
from .models import CharacterStats, CharacterAttempt
from .utils import days_since


def normalized_variance(times: list[int]) -> float:
    """Spread of response times in [0, 1]; 0 is perfectly consistent.

    Fewer than two samples, or an all-zero history, gives the neutral 0.5.
    """
    if len(times) < 2:
        return 0.5
    mean = sum(times) / len(times)
    if mean == 0:
        return 0.5
    variance = sum((t - mean) ** 2 for t in times) / len(times)
    return min(1.0, math.sqrt(variance) / CONSISTENCY_STDDEV_CEILING_MS)


def recency_factor(last_seen: int | None, now: int) -> float:
    return max(RECENCY_DECAY_FLOOR, 1 - days_since(last_seen, now) * RECENCY_DECAY_PER_DAY)


def calculate_mastery_score(stats: CharacterStats, speed_baseline_ms: float, now: int) -> float:
    """Composite mastery in [0, 1] from accuracy, speed, consistency and hint use."""
    if stats.total < MIN_ATTEMPTS_FOR_SCORE:
        return 0.0

    accuracy = stats.accuracy
    avg_time = stats.avg_time_ms or speed_baseline_ms
    speed = min(1.0, speed_baseline_ms / max(SPEED_FLOOR_MS, avg_time))
    consistency = 1 - normalized_variance(stats.recent_times)
    hint_freedom = 1 - min(1.0, stats.hint_rate)

    raw = (accuracy * MASTERY_WEIGHT_ACCURACY +
           speed * MASTERY_WEIGHT_SPEED +
           consistency * MASTERY_WEIGHT_CONSISTENCY +
           hint_freedom * MASTERY_WEIGHT_HINT_FREEDOM)
    score = raw * recency_factor(stats.last_seen, now)
    return max(0.0, min(1.0, score))


def get_mastery_level(score: float, attempt_count: int) -> str:
    if attempt_count < MIN_ATTEMPTS_FOR_SCORE:
        return LEVEL_NEW
    if score < LEARNING_THRESHOLD:
        return LEVEL_LEARNING
    if score < MASTERED_THRESHOLD:
        return LEVEL_REVIEWING
    return LEVEL_MASTERED


def performance_for(correct: bool, hint_used: bool) -> str:
    if not correct:
        return 'bad'
    return 'ok' if hint_used else 'good'


def schedule_next_review(level: str, performance: str, now: int) -> int:
    """Timestamp (epoch ms) when the unit is next due."""
    return now + REVIEW_INTERVALS[level][performance]


def apply_attempt(stats: CharacterStats | None, attempt: CharacterAttempt,
                  speed_baseline_ms: float, now: int) -> CharacterStats:
    """Fold one attempt into a unit's stats, returning a new record.

    The score is computed before last_seen moves to now, so a long gap
    since the previous exposure still costs mastery on this attempt.
    """
    updated = stats.copy() if stats else CharacterStats(attempt.unit)
    if attempt.correct:
        updated.correct += 1
    else:
        updated.incorrect += 1
    if attempt.hint_shown:
        updated.hint_shown += 1
    if attempt.hint_used:
        updated.hint_used += 1
    updated.total_time_ms += attempt.time_ms
    updated.attempt_count += 1
    if updated.best_time_ms is None or attempt.time_ms < updated.best_time_ms:
        updated.best_time_ms = attempt.time_ms
    updated.recent_times = (updated.recent_times + [attempt.time_ms])[-RECENT_TIMES_WINDOW:]

    updated.mastery_score = calculate_mastery_score(updated, speed_baseline_ms, now)
    updated.level = get_mastery_level(updated.mastery_score, updated.total)
    updated.next_review_at = schedule_next_review(
        updated.level, performance_for(attempt.correct, attempt.hint_used), now)
    updated.last_seen = now
    return updated


def due_for_review(stats_map: dict[str, CharacterStats], now: int) -> list[CharacterStats]:
    """Units whose next review time has passed, oldest due first."""
    due = [s for s in stats_map.values()
           if s.next_review_at is not None and s.next_review_at <= now]
    return sorted(due, key=lambda s: s.next_review_at)


def calculate_overall_skill(stats_map: dict[str, CharacterStats]) -> float:
    """Mean mastery over units with enough attempts to be scored."""
    scored = [s.mastery_score for s in stats_map.values() if s.total >= MIN_ATTEMPTS_FOR_SCORE]
    if not scored:
        return 0.0
    return sum(scored) / len(scored)
