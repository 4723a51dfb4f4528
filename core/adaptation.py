"""Per-learner difficulty adjustment after each completed sentence."""

from .config import (
    MIN_DIFFICULTY, MAX_DIFFICULTY,
    CRUSHING_ACCURACY, CRUSHING_SPEED_RATIO, CRUSHING_STREAK, CRUSHING_FACTOR,
    STRUGGLING_ACCURACY, STRUGGLING_STREAK, STRUGGLING_FACTOR,
    STEADY_ACCURACY, STEADY_FACTOR,
    MIN_SPEED_BASELINE_MS, MAX_SPEED_BASELINE_MS, BASELINE_KEEP, BASELINE_RECENT
)
from .mastery import calculate_overall_skill
from .models import CharacterStats, SentenceResult, UserProfile


def is_crushing_it(profile: UserProfile, result: SentenceResult) -> bool:
    return (result.accuracy >= CRUSHING_ACCURACY and
            result.avg_time_ms < profile.speed_baseline_ms * CRUSHING_SPEED_RATIO and
            result.hints_used == 0 and
            not result.had_errors)


def is_struggling(result: SentenceResult) -> bool:
    return result.accuracy < STRUGGLING_ACCURACY or result.had_errors


def adjust_difficulty(profile: UserProfile, result: SentenceResult) -> dict:
    """Return the difficulty and streak fields that change after a sentence.

    Five fast, clean sentences in a row raise difficulty 8%; two rough ones
    in a row lower it 10%. Anything in between resets both streaks and may
    nudge difficulty up 1%.
    """
    perfect = profile.consecutive_perfect
    struggle = profile.consecutive_struggle
    difficulty = profile.current_difficulty

    if is_crushing_it(profile, result):
        perfect += 1
        struggle = 0
        if perfect >= CRUSHING_STREAK:
            difficulty *= CRUSHING_FACTOR
            perfect = 0
    elif is_struggling(result):
        struggle += 1
        perfect = 0
        if struggle >= STRUGGLING_STREAK:
            difficulty *= STRUGGLING_FACTOR
            struggle = 0
    else:
        perfect = 0
        struggle = 0
        if result.accuracy >= STEADY_ACCURACY and result.avg_time_ms < profile.speed_baseline_ms:
            difficulty *= STEADY_FACTOR

    return {
        'current_difficulty': max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, difficulty)),
        'consecutive_perfect': perfect,
        'consecutive_struggle': struggle
    }


def update_speed_baseline(current_baseline: float, recent_avg_ms: float) -> float:
    """Exponential moving average of response time, clamped."""
    baseline = current_baseline * BASELINE_KEEP + recent_avg_ms * BASELINE_RECENT
    return max(MIN_SPEED_BASELINE_MS, min(MAX_SPEED_BASELINE_MS, baseline))


def apply_sentence_result(profile: UserProfile, result: SentenceResult,
                          stats_map: dict[str, CharacterStats], now: int = None) -> dict:
    """All profile changes caused by one completed sentence.

    stats_map must already include this sentence's attempts.
    """
    updates = adjust_difficulty(profile, result)
    if result.total_chars > 0:
        updates['speed_baseline_ms'] = update_speed_baseline(profile.speed_baseline_ms, result.avg_time_ms)
    updates['overall_skill'] = calculate_overall_skill(stats_map)
    updates['total_practice_ms'] = profile.total_practice_ms + result.total_time_ms
    updates['chars_typed_total'] = profile.chars_typed_total + result.total_chars
    if now is not None:
        updates['updated_at'] = now
    return updates
