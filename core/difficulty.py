"""Dynamic sentence difficulty from static difficulty and live mastery."""

from .config import (
    TIER_VOWEL, TIER_BASIC, TIER_VOICED, TIER_SMALL, UNKNOWN_UNIT_DIFFICULTY,
    KANJI_SEGMENT_PENALTY, MASTERY_MULTIPLIER_BASE,
    UNKNOWN_RATIO_THRESHOLD, UNKNOWN_PENALTY_SCALE,
    LENGTH_FREE_SEGMENTS, LENGTH_FACTOR_PER_SEGMENT,
    BASE_DIFFICULTY_WEIGHT, CHAR_DIFFICULTY_WEIGHT, LEVEL_NEW
)
from .kana import PhoneticToken, HIRAGANA_TO_ROMAJI, PUNCTUATION, LONG_VOWEL_MARK, tokenize
from .models import Sentence, CharacterStats

VOWELS = 'あいうえお'
BASIC = 'あいうえおかきくけこさしすせそたちつてとなにぬねのはひふへほまみむめもやゆよらりるれろわをん'
VOICED = 'がぎぐげござじずぜぞだぢづでどばびぶべぼぱぴぷぺぽゔ'
SMALL = 'ぁぃぅぇぉっゃゅょ'


def get_intrinsic_difficulty(unit: str, source: str = None) -> float:
    """Difficulty of a unit before the learner's mastery is considered.

    Punctuation and whitespace are free, as is the long vowel mark. Units that were written
    in katakana cost slightly more than their hiragana counterparts.
    """
    if not unit or all(c in PUNCTUATION or c == LONG_VOWEL_MARK or c.isspace() for c in unit):
        return 0.0

    tier_index = 1 if source is not None and source != unit else 0
    if len(unit) == 1 and unit in VOWELS:
        return TIER_VOWEL[tier_index]
    if len(unit) == 1 and unit in BASIC:
        return TIER_BASIC[tier_index]
    if len(unit) == 1 and unit in VOICED:
        return TIER_VOICED[tier_index]
    if (len(unit) == 1 and unit in SMALL) or (len(unit) == 2 and unit in HIRAGANA_TO_ROMAJI):
        return TIER_SMALL[tier_index]
    return UNKNOWN_UNIT_DIFFICULTY


def token_difficulty(token: PhoneticToken) -> float:
    return get_intrinsic_difficulty(token.unit, token.source)


def extract_units(sentence: Sentence) -> list[PhoneticToken]:
    """Scorable phonetic units of a sentence's reading, punctuation removed."""
    return [t for t in tokenize(sentence.reading) if token_difficulty(t) > 0]


def is_unknown(stats: CharacterStats | None) -> bool:
    return stats is None or stats.level == LEVEL_NEW


def calculate_sentence_difficulty(sentence: Sentence, stats_map: dict[str, CharacterStats]) -> float:
    """Difficulty of a sentence for this learner right now.

    Not cached: mastery changes after every sentence.
    """
    base = sentence.difficulty + sentence.kanji_count * KANJI_SEGMENT_PENALTY

    units = extract_units(sentence)
    if not units:
        return base

    total = 0.0
    unknown = 0
    for token in units:
        stats = stats_map.get(token.unit)
        mastery_score = stats.mastery_score if stats else 0.0
        if is_unknown(stats):
            unknown += 1
        total += token_difficulty(token) * (MASTERY_MULTIPLIER_BASE - mastery_score)

    avg_char_difficulty = total / len(units)
    unknown_ratio = unknown / len(units)
    unknown_penalty = 0.0
    if unknown_ratio > UNKNOWN_RATIO_THRESHOLD:
        unknown_penalty = (unknown_ratio - UNKNOWN_RATIO_THRESHOLD) * UNKNOWN_PENALTY_SCALE

    length_factor = 1 + max(0, (len(sentence.tokens) - LENGTH_FREE_SEGMENTS) * LENGTH_FACTOR_PER_SEGMENT)

    return (base * BASE_DIFFICULTY_WEIGHT +
            avg_char_difficulty * CHAR_DIFFICULTY_WEIGHT +
            unknown_penalty) * length_factor
