"""Domain models for kanatype."""

from .config import (
    LEVEL_NEW, RECENT_TIMES_WINDOW,
    DEFAULT_DIFFICULTY, DEFAULT_SPEED_BASELINE_MS
)
from .kana import PUNCTUATION


class SentenceToken:
    """A surface/reading pair inside a practice sentence."""

    def __init__(self, surface: str, reading: str, is_kanji: bool = False):
        self.surface = surface
        self.reading = reading
        self.is_kanji = is_kanji

    def to_dict(self) -> dict:
        return {'surface': self.surface, 'reading': self.reading, 'isKanji': self.is_kanji}

    @classmethod
    def from_dict(cls, data: dict) -> 'SentenceToken':
        return cls(data['surface'], data.get('reading', data['surface']),
                   bool(data.get('isKanji', data.get('is_kanji', False))))


class Sentence:
    """A practice item from the corpus."""

    def __init__(self, id: str, tokens: list[SentenceToken], difficulty: float, jlpt: str = None):
        self.id = id
        self.tokens = tokens
        self.difficulty = difficulty
        self.jlpt = jlpt

    @property
    def surface(self) -> str:
        return ''.join(t.surface for t in self.tokens)

    @property
    def reading(self) -> str:
        return ''.join(t.reading for t in self.tokens)

    @property
    def has_kanji(self) -> bool:
        return any(t.is_kanji for t in self.tokens)

    @property
    def kanji_count(self) -> int:
        return sum(1 for t in self.tokens if t.is_kanji)

    @property
    def char_count(self) -> int:
        """Reading characters excluding punctuation."""
        return sum(1 for c in self.reading if c not in PUNCTUATION)

    def to_dict(self) -> dict:
        data = {
            'id': self.id,
            'tokens': [t.to_dict() for t in self.tokens],
            'difficulty': self.difficulty
        }
        if self.jlpt:
            data['jlpt'] = self.jlpt
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Sentence':
        return cls(
            str(data['id']),
            [SentenceToken.from_dict(t) for t in data.get('tokens', [])],
            float(data.get('difficulty', 1)),
            data.get('jlpt')
        )


class CharacterStats:
    """Accumulated performance for one phonetic unit."""

    def __init__(self, character: str):
        self.character = character
        self.correct = 0
        self.incorrect = 0
        self.hint_shown = 0
        self.hint_used = 0
        self.total_time_ms = 0
        self.attempt_count = 0      # Timed attempts only
        self.best_time_ms = None
        self.recent_times = []
        self.mastery_score = 0.0
        self.level = LEVEL_NEW
        self.last_seen = None       # epoch ms
        self.next_review_at = None  # epoch ms

    @property
    def total(self) -> int:
        return self.correct + self.incorrect

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total > 0 else 0.0

    @property
    def avg_time_ms(self) -> float:
        return self.total_time_ms / self.attempt_count if self.attempt_count > 0 else 0.0

    @property
    def hint_rate(self) -> float:
        return self.hint_used / self.hint_shown if self.hint_shown > 0 else 0.0

    def copy(self) -> 'CharacterStats':
        return CharacterStats.from_dict(self.to_dict())

    def to_dict(self) -> dict:
        return {
            'character': self.character,
            'correct': self.correct,
            'incorrect': self.incorrect,
            'hint_shown': self.hint_shown,
            'hint_used': self.hint_used,
            'total_time_ms': self.total_time_ms,
            'attempt_count': self.attempt_count,
            'best_time_ms': self.best_time_ms,
            'recent_times': list(self.recent_times),
            'mastery_score': self.mastery_score,
            'level': self.level,
            'last_seen': self.last_seen,
            'next_review_at': self.next_review_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CharacterStats':
        stats = cls(data['character'])
        stats.correct = data.get('correct', 0)
        stats.incorrect = data.get('incorrect', 0)
        stats.hint_shown = data.get('hint_shown', 0)
        stats.hint_used = data.get('hint_used', 0)
        stats.total_time_ms = data.get('total_time_ms', 0)
        stats.attempt_count = data.get('attempt_count', 0)
        stats.best_time_ms = data.get('best_time_ms')
        stats.recent_times = list(data.get('recent_times') or [])[-RECENT_TIMES_WINDOW:]
        stats.mastery_score = data.get('mastery_score', 0.0)
        stats.level = data.get('level', LEVEL_NEW)
        stats.last_seen = data.get('last_seen')
        stats.next_review_at = data.get('next_review_at')
        return stats


class UserProfile:
    """The learner's running skill and difficulty state."""

    def __init__(self, now: int = None):
        self.overall_skill = 0.0
        self.current_difficulty = DEFAULT_DIFFICULTY
        self.speed_baseline_ms = DEFAULT_SPEED_BASELINE_MS
        self.consecutive_perfect = 0
        self.consecutive_struggle = 0
        self.total_practice_ms = 0
        self.chars_typed_total = 0
        self.created_at = now
        self.updated_at = now

    def apply(self, updates: dict) -> None:
        """Apply a partial update produced by the adaptation functions."""
        for key, value in updates.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown profile field: {key}")
            setattr(self, key, value)

    def to_dict(self) -> dict:
        return {
            'overall_skill': self.overall_skill,
            'current_difficulty': self.current_difficulty,
            'speed_baseline_ms': self.speed_baseline_ms,
            'consecutive_perfect': self.consecutive_perfect,
            'consecutive_struggle': self.consecutive_struggle,
            'total_practice_ms': self.total_practice_ms,
            'chars_typed_total': self.chars_typed_total,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'UserProfile':
        profile = cls()
        profile.overall_skill = data.get('overall_skill', 0.0)
        profile.current_difficulty = data.get('current_difficulty', DEFAULT_DIFFICULTY)
        profile.speed_baseline_ms = data.get('speed_baseline_ms', DEFAULT_SPEED_BASELINE_MS)
        profile.consecutive_perfect = data.get('consecutive_perfect', 0)
        profile.consecutive_struggle = data.get('consecutive_struggle', 0)
        profile.total_practice_ms = data.get('total_practice_ms', 0)
        profile.chars_typed_total = data.get('chars_typed_total', 0)
        profile.created_at = data.get('created_at')
        profile.updated_at = data.get('updated_at')
        return profile


class CharacterAttempt:
    """One completed unit inside the sentence being typed."""

    def __init__(self, unit: str, time_ms: int, correct: bool, hint_used: bool = False,
                 hint_shown: bool = True, typed_wrong: str = None):
        self.unit = unit
        self.time_ms = time_ms
        self.correct = correct
        self.hint_used = hint_used
        # The hint affordance is on screen for every unit
        self.hint_shown = hint_shown
        self.typed_wrong = typed_wrong

    def to_dict(self) -> dict:
        return {
            'unit': self.unit,
            'time_ms': self.time_ms,
            'correct': self.correct,
            'hint_used': self.hint_used,
            'hint_shown': self.hint_shown,
            'typed_wrong': self.typed_wrong
        }


class SentenceResult:
    """Summary of one completed sentence."""

    def __init__(self, sentence_id: str, accuracy: float, avg_time_ms: float,
                 total_time_ms: int = 0, hints_used: int = 0, total_chars: int = 0,
                 correct_chars: int = 0, had_errors: bool = False):
        self.sentence_id = sentence_id
        self.accuracy = accuracy
        self.avg_time_ms = avg_time_ms
        self.total_time_ms = total_time_ms
        self.hints_used = hints_used
        self.total_chars = total_chars
        self.correct_chars = correct_chars
        self.had_errors = had_errors

    @classmethod
    def from_attempts(cls, sentence_id: str, attempts: list[CharacterAttempt]) -> 'SentenceResult':
        total_chars = len(attempts)
        correct_chars = sum(1 for a in attempts if a.correct)
        total_time_ms = sum(a.time_ms for a in attempts)
        return cls(
            sentence_id,
            accuracy=correct_chars / total_chars if total_chars > 0 else 0.0,
            avg_time_ms=total_time_ms / total_chars if total_chars > 0 else 0.0,
            total_time_ms=total_time_ms,
            hints_used=sum(1 for a in attempts if a.hint_used),
            total_chars=total_chars,
            correct_chars=correct_chars,
            had_errors=correct_chars < total_chars
        )

    def to_dict(self) -> dict:
        return {
            'sentence_id': self.sentence_id,
            'accuracy': self.accuracy,
            'avg_time_ms': self.avg_time_ms,
            'total_time_ms': self.total_time_ms,
            'hints_used': self.hints_used,
            'total_chars': self.total_chars,
            'correct_chars': self.correct_chars,
            'had_errors': self.had_errors
        }
