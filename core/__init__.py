from .models import (
    SentenceToken, Sentence, CharacterStats, UserProfile, CharacterAttempt, SentenceResult
)
from .interfaces import Storage
from .kana import PhoneticToken, tokenize, to_hiragana, is_punctuation
from .romaji import MatchOutcome, match_romaji, canonical_romaji, needs_double_n
from .mastery import calculate_mastery_score, get_mastery_level, schedule_next_review, apply_attempt
from .difficulty import calculate_sentence_difficulty, get_intrinsic_difficulty
from .selection import ScoredSentence, select_candidate, select_next_sentence
from .adaptation import adjust_difficulty, apply_sentence_result
from .session import PracticeSession, SessionError
from .corpus import SENTENCES, get_corpus, load_corpus, get_sentence
from .config import MIN_DIFFICULTY, MAX_DIFFICULTY, DEFAULT_DIFFICULTY

__all__ = [
    'SentenceToken', 'Sentence', 'CharacterStats', 'UserProfile',
    'CharacterAttempt', 'SentenceResult',
    'Storage',
    'PhoneticToken', 'tokenize', 'to_hiragana', 'is_punctuation',
    'MatchOutcome', 'match_romaji', 'canonical_romaji', 'needs_double_n',
    'calculate_mastery_score', 'get_mastery_level', 'schedule_next_review', 'apply_attempt',
    'calculate_sentence_difficulty', 'get_intrinsic_difficulty',
    'ScoredSentence', 'select_candidate', 'select_next_sentence',
    'adjust_difficulty', 'apply_sentence_result',
    'PracticeSession', 'SessionError',
    'SENTENCES', 'get_corpus', 'load_corpus', 'get_sentence',
    'MIN_DIFFICULTY', 'MAX_DIFFICULTY', 'DEFAULT_DIFFICULTY'
]
