"""Practice session: drives the matcher for one sentence at a time and
commits the results when the sentence is finished.

Nothing about a sentence is written to storage until complete() runs, so
an abandoned sentence leaves no partial mastery updates behind.
"""

import logging
import random
from datetime import date

from .adaptation import apply_sentence_result
from .config import RECENT_EXCLUDE_COUNT
from .interfaces import Storage
from .kana import PhoneticToken, is_punctuation, tokenize
from .mastery import apply_attempt
from .models import CharacterAttempt, Sentence, SentenceResult, UserProfile
from .romaji import MatchOutcome, match_romaji, spell_token
from .selection import ScoredSentence, select_candidate
from .utils import now_ms, day_of, day_streak

logger = logging.getLogger(__name__)


class SessionError(RuntimeError):
    """Raised when the session is driven out of order."""


class PracticeSession:
    """Domain state for one practice session of a single learner."""

    def __init__(self, storage: Storage):
        self.storage = storage
        self.session_id = None
        self.active = False
        # Committed session totals
        self.total_chars = 0
        self.correct_chars = 0
        self.max_streak = 0
        self.current_streak = 0
        self._reset_sentence()

    def _reset_sentence(self) -> None:
        self.sentence = None
        self.tokens = []
        self.index = 0
        self.buffer = ''
        self.history_id = None
        self.attempts = []
        self.had_errors = False
        self._streak = self.current_streak
        self._max_streak = self.max_streak
        self._unit_start = None
        self._unit_hint = False
        self._unit_wrong = None

    # Session lifecycle

    def start(self, now: int = None) -> int:
        now = now if now is not None else now_ms()
        self.session_id = self.storage.start_session(now)
        self.active = True
        self.total_chars = 0
        self.correct_chars = 0
        self.max_streak = 0
        self.current_streak = 0
        self._reset_sentence()
        return self.session_id

    def end(self, now: int = None) -> None:
        if not self.active:
            return
        now = now if now is not None else now_ms()
        self.storage.end_session(self.session_id, self.total_chars, self.correct_chars,
                                 self.max_streak, now)
        self.active = False
        self.session_id = None
        self._reset_sentence()

    def load_profile(self, now: int = None) -> UserProfile:
        """Load the profile, creating and saving the default one on first use."""
        profile = self.storage.load_profile()
        if profile is None:
            profile = UserProfile(now if now is not None else now_ms())
            self.storage.save_profile(profile)
        return profile

    # Sentence flow

    def next_sentence(self, corpus: list[Sentence], rng: random.Random = None,
                      now: int = None) -> ScoredSentence | None:
        """Select the next sentence for this learner and present it."""
        now = now if now is not None else now_ms()
        recent_ids = self.storage.get_recent_sentence_ids(RECENT_EXCLUDE_COUNT)
        profile = self.load_profile(now)
        stats_map = self.storage.get_all_character_stats()
        candidate = select_candidate(profile, corpus, stats_map, recent_ids, rng, now)
        if candidate:
            self.present(candidate.sentence, candidate.difficulty, now)
        return candidate

    def present(self, sentence: Sentence, difficulty: float = None, now: int = None) -> None:
        now = now if now is not None else now_ms()
        self._reset_sentence()
        self.sentence = sentence
        self.tokens = tokenize(sentence.reading)
        self.history_id = self.storage.record_sentence_shown(
            sentence.id, self.session_id,
            difficulty if difficulty is not None else sentence.difficulty, now)
        self._skip_punctuation()

    def abandon(self) -> None:
        """Drop the current sentence without recording anything."""
        self._reset_sentence()

    @property
    def is_complete(self) -> bool:
        return self.sentence is not None and self.index >= len(self.tokens)

    @property
    def current_token(self) -> PhoneticToken | None:
        if self.sentence is None or self.is_complete:
            return None
        return self.tokens[self.index]

    @property
    def progress(self) -> dict:
        return {
            'sentence_id': self.sentence.id if self.sentence else None,
            'index': self.index,
            'token_count': len(self.tokens),
            'buffer': self.buffer,
            'complete': self.is_complete,
            'had_errors': self.had_errors,
            'attempts': len(self.attempts)
        }

    def _skip_punctuation(self) -> None:
        while self.index < len(self.tokens) and is_punctuation(self.tokens[self.index].unit):
            self.index += 1

    def _finish_unit(self, now: int) -> None:
        token = self.tokens[self.index]
        correct = self._unit_wrong is None
        elapsed = now - self._unit_start if self._unit_start is not None else 0
        self.attempts.append(CharacterAttempt(
            token.unit, max(0, elapsed), correct,
            hint_used=self._unit_hint, typed_wrong=self._unit_wrong
        ))
        if correct:
            self._streak += 1
            self._max_streak = max(self._max_streak, self._streak)
        self.index += 1
        # The next unit's clock starts when this one is done
        self._unit_start = now
        self._unit_hint = False
        self._unit_wrong = None
        self._skip_punctuation()

    def _mark_wrong(self, typed: str) -> None:
        if self._unit_wrong is None:
            self._unit_wrong = typed
        self.had_errors = True
        self._streak = 0

    def feed_key(self, key: str, now: int = None) -> MatchOutcome:
        """Process one keystroke for the current sentence.

        A wrong keystroke marks the current unit as missed and is dropped
        from the buffer. Input typed past the end of a unit carries over to
        the next one.
        """
        if self.sentence is None:
            raise SessionError("No sentence is being practiced")
        if self.is_complete:
            raise SessionError("Sentence is already complete")
        now = now if now is not None else now_ms()
        if self._unit_start is None:
            self._unit_start = now

        self.buffer += key
        first = None
        while True:
            outcome = match_romaji(self.tokens, self.index, self.buffer)
            if first is None:
                first = outcome
            if outcome.matched:
                remainder = self.buffer[outcome.consumed:]
                self._finish_unit(now)
                self.buffer = remainder
                if remainder and not self.is_complete:
                    continue
                self.buffer = ''
            elif not outcome.partial:
                self._mark_wrong(self.buffer)
                self.buffer = ''
            break
        return first

    def feed_text(self, text: str, start_ms: int, end_ms: int) -> list[MatchOutcome]:
        """Feed a line of input with keystroke times spread evenly over the interval."""
        outcomes = []
        if not text:
            return outcomes
        if self._unit_start is None:
            self._unit_start = start_ms
        step = max(0, end_ms - start_ms) / len(text)
        for i, key in enumerate(text):
            if self.is_complete:
                break
            outcomes.append(self.feed_key(key, int(start_ms + step * (i + 1))))
        return outcomes

    def mark_hint(self) -> str:
        """Flag the current unit as hinted and return its spelling."""
        if self.current_token is None:
            raise SessionError("No unit to hint")
        self._unit_hint = True
        return spell_token(self.tokens, self.index)

    def complete(self, now: int = None) -> SentenceResult:
        """Commit the finished sentence: unit mastery, history, profile, activity."""
        if not self.is_complete:
            raise SessionError("Sentence is not complete")
        now = now if now is not None else now_ms()

        profile = self.load_profile(now)
        stats_map = self.storage.get_all_character_stats()

        touched = {}
        for attempt in self.attempts:
            current = touched.get(attempt.unit) or stats_map.get(attempt.unit)
            touched[attempt.unit] = apply_attempt(current, attempt, profile.speed_baseline_ms, now)
        stats_map.update(touched)

        result = SentenceResult.from_attempts(self.sentence.id, self.attempts)
        result.had_errors = result.had_errors or self.had_errors

        before = profile.current_difficulty
        profile.apply(apply_sentence_result(profile, result, stats_map, now))

        self.storage.upsert_character_stats(list(touched.values()))
        self.storage.log_attempts(self.session_id, self.sentence.id, self.attempts, now)
        if self.history_id is not None:
            self.storage.complete_sentence_history(
                self.history_id, result.accuracy, result.avg_time_ms, result.hints_used, now)
        self.storage.save_profile(profile)
        self.storage.record_daily_activity(day_of(now), now)

        self.total_chars += result.total_chars
        self.correct_chars += result.correct_chars
        self.current_streak = self._streak
        self.max_streak = self._max_streak
        if self.active:
            self.storage.update_session(self.session_id, self.total_chars,
                                        self.correct_chars, self.max_streak)

        logger.info(f"Completed [{result.sentence_id}]: accuracy={result.accuracy:.2f}, "
                    f"avg={result.avg_time_ms:.0f}ms, "
                    f"difficulty {before:.2f} -> {profile.current_difficulty:.2f}")
        self._reset_sentence()
        return result

    # Summaries

    def last_session_summary(self) -> dict | None:
        last = self.storage.get_last_session()
        if not last or not last.get('total_chars'):
            return None
        return {
            'accuracy': round(last['correct_chars'] / last['total_chars'] * 100),
            'max_streak': last['max_streak']
        }

    def day_streak(self, today: date = None) -> int:
        return day_streak(self.storage.get_activity_dates(), today or day_of(now_ms()))
