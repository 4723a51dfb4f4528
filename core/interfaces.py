"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod
from datetime import date

from .models import CharacterStats, CharacterAttempt, UserProfile


class Storage(ABC):
    """Abstract base class for progress persistence.

    One learner per store. The engine reads stats and the profile once per
    sentence completion and writes them back in the same call.
    """

    @abstractmethod
    def load_profile(self) -> UserProfile | None:
        """Load the learner profile. Returns None if not created yet."""
        pass

    @abstractmethod
    def save_profile(self, profile: UserProfile) -> None:
        """Save the learner profile."""
        pass

    @abstractmethod
    def get_character_stats(self, character: str) -> CharacterStats | None:
        """Get stats for one phonetic unit, or None if never attempted."""
        pass

    @abstractmethod
    def get_all_character_stats(self) -> dict[str, CharacterStats]:
        """Get stats for every attempted unit, keyed by unit."""
        pass

    @abstractmethod
    def upsert_character_stats(self, stats: list[CharacterStats]) -> None:
        """Insert or replace stats records."""
        pass

    @abstractmethod
    def log_attempts(self, session_id: int | None, sentence_id: str,
                     attempts: list[CharacterAttempt], timestamp: int) -> None:
        """Append a sentence's attempts to the attempt log. Write-only for analytics."""
        pass

    @abstractmethod
    def record_sentence_shown(self, sentence_id: str, session_id: int | None,
                              difficulty: float, timestamp: int) -> int:
        """Record a sentence presentation. Returns the history entry id."""
        pass

    @abstractmethod
    def complete_sentence_history(self, history_id: int, accuracy: float, avg_time_ms: float,
                                  hints_used: int, timestamp: int) -> None:
        """Attach completion stats to a history entry."""
        pass

    @abstractmethod
    def get_recent_sentence_ids(self, limit: int) -> list[str]:
        """Most recently shown sentence ids, most recent first."""
        pass

    @abstractmethod
    def start_session(self, timestamp: int) -> int:
        """Open a practice session record. Returns its id."""
        pass

    @abstractmethod
    def update_session(self, session_id: int, total_chars: int, correct_chars: int,
                       max_streak: int) -> None:
        """Update running totals for a session."""
        pass

    @abstractmethod
    def end_session(self, session_id: int, total_chars: int, correct_chars: int,
                    max_streak: int, timestamp: int) -> None:
        """Close a session with its final totals."""
        pass

    @abstractmethod
    def get_last_session(self) -> dict | None:
        """Most recently ended session as {id, started_at, ended_at, total_chars,
        correct_chars, max_streak}, or None."""
        pass

    @abstractmethod
    def record_daily_activity(self, day: date, timestamp: int) -> bool:
        """Count a completed sentence for a day. Returns True if it was the first that day."""
        pass

    @abstractmethod
    def get_activity_dates(self) -> list[date]:
        """All days with at least one completed sentence."""
        pass
