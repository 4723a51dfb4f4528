"""File-based storage implementation."""

import json
import logging
import os
from datetime import date

from core.interfaces import Storage
from core.models import CharacterStats, CharacterAttempt, UserProfile

logger = logging.getLogger(__name__)


def _empty_state() -> dict:
    return {
        'profile': None,
        'characters': {},
        'attempts': [],
        'sentence_history': [],
        'sessions': [],
        'daily_activity': {}
    }


class FileStorage(Storage):
    """Keeps all progress in one JSON document."""

    def __init__(self, state_dir: str = None):
        self.state_dir = state_dir or os.path.expanduser('~/.local/share/kanatype')
        self.state_file = os.path.join(self.state_dir, 'kanatype_state.json')

    def load_state(self) -> dict:
        if not os.path.exists(self.state_file):
            return _empty_state()
        try:
            with open(self.state_file, 'r', encoding='utf-8') as f:
                state = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading state from {self.state_file}: {e}")
            return _empty_state()
        return {**_empty_state(), **state}

    def save_state(self, state: dict) -> None:
        os.makedirs(self.state_dir, exist_ok=True)
        tmp_file = self.state_file + '.tmp'
        with open(tmp_file, 'w', encoding='utf-8') as f:
            json.dump(state, f, indent=2, ensure_ascii=False)
        os.replace(tmp_file, self.state_file)

    def load_profile(self) -> UserProfile | None:
        data = self.load_state()['profile']
        return UserProfile.from_dict(data) if data else None

    def save_profile(self, profile: UserProfile) -> None:
        state = self.load_state()
        state['profile'] = profile.to_dict()
        self.save_state(state)

    def get_character_stats(self, character: str) -> CharacterStats | None:
        data = self.load_state()['characters'].get(character)
        return CharacterStats.from_dict(data) if data else None

    def get_all_character_stats(self) -> dict[str, CharacterStats]:
        return {c: CharacterStats.from_dict(data)
                for c, data in self.load_state()['characters'].items()}

    def upsert_character_stats(self, stats: list[CharacterStats]) -> None:
        if not stats:
            return
        state = self.load_state()
        for s in stats:
            state['characters'][s.character] = s.to_dict()
        self.save_state(state)

    def log_attempts(self, session_id: int | None, sentence_id: str,
                     attempts: list[CharacterAttempt], timestamp: int) -> None:
        if not attempts:
            return
        state = self.load_state()
        state['attempts'].extend({
            'session_id': session_id,
            'sentence_id': sentence_id,
            'timestamp': timestamp,
            **attempt.to_dict()
        } for attempt in attempts)
        self.save_state(state)

    def record_sentence_shown(self, sentence_id: str, session_id: int | None,
                              difficulty: float, timestamp: int) -> int:
        state = self.load_state()
        history_id = len(state['sentence_history']) + 1
        state['sentence_history'].append({
            'id': history_id,
            'sentence_id': sentence_id,
            'session_id': session_id,
            'difficulty': difficulty,
            'shown_at': timestamp,
            'completed_at': None,
            'accuracy': None,
            'avg_time_ms': None,
            'hints_used': None
        })
        self.save_state(state)
        return history_id

    def complete_sentence_history(self, history_id: int, accuracy: float, avg_time_ms: float,
                                  hints_used: int, timestamp: int) -> None:
        state = self.load_state()
        for entry in state['sentence_history']:
            if entry['id'] == history_id:
                entry.update(completed_at=timestamp, accuracy=accuracy,
                             avg_time_ms=avg_time_ms, hints_used=hints_used)
                break
        else:
            logger.warning(f"Sentence history entry {history_id} not found")
            return
        self.save_state(state)

    def get_recent_sentence_ids(self, limit: int) -> list[str]:
        history = self.load_state()['sentence_history']
        ordered = sorted(history, key=lambda h: (h['shown_at'], h['id']), reverse=True)
        return [h['sentence_id'] for h in ordered[:limit]]

    def start_session(self, timestamp: int) -> int:
        state = self.load_state()
        session_id = len(state['sessions']) + 1
        state['sessions'].append({
            'id': session_id,
            'started_at': timestamp,
            'ended_at': None,
            'total_chars': 0,
            'correct_chars': 0,
            'max_streak': 0
        })
        self.save_state(state)
        return session_id

    def _update_session(self, session_id: int, **fields) -> None:
        state = self.load_state()
        for session in state['sessions']:
            if session['id'] == session_id:
                session.update(fields)
                self.save_state(state)
                return
        logger.warning(f"Session {session_id} not found")

    def update_session(self, session_id: int, total_chars: int, correct_chars: int,
                       max_streak: int) -> None:
        self._update_session(session_id, total_chars=total_chars,
                             correct_chars=correct_chars, max_streak=max_streak)

    def end_session(self, session_id: int, total_chars: int, correct_chars: int,
                    max_streak: int, timestamp: int) -> None:
        self._update_session(session_id, total_chars=total_chars, correct_chars=correct_chars,
                             max_streak=max_streak, ended_at=timestamp)

    def get_last_session(self) -> dict | None:
        ended = [s for s in self.load_state()['sessions'] if s.get('ended_at')]
        if not ended:
            return None
        return dict(max(ended, key=lambda s: s['ended_at']))

    def record_daily_activity(self, day: date, timestamp: int) -> bool:
        state = self.load_state()
        key = day.isoformat()
        first = key not in state['daily_activity']
        entry = state['daily_activity'].setdefault(key, {'sentences': 0, 'first_at': timestamp})
        entry['sentences'] += 1
        entry['last_at'] = timestamp
        self.save_state(state)
        return first

    def get_activity_dates(self) -> list[date]:
        return [date.fromisoformat(d) for d in self.load_state()['daily_activity']]
