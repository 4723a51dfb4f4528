"""PostgreSQL storage implementation."""

import json
import logging
import os
from datetime import date

import psycopg2
from psycopg2.extras import RealDictCursor, execute_values

from core.interfaces import Storage
from core.models import CharacterStats, CharacterAttempt, UserProfile

logger = logging.getLogger(__name__)

PROFILE_ID = 1


class PostgresStorage(Storage):
    """PostgreSQL-based storage implementation."""

    def __init__(self, db_url: str = None):
        self.db_url = db_url or os.environ.get(
            'DATABASE_URL',
            'postgresql://localhost:5432/kanatype'
        )
        self._conn = None
        self._initialized = False

    @property
    def conn(self):
        """Lazy connection initialization."""
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            if not self._initialized:
                self._init_db()
                self._initialized = True
        return self._conn

    def _init_db(self):
        """Create tables if they don't exist."""
        with self._conn.cursor() as cur:
            cur.execute("""
                CREATE TABLE IF NOT EXISTS user_profile (
                    id INTEGER PRIMARY KEY,
                    overall_skill REAL NOT NULL DEFAULT 0,
                    current_difficulty REAL NOT NULL DEFAULT 1.0,
                    speed_baseline_ms REAL NOT NULL DEFAULT 1000,
                    consecutive_perfect INTEGER NOT NULL DEFAULT 0,
                    consecutive_struggle INTEGER NOT NULL DEFAULT 0,
                    total_practice_ms BIGINT NOT NULL DEFAULT 0,
                    chars_typed_total INTEGER NOT NULL DEFAULT 0,
                    created_at BIGINT,
                    updated_at BIGINT
                )
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS progress (
                    character VARCHAR(16) PRIMARY KEY,
                    correct INTEGER NOT NULL DEFAULT 0,
                    incorrect INTEGER NOT NULL DEFAULT 0,
                    hint_shown INTEGER NOT NULL DEFAULT 0,
                    hint_used INTEGER NOT NULL DEFAULT 0,
                    total_time_ms BIGINT NOT NULL DEFAULT 0,
                    attempt_count INTEGER NOT NULL DEFAULT 0,
                    best_time_ms INTEGER,
                    recent_times JSONB NOT NULL DEFAULT '[]',
                    mastery_score REAL NOT NULL DEFAULT 0,
                    level VARCHAR(16) NOT NULL DEFAULT 'new',
                    last_seen BIGINT,
                    next_review_at BIGINT
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_progress_next_review ON progress(next_review_at)
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS attempt_log (
                    id SERIAL PRIMARY KEY,
                    session_id INTEGER,
                    sentence_id VARCHAR(64) NOT NULL,
                    character VARCHAR(16) NOT NULL,
                    correct BOOLEAN NOT NULL,
                    time_ms INTEGER NOT NULL,
                    hint_used BOOLEAN NOT NULL DEFAULT FALSE,
                    typed_wrong VARCHAR(64),
                    timestamp BIGINT NOT NULL
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_attempt_log_character ON attempt_log(character)
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS sentence_history (
                    id SERIAL PRIMARY KEY,
                    sentence_id VARCHAR(64) NOT NULL,
                    session_id INTEGER,
                    difficulty REAL,
                    shown_at BIGINT NOT NULL,
                    completed_at BIGINT,
                    accuracy REAL,
                    avg_time_ms REAL,
                    hints_used INTEGER
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_sentence_history_shown ON sentence_history(shown_at)
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    id SERIAL PRIMARY KEY,
                    started_at BIGINT NOT NULL,
                    ended_at BIGINT,
                    total_chars INTEGER NOT NULL DEFAULT 0,
                    correct_chars INTEGER NOT NULL DEFAULT 0,
                    max_streak INTEGER NOT NULL DEFAULT 0
                )
            """)
            cur.execute("""
                CREATE TABLE IF NOT EXISTS daily_activity (
                    day DATE PRIMARY KEY,
                    sentences INTEGER NOT NULL DEFAULT 0,
                    first_at BIGINT NOT NULL,
                    last_at BIGINT NOT NULL
                )
            """)
        self._conn.commit()

    def close(self):
        """Close the database connection."""
        if self._conn and not self._conn.closed:
            self._conn.close()

    def _write(self, action: str, sql: str, params: tuple = ()):
        """Run one write statement and commit, rolling back on failure."""
        try:
            with self.conn.cursor() as cur:
                cur.execute(sql, params)
                row = cur.fetchone() if cur.description else None
            self.conn.commit()
            return row
        except psycopg2.Error as e:
            logger.error(f"Error {action}: {e}")
            self.conn.rollback()
            raise

    def load_profile(self) -> UserProfile | None:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("SELECT * FROM user_profile WHERE id = %s", (PROFILE_ID,))
            row = cur.fetchone()
        return UserProfile.from_dict(dict(row)) if row else None

    def save_profile(self, profile: UserProfile) -> None:
        data = profile.to_dict()
        columns = list(data)
        self._write('saving profile', f"""
            INSERT INTO user_profile (id, {', '.join(columns)})
            VALUES (%s, {', '.join(['%s'] * len(columns))})
            ON CONFLICT (id) DO UPDATE SET
                {', '.join(f'{c} = EXCLUDED.{c}' for c in columns)}
        """, (PROFILE_ID, *data.values()))

    @staticmethod
    def _stats_from_row(row: dict) -> CharacterStats:
        data = dict(row)
        if isinstance(data.get('recent_times'), str):
            data['recent_times'] = json.loads(data['recent_times'])
        return CharacterStats.from_dict(data)

    def get_character_stats(self, character: str) -> CharacterStats | None:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("SELECT * FROM progress WHERE character = %s", (character,))
            row = cur.fetchone()
        return self._stats_from_row(row) if row else None

    def get_all_character_stats(self) -> dict[str, CharacterStats]:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("SELECT * FROM progress")
            rows = cur.fetchall()
        return {row['character']: self._stats_from_row(row) for row in rows}

    def upsert_character_stats(self, stats: list[CharacterStats]) -> None:
        if not stats:
            return
        columns = list(stats[0].to_dict())
        values = []
        for s in stats:
            data = s.to_dict()
            data['recent_times'] = json.dumps(data['recent_times'])
            values.append(tuple(data[c] for c in columns))
        try:
            with self.conn.cursor() as cur:
                execute_values(cur, f"""
                    INSERT INTO progress ({', '.join(columns)}) VALUES %s
                    ON CONFLICT (character) DO UPDATE SET
                        {', '.join(f'{c} = EXCLUDED.{c}' for c in columns if c != 'character')}
                """, values)
            self.conn.commit()
        except psycopg2.Error as e:
            logger.error(f"Error saving character stats: {e}")
            self.conn.rollback()
            raise

    def log_attempts(self, session_id: int | None, sentence_id: str,
                     attempts: list[CharacterAttempt], timestamp: int) -> None:
        if not attempts:
            return
        values = [(session_id, sentence_id, a.unit, a.correct, a.time_ms,
                   a.hint_used, a.typed_wrong, timestamp) for a in attempts]
        try:
            with self.conn.cursor() as cur:
                execute_values(cur, """
                    INSERT INTO attempt_log (session_id, sentence_id, character, correct, time_ms,
                                             hint_used, typed_wrong, timestamp)
                    VALUES %s
                """, values)
            self.conn.commit()
        except psycopg2.Error as e:
            logger.error(f"Error logging attempts: {e}")
            self.conn.rollback()
            raise

    def record_sentence_shown(self, sentence_id: str, session_id: int | None,
                              difficulty: float, timestamp: int) -> int:
        row = self._write('recording sentence', """
            INSERT INTO sentence_history (sentence_id, session_id, difficulty, shown_at)
            VALUES (%s, %s, %s, %s) RETURNING id
        """, (sentence_id, session_id, difficulty, timestamp))
        return row[0]

    def complete_sentence_history(self, history_id: int, accuracy: float, avg_time_ms: float,
                                  hints_used: int, timestamp: int) -> None:
        self._write('completing sentence history', """
            UPDATE sentence_history
            SET completed_at = %s, accuracy = %s, avg_time_ms = %s, hints_used = %s
            WHERE id = %s
        """, (timestamp, accuracy, avg_time_ms, hints_used, history_id))

    def get_recent_sentence_ids(self, limit: int) -> list[str]:
        with self.conn.cursor() as cur:
            cur.execute("""
                SELECT sentence_id FROM sentence_history
                ORDER BY shown_at DESC, id DESC LIMIT %s
            """, (limit,))
            return [row[0] for row in cur.fetchall()]

    def start_session(self, timestamp: int) -> int:
        row = self._write('starting session', """
            INSERT INTO sessions (started_at) VALUES (%s) RETURNING id
        """, (timestamp,))
        return row[0]

    def update_session(self, session_id: int, total_chars: int, correct_chars: int,
                       max_streak: int) -> None:
        self._write('updating session', """
            UPDATE sessions SET total_chars = %s, correct_chars = %s, max_streak = %s
            WHERE id = %s
        """, (total_chars, correct_chars, max_streak, session_id))

    def end_session(self, session_id: int, total_chars: int, correct_chars: int,
                    max_streak: int, timestamp: int) -> None:
        self._write('ending session', """
            UPDATE sessions
            SET total_chars = %s, correct_chars = %s, max_streak = %s, ended_at = %s
            WHERE id = %s
        """, (total_chars, correct_chars, max_streak, timestamp, session_id))

    def get_last_session(self) -> dict | None:
        with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("""
                SELECT * FROM sessions WHERE ended_at IS NOT NULL
                ORDER BY ended_at DESC LIMIT 1
            """)
            row = cur.fetchone()
        return dict(row) if row else None

    def record_daily_activity(self, day: date, timestamp: int) -> bool:
        row = self._write('recording daily activity', """
            INSERT INTO daily_activity (day, sentences, first_at, last_at)
            VALUES (%s, 1, %s, %s)
            ON CONFLICT (day) DO UPDATE SET
                sentences = daily_activity.sentences + 1,
                last_at = EXCLUDED.last_at
            RETURNING sentences
        """, (day, timestamp, timestamp))
        return row[0] == 1

    def get_activity_dates(self) -> list[date]:
        with self.conn.cursor() as cur:
            cur.execute("SELECT day FROM daily_activity ORDER BY day DESC")
            return [row[0] for row in cur.fetchall()]
