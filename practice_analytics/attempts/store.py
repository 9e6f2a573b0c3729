"""
SQLite Attempt Store.

Provides portable persistence for per-user question attempts:
- attempt and correct-attempt counts, current streak, cumulative time
- last-attempt correctness, confidence and the raw answer events
- stimulus performance (with struggle score) for stimulus-bearing questions

Database location: ~/.practice_analytics/attempts.db (see config.Settings)
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from loguru import logger

from config import Settings, get_settings
from practice_analytics.attempts.models import (
    DEFAULT_EXPECTED_TIME_SECONDS,
    QuestionAttempt,
    StimulusPerformance,
    calculate_struggle_score,
)
from practice_analytics.bank.models import StimulusMeta
from practice_analytics.exceptions import AttemptStoreError, InvalidAttemptError


class AttemptStore:
    """
    SQLite-backed attempt persistence.

    Handles:
    - Recording answers (rolling up counts, streak, time, stimulus struggle)
    - Bulk import of already-rolled-up attempts
    - Reading a user's full attempt list for analytics
    """

    def __init__(
        self,
        db_path: Path | str | None = None,
        expected_time_seconds: float = DEFAULT_EXPECTED_TIME_SECONDS,
    ):
        """
        Initialize the attempt store.

        Args:
            db_path: Database path, or ":memory:" (defaults to settings.attempts_db_path)
            expected_time_seconds: Expected time per question for struggle scoring
        """
        self.db_path = str(db_path) if db_path is not None else str(get_settings().attempts_db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.expected_time_seconds = expected_time_seconds

        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._init_schema()

        logger.debug(f"AttemptStore initialized at {self.db_path}")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AttemptStore":
        settings = settings or get_settings()
        return cls(
            db_path=settings.attempts_db_path,
            expected_time_seconds=settings.struggle_expected_time_seconds,
        )

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_schema(self) -> None:
        """Initialize database schema."""
        try:
            with self._lock:
                self.conn.execute("""
                    CREATE TABLE IF NOT EXISTS question_attempts (
                        user_id TEXT NOT NULL,
                        question_id TEXT NOT NULL,
                        attempts INTEGER DEFAULT 0,
                        correct_attempts INTEGER DEFAULT 0,
                        streak INTEGER DEFAULT 0,
                        time_spent_seconds REAL DEFAULT 0,
                        is_correct BOOLEAN DEFAULT 0,
                        status TEXT DEFAULT 'unanswered',
                        confidence INTEGER,
                        last_attempt_timestamp REAL,
                        answer_events TEXT DEFAULT '[]',
                        correct_timestamps TEXT DEFAULT '[]',
                        stimulus_attempt_count INTEGER,
                        stimulus_time_spent_seconds REAL,
                        stimulus_was_correct BOOLEAN,
                        stimulus_struggle_score REAL,
                        PRIMARY KEY (user_id, question_id)
                    )
                """)
                self.conn.commit()
        except sqlite3.Error as e:
            raise AttemptStoreError(f"Could not initialize attempt store at {self.db_path}: {e}") from e

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "AttemptStore":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # =========================================================================
    # Reads
    # =========================================================================

    def get_attempt(self, user_id: str, question_id: str) -> QuestionAttempt | None:
        """Get the rolled-up attempt for one question, or None if never attempted."""
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT * FROM question_attempts WHERE user_id = ? AND question_id = ?",
                    (user_id, question_id),
                ).fetchone()
        except sqlite3.Error as e:
            raise AttemptStoreError(f"Failed to read attempt {question_id} for {user_id}: {e}") from e
        return self._row_to_attempt(row) if row else None

    def get_attempts(self, user_id: str) -> list[QuestionAttempt]:
        """
        Get every attempt recorded for a user.

        Args:
            user_id: The learner identifier

        Returns:
            List of QuestionAttempts ordered by question id
        """
        try:
            with self._lock:
                rows = self.conn.execute(
                    "SELECT * FROM question_attempts WHERE user_id = ? ORDER BY question_id",
                    (user_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise AttemptStoreError(f"Failed to read attempts for {user_id}: {e}") from e
        return [self._row_to_attempt(row) for row in rows]

    async def fetch_attempts(self, user_id: str) -> list[QuestionAttempt]:
        """Async wrapper around get_attempts for use at the analytics boundary."""
        return await asyncio.to_thread(self.get_attempts, user_id)

    @staticmethod
    def _row_to_attempt(row: sqlite3.Row) -> QuestionAttempt:
        stimulus = None
        if row["stimulus_attempt_count"] is not None:
            stimulus = StimulusPerformance(
                attempt_count=row["stimulus_attempt_count"],
                time_spent_seconds=row["stimulus_time_spent_seconds"] or 0.0,
                was_correct=bool(row["stimulus_was_correct"]),
                struggle_score=row["stimulus_struggle_score"] or 0.0,
            )
        return QuestionAttempt(
            question_id=row["question_id"],
            attempts=row["attempts"] or 0,
            correct_attempts=row["correct_attempts"] or 0,
            streak=row["streak"] or 0,
            time_spent_seconds=row["time_spent_seconds"] or 0.0,
            is_correct=bool(row["is_correct"]),
            status=row["status"] or "unanswered",
            confidence=row["confidence"],
            last_attempt_timestamp=row["last_attempt_timestamp"],
            answer_events=json.loads(row["answer_events"] or "[]"),
            correct_timestamps=json.loads(row["correct_timestamps"] or "[]"),
            stimulus_performance=stimulus,
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def record_attempt(
        self,
        user_id: str,
        question_id: str,
        is_correct: bool,
        time_spent_seconds: float = 0.0,
        confidence: int | None = None,
        stimulus_meta: StimulusMeta | None = None,
        option_id: str | None = None,
        timestamp: datetime | None = None,
    ) -> QuestionAttempt:
        """
        Record one answer and roll it into the question's attempt history.

        Args:
            user_id: The learner identifier
            question_id: Question key (explicit id or positional fallback key)
            is_correct: Whether the answer was correct
            time_spent_seconds: Time spent on this answer
            confidence: Optional self-reported confidence (1-5)
            stimulus_meta: The question's stimulus meta, if it has one
            option_id: Selected option id, stored on the answer event
            timestamp: When the answer was given (defaults to now, UTC)

        Returns:
            The updated QuestionAttempt
        """
        if confidence is not None and not 1 <= confidence <= 5:
            raise InvalidAttemptError(f"confidence must be between 1 and 5, got {confidence}")
        if time_spent_seconds < 0:
            raise InvalidAttemptError(f"time_spent_seconds must be >= 0, got {time_spent_seconds}")

        timestamp = timestamp or datetime.now(timezone.utc)
        # Lock is reentrant; the whole read-modify-write holds it
        with self._lock:
            attempt = self.get_attempt(user_id, question_id)
            if attempt is None:
                attempt = QuestionAttempt(question_id=question_id)

            attempt.attempts += 1
            attempt.time_spent_seconds += time_spent_seconds
            attempt.is_correct = is_correct
            attempt.status = "correct" if is_correct else "incorrect"
            attempt.last_attempt_timestamp = timestamp.timestamp()
            if is_correct:
                attempt.correct_attempts += 1
                attempt.streak += 1
                attempt.correct_timestamps.append(timestamp.isoformat())
            else:
                attempt.streak = 0
            if confidence is not None:
                attempt.confidence = confidence

            event: dict[str, Any] = {"timestamp": timestamp.isoformat(), "optionId": option_id or ""}
            if confidence is not None:
                event["confidence"] = confidence
            attempt.answer_events.append(event)

            if stimulus_meta is not None and stimulus_meta.has_stimulus:
                perf = attempt.stimulus_performance or StimulusPerformance()
                perf.attempt_count += 1
                perf.time_spent_seconds += time_spent_seconds
                perf.was_correct = is_correct
                # Latest attempt's score, not an average
                perf.struggle_score = calculate_struggle_score(
                    is_correct, time_spent_seconds, self.expected_time_seconds
                )
                attempt.stimulus_performance = perf

            self.save_attempts(user_id, [attempt])
        logger.debug(
            f"Recorded {'correct' if is_correct else 'incorrect'} attempt on {question_id} "
            f"for {user_id} (attempts={attempt.attempts}, streak={attempt.streak})"
        )
        return attempt

    def save_attempts(self, user_id: str, attempts: Iterable[QuestionAttempt]) -> int:
        """
        Save or replace rolled-up attempts for a user.

        Args:
            user_id: The learner identifier
            attempts: Attempts to upsert

        Returns:
            Number of attempts written
        """
        rows = []
        for attempt in attempts:
            perf = attempt.stimulus_performance
            rows.append(
                (
                    user_id,
                    attempt.question_id,
                    attempt.attempts,
                    attempt.correct_attempts,
                    attempt.streak,
                    attempt.time_spent_seconds,
                    attempt.is_correct,
                    attempt.status,
                    attempt.confidence,
                    attempt.last_attempt_timestamp,
                    json.dumps(attempt.answer_events),
                    json.dumps(attempt.correct_timestamps),
                    perf.attempt_count if perf else None,
                    perf.time_spent_seconds if perf else None,
                    perf.was_correct if perf else None,
                    perf.struggle_score if perf else None,
                )
            )

        try:
            with self._lock:
                self.conn.executemany(
                    """
                    INSERT INTO question_attempts (
                        user_id, question_id, attempts, correct_attempts, streak,
                        time_spent_seconds, is_correct, status, confidence,
                        last_attempt_timestamp, answer_events, correct_timestamps,
                        stimulus_attempt_count, stimulus_time_spent_seconds,
                        stimulus_was_correct, stimulus_struggle_score
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(user_id, question_id) DO UPDATE SET
                        attempts = excluded.attempts,
                        correct_attempts = excluded.correct_attempts,
                        streak = excluded.streak,
                        time_spent_seconds = excluded.time_spent_seconds,
                        is_correct = excluded.is_correct,
                        status = excluded.status,
                        confidence = excluded.confidence,
                        last_attempt_timestamp = excluded.last_attempt_timestamp,
                        answer_events = excluded.answer_events,
                        correct_timestamps = excluded.correct_timestamps,
                        stimulus_attempt_count = excluded.stimulus_attempt_count,
                        stimulus_time_spent_seconds = excluded.stimulus_time_spent_seconds,
                        stimulus_was_correct = excluded.stimulus_was_correct,
                        stimulus_struggle_score = excluded.stimulus_struggle_score
                """,
                    rows,
                )
                self.conn.commit()
        except sqlite3.Error as e:
            raise AttemptStoreError(f"Failed to save attempts for {user_id}: {e}") from e
        return len(rows)

    def clear_user(self, user_id: str) -> int:
        """Delete all attempts for a user. Returns the number of rows removed."""
        try:
            with self._lock:
                cursor = self.conn.execute(
                    "DELETE FROM question_attempts WHERE user_id = ?", (user_id,)
                )
                self.conn.commit()
        except sqlite3.Error as e:
            raise AttemptStoreError(f"Failed to clear attempts for {user_id}: {e}") from e
        logger.info(f"Cleared {cursor.rowcount} attempts for {user_id}")
        return cursor.rowcount
