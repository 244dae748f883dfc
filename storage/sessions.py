"""Persistence for interview session headers and rolling metrics."""
from __future__ import annotations

import json
import sqlite3
import threading
from typing import Any, Dict, Literal, Optional, Protocol

from pydantic import BaseModel, Field

from agents.types import EngagementLevel
from topic_tree.models import utc_now

from .sqlite import get_conn

SessionStatus = Literal["active", "closed"]


class SessionMetrics(BaseModel):
    """Rolling per-session metrics written after every graded turn."""

    turn_count: int = Field(default=0, ge=0)
    total_depth: int = Field(default=0, ge=0)
    max_depth: int = Field(default=0, ge=0)
    exhausted_count: int = Field(default=0, ge=0)
    score: int = Field(default=0, ge=0, le=100)
    average_engagement: EngagementLevel = "medium"
    buzzwords: Dict[str, Any] = Field(default_factory=dict)
    topic_tree: Optional[Dict[str, Any]] = None


class SessionRecord(BaseModel):
    session_id: str
    user_id: str
    status: SessionStatus = "active"
    metrics: SessionMetrics = Field(default_factory=SessionMetrics)
    started_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)


class SessionRepository(Protocol):
    def get_or_create(self, session_id: str, user_id: str) -> SessionRecord:
        ...

    def update_metrics(self, session_id: str, metrics: SessionMetrics) -> None:
        ...


def _record_from_row(row: sqlite3.Row) -> SessionRecord:
    tree = row["topic_tree_json"]
    return SessionRecord(
        session_id=row["session_id"],
        user_id=row["user_id"],
        status=row["status"],
        metrics=SessionMetrics(
            turn_count=row["turn_count"],
            total_depth=row["total_depth"],
            max_depth=row["max_depth"],
            exhausted_count=row["exhausted_count"],
            score=row["score"],
            average_engagement=row["average_engagement"],
            buzzwords=json.loads(row["buzzwords_json"] or "{}"),
            topic_tree=json.loads(tree) if tree else None,
        ),
        started_at=row["started_at"],
        updated_at=row["updated_at"],
    )


class SqliteSessionRepository:
    """``interview_sessions`` table accessor."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                "SELECT * FROM interview_sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        return _record_from_row(row) if row else None

    def get_or_create(self, session_id: str, user_id: str) -> SessionRecord:
        now = utc_now()
        with get_conn(self._db_path) as conn:
            conn.execute(
                """INSERT OR IGNORE INTO interview_sessions
                   (session_id, user_id, status, started_at, updated_at)
                   VALUES (?, ?, 'active', ?, ?)""",
                (session_id, user_id, now, now),
            )
            row = conn.execute(
                "SELECT * FROM interview_sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        return _record_from_row(row)

    def update_metrics(self, session_id: str, metrics: SessionMetrics) -> None:
        with get_conn(self._db_path) as conn:
            conn.execute(
                """UPDATE interview_sessions
                   SET turn_count = ?, total_depth = ?, max_depth = ?, exhausted_count = ?,
                       score = ?, average_engagement = ?, buzzwords_json = ?, topic_tree_json = ?,
                       updated_at = ?
                   WHERE session_id = ?""",
                (
                    metrics.turn_count,
                    metrics.total_depth,
                    metrics.max_depth,
                    metrics.exhausted_count,
                    metrics.score,
                    metrics.average_engagement,
                    json.dumps(metrics.buzzwords, ensure_ascii=False),
                    json.dumps(metrics.topic_tree, ensure_ascii=False) if metrics.topic_tree is not None else None,
                    utc_now(),
                    session_id,
                ),
            )

    def mark_closed(self, session_id: str) -> None:
        with get_conn(self._db_path) as conn:
            conn.execute(
                "UPDATE interview_sessions SET status = 'closed', updated_at = ? WHERE session_id = ?",
                (utc_now(), session_id),
            )


class InMemorySessionRepository:
    """Process-local repository used in tests and when embedding the engine."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.sessions: Dict[str, SessionRecord] = {}

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            record = self.sessions.get(session_id)
            return record.model_copy(deep=True) if record else None

    def get_or_create(self, session_id: str, user_id: str) -> SessionRecord:
        with self._lock:
            record = self.sessions.setdefault(session_id, SessionRecord(session_id=session_id, user_id=user_id))
            return record.model_copy(deep=True)

    def update_metrics(self, session_id: str, metrics: SessionMetrics) -> None:
        with self._lock:
            record = self.sessions.get(session_id)
            if record is None:
                return
            record.metrics = metrics.model_copy(deep=True)
            record.updated_at = utc_now()

    def mark_closed(self, session_id: str) -> None:
        with self._lock:
            record = self.sessions.get(session_id)
            if record is not None:
                record.status = "closed"


__all__ = [
    "InMemorySessionRepository",
    "SessionMetrics",
    "SessionRecord",
    "SessionRepository",
    "SqliteSessionRepository",
]
