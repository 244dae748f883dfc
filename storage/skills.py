"""Persistence for skill proficiency records and their audit mentions."""
from __future__ import annotations

import sqlite3
import threading
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from agents.types import EngagementLevel
from topic_tree.models import utc_now

from .sqlite import get_conn


class SkillRecord(BaseModel):
    """Aggregated proficiency for one (user, skill) pair."""

    id: str
    user_id: str
    skill_name: str
    mention_count: int = Field(ge=1)
    average_confidence: float = Field(ge=0.0, le=1.0)
    average_engagement: EngagementLevel
    topic_depth_average: float = Field(ge=0.0)
    proficiency_score: int = Field(ge=0, le=100)
    first_mentioned: str = Field(default_factory=utc_now)
    last_mentioned: str = Field(default_factory=utc_now)


class SkillMentionRecord(BaseModel):
    """Append-only audit row; never updated once written."""

    model_config = ConfigDict(frozen=True)

    user_skill_id: str
    user_id: str
    session_id: str
    turn_index: int = Field(ge=0)
    evidence: str
    confidence: float = Field(ge=0.0, le=1.0)
    engagement_level: EngagementLevel
    topic_depth: int = Field(ge=0)
    conversation_context: str
    created_at: str = Field(default_factory=utc_now)


class SkillRepository(Protocol):
    def get_skill(self, skill_id: str) -> Optional[SkillRecord]:
        ...

    def upsert_skill(self, record: SkillRecord) -> None:
        ...

    def append_mention(self, mention: SkillMentionRecord) -> int:
        ...


def _record_from_row(row: sqlite3.Row) -> SkillRecord:
    return SkillRecord.model_validate(dict(row))


class SqliteSkillRepository:
    """``user_skills`` / ``skill_mentions`` backed by the configured SQLite database."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def get_skill(self, skill_id: str) -> Optional[SkillRecord]:
        with get_conn(self._db_path) as conn:
            row = conn.execute("SELECT * FROM user_skills WHERE id = ?", (skill_id,)).fetchone()
        return _record_from_row(row) if row else None

    def list_skills(self, user_id: str) -> List[SkillRecord]:
        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM user_skills WHERE user_id = ? ORDER BY proficiency_score DESC, skill_name",
                (user_id,),
            ).fetchall()
        return [_record_from_row(row) for row in rows]

    def upsert_skill(self, record: SkillRecord) -> None:
        with get_conn(self._db_path) as conn:
            conn.execute(
                """INSERT INTO user_skills
                   (id, user_id, skill_name, mention_count, average_confidence, average_engagement,
                    topic_depth_average, proficiency_score, first_mentioned, last_mentioned)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                     mention_count = excluded.mention_count,
                     average_confidence = excluded.average_confidence,
                     average_engagement = excluded.average_engagement,
                     topic_depth_average = excluded.topic_depth_average,
                     proficiency_score = excluded.proficiency_score,
                     last_mentioned = excluded.last_mentioned""",
                (
                    record.id,
                    record.user_id,
                    record.skill_name,
                    record.mention_count,
                    record.average_confidence,
                    record.average_engagement,
                    record.topic_depth_average,
                    record.proficiency_score,
                    record.first_mentioned,
                    record.last_mentioned,
                ),
            )

    def append_mention(self, mention: SkillMentionRecord) -> int:
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """INSERT INTO skill_mentions
                   (user_skill_id, user_id, session_id, turn_index, evidence, confidence,
                    engagement_level, topic_depth, conversation_context, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    mention.user_skill_id,
                    mention.user_id,
                    mention.session_id,
                    mention.turn_index,
                    mention.evidence,
                    mention.confidence,
                    mention.engagement_level,
                    mention.topic_depth,
                    mention.conversation_context,
                    mention.created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_mentions(self, skill_id: str) -> List[SkillMentionRecord]:
        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                """SELECT user_skill_id, user_id, session_id, turn_index, evidence, confidence,
                          engagement_level, topic_depth, conversation_context, created_at
                   FROM skill_mentions WHERE user_skill_id = ? ORDER BY id""",
                (skill_id,),
            ).fetchall()
        return [SkillMentionRecord.model_validate(dict(row)) for row in rows]


class InMemorySkillRepository:
    """Process-local repository used in tests and when embedding the engine."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.skills: Dict[str, SkillRecord] = {}
        self.mentions: List[SkillMentionRecord] = []

    def get_skill(self, skill_id: str) -> Optional[SkillRecord]:
        with self._lock:
            record = self.skills.get(skill_id)
            return record.model_copy() if record else None

    def upsert_skill(self, record: SkillRecord) -> None:
        with self._lock:
            self.skills[record.id] = record.model_copy()

    def append_mention(self, mention: SkillMentionRecord) -> int:
        with self._lock:
            self.mentions.append(mention)
            return len(self.mentions)


__all__ = [
    "InMemorySkillRepository",
    "SkillMentionRecord",
    "SkillRecord",
    "SkillRepository",
    "SqliteSkillRepository",
]
