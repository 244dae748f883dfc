"""SQLite schema migrations."""
from __future__ import annotations

from typing import Iterable, Optional

from config.settings import settings

from .sqlite import get_conn

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS interview_sessions (
  session_id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  status TEXT NOT NULL DEFAULT 'active',
  turn_count INTEGER NOT NULL DEFAULT 0,
  total_depth INTEGER NOT NULL DEFAULT 0,
  max_depth INTEGER NOT NULL DEFAULT 0,
  exhausted_count INTEGER NOT NULL DEFAULT 0,
  score INTEGER NOT NULL DEFAULT 0,
  average_engagement TEXT NOT NULL DEFAULT 'medium',
  buzzwords_json TEXT NOT NULL DEFAULT '{}',
  topic_tree_json TEXT,
  started_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS user_skills (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL,
  skill_name TEXT NOT NULL,
  mention_count INTEGER NOT NULL,
  average_confidence REAL NOT NULL,
  average_engagement TEXT NOT NULL,
  topic_depth_average REAL NOT NULL,
  proficiency_score INTEGER NOT NULL,
  first_mentioned TEXT NOT NULL,
  last_mentioned TEXT NOT NULL
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_user_skills_user ON user_skills (user_id);
""",
    """
CREATE TABLE IF NOT EXISTS skill_mentions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_skill_id TEXT NOT NULL,
  user_id TEXT NOT NULL,
  session_id TEXT NOT NULL,
  turn_index INTEGER NOT NULL,
  evidence TEXT NOT NULL,
  confidence REAL NOT NULL,
  engagement_level TEXT NOT NULL,
  topic_depth INTEGER NOT NULL,
  conversation_context TEXT NOT NULL,
  created_at TEXT NOT NULL,
  FOREIGN KEY(user_skill_id) REFERENCES user_skills(id) ON DELETE CASCADE
);
""",
]


def migrate(db_path: Optional[str] = None) -> None:
    """Apply schema migrations to the SQLite database."""

    with get_conn(db_path or settings.DB_PATH) as conn:
        for stmt in SCHEMA:
            conn.execute(stmt)


if __name__ == "__main__":
    migrate()
