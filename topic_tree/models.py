"""Pydantic models describing a session's topic tree and conversation state."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Set

from pydantic import BaseModel, Field

NodeStatus = Literal["unexplored", "exploring", "exhausted", "rich"]

ROOT_ID = "root"
ROOT_NAME = "General Background"
TERMINAL_STATUSES = frozenset({"exhausted", "rich"})


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TopicMention(BaseModel):
    turn_index: int
    timestamp: str = Field(default_factory=utc_now)
    response_text: str
    engagement_level: str


class TopicNode(BaseModel):
    """A unit of conversation subject matter at a given depth."""

    id: str
    name: str
    depth: int = Field(ge=0)
    parent_id: Optional[str] = None
    children: List[str] = Field(default_factory=list)
    status: NodeStatus = "unexplored"
    context: str = ""
    mentions: List[TopicMention] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now)


class TurnGrade(BaseModel):
    turn_index: int
    score: float
    timestamp: str = Field(default_factory=utc_now)
    content: str
    engagement_level: str


class BuzzwordEntry(BaseModel):
    count: int = 0
    sources: Set[int] = Field(default_factory=set)


class ConversationState(BaseModel):
    """Mutable per-session state owned by exactly one session."""

    session_id: str
    nodes: Dict[str, TopicNode] = Field(default_factory=dict)
    current_path: List[str] = Field(default_factory=list)
    exhausted_topics: List[str] = Field(default_factory=list)
    grades: List[TurnGrade] = Field(default_factory=list)
    buzzwords: Dict[str, BuzzwordEntry] = Field(default_factory=dict)
    start_time: str = Field(default_factory=utc_now)
    total_depth: int = 0
    max_depth_reached: int = 0
    turn_count: int = 0
    next_node_seq: int = 1
    root_resets: int = 0
    exploration_complete: bool = False
