"""Per-turn grading and session summaries."""
from __future__ import annotations

from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from agents.types import ResponseAnalysis
from topic_tree import ConversationState, TopicTreeStore, TurnGrade
from topic_tree.models import utc_now

from .buzzwords import BuzzwordCount, top

BASE_SCORE = 1.0
MAX_SCORE = 2.0

_ENGAGEMENT_DELTA = {"high": 0.5, "low": -0.3}
_LENGTH_DELTA = {"detailed": 0.3, "brief": -0.2}
_CONFIDENCE_DELTA = {"confident": 0.2, "struggling": -0.3}


class TopicCoverage(BaseModel):
    explored: int = 0
    rich: int = 0
    exhausted: int = 0


class InterviewSummary(BaseModel):
    """Read-only rollup of a session's accumulated state."""

    session_id: str
    start_time: str
    end_time: str
    total_nodes: int
    max_depth_reached: int
    exhausted_topics: int
    average_score: float
    topic_coverage: TopicCoverage
    buzzwords: List[BuzzwordCount] = Field(default_factory=list)
    topic_tree_state: str
    turn_count: int = 0
    exploration_complete: bool = False


def score_turn(analysis: ResponseAnalysis) -> float:
    score = BASE_SCORE
    score += _ENGAGEMENT_DELTA.get(analysis.engagement_level, 0.0)
    score += _LENGTH_DELTA.get(analysis.response_length, 0.0)
    score += _CONFIDENCE_DELTA.get(analysis.confidence_level, 0.0)
    return max(0.0, min(MAX_SCORE, round(score, 4)))


def grade_turn(state: ConversationState, analysis: ResponseAnalysis, content: str, turn_index: int) -> TurnGrade:
    """Score the turn and append it to the session's grade log."""

    grade = TurnGrade(
        turn_index=turn_index,
        score=score_turn(analysis),
        content=content,
        engagement_level=analysis.engagement_level,
    )
    state.grades.append(grade)
    return grade


def performance_band(score: float) -> str:
    if score >= 1.8:
        return "excellent"
    if score >= 1.5:
        return "strong"
    if score >= 1.0:
        return "good"
    return "needs work"


def average_score(state: ConversationState) -> float:
    if not state.grades:
        return 0.0
    return sum(grade.score for grade in state.grades) / len(state.grades)


def build_summary(
    state: ConversationState,
    *,
    top_limit: Optional[int] = None,
    now: Callable[[], str] = utc_now,
) -> InterviewSummary:
    """Summarize ``state`` without mutating it."""

    nodes = list(state.nodes.values())
    coverage = TopicCoverage(
        explored=sum(1 for node in nodes if node.status != "unexplored"),
        rich=sum(1 for node in nodes if node.status == "rich"),
        exhausted=sum(1 for node in nodes if node.status == "exhausted"),
    )
    return InterviewSummary(
        session_id=state.session_id,
        start_time=state.start_time,
        end_time=now(),
        total_nodes=len(nodes),
        max_depth_reached=state.max_depth_reached,
        exhausted_topics=len(state.exhausted_topics),
        average_score=average_score(state),
        topic_coverage=coverage,
        buzzwords=top(state, top_limit),
        topic_tree_state=TopicTreeStore(state).render(),
        turn_count=state.turn_count,
        exploration_complete=state.exploration_complete,
    )


__all__ = [
    "InterviewSummary",
    "TopicCoverage",
    "average_score",
    "build_summary",
    "grade_turn",
    "performance_band",
    "score_turn",
]
