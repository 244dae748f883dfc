"""Adaptive interview engine: synchronous reply, deferred analysis and bookkeeping."""
from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, Field

from agents.interviewer import ChatTurn, generate_reply
from agents.response_analyzer import analyze_response
from agents.skill_extractor import extract_skills
from agents.types import EngagementLevel, ResponseAnalysis
from config.settings import settings
from observability import log_event, span
from storage.sessions import SessionMetrics, SessionRepository, SqliteSessionRepository
from storage.skills import SkillRepository, SqliteSkillRepository
from topic_tree import TopicTreeStore, TurnGrade, navigate

from .background import BackgroundWorker
from .buzzwords import BuzzwordCount, add_all, top
from .grading import InterviewSummary, average_score, build_summary, grade_turn, performance_band
from .sessions import InterviewSession, SessionRegistry
from .skills import SkillAggregator, average_engagement, round_half_up

logger = logging.getLogger(__name__)


class TurnResult(BaseModel):
    reply: str
    session_id: str
    turn_index: int
    current_topic: str
    topic_depth: int
    buzzwords: List[BuzzwordCount] = Field(default_factory=list)


def session_engagement(grades: List[TurnGrade]) -> EngagementLevel:
    """Running engagement category over the graded turns, oldest first."""

    level: EngagementLevel = "medium"
    for count, grade in enumerate(grades, start=1):
        level = average_engagement(level, grade.engagement_level, count)
    return level


def session_metrics(store: TopicTreeStore) -> SessionMetrics:
    """Rolling metrics for persistence; the score maps the 0-2 grade scale onto 0-100."""

    state = store.state
    return SessionMetrics(
        turn_count=state.turn_count,
        total_depth=state.total_depth,
        max_depth=state.max_depth_reached,
        exhausted_count=len(state.exhausted_topics),
        score=max(0, min(100, round_half_up(average_score(state) * 50))),
        average_engagement=session_engagement(state.grades),
        buzzwords={item.term: {"count": item.count, "sources": item.sources} for item in top(state)},
        topic_tree=store.snapshot(),
    )


def summary_due(turn_index: int, every: Optional[int] = None) -> bool:
    interval = settings.SUMMARY_EVERY_N_TURNS if every is None else every
    return interval > 0 and turn_index >= interval and turn_index % interval == 0


class InterviewEngine:
    """Entry point for turn processing.

    ``process_turn`` only generates the reply; analysis, navigation, grading, buzzwords,
    skills and persistence for that turn run afterwards on the background worker, in
    submission order.
    """

    def __init__(
        self,
        *,
        sessions: Optional[SessionRegistry] = None,
        session_repository: Optional[SessionRepository] = None,
        skill_repository: Optional[SkillRepository] = None,
        worker: Optional[BackgroundWorker] = None,
    ) -> None:
        self.sessions = sessions or SessionRegistry()
        self.session_repository = session_repository or SqliteSessionRepository()
        self.skill_repository = skill_repository or SqliteSkillRepository()
        self.skills = SkillAggregator(self.skill_repository)
        self.worker = worker or BackgroundWorker()
        self.last_summaries: dict[str, InterviewSummary] = {}

    def process_turn(self, session_id: str, user_id: str, utterance: str) -> TurnResult:
        """Reply to ``utterance`` and queue its analysis.

        Raises:
            ValueError: If the utterance is blank.
            ReplyGenerationError: If the reply model fails; the session is left unchanged.
        """

        if not utterance or not utterance.strip():
            raise ValueError("utterance must not be empty")

        session = self.sessions.get_or_create(session_id, user_id)
        with session.lock:
            store = session.store
            turn_index = session.state.turn_count + 1
            log_event("turn.start", session_id, turn=turn_index, user_id=user_id)

            current = store.current_node()
            history = [*session.history, ChatTurn(role="user", content=utterance)]
            with span("turn.reply", session_id, turn=turn_index, node=current.id):
                reply = generate_reply(store, history)

            session.state.turn_count = turn_index
            session.history = [*history, ChatTurn(role="assistant", content=reply)]
            result = TurnResult(
                reply=reply,
                session_id=session_id,
                turn_index=turn_index,
                current_topic=current.name,
                topic_depth=current.depth,
                buzzwords=top(session.state),
            )

        self.worker.submit(
            session_id, "turn", partial(self._complete_turn, session, utterance, turn_index), retry=False
        )
        return result

    def get_summary(self, session_id: str) -> Optional[InterviewSummary]:
        session = self.sessions.get(session_id)
        if session is None:
            return None
        with session.lock:
            return build_summary(session.state)

    def close_session(self, session_id: str) -> bool:
        session = self.sessions.close(session_id)
        if session is None:
            return False
        self.last_summaries.pop(session_id, None)
        self._persist(session_id, "close", partial(self._mark_closed, session_id))
        log_event("session.evicted", session_id, reason="closed")
        return True

    def _mark_closed(self, session_id: str) -> None:
        mark_closed = getattr(self.session_repository, "mark_closed", None)
        if mark_closed is not None:
            mark_closed(session_id)

    def _complete_turn(self, session: InterviewSession, utterance: str, turn_index: int) -> None:
        session_id = session.session_id
        self._persist(session_id, "session", partial(self.session_repository.get_or_create, session_id, session.user_id))

        analysis = analyze_response(utterance)
        if analysis.source == "heuristic":
            log_event("analysis.fallback", session_id, level=logging.WARNING, turn=turn_index)

        with session.lock:
            store = session.store
            state = session.state
            decision = navigate(store, analysis, utterance, turn_index)
            log_event(
                "navigation.decision",
                session_id,
                turn=turn_index,
                decision=decision.type,
                node=decision.node_id,
                move=decision.move,
                path=decision.path,
            )
            grade = grade_turn(state, analysis, utterance, turn_index)
            log_event("turn.graded", session_id, turn=turn_index, score=grade.score, band=performance_band(grade.score))
            add_all(state, analysis.buzzwords, turn_index)
            depth = state.total_depth
            context = f"Topic: {store.path_names()}"
            metrics = session_metrics(store)
            summary = build_summary(state) if summary_due(turn_index) else None

        self._persist(session_id, "metrics", partial(self.session_repository.update_metrics, session_id, metrics))
        self._record_skills(session, utterance, analysis, turn_index, depth, context)

        if summary is not None:
            self.last_summaries[session_id] = summary
            log_event(
                "summary.generated",
                session_id,
                turn=turn_index,
                score=round(summary.average_score, 2),
                band=performance_band(summary.average_score),
                nodes=summary.total_nodes,
            )

    def _record_skills(
        self,
        session: InterviewSession,
        utterance: str,
        analysis: ResponseAnalysis,
        turn_index: int,
        depth: int,
        context: str,
    ) -> None:
        for signal in extract_skills(utterance, context):
            def _upsert(signal=signal) -> None:
                record = self.skills.upsert(
                    session.user_id, signal.name, signal.confidence, analysis.engagement_level, depth
                )
                self.skills.record_mention(
                    record,
                    session_id=session.session_id,
                    turn_index=turn_index,
                    evidence=signal.evidence or signal.name,
                    confidence=signal.confidence,
                    engagement_level=analysis.engagement_level,
                    topic_depth=depth,
                    context=context,
                )
                log_event(
                    "skill.upserted",
                    session.session_id,
                    turn=turn_index,
                    skill=record.id,
                    proficiency=record.proficiency_score,
                )

            self._persist(session.session_id, f"skill:{signal.name}", _upsert)

    def _persist(self, session_id: str, what: str, fn: Callable[[], Any]) -> None:
        try:
            fn()
        except Exception as exc:  # noqa: BLE001
            logger.exception("Persisting %s failed for session %s", what, session_id)
            log_event("persistence.failed", session_id, level=logging.ERROR, job=what, reason=str(exc))


__all__ = ["InterviewEngine", "TurnResult", "session_engagement", "session_metrics", "summary_due"]
