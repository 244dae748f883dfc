"""Navigation policy deciding how the topic tree moves after each turn."""
from __future__ import annotations

import logging
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from agents.types import ResponseAnalysis
from config.settings import settings

from .models import ROOT_ID, TERMINAL_STATUSES, NodeStatus, TopicMention, TopicNode
from .store import TopicTreeStore

logger = logging.getLogger(__name__)

DecisionType = Literal["EXHAUST_AND_BACKTRACK", "DEEPEN", "STAY"]
BacktrackMove = Literal["sibling", "ascend", "root_reset"]

_STATUS_RANK = {"unexplored": 0, "exploring": 1, "exhausted": 2, "rich": 2}


class NavigationDecision(BaseModel):
    """Outcome of a single navigation step."""

    type: DecisionType
    node_id: str
    status_changed: bool = False
    move: Optional[BacktrackMove] = None
    created: List[str] = Field(default_factory=list)
    path: List[str] = Field(default_factory=list)


def advance_status(node: TopicNode, target: NodeStatus) -> bool:
    """Move ``node`` forward to ``target``; terminal statuses never change."""

    if node.status in TERMINAL_STATUSES:
        return False
    if _STATUS_RANK[target] <= _STATUS_RANK[node.status]:
        return False
    node.status = target
    return True


def backtrack(store: TopicTreeStore, max_root_resets: Optional[int] = None) -> BacktrackMove:
    """Leave the active node for an unexplored sibling, else ascend one level."""

    state = store.state
    limit = max_root_resets if max_root_resets is not None else settings.MAX_ROOT_RESETS
    current_id = state.current_path[-1]
    parent = store.parent_of(current_id)

    if parent is not None:
        for child_id in parent.children:
            child = store.find_node(child_id)
            if child is not None and child.status == "unexplored":
                state.current_path[-1] = child_id
                logger.info("Moving to sibling %r", child.name)
                return "sibling"

    state.current_path.pop()
    if state.current_path:
        logger.info("Backtracked to %r", store.current_node().name)
        return "ascend"

    state.current_path = [ROOT_ID]
    state.root_resets += 1
    if state.root_resets >= limit and not state.exploration_complete:
        state.exploration_complete = True
        logger.warning(
            "Session %s exhausted the root %d times; exploration complete",
            state.session_id,
            state.root_resets,
        )
    return "root_reset"


def _clean_topics(topics: List[str]) -> List[str]:
    return [topic.strip() for topic in topics if topic and topic.strip()]


def navigate(
    store: TopicTreeStore,
    analysis: ResponseAnalysis,
    response_text: str,
    turn_index: int,
    *,
    max_root_resets: Optional[int] = None,
) -> NavigationDecision:
    """Apply exactly one of exhaust-and-backtrack, deepen or stay."""

    state = store.state
    current = store.current_node()
    store.append_mention(
        current.id,
        TopicMention(
            turn_index=turn_index,
            response_text=response_text,
            engagement_level=analysis.engagement_level,
        ),
    )

    new_topics = _clean_topics(analysis.new_topics)

    if analysis.exhaustion_signals or analysis.engagement_level == "low":
        changed = advance_status(current, "exhausted")
        if changed:
            state.exhausted_topics.append(current.id)
        logger.info("Topic %r exhausted, backtracking", current.name)
        move = backtrack(store, max_root_resets)
        decision = NavigationDecision(
            type="EXHAUST_AND_BACKTRACK",
            node_id=current.id,
            status_changed=changed,
            move=move,
        )
    elif analysis.engagement_level == "high" and new_topics:
        changed = advance_status(current, "rich")
        created = [store.create_child(current.id, topic, response_text) for topic in new_topics]
        state.current_path.append(created[0])
        state.max_depth_reached = max(state.max_depth_reached, len(state.current_path) - 1)
        logger.info("Going deeper: %s", store.path_names())
        decision = NavigationDecision(
            type="DEEPEN",
            node_id=current.id,
            status_changed=changed,
            created=created,
        )
    else:
        changed = advance_status(current, "exploring")
        decision = NavigationDecision(type="STAY", node_id=current.id, status_changed=changed)

    state.total_depth = len(state.current_path) - 1
    decision.path = list(state.current_path)
    return decision


__all__ = ["NavigationDecision", "advance_status", "backtrack", "navigate"]
