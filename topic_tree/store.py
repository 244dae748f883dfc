"""Topic tree storage for a single interview session."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from config.settings import settings

from .models import ROOT_ID, ROOT_NAME, ConversationState, TopicMention, TopicNode

logger = logging.getLogger(__name__)

_STATUS_MARKERS = {
    "unexplored": "[ ]",
    "exploring": "[~]",
    "exhausted": "[x]",
    "rich": "[+]",
}


class NodeNotFound(KeyError):
    """Raised when a node id is not part of the tree."""


class TopicTreeStore:
    """Owns the topic nodes and the active path of one ``ConversationState``.

    Node identity comes from a per-tree counter, so two siblings with the same
    display name never collide and replaying a session yields the same ids.
    """

    def __init__(self, state: ConversationState) -> None:
        self.state = state

    @classmethod
    def initialize(cls, session_id: str) -> "TopicTreeStore":
        state = ConversationState(session_id=session_id)
        state.nodes[ROOT_ID] = TopicNode(
            id=ROOT_ID,
            name=ROOT_NAME,
            depth=0,
            status="exploring",
            context="Starting conversation",
        )
        state.current_path = [ROOT_ID]
        logger.info("Topic tree initialized for session %s", session_id)
        return cls(state)

    def get_node(self, node_id: str) -> TopicNode:
        node = self.state.nodes.get(node_id)
        if node is None:
            raise NodeNotFound(node_id)
        return node

    def find_node(self, node_id: str) -> Optional[TopicNode]:
        return self.state.nodes.get(node_id)

    def current_node(self) -> TopicNode:
        return self.get_node(self.state.current_path[-1])

    def parent_of(self, node_id: str) -> Optional[TopicNode]:
        node = self.get_node(node_id)
        if node.parent_id is None:
            return None
        return self.get_node(node.parent_id)

    def create_child(self, parent_id: str, name: str, context: str) -> str:
        """Allocate a child under ``parent_id`` and return its id."""

        parent = self.get_node(parent_id)
        node_id = f"topic-{self.state.next_node_seq}"
        self.state.next_node_seq += 1
        self.state.nodes[node_id] = TopicNode(
            id=node_id,
            name=name.strip(),
            depth=parent.depth + 1,
            parent_id=parent_id,
            context=context[: settings.CONTEXT_SNIPPET_CHARS],
        )
        parent.children.append(node_id)
        logger.info("New subtopic %r created under %r (depth %d)", name, parent.name, parent.depth + 1)
        return node_id

    def append_mention(self, node_id: str, mention: TopicMention) -> None:
        self.get_node(node_id).mentions.append(mention)

    def path_names(self) -> str:
        return " → ".join(self.get_node(node_id).name for node_id in self.state.current_path)

    def exhausted_names(self) -> str:
        return ", ".join(self.get_node(node_id).name for node_id in self.state.exhausted_topics)

    def render(self) -> str:
        """Indented outline of the tree with the active node marked."""

        lines: List[str] = []
        current = self.state.current_path[-1] if self.state.current_path else None

        def _walk(node_id: str, indent: str) -> None:
            node = self.find_node(node_id)
            if node is None:
                return
            marker = " ← CURRENT" if node_id == current else ""
            lines.append(f"{indent}{_STATUS_MARKERS[node.status]} {node.name} (depth: {node.depth}){marker}")
            for child_id in node.children:
                _walk(child_id, indent + "  ")

        _walk(ROOT_ID, "")
        return "\n".join(lines)

    def snapshot(self) -> Dict[str, Any]:
        return self.state.model_dump(mode="json")

    @classmethod
    def restore(cls, data: Dict[str, Any]) -> "TopicTreeStore":
        state = ConversationState.model_validate(data)
        if ROOT_ID not in state.nodes:
            raise NodeNotFound(ROOT_ID)
        if not state.current_path:
            state.current_path = [ROOT_ID]
        return cls(state)
