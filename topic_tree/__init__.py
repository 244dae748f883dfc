"""Per-session topic tree and the navigation policy that walks it."""
from .models import ROOT_ID, ConversationState, TopicMention, TopicNode, TurnGrade
from .navigation import NavigationDecision, backtrack, navigate
from .store import NodeNotFound, TopicTreeStore

__all__ = [
    "ROOT_ID",
    "ConversationState",
    "NavigationDecision",
    "NodeNotFound",
    "TopicMention",
    "TopicNode",
    "TopicTreeStore",
    "TurnGrade",
    "backtrack",
    "navigate",
]
