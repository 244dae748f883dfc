"""Per-session buzzword tally with turn provenance."""
from __future__ import annotations

from typing import Iterable, List, Optional

from pydantic import BaseModel

from config.settings import settings
from topic_tree.models import BuzzwordEntry, ConversationState


class BuzzwordCount(BaseModel):
    term: str
    count: int
    sources: List[int]


def normalize_term(term: str) -> str:
    return term.strip().lower()


def add(state: ConversationState, term: str, turn_index: int) -> Optional[str]:
    """Count ``term`` for ``turn_index``; empty terms are ignored. Returns the stored key."""

    key = normalize_term(term or "")
    if not key:
        return None
    entry = state.buzzwords.setdefault(key, BuzzwordEntry())
    entry.count += 1
    entry.sources.add(turn_index)
    return key


def add_all(state: ConversationState, terms: Iterable[str], turn_index: int) -> List[str]:
    return [key for key in (add(state, term, turn_index) for term in terms) if key]


def top(state: ConversationState, limit: Optional[int] = None) -> List[BuzzwordCount]:
    """Most frequent terms first, ties broken alphabetically."""

    size = settings.TOP_BUZZWORDS if limit is None else limit
    ranked = sorted(state.buzzwords.items(), key=lambda item: (-item[1].count, item[0]))
    return [
        BuzzwordCount(term=term, count=entry.count, sources=sorted(entry.sources))
        for term, entry in ranked[: max(0, size)]
    ]


__all__ = ["BuzzwordCount", "add", "add_all", "normalize_term", "top"]
