"""Incremental skill proficiency aggregation."""
from __future__ import annotations

import logging
import math
import re
from typing import Optional

from agents.types import EngagementLevel
from storage.skills import SkillMentionRecord, SkillRecord, SkillRepository
from topic_tree.models import utc_now

logger = logging.getLogger(__name__)

_ENGAGEMENT_SCORES = {"low": 1, "medium": 2, "high": 3}
_ENGAGEMENT_BY_SCORE = {1: "low", 2: "medium", 3: "high"}

CONFIDENCE_WEIGHT = 0.4
ENGAGEMENT_WEIGHT = 0.4
FREQUENCY_WEIGHT = 0.2
FREQUENCY_SATURATION = 10


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values, unlike ``round``'s banker's rounding."""
    return int(math.floor(value + 0.5))


def engagement_score(level: str) -> int:
    return _ENGAGEMENT_SCORES.get(level, 2)


def average_engagement(current: str, new: str, count: int) -> EngagementLevel:
    """Fold the ``count``-th engagement category into a running average.

    ``current`` stands in for the previous ``count - 1`` mentions, so nine ``high`` followed
    by one ``low`` averages 2.8 and stays ``high``. Only the category is stored, so repeated
    folding is lossy.
    """

    count = max(1, count)
    averaged = round_half_up((engagement_score(current) * (count - 1) + engagement_score(new)) / count)
    return _ENGAGEMENT_BY_SCORE[min(3, max(1, averaged))]  # type: ignore[return-value]


def proficiency_score(average_confidence: float, engagement: str, mention_count: int) -> int:
    raw = 100 * (
        CONFIDENCE_WEIGHT * average_confidence
        + ENGAGEMENT_WEIGHT * engagement_score(engagement) / 3
        + FREQUENCY_WEIGHT * min(mention_count / FREQUENCY_SATURATION, 1.0)
    )
    return max(0, min(100, round_half_up(raw)))


def normalize_skill_id(user_id: str, skill_name: str) -> str:
    """``{user}_{slug}`` where the slug is lowercase, underscored and stripped of punctuation."""

    slug = re.sub(r"\s+", "_", skill_name.strip().lower())
    slug = re.sub(r"[^a-z0-9_-]", "", slug)
    if not slug:
        raise ValueError(f"skill name {skill_name!r} has no usable characters")
    return f"{user_id}_{slug}"


class SkillAggregator:
    """Upserts per-user proficiency records and appends audit mentions."""

    def __init__(self, repository: SkillRepository) -> None:
        self._repository = repository

    def upsert(
        self,
        user_id: str,
        skill_name: str,
        confidence: float,
        engagement_level: str,
        topic_depth: float,
        *,
        now: Optional[str] = None,
    ) -> SkillRecord:
        skill_id = normalize_skill_id(user_id, skill_name)
        confidence = max(0.0, min(1.0, float(confidence)))
        topic_depth = max(0.0, float(topic_depth))
        timestamp = now or utc_now()
        existing = self._repository.get_skill(skill_id)

        if existing is None:
            engagement = _ENGAGEMENT_BY_SCORE[engagement_score(engagement_level)]
            record = SkillRecord(
                id=skill_id,
                user_id=user_id,
                skill_name=skill_name.strip(),
                mention_count=1,
                average_confidence=confidence,
                average_engagement=engagement,
                topic_depth_average=topic_depth,
                proficiency_score=proficiency_score(confidence, engagement, 1),
                first_mentioned=timestamp,
                last_mentioned=timestamp,
            )
        else:
            count = existing.mention_count + 1
            avg_confidence = (existing.average_confidence * existing.mention_count + confidence) / count
            avg_depth = (existing.topic_depth_average * existing.mention_count + topic_depth) / count
            engagement = average_engagement(existing.average_engagement, engagement_level, count)
            record = existing.model_copy(
                update={
                    "mention_count": count,
                    "average_confidence": max(0.0, min(1.0, avg_confidence)),
                    "average_engagement": engagement,
                    "topic_depth_average": avg_depth,
                    "proficiency_score": proficiency_score(avg_confidence, engagement, count),
                    "last_mentioned": timestamp,
                }
            )

        self._repository.upsert_skill(record)
        logger.debug(
            "Skill %s -> count=%d proficiency=%d", record.id, record.mention_count, record.proficiency_score
        )
        return record

    def record_mention(
        self,
        record: SkillRecord,
        *,
        session_id: str,
        turn_index: int,
        evidence: str,
        confidence: float,
        engagement_level: str,
        topic_depth: int,
        context: str,
    ) -> int:
        mention = SkillMentionRecord(
            user_skill_id=record.id,
            user_id=record.user_id,
            session_id=session_id,
            turn_index=turn_index,
            evidence=evidence,
            confidence=max(0.0, min(1.0, float(confidence))),
            engagement_level=_ENGAGEMENT_BY_SCORE[engagement_score(engagement_level)],
            topic_depth=topic_depth,
            conversation_context=context,
        )
        return self._repository.append_mention(mention)


__all__ = [
    "SkillAggregator",
    "average_engagement",
    "engagement_score",
    "normalize_skill_id",
    "proficiency_score",
    "round_half_up",
]
