import pytest
from pydantic import ValidationError

from services.skills import (
    SkillAggregator,
    average_engagement,
    normalize_skill_id,
    proficiency_score,
    round_half_up,
)
from storage.skills import InMemorySkillRepository


@pytest.fixture
def aggregator():
    repo = InMemorySkillRepository()
    return SkillAggregator(repo), repo


def test_react_twice_counts_and_scores(aggregator):
    agg, repo = aggregator
    first = agg.upsert("u1", "React", 0.9, "high", 2)
    assert first.id == "u1_react"
    assert first.mention_count == 1
    assert first.proficiency_score == 78

    second = agg.upsert("u1", "React", 0.9, "high", 2)
    assert second.mention_count == 2
    assert second.average_confidence == pytest.approx(0.9)
    assert second.average_engagement == "high"
    assert second.topic_depth_average == pytest.approx(2.0)
    assert second.proficiency_score == 80
    assert second.first_mentioned == first.first_mentioned
    assert repo.skills["u1_react"].mention_count == 2


def test_later_weak_mention_can_lower_proficiency(aggregator):
    agg, _ = aggregator
    strong = agg.upsert("u1", "SQL", 0.9, "high", 1)
    weak = agg.upsert("u1", "SQL", 0.1, "low", 1)
    assert weak.average_engagement == "medium"
    assert weak.proficiency_score == 51
    assert weak.proficiency_score < strong.proficiency_score


def test_inputs_are_clamped(aggregator):
    agg, _ = aggregator
    record = agg.upsert("u1", "Go", 1.7, "high", -3)
    assert record.average_confidence == 1.0
    assert record.topic_depth_average == 0.0
    assert 0 <= record.proficiency_score <= 100


def test_average_engagement_is_weighted_by_count():
    assert average_engagement("medium", "high", 2) == "high"
    assert average_engagement("low", "medium", 2) == "medium"
    assert average_engagement("medium", "high", 3) == "medium"
    assert average_engagement("high", "low", 10) == "high"
    assert average_engagement("bogus", "high", 1) == "high"
    assert round_half_up(2.5) == 3


def test_engagement_history_outweighs_single_mention(aggregator):
    agg, _ = aggregator
    for level in ("medium", "medium", "high"):
        record = agg.upsert("u1", "Kafka", 0.8, level, 1)
    assert record.average_engagement == "medium"

    for _ in range(9):
        agg.upsert("u1", "Python", 0.8, "high", 1)
    record = agg.upsert("u1", "Python", 0.8, "low", 1)
    assert record.mention_count == 10
    assert record.average_engagement == "high"


def test_proficiency_bounds():
    assert proficiency_score(1.0, "high", 50) == 100
    assert proficiency_score(0.0, "low", 1) == 15


def test_normalize_skill_id():
    assert normalize_skill_id("u1", "Node.js  Dev") == "u1_nodejs_dev"
    with pytest.raises(ValueError):
        normalize_skill_id("u1", "!!!")


def test_record_mention_is_append_only(aggregator):
    agg, repo = aggregator
    record = agg.upsert("u1", "Docker", 0.8, "medium", 1)
    agg.record_mention(
        record,
        session_id="s1",
        turn_index=3,
        evidence="we ship with docker",
        confidence=0.8,
        engagement_level="medium",
        topic_depth=1,
        context="Topic: General Background → Deployments",
    )
    mention = repo.mentions[0]
    assert mention.user_skill_id == "u1_docker"
    assert mention.conversation_context.endswith("Deployments")
    with pytest.raises(ValidationError):
        mention.evidence = "changed"
