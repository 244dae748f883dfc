import pytest

from agents.types import ResponseAnalysis
from services import buzzwords
from services.grading import build_summary, grade_turn, performance_band, score_turn
from topic_tree import ROOT_ID, TopicTreeStore


def _analysis(level, length, confidence):
    return ResponseAnalysis(
        engagement_level=level,
        exhaustion_signals=[],
        new_topics=[],
        response_length=length,
        confidence_level=confidence,
        buzzwords=[],
    )


def test_score_turn_adjustments_and_clamp():
    assert score_turn(_analysis("high", "detailed", "confident")) == pytest.approx(2.0)
    assert score_turn(_analysis("low", "brief", "struggling")) == pytest.approx(0.2)
    assert score_turn(_analysis("medium", "moderate", "uncertain")) == pytest.approx(1.0)
    assert score_turn(_analysis("low", "brief", "uncertain")) == pytest.approx(0.5)


def test_grade_turn_appends_to_log():
    store = TopicTreeStore.initialize("s1")
    grade = grade_turn(store.state, _analysis("high", "moderate", "uncertain"), "answer", 4)
    assert store.state.grades == [grade]
    assert (grade.turn_index, grade.score, grade.engagement_level) == (4, pytest.approx(1.5), "high")


@pytest.mark.parametrize(
    "score,band",
    [(2.0, "excellent"), (1.8, "excellent"), (1.79, "strong"), (1.5, "strong"), (1.0, "good"), (0.99, "needs work")],
)
def test_performance_band(score, band):
    assert performance_band(score) == band


def test_empty_session_summary():
    store = TopicTreeStore.initialize("s1")
    summary = build_summary(store.state, now=lambda: "2026-01-01T00:00:00+00:00")
    assert summary.total_nodes == 1
    assert summary.max_depth_reached == 0
    assert summary.average_score == 0.0
    assert summary.exhausted_topics == 0
    assert summary.topic_coverage.explored == 1
    assert summary.buzzwords == []
    assert summary.end_time == "2026-01-01T00:00:00+00:00"
    assert "General Background" in summary.topic_tree_state


def test_summary_does_not_mutate_state():
    store = TopicTreeStore.initialize("s1")
    store.create_child(ROOT_ID, "Redis", "")
    buzzwords.add(store.state, "redis", 1)
    grade_turn(store.state, _analysis("high", "detailed", "confident"), "x", 1)
    before = store.state.model_dump()

    summary = build_summary(store.state)

    assert store.state.model_dump() == before
    assert summary.total_nodes == 2
    assert summary.topic_coverage.explored == 1
    assert summary.average_score == pytest.approx(2.0)
    assert [b.term for b in summary.buzzwords] == ["redis"]
