from agents.skill_extractor import extract_skills, keyword_skills
from config.registry import SKILLS_KEY, bind_model


def test_keyword_match_with_alias():
    skills = keyword_skills("I build UIs in ReactJS with TypeScript and Docker")
    assert [s.name for s in skills] == ["react", "typescript", "docker"]
    assert all(s.confidence == 0.9 for s in skills)


def test_keywords_require_word_boundaries():
    assert keyword_skills("The nextgen sqlite reactor") == []


def test_topic_phrases_become_lower_confidence_skills():
    skills = keyword_skills("I specialize in data pipelines")
    assert [(s.name, s.confidence) for s in skills] == [("data pipelines", 0.7)]


def test_bound_model_result_is_used():
    captured = {}

    def fake(**kwargs):
        captured.update(kwargs)
        return {"skills": [{"name": "Kafka", "evidence": "ran Kafka", "confidence": 0.8}, {"name": "  "}]}

    bind_model(SKILLS_KEY, fake)
    skills = extract_skills("I ran Kafka", "Topic: General Background")
    assert [s.name for s in skills] == ["Kafka"]
    assert captured["context"] == "Topic: General Background"


def test_failing_model_falls_back_to_keywords():
    def boom(**_):
        raise TimeoutError("slow")

    bind_model(SKILLS_KEY, boom)
    assert [s.name for s in extract_skills("we use docker daily")] == ["docker"]


def test_invalid_model_payload_falls_back():
    bind_model(SKILLS_KEY, lambda **_: {"skills": [{"name": "Go", "confidence": 4}]})
    assert [s.name for s in extract_skills("mostly graphql")] == ["graphql"]
