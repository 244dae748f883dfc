"""Skill extraction adapter with a keyword fallback."""
from __future__ import annotations

import logging
import re
from textwrap import dedent
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from agents.response_analyzer import extract_topics
from agents.types import SkillExtractionResult, SkillSignal
from config.registry import SKILLS_KEY, get_model

logger = logging.getLogger(__name__)

SKILL_PROMPT = dedent(
    """
    You are an expert at extracting technical skills and competencies from conversational text.
    Identify specific skills, technologies, tools and methodologies that are mentioned.

    Rules:
    1. Extract 1-10 relevant skills from the text.
    2. Focus on programming languages, frameworks, tools and methodologies.
    3. Use standard naming conventions ("React", "Node.js", "PostgreSQL").
    4. Give each skill a confidence between 0.0 and 1.0 based on how clearly it is mentioned.
    5. Quote the evidence: the specific text that mentions the skill.
    6. If no clear skills are mentioned, return an empty array.

    Return ONLY a JSON object shaped like:
    {"skills": [{"name": "React", "evidence": "react development", "confidence": 0.9}]}
    """
).strip()

KNOWN_SKILLS = ("react", "reactjs", "typescript", "node", "next", "tailwind", "sql", "postgres", "docker", "graphql", "jest")
_ALIASES = {"reactjs": "react"}

KEYWORD_CONFIDENCE = 0.9
TOPIC_CONFIDENCE = 0.7


def keyword_skills(text: str) -> List[SkillSignal]:
    """Match known skill keywords and topic phrases; used when no model is bound."""

    lowered = text.lower()
    found: Dict[str, SkillSignal] = {}
    for skill in KNOWN_SKILLS:
        if re.search(rf"\b{re.escape(skill)}\b", lowered):
            name = _ALIASES.get(skill, skill)
            found.setdefault(name, SkillSignal(name=name, evidence=skill, confidence=KEYWORD_CONFIDENCE))
    for topic in extract_topics(text):
        key = topic.lower()
        if key not in found:
            found[key] = SkillSignal(name=topic, evidence=topic, confidence=TOPIC_CONFIDENCE)
    return list(found.values())


def _coerce(raw: Any) -> SkillExtractionResult:
    if isinstance(raw, SkillExtractionResult):
        return raw
    if isinstance(raw, str):
        return SkillExtractionResult.model_validate_json(raw)
    return SkillExtractionResult.model_validate(raw)


def extract_skills(text: str, context: Optional[str] = None) -> List[SkillSignal]:
    """Return skill signals for ``text``; falls back to keywords when the model is missing or fails."""

    try:
        llm = get_model(SKILLS_KEY)
    except KeyError:
        return keyword_skills(text)

    try:
        result = _coerce(llm(system_prompt=SKILL_PROMPT, text=text, context=context))
    except ValidationError as exc:
        logger.warning("Skill extraction payload rejected: %s; using keyword fallback", exc)
        return keyword_skills(text)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Skill extraction failed: %s; using keyword fallback", exc)
        return keyword_skills(text)

    return [skill for skill in result.skills if skill.name.strip()]


__all__ = ["KNOWN_SKILLS", "SKILL_PROMPT", "extract_skills", "keyword_skills"]
