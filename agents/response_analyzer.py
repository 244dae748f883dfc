"""Response analysis adapter with a deterministic heuristic fallback."""
from __future__ import annotations

import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Any, List, Optional

from pydantic import ValidationError

from agents.types import ResponseAnalysis
from config.registry import ANALYSIS_KEY, get_model
from config.settings import settings

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """You are a strict JSON function. Analyze the user's message for engagement and topic extraction.

Output only a single JSON object that matches EXACTLY this shape and enums:
{
  "engagementLevel": "high|medium|low",
  "exhaustionSignals": ["short_answer", "repetition", "dont_know", "vague"],
  "newTopics": ["topic1"],
  "subtopics": ["subtopic1"],
  "responseLength": "detailed|moderate|brief",
  "confidenceLevel": "confident|uncertain|struggling",
  "buzzwords": ["term1", "term two", "multi word term"]
}

Rules:
- Return ONLY the JSON object. No markdown, no explanations.
- If a field has no items, return []. Never use null.
- Use ONLY the enum values shown above.
- engagementLevel: high for specific, substantive, on-topic detail; medium for some specifics
  with limited depth; low for very short, vague, off-topic or "don't know" answers.
- exhaustionSignals: short_answer (under ~12 words), repetition, dont_know, vague (hedging).
- newTopics: 0-6 concise noun phrases (1-5 words) for distinct subjects present in the message.
- buzzwords: 3-15 lowercase domain terms actually mentioned; no stopwords, numbers or pronouns.
- Do not invent topics or buzzwords that are not in the message."""

_TOPIC_PATTERNS = [
    re.compile(r"\bwork(?:ing)?\s+(?:on|with|in)\s+([^,.!?]+)", re.IGNORECASE),
    re.compile(r"\bexperience\s+(?:with|in)\s+([^,.!?]+)", re.IGNORECASE),
    re.compile(r"\binvolved\s+in\s+([^,.!?]+)", re.IGNORECASE),
    re.compile(r"\bfocus(?:ed)?\s+on\s+([^,.!?]+)", re.IGNORECASE),
    re.compile(r"\bspecialize\s+in\s+([^,.!?]+)", re.IGNORECASE),
    re.compile(r"\bbackground\s+in\s+([^,.!?]+)", re.IGNORECASE),
]

_EXECUTOR = ThreadPoolExecutor(max_workers=4, thread_name_prefix="analysis")


def token_count(text: Optional[str]) -> int:
    """Approximate token count using whitespace splitting."""

    if not text:
        return 0
    return len(text.strip().split())


def extract_topics(text: str) -> List[str]:
    """Pull candidate topic phrases out of ``text`` using fixed lexical patterns."""

    topics: List[str] = []
    seen: set[str] = set()
    for pattern in _TOPIC_PATTERNS:
        for match in pattern.finditer(text):
            topic = match.group(1).strip()
            key = topic.lower()
            if 2 < len(topic) < 50 and key not in seen:
                seen.add(key)
                topics.append(topic)
    return topics


def heuristic_analysis(text: str) -> ResponseAnalysis:
    """Deterministic analysis used whenever the model path is unavailable."""

    lowered = text.lower().replace("’", "'")
    words = token_count(text)

    signals: List[str] = []
    if words < 10:
        signals.append("short_answer")
    if "don't know" in lowered or "not sure" in lowered:
        signals.append("dont_know")
    if "i guess" in lowered or "maybe" in lowered:
        signals.append("vague")

    if words > 30:
        level, length = "high", "detailed"
    elif words > 15:
        level, length = "medium", "moderate"
    else:
        level, length = "low", "brief"

    return ResponseAnalysis(
        engagement_level=level,
        exhaustion_signals=signals,
        new_topics=extract_topics(text),
        subtopics=[],
        response_length=length,
        confidence_level="confident" if not signals else "uncertain",
        buzzwords=[],
        source="heuristic",
    )


def _strip_code_fences(content: str) -> str:
    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines).strip()
    return text


def decode_analysis(raw: Any) -> ResponseAnalysis:
    """Strictly decode a model payload; any violation raises.

    Raises:
        ValueError: If the payload is not a JSON object.
        ValidationError: If the object does not match the analysis schema.
    """

    if isinstance(raw, ResponseAnalysis):
        payload: Any = raw.model_dump(by_alias=True, exclude={"source"})
    elif isinstance(raw, (str, bytes)):
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        payload = json.loads(_strip_code_fences(text))
    else:
        payload = raw
    if not isinstance(payload, dict):
        raise ValueError("analysis payload must be a JSON object")
    payload = dict(payload)
    payload.pop("source", None)
    return ResponseAnalysis.model_validate(payload).model_copy(update={"source": "model"})


def analyze_response(text: str, *, timeout_s: Optional[float] = None) -> ResponseAnalysis:
    """Analyze ``text``; never raises, degrading to the heuristic path on failure."""

    try:
        llm = get_model(ANALYSIS_KEY)
    except KeyError:
        logger.debug("No analysis model bound; using heuristic analysis")
        return heuristic_analysis(text)

    timeout = timeout_s if timeout_s is not None else settings.ANALYSIS_TIMEOUT_S
    try:
        future = _EXECUTOR.submit(llm, system_prompt=ANALYSIS_PROMPT, utterance=text)
        raw = future.result(timeout=timeout)
    except FuturesTimeout:
        logger.warning("Analysis model timed out after %.1fs; using heuristic analysis", timeout)
        return heuristic_analysis(text)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Analysis model failed: %s; using heuristic analysis", exc)
        return heuristic_analysis(text)

    try:
        return decode_analysis(raw)
    except (ValueError, ValidationError) as exc:
        logger.warning("Analysis payload rejected: %s; using heuristic analysis", exc)
        return heuristic_analysis(text)


__all__ = ["ANALYSIS_PROMPT", "analyze_response", "decode_analysis", "extract_topics", "heuristic_analysis", "token_count"]
