"""Shared type definitions for agents."""
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

EngagementLevel = Literal["high", "medium", "low"]
ResponseLength = Literal["detailed", "moderate", "brief"]
ConfidenceLevel = Literal["confident", "uncertain", "struggling"]
ExhaustionSignal = Literal["short_answer", "repetition", "dont_know", "vague"]


class ResponseAnalysis(BaseModel):
    """Structured signals extracted from a single interviewee utterance.

    Model payloads use the camelCase aliases; Python code reads the field names.
    """

    model_config = ConfigDict(extra="forbid", strict=True, populate_by_name=True)

    engagement_level: EngagementLevel = Field(alias="engagementLevel")
    exhaustion_signals: List[ExhaustionSignal] = Field(alias="exhaustionSignals")
    new_topics: List[str] = Field(alias="newTopics")
    subtopics: List[str] = Field(default_factory=list)
    response_length: ResponseLength = Field(alias="responseLength")
    confidence_level: ConfidenceLevel = Field(alias="confidenceLevel")
    buzzwords: List[str]
    source: Literal["model", "heuristic"] = "model"


class SkillSignal(BaseModel):
    name: str
    evidence: str = ""
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)


class SkillExtractionResult(BaseModel):
    skills: List[SkillSignal] = Field(default_factory=list)
