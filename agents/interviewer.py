from __future__ import annotations  # Adaptive interviewer producing the next conversational reply

import logging
from textwrap import dedent
from typing import Dict, List, Sequence

from pydantic import BaseModel

from config.registry import REPLY_KEY, get_model
from topic_tree import TopicTreeStore


logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50  # Most recent chat turns forwarded to the reply model

INTERVIEWER_PROMPT = dedent(  # Adaptive interviewer instructions with live topic-tree state
    """
    You are an adaptive interviewer who dynamically explores topics based on interviewee responses.
    Your goal is to maximize knowledge extraction while maintaining natural conversation flow.

    CORE BEHAVIOR:
    1. Start with broad topics and drill down when the interviewee shows knowledge or interest.
    2. Detect topic exhaustion signals: short answers, repetition, "I don't know", vague responses.
    3. Smoothly transition to other branches when a topic is exhausted.
    4. Never dwell on topics the interviewee can't elaborate on.
    5. Work with any domain: career, hobbies, technical knowledge, personal interests.

    CONVERSATION STRATEGY:
    - Read the current topic tree state before each response.
    - Ask one open question at a time, specific to the interviewee's last message.
    - Keep responses concise (2-3 sentences max) to encourage the interviewee to talk.
    - Gracefully change the subject after "I don't know" without making them feel bad.

    CURRENT TOPIC TREE STATE:
    {tree}

    CURRENT TOPIC PATH: {path}
    EXHAUSTED TOPICS: {exhausted}
    """
).strip()

WRAP_UP_INSTRUCTION = (  # Appended once every branch has been exhausted repeatedly
    "Every topic branch has been explored. Thank the interviewee, briefly mirror the most "
    "substantive thread you heard, and bring the conversation to a close."
)


class ReplyGenerationError(RuntimeError):  # Raised when the reply model cannot produce text
    pass


class ChatTurn(BaseModel):  # One message in the interviewer transcript
    role: str
    content: str


def build_system_prompt(store: TopicTreeStore) -> str:  # Embed tree outline, path and exhausted topics
    prompt = INTERVIEWER_PROMPT.format(
        tree=store.render(),
        path=store.path_names(),
        exhausted=store.exhausted_names() or "none",
    )
    if store.state.exploration_complete:
        prompt = f"{prompt}\n\n{WRAP_UP_INSTRUCTION}"
    return prompt


def _history_payload(history: Sequence[ChatTurn]) -> List[Dict[str, str]]:  # Clamp transcript to the recent window
    return [{"role": turn.role, "content": turn.content} for turn in list(history)[-HISTORY_LIMIT:]]


def generate_reply(store: TopicTreeStore, history: Sequence[ChatTurn]) -> str:
    """Ask the bound reply model for the next interviewer message.

    Raises:
        ReplyGenerationError: If no model is bound, the call fails, or it returns no text.
    """

    try:
        llm = get_model(REPLY_KEY)
    except KeyError as exc:
        raise ReplyGenerationError(f"no model bound for {REPLY_KEY}") from exc

    try:
        reply = llm(system_prompt=build_system_prompt(store), messages=_history_payload(history))
    except Exception as exc:  # noqa: BLE001
        logger.error("Reply generation failed for session %s: %s", store.state.session_id, exc)
        raise ReplyGenerationError(str(exc)) from exc

    text = str(reply or "").strip()
    if not text:
        raise ReplyGenerationError("reply model returned empty text")
    return text


__all__ = ["ChatTurn", "INTERVIEWER_PROMPT", "ReplyGenerationError", "build_system_prompt", "generate_reply"]
