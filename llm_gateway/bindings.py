from __future__ import annotations  # Registry bindings backed by configured LLM routes

import logging
from typing import Callable, Dict, List, Optional

from agents.types import SkillExtractionResult
from config.registry import ANALYSIS_KEY, REPLY_KEY, SKILLS_KEY, bind_model
from config.routes import AppConfig, LlmRoute, resolve_routes

from .llm_gateway import HttpClient, chat, complete


logger = logging.getLogger(__name__)


def reply_model(route: LlmRoute, client: Optional[HttpClient] = None) -> Callable[..., str]:  # TextGeneration(system_prompt, messages)
    def _invoke(*, system_prompt: str, messages: List[Dict[str, str]]) -> str:
        payload = [{"role": "system", "content": system_prompt}, *messages]
        return complete(payload, cfg=route, client=client)

    return _invoke


def analysis_model(route: LlmRoute, client: Optional[HttpClient] = None) -> Callable[..., str]:  # TextAnalysis(prompt, utterance)
    def _invoke(*, system_prompt: str, utterance: str) -> str:
        payload = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": utterance},
        ]
        return complete(payload, cfg=route, client=client)

    return _invoke


def skills_model(route: LlmRoute, client: Optional[HttpClient] = None) -> Callable[..., dict]:  # SkillExtraction(text, context)
    def _invoke(*, system_prompt: str, text: str, context: Optional[str] = None) -> dict:
        content = f"Conversation Context: {context}\n\nUser Response: {text}" if context else text
        payload = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": content},
        ]
        return chat(payload, SkillExtractionResult, cfg=route, client=client).model_dump()

    return _invoke


_FACTORIES = {
    REPLY_KEY: reply_model,
    ANALYSIS_KEY: analysis_model,
    SKILLS_KEY: skills_model,
}


def bind_routes(cfg: AppConfig, client: Optional[HttpClient] = None) -> List[str]:  # Bind every configured registry key
    bound: List[str] = []
    for key, route in resolve_routes(cfg).items():
        factory = _FACTORIES.get(key)
        if factory is None:
            logger.warning("No model factory for registry key %s; skipping", key)
            continue
        bind_model(key, factory(route, client))
        bound.append(key)
    logger.info("Bound LLM routes: %s", ", ".join(bound) or "none")
    return bound
