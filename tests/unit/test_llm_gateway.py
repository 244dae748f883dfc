from __future__ import annotations

from typing import Any, Dict, List

import pytest
from pydantic import BaseModel

from config import AppConfig, LlmRoute
from config.registry import ANALYSIS_KEY, REPLY_KEY, SKILLS_KEY, get_model
from llm_gateway import LlmGatewayError, bind_routes, chat, complete


class FakeResponse:
    def __init__(self, content: str, status_code: int = 200) -> None:
        self.status_code = status_code
        self._content = content

    def json(self) -> Any:
        return {"choices": [{"message": {"content": self._content}}]}

    @property
    def text(self) -> str:
        return self._content


class FakeClient:
    def __init__(self, *responses: FakeResponse) -> None:
        self._responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self._responses.pop(0)


class Answer(BaseModel):
    value: int


def _route(**overrides) -> LlmRoute:
    data = dict(
        name="test",
        base_url="http://llm.local",
        endpoint="/v1/chat/completions",
        model="test-model",
        timeout_s=2.0,
        max_retries=1,
    )
    data.update(overrides)
    return LlmRoute(**data)


def test_chat_retries_after_invalid_output():
    client = FakeClient(FakeResponse("not json"), FakeResponse('```json\n{"value": 3}\n```'))
    result = chat([{"role": "user", "content": "hi"}], Answer, cfg=_route(), client=client)

    assert result == Answer(value=3)
    assert len(client.calls) == 2
    assert client.calls[0]["url"] == "http://llm.local/v1/chat/completions"
    assert "failed validation" in client.calls[1]["json"]["messages"][-1]["content"]


def test_chat_gives_up_after_retries():
    client = FakeClient(FakeResponse("nope"), FakeResponse("still nope"))
    with pytest.raises(LlmGatewayError):
        chat([{"role": "user", "content": "hi"}], Answer, cfg=_route(), client=client)


def test_complete_returns_text_and_sets_options(monkeypatch):
    monkeypatch.setenv("TEST_LLM_KEY", "secret")
    client = FakeClient(FakeResponse("  What did you build next?  "))
    route = _route(api_key_env="TEST_LLM_KEY", temperature=0.2, response_format="json_object")

    text = complete([{"role": "user", "content": "hi"}], cfg=route, client=client)

    assert text == "What did you build next?"
    sent = client.calls[0]
    assert sent["headers"]["Authorization"] == "Bearer secret"
    assert sent["json"]["temperature"] == 0.2
    assert sent["json"]["response_format"] == {"type": "json_object"}


def test_error_status_raises():
    client = FakeClient(FakeResponse("", status_code=503))
    with pytest.raises(LlmGatewayError):
        complete([{"role": "user", "content": "hi"}], cfg=_route(), client=client)


def test_bind_routes_registers_callables():
    route = _route(enforce_json=False)
    cfg = AppConfig(
        llm_routes={"main": route},
        registry={REPLY_KEY: "main", ANALYSIS_KEY: "main", SKILLS_KEY: "main"},
    )
    client = FakeClient(
        FakeResponse("Which part was hardest?"),
        FakeResponse('{"skills": [{"name": "Redis", "evidence": "redis", "confidence": 0.8}]}'),
    )

    assert sorted(bind_routes(cfg, client)) == sorted([REPLY_KEY, ANALYSIS_KEY, SKILLS_KEY])

    reply = get_model(REPLY_KEY)(system_prompt="SYSTEM", messages=[{"role": "user", "content": "hello"}])
    assert reply == "Which part was hardest?"
    assert client.calls[0]["json"]["messages"][0] == {"role": "system", "content": "SYSTEM"}

    skills = get_model(SKILLS_KEY)(system_prompt="S", text="I run redis", context="Topic: X")
    assert skills["skills"][0]["name"] == "Redis"
    assert client.calls[1]["json"]["messages"][-1]["content"].startswith("Conversation Context: Topic: X")
