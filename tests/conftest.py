import os
import sys
import tempfile
from pathlib import Path

import pytest

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config import registry
from config.settings import settings
from config.registry import ANALYSIS_KEY, REPLY_KEY, bind_model


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture(autouse=True)
def clean_registry():
    saved = dict(registry._REGISTRY)
    registry._REGISTRY.clear()
    try:
        yield
    finally:
        registry._REGISTRY.clear()
        registry._REGISTRY.update(saved)


@pytest.fixture
def fake_models():
    replies = []

    def _reply(*, system_prompt, messages):
        replies.append({"system_prompt": system_prompt, "messages": messages})
        return f"Tell me more about that. ({len(replies)})"

    bind_model(REPLY_KEY, _reply)
    return replies


@pytest.fixture
def analysis_payload():
    def _bind(payload):
        bind_model(ANALYSIS_KEY, lambda **_: payload)

    return _bind
