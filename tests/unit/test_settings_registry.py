from pathlib import Path

import pytest

from config import load_config, resolve_routes
from config.registry import ANALYSIS_KEY, REPLY_KEY, SKILLS_KEY, bind_model, get_model, unbind_model
from config.settings import Settings

ROOT = Path(__file__).resolve().parents[2]


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.SUMMARY_EVERY_N_TURNS == 5
    assert settings.TOP_BUZZWORDS == 50
    assert settings.CONTEXT_SNIPPET_CHARS == 100


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("MAX_ROOT_RESETS", "7")
    assert Settings(_env_file=None).MAX_ROOT_RESETS == 7


def test_registry_bind_and_retrieve():
    marker = object()
    bind_model(REPLY_KEY, lambda **_: marker)
    assert get_model(REPLY_KEY)() is marker

    unbind_model(REPLY_KEY)
    with pytest.raises(KeyError):
        get_model(REPLY_KEY)


def test_example_config_resolves_every_key():
    cfg = load_config(ROOT / "app_config.example.json")
    routes = resolve_routes(cfg)
    assert set(routes) == {REPLY_KEY, ANALYSIS_KEY, SKILLS_KEY}
    assert routes[ANALYSIS_KEY].response_format == "json_object"


def test_missing_route_raises():
    cfg = load_config(ROOT / "app_config.example.json")
    cfg.registry["models.extra"] = "nope"
    with pytest.raises(KeyError):
        resolve_routes(cfg)
