"""Configuration package for the adaptive interview engine."""
from .registry import ANALYSIS_KEY, REPLY_KEY, SKILLS_KEY, bind_model, get_model, unbind_model
from .routes import AppConfig, LlmRoute, load_config, resolve_routes
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_config",
    "resolve_routes",
    "ANALYSIS_KEY",
    "REPLY_KEY",
    "SKILLS_KEY",
    "bind_model",
    "get_model",
    "unbind_model",
    "Settings",
    "settings",
]
