from __future__ import annotations  # Re-export llm_gateway public API

from .bindings import bind_routes
from .llm_gateway import HttpClient, HttpResponse, LlmGatewayError, chat, complete

__all__ = ["HttpClient", "HttpResponse", "LlmGatewayError", "bind_routes", "chat", "complete"]
