from __future__ import annotations  # FastAPI server exposing the adaptive interview engine

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import get_engine, router
from config import load_config, settings
from llm_gateway import bind_routes
from storage.migrate import migrate


logger = logging.getLogger(__name__)

ROOT_PATH = Path(__file__).resolve().parent  # Repository root used to resolve relative config paths


def _routes_path() -> Path:  # Resolve the LLM routes file relative to the repository root
    path = Path(settings.ROUTES_PATH)
    return path if path.is_absolute() else ROOT_PATH / path


def _bind_configured_models() -> None:  # Bind LLM routes when a config file is present
    path = _routes_path()
    if not path.exists():
        logger.warning("No LLM route config at %s; replies are unavailable and analysis uses heuristics", path)
        return
    bind_routes(load_config(path))


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:  # Migrate, bind models and run the background worker
    migrate()
    _bind_configured_models()
    engine = get_engine()
    engine.worker.start()
    try:
        yield
    finally:
        engine.worker.stop()


app = FastAPI(title="Adaptive Interview API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


@app.get("/healthz")
def healthz() -> dict:  # Liveness probe
    return {"status": "ok"}
