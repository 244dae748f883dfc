"""FastAPI routes for adaptive interview turns."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from agents.interviewer import ReplyGenerationError
from api.schemas import CloseResp, TurnReq, TurnResp
from services.grading import InterviewSummary
from services.interview import InterviewEngine


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview")

_engine: Optional[InterviewEngine] = None


def get_engine() -> InterviewEngine:
    global _engine
    if _engine is None:
        _engine = InterviewEngine()
    return _engine


def set_engine(engine: Optional[InterviewEngine]) -> None:
    global _engine
    _engine = engine


@router.post("/turn", response_model=TurnResp)
def turn(req: TurnReq, engine: InterviewEngine = Depends(get_engine)) -> TurnResp:
    if not req.message.strip():
        raise HTTPException(status_code=422, detail="message must not be blank")
    try:
        result = engine.process_turn(req.session_id, req.user_id, req.message)
    except ReplyGenerationError as exc:
        logger.error("Reply generation failed for %s: %s", req.session_id, exc)
        raise HTTPException(status_code=502, detail="interviewer reply unavailable") from exc
    return TurnResp.model_validate(result.model_dump())


@router.get("/{session_id}/summary", response_model=InterviewSummary)
def summary(session_id: str, engine: InterviewEngine = Depends(get_engine)) -> InterviewSummary:
    result = engine.get_summary(session_id)
    if result is None:
        raise HTTPException(status_code=404, detail="session not found")
    return result


@router.delete("/{session_id}", response_model=CloseResp)
def close(session_id: str, engine: InterviewEngine = Depends(get_engine)) -> CloseResp:
    if not engine.close_session(session_id):
        raise HTTPException(status_code=404, detail="session not found")
    return CloseResp(session_id=session_id)
