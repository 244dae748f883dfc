"""Pydantic schemas for the interview API."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from services.buzzwords import BuzzwordCount


class TurnReq(BaseModel):
    session_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    message: str = Field(min_length=1)


class TurnResp(BaseModel):
    reply: str
    session_id: str
    turn_index: int
    current_topic: str
    topic_depth: int
    buzzwords: List[BuzzwordCount] = Field(default_factory=list)


class CloseResp(BaseModel):
    session_id: str
    closed: bool = True
