from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ReminderCreateRequest(BaseModel):
    reminder_time: str = Field(..., min_length=1)
    recurring: bool = False
    frequency: Optional[str] = None


class ReminderUpdateRequest(BaseModel):
    reminder_time: Optional[str] = None
    recurring: Optional[bool] = None
    frequency: Optional[str] = None


class ReminderResponse(BaseModel):
    id: int
    note_id: int
    reminder_time: str
    recurring: bool
    frequency: Optional[str]
    next_fire_at: Optional[str]
