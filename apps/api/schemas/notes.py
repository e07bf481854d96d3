from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class TodoItemPayload(BaseModel):
    content: str = Field(..., min_length=1)
    is_done: bool = False


class NoteCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = ""
    color: Optional[str] = None
    priority: int = 0
    todo_items: List[TodoItemPayload] = Field(default_factory=list)


class NoteUpdateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    todo_items: Optional[List[TodoItemPayload]] = None


class NoteColorRequest(BaseModel):
    color: Optional[str] = None


class NotePriorityRequest(BaseModel):
    priority: int


class NoteStatusRequest(BaseModel):
    is_todo: Optional[bool] = None
    is_all_done: Optional[bool] = None


class TodoStatusRequest(BaseModel):
    is_done: bool


class TodoItemResponse(BaseModel):
    id: int
    content: str
    is_done: bool


class NoteResponse(BaseModel):
    id: int
    user_id: int
    title: str
    content: str
    color: Optional[str]
    priority: int
    is_todo: bool
    todo_items: List[TodoItemResponse]
    created_at: str
    updated_at: str
