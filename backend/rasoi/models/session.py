from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, conint

from .recipe import LanguageCode


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    AWAITING_LANGUAGE_CHOICE = "awaiting_language_choice"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CookingProgress(BaseModel):
    """Persisted record of where a user is in a recipe."""

    recipe_key: str
    recipe_id: Optional[str] = None
    title: str
    raw_content: str
    current_step_index: conint(ge=0) = 0
    language: LanguageCode = LanguageCode.EN
    last_active_at: datetime
    completed: bool = False


class CompletionEvent(BaseModel):
    recipe_id: Optional[str] = None
    completed: bool = True
    current_step_index: conint(ge=0)


class HistoryEntry(BaseModel):
    recipe_key: str
    title: str
    status: SessionState
    current_step_index: int = 0
    total_steps: int = 0
    language: Optional[LanguageCode] = None
    last_active_at: Optional[datetime] = None


class TimerState(BaseModel):
    total_seconds: conint(gt=0)
    remaining_seconds: conint(ge=0)
    running: bool = False
