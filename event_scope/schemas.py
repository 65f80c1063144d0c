from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


ArchiveMode = Literal["exact_day", "month", "year", "upcoming"]


class EventResponse(BaseModel):
    id: UUID
    title: str
    start_date: date
    end_date: date

    model_config = ConfigDict(from_attributes=True)


class ContextResponse(BaseModel):
    year: int
    month: int
    day: int

    model_config = ConfigDict(from_attributes=True)


class ArchiveResponse(BaseModel):
    mode: ArchiveMode
    context: ContextResponse
    start: Optional[date]
    end: Optional[date]
    events: List[EventResponse]
