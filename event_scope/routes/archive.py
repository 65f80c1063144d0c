from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_scope import schemas
from event_scope.db import get_session
from event_scope.scope import DefaultUpcoming, ExactDay, InvalidDate, Month, ResolvedScope, Year
from event_scope.services import archive as archive_service

router = APIRouter(prefix="/api/events", tags=["events"])


def get_today() -> date:
    return date.today()


def _describe(scope: ResolvedScope) -> tuple[schemas.ArchiveMode, Optional[date], Optional[date]]:
    if isinstance(scope, ExactDay):
        return "exact_day", scope.date, scope.date
    if isinstance(scope, Month):
        return "month", scope.start, scope.end
    if isinstance(scope, Year):
        return "year", scope.start, scope.end
    if isinstance(scope, DefaultUpcoming):
        return "upcoming", scope.today, None
    raise TypeError(f"Unsupported scope: {scope!r}")


async def _archive(
    session: AsyncSession,
    today: date,
    year: Optional[int] = None,
    month: Optional[int] = None,
    day: Optional[int] = None,
) -> schemas.ArchiveResponse:
    try:
        scope, context, events = await archive_service.list_archive_events(
            session, year=year, month=month, day=day, today=today
        )
    except InvalidDate as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No archive for {exc.year}-{exc.month}-{exc.day}",
        )

    mode, start, end = _describe(scope)
    return schemas.ArchiveResponse(
        mode=mode,
        context=schemas.ContextResponse.model_validate(context),
        start=start,
        end=end,
        events=[schemas.EventResponse.model_validate(event) for event in events],
    )


@router.get("", response_model=schemas.ArchiveResponse)
async def upcoming_events(
    session: AsyncSession = Depends(get_session),
    today: date = Depends(get_today),
) -> schemas.ArchiveResponse:
    return await _archive(session, today)


@router.get("/{year}", response_model=schemas.ArchiveResponse)
async def year_archive(
    year: int,
    session: AsyncSession = Depends(get_session),
    today: date = Depends(get_today),
) -> schemas.ArchiveResponse:
    return await _archive(session, today, year)


@router.get("/{year}/{month}", response_model=schemas.ArchiveResponse)
async def month_archive(
    year: int,
    month: int,
    session: AsyncSession = Depends(get_session),
    today: date = Depends(get_today),
) -> schemas.ArchiveResponse:
    return await _archive(session, today, year, month)


@router.get("/{year}/{month}/{day}", response_model=schemas.ArchiveResponse)
async def day_archive(
    year: int,
    month: int,
    day: int,
    session: AsyncSession = Depends(get_session),
    today: date = Depends(get_today),
) -> schemas.ArchiveResponse:
    return await _archive(session, today, year, month, day)
