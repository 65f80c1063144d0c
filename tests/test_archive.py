from datetime import date, datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from event_scope import models
from event_scope.predicates import apply_plan, build
from event_scope.scope import DefaultUpcoming, InvalidDate, Month
from event_scope.services.archive import SelectSink, list_archive_events


TODAY = date(2024, 6, 15)
PUBLISHED = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


EVENTS = [
    ("Winter fair", date(2023, 1, 1), date(2023, 3, 1)),
    ("Pancake day", date(2023, 2, 21), date(2023, 2, 21)),
    ("New year run", date(2022, 12, 31), date(2023, 2, 1)),
    ("Spring show", date(2023, 2, 28), date(2023, 3, 4)),
    ("January sale", date(2023, 1, 2), date(2023, 1, 31)),
    ("Midsummer", date(2024, 6, 10), date(2024, 6, 15)),
    ("Finished", date(2024, 6, 1), date(2024, 6, 14)),
    ("Autumn fest", date(2024, 9, 1), date(2024, 9, 3)),
]


@pytest_asyncio.fixture
async def session():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", future=True, poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        session.add_all(
            models.Event(title=title, start_date=start, end_date=end, created_at=PUBLISHED)
            for title, start, end in EVENTS
        )
        await session.commit()
        try:
            yield session
        finally:
            await engine.dispose()


def titles(events) -> list[str]:
    return [event.title for event in events]


@pytest.mark.asyncio
async def test_month_archive_includes_spanning_events(session):
    scope, context, events = await list_archive_events(session, year=2023, month=2, today=TODAY)
    assert scope == Month(start=date(2023, 2, 1), end=date(2023, 2, 28))
    assert context.month == 2
    assert titles(events) == ["New year run", "Winter fair", "Pancake day", "Spring show"]


@pytest.mark.asyncio
async def test_year_archive_orders_by_start_date(session):
    _, _, events = await list_archive_events(session, year=2023, today=TODAY)
    assert titles(events) == [
        "New year run",
        "Winter fair",
        "January sale",
        "Pancake day",
        "Spring show",
    ]


@pytest.mark.asyncio
async def test_day_archive(session):
    _, _, events = await list_archive_events(session, year=2023, month=2, day=21, today=TODAY)
    assert titles(events) == ["Winter fair", "Pancake day"]


@pytest.mark.asyncio
async def test_upcoming_listing(session):
    scope, _, events = await list_archive_events(session, today=TODAY)
    assert scope == DefaultUpcoming(today=TODAY)
    assert titles(events) == ["Midsummer", "Autumn fest"]


@pytest.mark.asyncio
async def test_invalid_date_propagates(session):
    with pytest.raises(InvalidDate):
        await list_archive_events(session, year=2023, month=4, day=31, today=TODAY)


@pytest.mark.asyncio
@pytest.mark.parametrize("year,month,day", [(None, 5, None), (0, 5, None), (None, 5, 9), (None, None, 9)])
async def test_components_without_a_year_give_the_upcoming_listing(session, year, month, day):
    _, _, plain = await list_archive_events(session, today=TODAY)
    scope, _, events = await list_archive_events(
        session, year=year, month=month, day=day, today=TODAY
    )
    assert scope == DefaultUpcoming(today=TODAY)
    assert titles(events) == titles(plain) == ["Midsummer", "Autumn fest"]


@pytest.mark.asyncio
async def test_native_routing_filters_on_publication_date_until_cleared(session):
    plan = build(DefaultUpcoming(today=date(2000, 1, 1)))

    sink = SelectSink({"year": 2023})
    apply_plan(plan, sink)
    result = await session.execute(sink.statement())
    assert list(result.scalars()) == []

    sink.clear_date_routing("year")
    result = await session.execute(sink.statement())
    assert len(list(result.scalars())) == len(EVENTS)
