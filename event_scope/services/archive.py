from __future__ import annotations

import logging
import operator
from datetime import date
from typing import Dict, Mapping, Optional, Tuple

from sqlalchemy import Select, and_, extract, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from event_scope import models
from event_scope.predicates import (
    And,
    Between,
    Compare,
    Direction,
    Field,
    Operator,
    Or,
    OrderField,
    OrderSpec,
    Predicate,
    apply_plan,
    build,
)
from event_scope.scope import DateComponents, ResolvedContext, ResolvedScope, resolve

logger = logging.getLogger(__name__)

_COLUMNS = {
    Field.START_DATE: models.Event.start_date,
    Field.END_DATE: models.Event.end_date,
}

# Both sort keys read the same column; the meta key is what archive views ask for.
_ORDER_COLUMNS = {
    OrderField.START_DATE_META: models.Event.start_date,
    OrderField.RAW_START_DATE: models.Event.start_date,
}

_SQL_OPERATORS = {
    Operator.LT: operator.lt,
    Operator.LTE: operator.le,
    Operator.GT: operator.gt,
    Operator.GTE: operator.ge,
}


def predicate_to_clause(predicate: Predicate) -> ColumnElement[bool]:
    if isinstance(predicate, Compare):
        return _SQL_OPERATORS[predicate.op](_COLUMNS[predicate.field], predicate.value)
    if isinstance(predicate, Between):
        return _COLUMNS[predicate.field].between(predicate.low, predicate.high)
    if isinstance(predicate, And):
        return and_(*(predicate_to_clause(clause) for clause in predicate.clauses))
    if isinstance(predicate, Or):
        return or_(*(predicate_to_clause(clause) for clause in predicate.clauses))
    raise TypeError(f"Unsupported predicate: {predicate!r}")


class SelectSink:
    """Query sink backed by a SQLAlchemy ``select`` over events.

    ``query_vars`` are the native date routing components. Any that are still
    set when the statement is built filter on the publication timestamp.
    """

    def __init__(self, query_vars: Optional[Mapping[str, Optional[int]]] = None) -> None:
        self.query_vars: Dict[str, int] = {
            key: value for key, value in (query_vars or {}).items() if value
        }
        self.predicate: Optional[Predicate] = None
        self.order: Optional[OrderSpec] = None

    def set_predicate(self, predicate: Predicate) -> None:
        self.predicate = predicate

    def set_ordering(self, order: OrderSpec) -> None:
        self.order = order

    def clear_date_routing(self, component: str) -> None:
        self.query_vars.pop(component, None)

    def statement(self) -> Select:
        stmt = select(models.Event)
        for component, value in self.query_vars.items():
            stmt = stmt.where(extract(component, models.Event.created_at) == value)
        if self.predicate is not None:
            stmt = stmt.where(predicate_to_clause(self.predicate))
        if self.order is not None:
            column = _ORDER_COLUMNS[self.order.field]
            ordered = column.asc() if self.order.direction is Direction.ASC else column.desc()
            stmt = stmt.order_by(ordered, models.Event.id)
        return stmt


async def list_archive_events(
    session: AsyncSession,
    *,
    year: Optional[int] = None,
    month: Optional[int] = None,
    day: Optional[int] = None,
    today: Optional[date] = None,
) -> Tuple[ResolvedScope, ResolvedContext, list[models.Event]]:
    scope, context = resolve(year, month, day, today=today)
    plan = build(scope)

    components = DateComponents.from_raw(year, month, day).effective()
    sink = SelectSink(
        {"year": components.year, "month": components.month, "day": components.day}
    )
    apply_plan(plan, sink)

    result = await session.execute(sink.statement())
    events = list(result.scalars())
    logger.info("Archive %s matched %d events", type(scope).__name__, len(events))
    return scope, context, events
