"""Build interval-overlap predicates and ordering for an archive scope."""

from __future__ import annotations

import abc
import enum
import logging
import operator
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Mapping, Protocol, Tuple

from event_scope.logger import log_with_context
from event_scope.scope import DefaultUpcoming, ExactDay, Month, ResolvedScope, Year

logger = logging.getLogger(__name__)


class Field(str, enum.Enum):
    START_DATE = "start_date"
    END_DATE = "end_date"


class Operator(str, enum.Enum):
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="


_OPERATORS: Dict[Operator, Callable[[date, date], bool]] = {
    Operator.LT: operator.lt,
    Operator.LTE: operator.le,
    Operator.GT: operator.gt,
    Operator.GTE: operator.ge,
}


class Predicate(abc.ABC):
    """Base node of a predicate tree over event start/end dates."""

    @abc.abstractmethod
    def matches(self, record: Mapping[str, date]) -> bool:
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "And":
        return And((self, other))

    def __or__(self, other: "Predicate") -> "Or":
        return Or((self, other))


@dataclass(frozen=True)
class Compare(Predicate):
    field: Field
    op: Operator
    value: date

    def matches(self, record: Mapping[str, date]) -> bool:
        return _OPERATORS[self.op](record[self.field.value], self.value)


@dataclass(frozen=True)
class Between(Predicate):
    """Inclusive range check, ``low <= field <= high``."""

    field: Field
    low: date
    high: date

    def matches(self, record: Mapping[str, date]) -> bool:
        return self.low <= record[self.field.value] <= self.high


@dataclass(frozen=True)
class And(Predicate):
    clauses: Tuple[Predicate, ...]

    def matches(self, record: Mapping[str, date]) -> bool:
        return all(clause.matches(record) for clause in self.clauses)


@dataclass(frozen=True)
class Or(Predicate):
    clauses: Tuple[Predicate, ...]

    def matches(self, record: Mapping[str, date]) -> bool:
        return any(clause.matches(record) for clause in self.clauses)


class OrderField(str, enum.Enum):
    START_DATE_META = "start_date_meta"
    RAW_START_DATE = "raw_start_date"


class Direction(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class OrderSpec:
    field: OrderField
    direction: Direction = Direction.ASC


@dataclass(frozen=True)
class QueryPlan:
    """Everything a query sink needs to serve one archive view."""

    predicate: Predicate
    order: OrderSpec
    clear_year: bool = False
    clear_month: bool = False
    clear_day: bool = False

    @property
    def clear_native_date_routing(self) -> bool:
        return self.clear_year or self.clear_month or self.clear_day


class QuerySink(Protocol):
    def set_predicate(self, predicate: Predicate) -> None: ...

    def set_ordering(self, order: OrderSpec) -> None: ...

    def clear_date_routing(self, component: str) -> None: ...


def overlaps(start: date, end: date) -> Predicate:
    """Events whose [start_date, end_date] intersects [start, end].

    Either endpoint inside the window, or the event spans the whole window.
    """

    endpoint_inside = Or(
        (
            Between(Field.START_DATE, start, end),
            Between(Field.END_DATE, start, end),
        )
    )
    spans_window = And(
        (
            Compare(Field.START_DATE, Operator.LT, start),
            Compare(Field.END_DATE, Operator.GT, end),
        )
    )
    return Or((endpoint_inside, spans_window))


def _archive_plan(predicate: Predicate) -> QueryPlan:
    return QueryPlan(
        predicate=predicate,
        order=OrderSpec(OrderField.START_DATE_META, Direction.ASC),
        clear_year=True,
        clear_month=True,
        clear_day=True,
    )


def build(scope: ResolvedScope) -> QueryPlan:
    if isinstance(scope, ExactDay):
        plan = _archive_plan(
            And(
                (
                    Compare(Field.START_DATE, Operator.LTE, scope.date),
                    Compare(Field.END_DATE, Operator.GTE, scope.date),
                )
            )
        )
    elif isinstance(scope, (Month, Year)):
        predicate = overlaps(scope.start, scope.end)
        if scope.start > scope.end:
            log_with_context(logger, "warning", "Inverted archive bounds", start=scope.start, end=scope.end)
            # No date lies inside inverted bounds, so this clause never holds.
            predicate = And((predicate, Between(Field.START_DATE, scope.start, scope.end)))
        plan = _archive_plan(predicate)
    elif isinstance(scope, DefaultUpcoming):
        plan = QueryPlan(
            predicate=Compare(Field.END_DATE, Operator.GTE, scope.today),
            order=OrderSpec(OrderField.RAW_START_DATE, Direction.ASC),
        )
    else:
        raise TypeError(f"Unsupported scope: {scope!r}")

    log_with_context(logger, "debug", "Built query plan", scope=type(scope).__name__, order=plan.order.field.value)
    return plan


def apply_plan(plan: QueryPlan, sink: QuerySink) -> None:
    sink.set_predicate(plan.predicate)
    sink.set_ordering(plan.order)
    if plan.clear_year:
        sink.clear_date_routing("year")
    if plan.clear_month:
        sink.clear_date_routing("month")
    if plan.clear_day:
        sink.clear_date_routing("day")


__all__ = [
    "And",
    "Between",
    "Compare",
    "Direction",
    "Field",
    "Operator",
    "Or",
    "OrderField",
    "OrderSpec",
    "Predicate",
    "QueryPlan",
    "QuerySink",
    "apply_plan",
    "build",
    "overlaps",
]
