"""
Immutable filter specifications for repository reads.

A `FilterSpec` is a tuple of predicates combined with AND. Services build one
per call and hand it to a repository, which compiles it against its model;
nothing here touches a session.
"""
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Type, Union

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

WhereExpr = ColumnElement[bool]


@dataclass(frozen=True, slots=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class NotEq:
    field: str
    value: Any


@dataclass(frozen=True, slots=True)
class Range:
    """Bounds are optional; `lt` is used for day ranges (next midnight)."""
    field: str
    gte: Any = None
    lt: Any = None
    lte: Any = None


@dataclass(frozen=True, slots=True)
class Contains:
    """Case-insensitive substring match on any of `fields`."""
    fields: Tuple[str, ...]
    term: str


Predicate = Union[Eq, NotEq, Range, Contains]
FilterSpec = Tuple[Predicate, ...]


def _column(model: Type[Any], field: str):
    col = getattr(model, field, None)
    if col is None or not hasattr(col, "property"):
        raise ValueError(f"{model.__name__} has no column '{field}'")
    return col


def compile_predicate(model: Type[Any], p: Predicate) -> Optional[WhereExpr]:
    if isinstance(p, Eq):
        col = _column(model, p.field)
        return col.is_(None) if p.value is None else col == p.value
    if isinstance(p, NotEq):
        return _column(model, p.field) != p.value
    if isinstance(p, Range):
        col = _column(model, p.field)
        parts = []
        if p.gte is not None:
            parts.append(col >= p.gte)
        if p.lt is not None:
            parts.append(col < p.lt)
        if p.lte is not None:
            parts.append(col <= p.lte)
        if not parts:
            return None
        return parts[0] if len(parts) == 1 else and_(*parts)
    if isinstance(p, Contains):
        if not p.term:
            return None
        return or_(*(_column(model, f).icontains(p.term, autoescape=True) for f in p.fields))
    raise TypeError(f"Unsupported predicate: {p!r}")


def compile_filters(model: Type[Any], spec: FilterSpec) -> list[WhereExpr]:
    out: list[WhereExpr] = []
    for p in spec:
        expr = compile_predicate(model, p)
        if expr is not None:
            out.append(expr)
    return out
