"""
Filter compiler: recognized query-string keys -> FilterSpec.

A FilterSpec is an ordered list of (column, operator, value) predicates.
Placeholders are numbered from each predicate's position when rendered, so
the Nth predicate is always ``$N`` and its value is the Nth bound parameter.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Tuple

from dataview.core.errors import ValidationError
from dataview.core.query.catalog import quote_ident

OPERATORS = ("=", ">=", "<=")


@dataclass(frozen=True)
class Predicate:
    column: str
    operator: str
    value: Any

    def render(self, index: int) -> str:
        return f"{quote_ident(self.column)} {self.operator} ${index}"


@dataclass
class FilterSpec:
    predicates: List[Predicate] = field(default_factory=list)

    def add(self, column: str, operator: str, value: Any) -> "FilterSpec":
        if operator not in OPERATORS:
            raise ValueError(f"unsupported operator {operator!r}")
        self.predicates.append(Predicate(column, operator, value))
        return self

    def __len__(self) -> int:
        return len(self.predicates)

    @property
    def columns(self) -> List[str]:
        return [p.column for p in self.predicates]

    @property
    def params(self) -> List[Any]:
        return [p.value for p in self.predicates]

    def clauses(self) -> List[str]:
        return [p.render(i) for i, p in enumerate(self.predicates, start=1)]

    def where_sql(self) -> str:
        if not self.predicates:
            return ""
        return "WHERE " + " AND ".join(self.clauses())


@dataclass(frozen=True)
class FilterColumns:
    booking_status: str = "booking_status"
    market_segment: str = "market_segment"
    price: str = "avg_price_per_room"


def parse_price(key: str, raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {key}", details=f"{raw!r} is not a number") from e
    if not math.isfinite(value):
        raise ValidationError(f"Invalid {key}", details=f"{raw!r} is not a finite number")
    return value


def _parse_text(key: str, raw: Any) -> str:
    return str(raw)


@dataclass(frozen=True)
class FilterRule:
    key: str
    column: Callable[[FilterColumns], str]
    operator: str
    parse: Callable[[str, Any], Any]


# Declaration order is the predicate order.
FILTER_RULES: Tuple[FilterRule, ...] = (
    FilterRule("booking_status", lambda c: c.booking_status, "=", _parse_text),
    FilterRule("market_segment", lambda c: c.market_segment, "=", _parse_text),
    FilterRule("min_price", lambda c: c.price, ">=", parse_price),
    FilterRule("max_price", lambda c: c.price, "<=", parse_price),
)

FILTER_KEYS = tuple(r.key for r in FILTER_RULES)


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def compile_filters(params: Mapping[str, Any], columns: Optional[FilterColumns] = None) -> FilterSpec:
    cols = columns or FilterColumns()
    spec = FilterSpec()
    for rule in FILTER_RULES:
        raw = params.get(rule.key)
        if _is_blank(raw):
            continue
        spec.add(rule.column(cols), rule.operator, rule.parse(rule.key, raw))
    return spec
