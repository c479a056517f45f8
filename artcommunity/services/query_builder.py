"""
Incremental construction of filtered, ordered, paginated queries

A builder accumulates WHERE predicates and ORDER BY terms. Every value
coming from a request is bound as a named parameter created together with
the predicate that uses it, so the parameter list and the SQL text can never
drift apart. The same predicate list feeds both the page query and the
total-count query.
"""
from datetime import datetime, timedelta
from sqlalchemy import bindparam, func, select
from typing import Any, Callable, List, Optional
from artcommunity.database.models import utcnow


def start_of_day(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    """Start of the day ``days`` days before ``now``"""
    return start_of_day(now) - timedelta(days=days)


def like_pattern(term: str) -> str:
    """Substring LIKE pattern with wildcard characters escaped"""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class QueryBuilder:
    """Base builder holding predicates, ordering and bound values"""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or utcnow()
        self.params: List[Any] = []
        self.predicates: List[Any] = []
        self.ordering: List[Any] = []

    def _bindings(self, values) -> list:
        start = len(self.params)
        return [bindparam(f"p{start + i + 1}", value) for i, value in enumerate(values)]

    def where(self, build: Callable[..., Any], *values) -> "QueryBuilder":
        """
        Append a predicate together with the values it binds
        Args:
            build: Callable receiving one bind parameter per value and
                returning the SQL expression
            values: Values to bind, in placeholder order
        """
        bound = self._bindings(values)
        predicate = build(*bound)
        self.params.extend(values)
        self.predicates.append(predicate)
        return self

    def order(self, build: Callable[..., Any], *values) -> "QueryBuilder":
        """Append ORDER BY terms; ``build`` returns one term or a tuple of terms"""
        bound = self._bindings(values)
        terms = build(*bound)
        self.params.extend(values)
        if isinstance(terms, (list, tuple)):
            self.ordering.extend(terms)
        else:
            self.ordering.append(terms)
        return self

    def page_statement(self, base, limit: int, offset: int):
        """Apply predicates, ordering and pagination to ``base``"""
        return base.where(*self.predicates).order_by(*self.ordering).limit(limit).offset(offset)

    def count_statement(self, from_clause):
        """COUNT(*) over ``from_clause`` with the same predicates"""
        return select(func.count()).select_from(from_clause).where(*self.predicates)
