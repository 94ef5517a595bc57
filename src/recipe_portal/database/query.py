"""Composition of parameterized WHERE clauses and pagination.

``QueryBuilder`` collects predicates for optional filters and numbers
asyncpg placeholders as it goes. Only code-supplied column names and
clauses are written into SQL text; every caller value is bound.
The same builder feeds both the page query and its ``COUNT(*)`` query,
so ``total`` always matches the predicate used for ``items``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from recipe_portal.core.config import get_settings


if TYPE_CHECKING:
    from collections.abc import Sequence


T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so ``term`` matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True, slots=True)
class Pagination:
    """Normalized 1-based page request."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(
        cls,
        page: int | None = None,
        limit: int | None = None,
        *,
        default_limit: int | None = None,
    ) -> Pagination:
        """Build a pagination request, flooring page and limit at 1.

        Without an explicit ``default_limit`` an omitted limit falls back to
        ``pagination.default_limit`` from settings.
        """
        if default_limit is None:
            default_limit = get_settings().pagination.default_limit
        page = DEFAULT_PAGE if page is None else max(int(page), 1)
        limit = default_limit if limit is None else max(int(limit), 1)
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class QueryBuilder:
    """Accumulates AND-ed predicates and their bound values.

    Example:
        qb = QueryBuilder()
        qb.require("r.active = TRUE")
        qb.equals("r.category_id", category_id)
        qb.search(["r.title", "r.description"], term)
        rows = await conn.fetch(f"SELECT ... {qb.where_sql}", *qb.params)
    """

    def __init__(self) -> None:
        self._clauses: list[str] = []
        self._params: list[Any] = []

    def _bind(self, value: Any) -> str:
        self._params.append(value)
        return f"${len(self._params)}"

    def require(self, clause: str) -> QueryBuilder:
        """Add a static structural clause that takes no parameter."""
        self._clauses.append(clause)
        return self

    def equals(self, column: str, value: Any) -> QueryBuilder:
        """Add ``column = value`` unless value is None or a blank string."""
        if _is_blank(value):
            return self
        if isinstance(value, str):
            value = value.strip()
        self._clauses.append(f"{column} = {self._bind(value)}")
        return self

    def flag(self, column: str, value: bool | None) -> QueryBuilder:
        """Add a boolean filter unless value is None."""
        if value is None:
            return self
        self._clauses.append(f"{column} = {self._bind(bool(value))}")
        return self

    def search(self, columns: Sequence[str], term: str | None) -> QueryBuilder:
        """Case-insensitive substring match across ``columns`` (OR-ed).

        A single escaped ``%term%`` value is bound once and referenced by
        every column comparison.
        """
        if _is_blank(term) or not columns:
            return self
        placeholder = self._bind(f"%{escape_like(term.strip())}%")
        matches = " OR ".join(f"{column} ILIKE {placeholder}" for column in columns)
        self._clauses.append(f"({matches})")
        return self

    @property
    def clauses(self) -> list[str]:
        return list(self._clauses)

    @property
    def params(self) -> list[Any]:
        return list(self._params)

    @property
    def where_sql(self) -> str:
        if not self._clauses:
            return ""
        return " WHERE " + " AND ".join(self._clauses)

    def paginate(self, pagination: Pagination) -> tuple[str, list[Any]]:
        """Return a ``LIMIT/OFFSET`` fragment and the extended parameter list.

        The builder itself is left unchanged so its ``params`` can still be
        used for the matching count query.
        """
        base = len(self._params)
        fragment = f" LIMIT ${base + 1} OFFSET ${base + 2}"
        return fragment, [*self._params, pagination.limit, pagination.offset]


class Page(BaseModel, Generic[T]):
    """Paginated result envelope.

    Serializes with camelCase keys:
    ``{items, total, page, totalPages, hasNext, hasPrev}``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        serialize_by_alias=True,
    )

    items: list[T]
    total: int
    page: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, items: list[T], total: int, pagination: Pagination) -> Page[T]:
        """Derive the navigation fields from ``total`` and the request."""
        total_pages = math.ceil(total / pagination.limit) if total > 0 else 0
        return cls(
            items=items,
            total=total,
            page=pagination.page,
            total_pages=total_pages,
            has_next=pagination.page < total_pages,
            has_prev=pagination.page > 1 and total_pages > 0,
        )
