import re
from typing import Any, Generic, Optional, TypeVar

from pydantic.alias_generators import to_snake
from sqlalchemy import func, or_
from sqlmodel import Session, SQLModel, col, select

from app.domain.common import PaginationMeta


ModelT = TypeVar("ModelT", bound=SQLModel)

# Reserved keys that shouldn't participate in filtering
EXCLUDE_FIELDS = frozenset({"searchTerm", "sort", "limit", "page", "fields"})


class QueryBuilder(Generic[ModelT]):
    """Composes search, filter, sort and pagination over one SQLModel table.

    ``query`` is a flat mapping of request parameters (camelCase or
    snake_case keys). Conditions accumulate on the builder; ``all()`` and
    ``count_total()`` render them into statements.

    Example:
        builder = QueryBuilder(session, User, {"searchTerm": "rah", "page": 2})
        users = builder.search(["name", "email"]).filter().sort().paginate().all()
        meta = builder.count_total()
    """

    def __init__(self, session: Session, model: type[ModelT], query: dict[str, Any]) -> None:
        self.session = session
        self.model = model
        self.query = dict(query)
        self._conditions: list[Any] = []
        self._order_by: list[Any] = []
        self.page = 1
        self.limit = 10

    def _column(self, key: str) -> Optional[Any]:
        """Resolves a camelCase or snake_case key to a mapped column."""
        name = to_snake(key)
        if name not in self.model.model_fields:
            return None
        return getattr(self.model, name, None)

    def where(self, *conditions: Any) -> "QueryBuilder[ModelT]":
        self._conditions.extend(conditions)
        return self

    def search(self, searchable_fields: list[str]) -> "QueryBuilder[ModelT]":
        """Case-insensitive substring match across ``searchable_fields``.

        For a ``phone`` field the digits-only form of the term is matched
        too, so "+880-17 12" still finds "8801712...".
        """
        raw = self.query.get("searchTerm")
        if not raw or not searchable_fields:
            return self

        term = str(raw)
        columns = [c for c in (self._column(f) for f in searchable_fields) if c is not None]
        or_conds = [col(c).icontains(term, autoescape=True) for c in columns]

        phone_digits = re.sub(r"\D+", "", term, flags=re.ASCII)
        if "phone" in searchable_fields and phone_digits and phone_digits != term:
            phone = self._column("phone")
            if phone is not None:
                or_conds.append(col(phone).icontains(phone_digits, autoescape=True))

        if or_conds:
            self._conditions.append(or_(*or_conds))
        return self

    def filter(self) -> "QueryBuilder[ModelT]":
        """Equality filters from every non-reserved key naming a column."""
        for key, value in self.query.items():
            if key in EXCLUDE_FIELDS or value is None:
                continue
            column = self._column(key)
            if column is None:
                continue
            self._conditions.append(col(column) == value)
        return self

    def sort(self, default: str = "-createdAt") -> "QueryBuilder[ModelT]":
        """Sort by comma-separated keys, "-" prefix for descending.

        The primary key is appended so ties keep insertion order.
        """
        raw = self.query.get("sort") or default
        for key in str(raw).split(","):
            key = key.strip()
            if not key:
                continue
            descending = key.startswith("-")
            column = self._column(key.lstrip("-"))
            if column is None:
                continue
            self._order_by.append(col(column).desc() if descending else col(column).asc())

        id_column = self._column("id")
        if id_column is not None:
            self._order_by.append(col(id_column).asc())
        return self

    def paginate(self, default_limit: int = 10, max_limit: Optional[int] = None) -> "QueryBuilder[ModelT]":
        self.page = max(_as_int(self.query.get("page"), 1), 1)
        self.limit = max(_as_int(self.query.get("limit"), default_limit), 1)
        if max_limit is not None:
            self.limit = min(self.limit, max_limit)
        return self

    def all(self) -> list[ModelT]:
        statement = select(self.model).where(*self._conditions).order_by(*self._order_by)
        statement = statement.offset((self.page - 1) * self.limit).limit(self.limit)
        return list(self.session.exec(statement).all())

    def count_total(self) -> PaginationMeta:
        """Counts rows matching the current conditions (ignores paging)."""
        statement = select(func.count()).select_from(self.model).where(*self._conditions)
        total = self.session.exec(statement).one()
        return PaginationMeta.build(page=self.page, limit=self.limit, total=total)


def _as_int(value: Any, fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback
