"""Incremental builder for parameterised SELECT statements.

Filters, sorting and pagination are appended clause by clause from whatever
request parameters are present. Placeholders are numbered binds (``:p1``,
``:p2`` ...) and every allocation appends exactly one value to the
parameter list, so ``:pN`` always refers to ``params[N - 1]``. A free-text
search across several columns allocates one placeholder and repeats it.

Pagination is always emitted last. ``build_count`` produces the matching
``COUNT(*)`` over the same FROM/WHERE and the same filter parameters.
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.sql.selectable import TextualSelect

PLACEHOLDER_PATTERN = re.compile(r":p(\d+)\b")

COMPARISON_OPERATORS = ("=", "!=", "<", "<=", ">", ">=")

DEFAULT_LIMIT = 50
DEFAULT_OFFSET = 0


def normalize_direction(direction: Optional[str]) -> str:
    """Anything other than a case-insensitive ``asc`` sorts descending."""
    if direction and str(direction).strip().upper() == "ASC":
        return "ASC"
    return "DESC"


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, tuple, set)) and not value:
        return True
    return False


@dataclass
class BuiltQuery:
    sql: str
    params: List[Any]

    def bind_params(self) -> Dict[str, Any]:
        return {f"p{index}": value for index, value in enumerate(self.params, start=1)}

    def statement(self, *columns: Any) -> Union[TextClause, TextualSelect]:
        """Bound text clause; typed result columns are matched positionally when given."""
        clause = text(self.sql).bindparams(**self.bind_params())
        if columns:
            return clause.columns(*columns)
        return clause


@dataclass(frozen=True)
class Filter:
    """One recognised filter key and how it maps onto columns.

    kind is one of ``equals``, ``min``, ``max``, ``like``, ``search`` or
    ``flag``. ``search`` may name several columns; the others use the first.
    """

    key: str
    kind: str
    columns: Sequence[str]
    coerce: Optional[Callable[[Any], Any]] = None

    @property
    def column(self) -> str:
        return self.columns[0]


class QueryBuilder:
    def __init__(self, select_clause: str, from_clause: str):
        self._select = select_clause
        self._from = from_clause
        self._conditions: List[str] = ["1=1"]
        self._params: List[Any] = []
        self._order: Optional[str] = None
        self._limit: int = DEFAULT_LIMIT
        self._offset: int = DEFAULT_OFFSET

    @property
    def params(self) -> List[Any]:
        return list(self._params)

    def _placeholder(self, value: Any) -> str:
        self._params.append(value)
        return f":p{len(self._params)}"

    def where_raw(self, condition: str) -> "QueryBuilder":
        self._conditions.append(condition)
        return self

    def where_equals(self, column: str, value: Any) -> "QueryBuilder":
        return self.where_compare(column, "=", value)

    def where_compare(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        if operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {operator}")
        self._conditions.append(f"{column} {operator} {self._placeholder(value)}")
        return self

    def where_like(self, column: str, term: Any) -> "QueryBuilder":
        return self.where_search([column], term)

    def where_search(self, columns: Sequence[str], term: Any) -> "QueryBuilder":
        if not columns:
            raise ValueError("Search needs at least one column")
        placeholder = self._placeholder(f"%{term}%")
        matches = [f"LOWER({column}) LIKE LOWER({placeholder})" for column in columns]
        self._conditions.append(f"({' OR '.join(matches)})")
        return self

    def apply_filters(self, filters: Sequence[Filter], values: Mapping[str, Any]) -> "QueryBuilder":
        """Append one predicate per filter whose key is present and non-empty."""
        for item in filters:
            raw = values.get(item.key)
            if is_empty(raw):
                continue
            value = item.coerce(raw) if item.coerce else raw

            if item.kind in ("equals", "flag"):
                self.where_equals(item.column, value)
            elif item.kind == "min":
                self.where_compare(item.column, ">=", value)
            elif item.kind == "max":
                self.where_compare(item.column, "<=", value)
            elif item.kind == "like":
                self.where_like(item.column, value)
            elif item.kind == "search":
                self.where_search(item.columns, value)
            else:
                raise ValueError(f"Unknown filter kind: {item.kind}")
        return self

    def order_by(
        self,
        field: Optional[str],
        direction: Optional[str],
        allowed: Sequence[str],
        default: str,
        prefix: str = "",
        tiebreak: Optional[str] = None
    ) -> "QueryBuilder":
        sort_field = field if field in allowed else default
        clause = f"{prefix}{sort_field} {normalize_direction(direction)}"
        if tiebreak:
            clause += f", {tiebreak}"
        self._order = clause
        return self

    def paginate(self, limit: Optional[int] = None, offset: Optional[int] = None) -> "QueryBuilder":
        self._limit = DEFAULT_LIMIT if limit is None else limit
        self._offset = DEFAULT_OFFSET if offset is None else offset
        return self

    def _where_sql(self) -> str:
        return " AND ".join(self._conditions)

    def build(self) -> BuiltQuery:
        params = list(self._params)
        sql = f"SELECT {self._select} FROM {self._from} WHERE {self._where_sql()}"
        if self._order:
            sql += f" ORDER BY {self._order}"

        params.append(self._limit)
        sql += f" LIMIT :p{len(params)}"
        params.append(self._offset)
        sql += f" OFFSET :p{len(params)}"
        return BuiltQuery(sql=sql, params=params)

    def build_count(self) -> BuiltQuery:
        sql = f"SELECT COUNT(*) FROM {self._from} WHERE {self._where_sql()}"
        return BuiltQuery(sql=sql, params=list(self._params))


def select_list(table: Any, prefix: str = "") -> str:
    """Explicit column list in table order, for positional result typing."""
    return ", ".join(f"{prefix}{column.name}" for column in table.columns)


def pagination_info(total: int, limit: int, offset: int) -> Dict[str, Any]:
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "hasNext": offset + limit < total,
        "hasPrev": offset > 0,
    }
