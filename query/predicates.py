"""
Predicate Compiler

Translates filter descriptors into SQL boolean fragments for WHERE, HAVING
and join ON clauses.
All values are passed as asyncpg positional parameters ($1, $2, ...), never interpolated.

Supports:
- id / ids (equality, set membership)
- text (case-insensitive substring match)
- numeric (=, >, >=, <, <= against a number)
- date (day equality, "YYYY" / "YYYY-MM" shorthand, explicit from/to range)
- tsMatch (search vector @@ plainto_tsquery of the caller's search text)
"""

import logging
import re
from dataclasses import dataclass
from datetime import date as date_type, datetime, timedelta
from typing import Any, Optional

from .errors import InvalidFilterSpec

logger = logging.getLogger(__name__)

FILTER_KINDS = ("id", "ids", "text", "numeric", "date", "tsMatch")

NUMERIC_OPERATORS = {"=", ">", ">=", "<", "<="}

# Accepted spellings for numeric operators
OPERATOR_ALIASES = {
    "eq": "=",
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
}

# Regex for partial date shorthand: YYYY or YYYY-MM
_PARTIAL_DATE_RE = re.compile(r"^(\d{4})(?:-(\d{2}))?$")
_INTEGER_RE = re.compile(r"^-?\d+$")
_NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")


class Params(list):
    """Positional parameters for a single statement."""

    def __init__(self):
        super().__init__()
        self._named: dict[Any, str] = {}

    def add(self, value: Any) -> str:
        """Append a value and return its placeholder."""
        self.append(value)
        return f"${len(self)}"

    def add_once(self, key: Any, value: Any) -> str:
        """Append a value the first time ``key`` is seen; reuse its placeholder after."""
        if key not in self._named:
            self._named[key] = self.add(value)
        return self._named[key]


@dataclass(frozen=True)
class FilterSpec:
    """A parsed, validated filter value."""
    kind: str
    value: Any = None
    operator: str = "="
    start: Optional[date_type] = None  # inclusive
    end: Optional[date_type] = None  # inclusive
    search_config: Optional[str] = None  # regconfig for tsMatch


@dataclass(frozen=True)
class FilterDescriptor:
    """A column expression paired with the filter applied to it."""
    column: str
    spec: FilterSpec


def _invalid(field: str, message: str, code: str = "INVALID_FILTER_VALUE") -> InvalidFilterSpec:
    return InvalidFilterSpec(
        f"{field}: {message}",
        [{"code": code, "path": f"filters.{field}", "message": message}],
    )


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise _invalid(field, f"Expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        return int(value.strip())
    raise _invalid(field, f"Expected an integer, got {value!r}")


def _as_number(value: Any, field: str) -> int | float:
    if isinstance(value, bool):
        raise _invalid(field, f"Expected a number, got {value!r}")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str) and _NUMBER_RE.match(value.strip()):
        text = value.strip()
        return float(text) if "." in text else int(text)
    raise _invalid(field, f"Expected a number, got {value!r}")


def _as_date(value: Any, field: str) -> date_type:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    if isinstance(value, str):
        try:
            return date_type.fromisoformat(value)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            pass
    raise _invalid(field, f"Expected an ISO date, got {value!r}")


def _expand_date_shorthand(value: str, field: str = "?") -> tuple[Optional[date_type], Optional[date_type]]:
    """
    Expand a partial date string into an inclusive (first day, last day) range.
    - "2026" → (date(2026,1,1), date(2026,12,31))
    - "2026-02" → (date(2026,2,1), date(2026,2,28))
    - "2026-01-15" → (None, None): not a shorthand, use as-is
    Years outside 1..9999 raise InvalidFilterSpec.
    """
    m = _PARTIAL_DATE_RE.match(value)
    if not m:
        return None, None

    year = int(m.group(1))
    month = m.group(2)

    try:
        if month:
            month_int = int(month)
            if not 1 <= month_int <= 12:
                return None, None
            if month_int == 12:
                return date_type(year, 12, 1), date_type(year, 12, 31)
            following = date_type(year, month_int + 1, 1)
            return date_type(year, month_int, 1), following - timedelta(days=1)
        return date_type(year, 1, 1), date_type(year, 12, 31)
    except ValueError as e:
        raise _invalid(field, f"Date {value!r} is out of range: {e}") from None


def parse_filter(kind: str, raw: Any, field: str = "?", search_config: Optional[str] = None) -> FilterSpec:
    """
    Validate a caller-supplied filter value for the given kind.

    Raises InvalidFilterSpec for unknown kinds and malformed values.
    """
    if kind == "id":
        return FilterSpec(kind="id", value=_as_int(raw, field))

    if kind == "ids":
        values = raw if isinstance(raw, (list, tuple, set)) else [raw]
        if not values:
            raise _invalid(field, "Expected at least one id")
        return FilterSpec(kind="ids", value=[_as_int(v, field) for v in values])

    if kind == "text":
        if not isinstance(raw, str) or not raw:
            raise _invalid(field, f"Expected a non-empty string, got {raw!r}")
        return FilterSpec(kind="text", value=raw)

    if kind == "numeric":
        if isinstance(raw, dict):
            operator = raw.get("operator", "=")
            operator = OPERATOR_ALIASES.get(operator, operator)
            if operator not in NUMERIC_OPERATORS:
                raise InvalidFilterSpec(
                    f"{field}: Invalid operator {operator!r}",
                    [{
                        "code": "INVALID_OPERATOR",
                        "path": f"filters.{field}.operator",
                        "message": f"Invalid operator {operator!r}",
                        "validOperators": sorted(NUMERIC_OPERATORS),
                    }],
                )
            if "value" not in raw:
                raise _invalid(field, "Numeric filter requires a 'value'")
            return FilterSpec(kind="numeric", value=_as_number(raw["value"], field), operator=operator)
        return FilterSpec(kind="numeric", value=_as_number(raw, field))

    if kind == "date":
        if isinstance(raw, dict):
            start = raw.get("from")
            end = raw.get("to")
            if start is None and end is None:
                raise _invalid(field, "Date range requires 'from' and/or 'to'")
            return FilterSpec(
                kind="date",
                start=_as_date(start, field) if start is not None else None,
                end=_as_date(end, field) if end is not None else None,
            )
        if isinstance(raw, str):
            start, end = _expand_date_shorthand(raw, field)
            if start is not None:
                return FilterSpec(kind="date", start=start, end=end)
        return FilterSpec(kind="date", value=_as_date(raw, field))

    if kind == "tsMatch":
        if not isinstance(raw, str) or not raw.strip():
            raise _invalid(field, f"Expected non-empty search text, got {raw!r}")
        return FilterSpec(kind="tsMatch", value=raw, search_config=search_config)

    raise InvalidFilterSpec(
        f"{field}: Unknown filter kind {kind!r}",
        [{
            "code": "INVALID_FILTER_KIND",
            "path": f"filters.{field}",
            "message": f"Unknown filter kind {kind!r}",
            "validKinds": list(FILTER_KINDS),
        }],
    )


def search_query(params: Params, text: str, search_config: Optional[str] = None) -> str:
    """
    Build the plainto_tsquery expression for the caller's search text.

    The text is bound once per statement, so a match predicate and a rank
    column built from the same search share one placeholder.
    """
    text_ref = params.add_once(("search", text), text)
    if search_config:
        config_ref = params.add_once(("search_config", search_config), search_config)
        return f"plainto_tsquery({config_ref}::regconfig, {text_ref})"
    return f"plainto_tsquery({text_ref})"


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def compile_predicate(descriptor: FilterDescriptor, params: Params) -> str:
    """Build one SQL condition for a column + filter."""
    col = descriptor.column
    spec = descriptor.spec

    if spec.kind == "id":
        return f"{col} = {params.add(spec.value)}"

    if spec.kind == "ids":
        return f"{col} = ANY({params.add(list(spec.value))}::int[])"

    if spec.kind == "text":
        return f"{col} ILIKE {params.add(f'%{_escape_like(spec.value)}%')}"

    if spec.kind == "numeric":
        return f"{col} {spec.operator} {params.add(spec.value)}"

    if spec.kind == "date":
        if spec.value is not None:
            return f"DATE({col}) = {params.add(spec.value)}"
        conditions = []
        if spec.start is not None:
            conditions.append(f"DATE({col}) >= {params.add(spec.start)}")
        if spec.end is not None:
            conditions.append(f"DATE({col}) <= {params.add(spec.end)}")
        return " AND ".join(conditions)

    if spec.kind == "tsMatch":
        return f"{col} @@ {search_query(params, spec.value, spec.search_config)}"

    raise InvalidFilterSpec(f"Unknown filter kind {spec.kind!r}")


def compile_predicates(
    descriptors: list[FilterDescriptor],
    params: Params,
    join_mode: bool = False,
) -> str:
    """
    Combine descriptors into one AND-ed fragment.

    An empty list compiles to TRUE so the result can always be inlined.
    With join_mode the fragment is prefixed with AND for appending to an ON condition.
    """
    seen = set()
    conditions = []
    for descriptor in descriptors:
        if descriptor.column in seen:
            raise InvalidFilterSpec(f"Column {descriptor.column} is filtered more than once")
        seen.add(descriptor.column)
        conditions.append(compile_predicate(descriptor, params))

    if not conditions:
        fragment = "TRUE"
    elif len(conditions) == 1:
        fragment = conditions[0]
    else:
        fragment = " AND ".join(f"({c})" for c in conditions)

    return f"AND {fragment}" if join_mode else fragment
