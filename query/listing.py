"""
Paginated List

Abstract base for entity listings. Owns pagination, caller filters / sorts /
search, the statement timings, and the two-statement execution:

1. page statement: filtered, grouped, HAVING-filtered, ordered, paginated
   root rows (in a "Page" CTE), re-joined to the many-valued associations
2. total statement: COUNT of the same grouped, HAVING-filtered root set

Subclasses supply where / having / order for their entity.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

from config import ListingConfig

from .denormalize import denormalize
from .entities import EntityConfig
from .errors import InvalidFilterSpec
from .ordering import SortDescriptor, normalize_direction
from .predicates import (
    FilterDescriptor,
    Params,
    compile_predicates,
    parse_filter,
    search_query,
)
from .timing import TimingRecorder
from .validators import validate_listing_input

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"^-?\d+$")


def _to_int(value: Any, default: int) -> int:
    """Integer from caller input; missing or non-numeric input gives the default."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        return int(value.strip())
    return default


def _compact(sql: str) -> str:
    """Normalize whitespace (statements carry no string literals)."""
    return " ".join(sql.split())


class PaginatedList(ABC):
    """One listing request: constructed from caller input, loaded by set_data()."""

    entity: EntityConfig
    name: str = ""

    def __init__(
        self,
        db,
        filters: Optional[dict] = None,
        sorts: Optional[dict] = None,
        limit: Any = None,
        offset: Any = None,
        search: Any = False,
        config: Optional[ListingConfig] = None,
    ):
        self.db = db
        self.config = config or ListingConfig.from_environment()

        self.limit = _to_int(limit, self.config.default_limit)
        self.offset = _to_int(offset, self.config.default_offset)
        self.filters = {k: v for k, v in (filters or {}).items() if v is not None}
        self.sorts = {k: v for k, v in (sorts or {}).items() if v is not None}

        validate_listing_input(self.name, self.entity, self.filters, self.sorts, search)
        self.search = search.strip() if isinstance(search, str) and search.strip() else False

        self.total = 0
        self._data: tuple = ()
        self._timer = TimingRecorder()

    # ------------------------------------------------------------------
    # Column expressions
    # ------------------------------------------------------------------

    @property
    def cols(self) -> dict[str, Any]:
        """Logical field name → qualified column expression."""
        e = self.entity
        cols: dict[str, Any] = {c: e.column(c) for c in e.columns}
        if e.tsv:
            cols["tsv"] = e.tsv
        for join in e.joins:
            cols[join.alias] = {c: f'"{join.alias}"."{c}"' for c in join.columns}
        for aggregate in e.aggregates:
            cols[aggregate.name] = aggregate.column
        cols["count"] = f"COUNT(DISTINCT {e.root_id})"
        return cols

    @property
    def timings(self) -> list[tuple[str, float]]:
        return self._timer.timings

    @property
    def include(self) -> tuple[str, ...]:
        """Optional columns projected by this listing."""
        return ()

    # ------------------------------------------------------------------
    # Clause fragments
    # ------------------------------------------------------------------

    def descriptors(self, stage: str, join: Optional[str] = None) -> list[FilterDescriptor]:
        """Filter descriptors for caller filters assigned to a clause stage."""
        result = []
        for field_name, raw in self.filters.items():
            field_def = self.entity.fields[field_name]
            if field_def.stage != stage or (join is not None and field_def.join != join):
                continue
            spec = parse_filter(field_def.filter, raw, field=field_name)
            result.append(FilterDescriptor(column=field_def.column, spec=spec))
        return result

    def search_descriptor(self) -> Optional[FilterDescriptor]:
        if not self.search:
            return None
        if not self.entity.tsv:
            raise InvalidFilterSpec(f"'{self.name}' listing does not support search")
        spec = parse_filter("tsMatch", self.search, field="search", search_config=self.config.search_config)
        return FilterDescriptor(column=self.entity.tsv, spec=spec)

    def rank(self, params: Params) -> Optional[str]:
        """TS_RANK expression for the current search, or None."""
        if not self.search or not self.entity.tsv:
            return None
        return f"TS_RANK({self.entity.tsv}, {search_query(params, self.search, self.config.search_config)})"

    def sort_descriptors(self) -> list[SortDescriptor]:
        """Caller sorts in caller order."""
        result = []
        for field_name, direction in self.sorts.items():
            field_def = self.entity.fields[field_name]
            result.append(SortDescriptor(
                column=field_def.sort_column or field_def.column,
                direction=normalize_direction(direction, field_name),
            ))
        return result

    def default_sort(self) -> Optional[SortDescriptor]:
        if not self.entity.default_sort:
            return None
        field_name, direction = self.entity.default_sort
        field_def = self.entity.fields[field_name]
        return SortDescriptor(column=field_def.sort_column or field_def.column, direction=direction)

    def join_where(self, alias: str, params: Params) -> str:
        """ON-clause suffix for filters carried by a join."""
        return compile_predicates(self.descriptors("join", alias), params, join_mode=True)

    @abstractmethod
    def where(self, params: Params) -> str:
        """Pre-aggregation predicate."""

    @abstractmethod
    def having(self, params: Params) -> str:
        """Post-aggregation predicate."""

    @abstractmethod
    def order(self, params: Params) -> str:
        """ORDER BY body."""

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _from(self, params: Params) -> str:
        e = self.entity
        parts = [f'FROM "{e.table}" AS "{e.alias}"']
        for join in e.joins:
            parts.append(join.render(e.root_id, self.join_where(join.alias, params)))
        for aggregate in e.aggregates:
            parts.append(aggregate.render(e.root_id))
        return "\n".join(parts)

    def _group_by(self) -> str:
        e = self.entity
        group = [e.root_id]
        group.extend(join.id_column for join in e.single_joins)
        group.extend(aggregate.column for aggregate in e.aggregates)
        return ", ".join(group)

    def _select(self, rank: Optional[str], order: str) -> str:
        e = self.entity
        include = set(self.include)
        select = [
            f'{e.column(c)} AS "{c}"'
            for c in e.columns
            if c not in e.optional_columns or c in include
        ]
        for join in e.single_joins:
            select.extend(join.projections())
        select.extend(f'{aggregate.column} AS "{aggregate.name}"' for aggregate in e.aggregates)
        if rank:
            select.append(f'{rank} AS "rank"')
        select.append(f'ROW_NUMBER() OVER (ORDER BY {order}) AS "position"')
        return ",\n".join(select)

    def build_page_statement(self) -> tuple[str, list]:
        """
        Build the page statement.
        Returns (sql, params).
        """
        e = self.entity
        params = Params()
        rank = self.rank(params)
        order = self.order(params)

        root = f"""
            SELECT {self._select(rank, order)}
            {self._from(params)}
            WHERE {self.where(params)}
            GROUP BY {self._group_by()}
            HAVING {self.having(params)}
            ORDER BY {order}
            OFFSET {params.add(self.offset)}
            LIMIT {params.add(self.limit)}
        """

        if not e.many_joins:
            return _compact(root), list(params)

        page_id = '"Page"."id"'
        nested = []
        joins = []
        nested_order = ['"Page"."position"']
        for join in e.many_joins:
            nested.extend(join.projections())
            joins.append(join.render(page_id))
            nested_order.append(join.id_column)

        sql = f"""
            WITH "Page" AS ({root})
            SELECT "Page".*, {', '.join(nested)}
            FROM "Page"
            {' '.join(joins)}
            ORDER BY {', '.join(nested_order)}
        """
        return _compact(sql), list(params)

    def build_total_statement(self) -> tuple[str, list]:
        """
        Build the total statement: distinct root ids after WHERE and HAVING,
        without pagination.
        Returns (sql, params).
        """
        params = Params()
        sql = f"""
            SELECT COUNT(*) AS "total"
            FROM (
                SELECT {self.entity.root_id}
                {self._from(params)}
                WHERE {self.where(params)}
                GROUP BY {self._group_by()}
                HAVING {self.having(params)}
            ) AS "result"
        """
        return _compact(sql), list(params)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _run(self, label: str, sql: str, params: list):
        logger.debug(f"{self.name} {label} statement: {sql[:120]}... params={params}")
        async with self._timer.measure(f"{self.name}.{label}"):
            return await self.db.fetch(sql, *params)

    async def set_data(self):
        """
        Execute the page and total statements and load data / total.
        Errors from the statements propagate unchanged; nothing is retried.
        """
        page_sql, page_params = self.build_page_statement()
        total_sql, total_params = self.build_total_statement()

        if self.config.concurrent_statements:
            rows, total_rows = await asyncio.gather(
                self._run("page", page_sql, page_params),
                self._run("total", total_sql, total_params),
            )
        else:
            rows = await self._run("page", page_sql, page_params)
            total_rows = await self._run("total", total_sql, total_params)

        self.data = rows
        self.total = int(total_rows[0]["total"]) if total_rows else 0

        logger.info(f"{self.name} listing: {len(self.data)} of {self.total} (limit={self.limit}, offset={self.offset})")

    @property
    def data(self) -> tuple:
        return self._data

    @data.setter
    def data(self, rows):
        self._data = denormalize(rows, self.entity, include=self.include)
