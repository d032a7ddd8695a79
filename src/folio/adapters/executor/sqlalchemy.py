"""Query executor over relational tables, via SQLAlchemy Core"""

import logging
from typing import Any, Optional, Sequence, Union

from sqlalchemy import (
    MetaData,
    Table,
    and_,
    create_engine,
    func,
    not_,
    or_,
    select,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from folio.core.page import ALL_RESULTS, Page
from folio.core.query import StructuredQuery
from folio.exceptions import ConfigurationError, QueryExecutionError
from folio.port.executor import BaseLookup, BaseQueryExecutor
from folio.utils.query import Q

logger = logging.getLogger(__name__)


class SqlalchemyQueryExecutor(BaseQueryExecutor):
    """Executor that runs structured queries against a single table.

    The table can be supplied directly, or named in `conn_info` (as `table`), in which case it is
    reflected from the database. The engine can likewise be supplied, or created from
    `conn_info["database_uri"]`.

    Sorting places nulls last in ascending order and first in descending order, matching the
    in-process comparators. Row fetches do not calculate totals.

    Configuration example::

        executors = {
            "default": {
                "provider": "sqlite",
                "database_uri": "sqlite:///catalog.db",
                "table": "products",
            }
        }
    """

    def __init__(
        self,
        name: str = "default",
        folio=None,
        conn_info: dict = None,
        table: Union[Table, str, None] = None,
        engine: Optional[Engine] = None,
    ):
        super().__init__(name, folio, conn_info)

        if engine is None:
            if "database_uri" not in self.conn_info:
                raise ConfigurationError(
                    f"Executor `{name}` needs either an engine or a `database_uri`"
                )
            engine = create_engine(self.conn_info["database_uri"])
        self._engine = engine

        table = table if table is not None else self.conn_info.get("table")
        if table is None:
            raise ConfigurationError(f"Executor `{name}` needs a `table` to query")
        if isinstance(table, str):
            table = Table(table, MetaData(), autoload_with=self._engine)
        self._table = table

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def table(self) -> Table:
        return self._table

    def is_alive(self) -> bool:
        """Check if the database can be reached"""
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.error(f"Executor `{self.name}` could not connect: {exc}")
            return False

    def _column(self, key: str):
        try:
            return self._table.c[key]
        except KeyError as exc:
            raise QueryExecutionError(
                f"Table `{self._table.name}` has no column `{key}`",
                extra_info={"column": key},
            ) from exc

    def _build_filters(self, criteria: Q):
        """Recursively build a filter expression from the `Q` tree"""
        filters = []
        for child in criteria.children:
            if isinstance(child, Q):
                expression = self._build_filters(child)
                if expression is not None:
                    filters.append(expression)
            else:
                key, value = child
                stripped_key, lookup_class = self._extract_lookup(key)
                filters.append(lookup_class(self._column(stripped_key), value).as_expression())

        if not filters:
            return None

        expression = or_(*filters) if criteria.connector == Q.OR else and_(*filters)
        return not_(expression) if criteria.negated else expression

    def _build_statement(self, query: StructuredQuery, nodes: Optional[Sequence[str]]):
        if nodes:
            stmt = select(*[self._column(node) for node in nodes])
        else:
            stmt = select(self._table)

        filters = self._build_filters(query.criteria)
        if filters is not None:
            stmt = stmt.where(filters)

        if query.has_identity:
            stmt = stmt.where(self._column(query.id_field) == query.identity)

        if query.is_distinct:
            stmt = stmt.distinct()

        return stmt

    def _order_by(self, stmt, query: StructuredQuery):
        for sort_key in query.sort:
            column = self._column(sort_key.key)
            if sort_key.ascending:
                stmt = stmt.order_by(column.asc().nulls_last())
            else:
                stmt = stmt.order_by(column.desc().nulls_first())
        return stmt

    def execute(
        self,
        query: StructuredQuery,
        offset: int = 0,
        limit: int = 10,
        count_only: bool = False,
        nodes: Optional[Sequence[str]] = None,
    ) -> Page:
        """Translate the query to SQL and run it"""
        logger.debug(
            f"Executing {query} with offset {offset}, limit {limit}, count_only {count_only}"
        )

        try:
            if count_only:
                stmt = self._build_statement(query, None)
                count_stmt = select(func.count()).select_from(stmt.subquery())
                with self._engine.connect() as conn:
                    total = conn.execute(count_stmt).scalar()
                return Page([], 0, 0, total)

            stmt = self._order_by(self._build_statement(query, nodes), query)
            if offset:
                stmt = stmt.offset(offset)
            if limit != ALL_RESULTS:
                stmt = stmt.limit(limit)

            with self._engine.connect() as conn:
                rows = [dict(row._mapping) for row in conn.execute(stmt)]
        except (SQLAlchemyError, NotImplementedError) as exc:
            logger.error(f"Failed executing {query} because of {exc}")
            raise QueryExecutionError(
                f"Failed executing query: {exc}", extra_info={"query": repr(query)}
            ) from exc

        return Page(rows, offset, limit)

    def __repr__(self) -> str:
        return f"SqlalchemyQueryExecutor <{self.name}: {self._table.name}>"


class SqlalchemyLookup(BaseLookup):
    """Lookups over SQLAlchemy columns. `source` is a column, `target` a plain value."""


@SqlalchemyQueryExecutor.register_lookup
class Exact(SqlalchemyLookup):
    """Exact Match Query"""

    lookup_name = "exact"

    def as_expression(self) -> Any:
        return self.process_source() == self.process_target()


@SqlalchemyQueryExecutor.register_lookup
class IExact(SqlalchemyLookup):
    """Exact Case-Insensitive Match Query"""

    lookup_name = "iexact"

    def as_expression(self) -> Any:
        return func.lower(self.process_source()) == str(self.process_target()).lower()


@SqlalchemyQueryExecutor.register_lookup
class Contains(SqlalchemyLookup):
    """Exact Contains Query"""

    lookup_name = "contains"

    def as_expression(self) -> Any:
        return self.process_source().contains(str(self.process_target()), autoescape=True)


@SqlalchemyQueryExecutor.register_lookup
class IContains(SqlalchemyLookup):
    """Case-Insensitive Contains Query"""

    lookup_name = "icontains"

    def as_expression(self) -> Any:
        return func.lower(self.process_source()).contains(
            str(self.process_target()).lower(), autoescape=True
        )


@SqlalchemyQueryExecutor.register_lookup
class GreaterThan(SqlalchemyLookup):
    """Greater than Query"""

    lookup_name = "gt"

    def as_expression(self) -> Any:
        return self.process_source() > self.process_target()


@SqlalchemyQueryExecutor.register_lookup
class GreaterThanOrEqual(SqlalchemyLookup):
    """Greater than or Equal Query"""

    lookup_name = "gte"

    def as_expression(self) -> Any:
        return self.process_source() >= self.process_target()


@SqlalchemyQueryExecutor.register_lookup
class LessThan(SqlalchemyLookup):
    """Less than Query"""

    lookup_name = "lt"

    def as_expression(self) -> Any:
        return self.process_source() < self.process_target()


@SqlalchemyQueryExecutor.register_lookup
class LessThanOrEqual(SqlalchemyLookup):
    """Less than or Equal Query"""

    lookup_name = "lte"

    def as_expression(self) -> Any:
        return self.process_source() <= self.process_target()


@SqlalchemyQueryExecutor.register_lookup
class In(SqlalchemyLookup):
    """In Query"""

    lookup_name = "in"

    def as_expression(self) -> Any:
        target = self.process_target()
        if not isinstance(target, (list, tuple, set, frozenset)):
            target = [target]
        return self.process_source().in_(list(target))
