"""Implementation of an in-memory query executor"""

import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

from folio.core.comparator import get_value, sort_items
from folio.core.page import ALL_RESULTS, UNKNOWN, Page
from folio.core.query import StructuredQuery
from folio.exceptions import QueryExecutionError
from folio.port.executor import BaseLookup, BaseQueryExecutor
from folio.utils.query import Q

logger = logging.getLogger(__name__)


class MemoryQueryExecutor(BaseQueryExecutor):
    """Executor that runs structured queries over records held in memory.

    Records may be mappings or plain objects. The executor mirrors the behavior of a real
    backing service closely enough to exercise result sets end to end: rows are filtered,
    de-duplicated, sorted, sliced and optionally projected on every call. By default it does not
    calculate totals on row fetches (`total_results` is `UNKNOWN`), like services that only count
    when asked to. Set `COUNT_RESULTS` in `conn_info` to report totals on every page.
    """

    def __init__(
        self,
        name: str = "default",
        folio=None,
        conn_info: dict = None,
        records: Iterable[Any] = (),
    ):
        super().__init__(name, folio, conn_info)

        self._records = list(records)
        self.count_results = bool(self.conn_info.get("COUNT_RESULTS", False))

    def load(self, records: Iterable[Any]) -> None:
        """Replace the records held by this executor"""
        self._records = list(records)

    def add(self, record: Any) -> None:
        self._records.append(record)

    def remove(self, record: Any) -> None:
        self._records.remove(record)

    @property
    def records(self) -> list:
        return list(self._records)

    def is_alive(self) -> bool:
        """Always returns True for memory executor"""
        return True

    def _matches(self, item: Any, criteria: Q) -> bool:
        """Recursively evaluate `criteria` against a single record"""
        outcomes = []
        for child in criteria.children:
            if isinstance(child, Q):
                outcomes.append(self._matches(item, child))
            else:
                key, value = child
                stripped_key, lookup_class = self._extract_lookup(key)
                source = get_value(item, stripped_key)
                if source is None:
                    outcomes.append(False)
                else:
                    outcomes.append(lookup_class(source, value).as_expression())

        if criteria.connector == Q.OR:
            match = any(outcomes)
        else:
            match = all(outcomes)

        return not match if criteria.negated else match

    def _select(self, query: StructuredQuery) -> list:
        items = self._records

        if query.has_identity:
            items = [
                item for item in items if get_value(item, query.id_field) == query.identity
            ]

        if query.criteria:
            items = [item for item in items if self._matches(item, query.criteria)]

        if query.is_distinct:
            unique_items = []
            for item in items:
                if item not in unique_items:
                    unique_items.append(item)
            items = unique_items

        return sort_items(items, query.sort)

    def execute(
        self,
        query: StructuredQuery,
        offset: int = 0,
        limit: int = 10,
        count_only: bool = False,
        nodes: Optional[Sequence[str]] = None,
    ) -> Page:
        """Filter, sort and slice the records as per the query"""
        logger.debug(
            f"Executing {query} with offset {offset}, limit {limit}, count_only {count_only}"
        )

        try:
            items = self._select(query)
        except (TypeError, ValueError, NotImplementedError) as exc:
            logger.error(f"Failed executing {query} because of {exc}")
            raise QueryExecutionError(
                f"Failed executing query: {exc}", extra_info={"query": repr(query)}
            ) from exc

        if count_only:
            return Page([], 0, 0, len(items))

        if limit == ALL_RESULTS:
            window = items[offset:]
        else:
            window = items[offset : offset + limit]

        if nodes:
            window = [dict(zip(nodes, key_tuple_for(item, nodes))) for item in window]

        total = len(items) if self.count_results else UNKNOWN
        return Page(window, offset, limit, total)

    def __repr__(self) -> str:
        return f"MemoryQueryExecutor <{self.name}: {len(self._records)} records>"


def key_tuple_for(item: Any, nodes: Sequence[str]) -> tuple:
    return tuple(get_value(item, node) for node in nodes)


class MemoryLookup(BaseLookup):
    """Base class with default implementation of comparisons"""

    def process_source(self):
        """Return source with transformations, if any"""
        if isinstance(self.source, (UUID, datetime, date)):
            return str(self.source)
        return self.source

    def process_target(self):
        """Return target with transformations, if any"""
        if isinstance(self.target, (UUID, datetime, date)):
            return str(self.target)
        return self.target


@MemoryQueryExecutor.register_lookup
class Exact(MemoryLookup):
    """Exact Match Query"""

    lookup_name = "exact"

    def as_expression(self) -> bool:
        return self.process_source() == self.process_target()


@MemoryQueryExecutor.register_lookup
class IExact(MemoryLookup):
    """Exact Case-Insensitive Match Query"""

    lookup_name = "iexact"

    def process_source(self):
        """Return source in lowercase"""
        return str(super().process_source()).lower()

    def process_target(self):
        """Return target in lowercase"""
        return str(super().process_target()).lower()

    def as_expression(self) -> bool:
        return self.process_source() == self.process_target()


@MemoryQueryExecutor.register_lookup
class Contains(MemoryLookup):
    """Exact Contains Query"""

    lookup_name = "contains"

    def as_expression(self) -> bool:
        """Check for Target string to be in Source string"""
        return str(self.process_target()) in str(self.process_source())


@MemoryQueryExecutor.register_lookup
class IContains(Contains):
    """Exact Case-Insensitive Contains Query"""

    lookup_name = "icontains"

    def process_source(self):
        """Return source in lowercase"""
        return str(super().process_source()).lower()

    def process_target(self):
        """Return target in lowercase"""
        return str(super().process_target()).lower()


@MemoryQueryExecutor.register_lookup
class GreaterThan(MemoryLookup):
    """Greater than Query"""

    lookup_name = "gt"

    def as_expression(self) -> bool:
        return self.process_source() > self.process_target()


@MemoryQueryExecutor.register_lookup
class GreaterThanOrEqual(MemoryLookup):
    """Greater than or Equal Query"""

    lookup_name = "gte"

    def as_expression(self) -> bool:
        return self.process_source() >= self.process_target()


@MemoryQueryExecutor.register_lookup
class LessThan(MemoryLookup):
    """Less than Query"""

    lookup_name = "lt"

    def as_expression(self) -> bool:
        return self.process_source() < self.process_target()


@MemoryQueryExecutor.register_lookup
class LessThanOrEqual(MemoryLookup):
    """Less than or Equal Query"""

    lookup_name = "lte"

    def as_expression(self) -> bool:
        return self.process_source() <= self.process_target()


@MemoryQueryExecutor.register_lookup
class In(MemoryLookup):
    """In Query"""

    lookup_name = "in"

    def as_expression(self) -> bool:
        target = self.process_target()
        if not isinstance(target, (list, tuple, set, frozenset)):
            target = [target]
        return self.process_source() in target
