"""Result sets backed by a structured query and a query executor"""

from __future__ import annotations

import copy
import logging
from abc import ABCMeta, abstractmethod
from typing import Any, Iterable, Optional, Union

from folio.core.caching import DEFAULT_PREFETCH_PAGES, CachingResultSet
from folio.core.page import ALL_RESULTS, Page
from folio.core.query import NO_IDENTITY, StructuredQuery
from folio.core.resultset import BaseResultSet
from folio.core.sort import SortInput, with_tie_break
from folio.port.executor import BaseQueryExecutor
from folio.utils.query import Q

logger = logging.getLogger(__name__)


class QueryBuilder(metaclass=ABCMeta):
    """Strategy that produces the structured query a result set executes.

    `build_query()` is invoked on every backing fetch and must return a fresh query that reflects
    the current filter state. Sort, distinct and identity settings are applied afterwards by the
    result set.
    """

    id_field = "id"

    @abstractmethod
    def build_query(self) -> StructuredQuery:
        """Return a new query holding the current filter criteria"""


class CriteriaQueryBuilder(QueryBuilder):
    """Builds queries from a fixed set of `Q` criteria"""

    def __init__(self, criteria: Optional[Q] = None, id_field: str = "id"):
        self.criteria = criteria or Q()
        self.id_field = id_field

    def build_query(self) -> StructuredQuery:
        return StructuredQuery(criteria=self.criteria, id_field=self.id_field)

    def __repr__(self):
        return f"<{self.__class__.__name__}: {self.criteria}>"


class SearchQueryBuilder(CriteriaQueryBuilder):
    """Builds queries that match a search value against one or more fields, ANDed with the
    base criteria.

    The value matches case-insensitively anywhere within each field, and the matches are ORed.
    When the value is numeric (ignoring commas and `*` wildcards), it also matches the
    identifier field exactly. An empty value adds no constraint.
    """

    def __init__(
        self,
        criteria: Optional[Q] = None,
        value: Optional[str] = None,
        fields: Iterable[str] = ("name",),
        id_field: str = "id",
    ):
        super().__init__(criteria, id_field)
        self.value = value
        self.fields = list(fields)

    def set_search(self, value: Optional[str], *fields: str) -> None:
        """Replace the search value, and optionally the fields it is matched against"""
        self.value = value
        if fields:
            self.fields = list(fields)

    def get_id(self) -> Optional[int]:
        """Return the search value as an identifier, or `None` if it isn't numeric"""
        if not self.value:
            return None

        value = self.value.replace(",", "").replace("*", "")
        try:
            return int(value)
        except ValueError:
            return None

    def value_criteria(self) -> Q:
        if not self.value:
            return Q()

        text = self.value.replace("*", "")
        constraints = [
            Q(**{f"{field}__icontains": text}) for field in self.fields if field != self.id_field
        ]

        identifier = self.get_id()
        if identifier is not None:
            constraints.append(Q(**{self.id_field: identifier}))

        criteria = Q()
        for constraint in constraints:
            criteria = criteria | constraint
        return criteria

    def build_query(self) -> StructuredQuery:
        return StructuredQuery(
            criteria=self.criteria & self.value_criteria(), id_field=self.id_field
        )


class QueryExecutionMixin:
    """Shared query construction for result sets that run against a query executor"""

    def _init_query(self, executor: BaseQueryExecutor, builder: QueryBuilder) -> None:
        self._executor = executor
        self._builder = builder
        self._identity = NO_IDENTITY

    @property
    def executor(self) -> BaseQueryExecutor:
        return self._executor

    @property
    def builder(self) -> QueryBuilder:
        return self._builder

    def _copy_state(self, source) -> None:
        super()._copy_state(source)
        self._builder = copy.copy(source._builder)

    def set_identity(self, identity: Any) -> None:
        """Constrain results to the object with identifier `identity`. This resets the set."""
        self._identity = identity
        self.reset()

    def clear_identity(self) -> None:
        self._identity = NO_IDENTITY
        self.reset()

    def create_query(self) -> StructuredQuery:
        """Construct the query for the current filter, distinct, identity and sort state.

        The sort always ends with the identifier, ascending, so that rows with equal sort keys
        keep the same relative order from one query to the next.
        """
        query = self._builder.build_query()
        if self._distinct:
            query = query.distinct()
        if self._identity is not NO_IDENTITY:
            query = query.constrain_identity(self._identity)
        return query.order_by(with_tie_break(self._sort, query.id_field))

    def _count_results(self) -> int:
        """Issue a count-only variant of the query"""
        page = self._executor.execute(self.create_query(), 0, ALL_RESULTS, count_only=True)
        return page.total_results

    def selects(self, identity: Any) -> bool:
        """Returns `True` if the query selects the object with identifier `identity`.

        Takes a single count-only round trip, irrespective of the number of results.
        """
        query = self.create_query().constrain_identity(identity)
        page = self._executor.execute(query, 0, ALL_RESULTS, count_only=True)
        return page.total_results > 0


class QueryResultSet(QueryExecutionMixin, CachingResultSet):
    """A caching, prefetching result set over the results of a structured query.

    :param executor: the executor that runs queries against the backing service
    :param builder: the strategy producing the query's filter criteria. A `Q` object or `None`
        is wrapped in a `CriteriaQueryBuilder`.
    :param page_size: the maximum number of results per page, or `ALL_RESULTS`
    :param sort: the initial sort criteria
    :param distinct: whether duplicate rows should be suppressed
    :param prefetch_pages: the number of pages fetched per backing call. `0` disables prefetch.
    """

    def __init__(
        self,
        executor: BaseQueryExecutor,
        builder: Union[QueryBuilder, Q, None] = None,
        page_size: int = 20,
        sort: SortInput = None,
        distinct: bool = False,
        prefetch_pages: int = DEFAULT_PREFETCH_PAGES,
        max_pages: Optional[int] = 64,
        ttl: Optional[Union[int, float]] = None,
    ):
        super().__init__(
            page_size,
            sort=sort,
            distinct=distinct,
            prefetch_pages=prefetch_pages,
            max_pages=max_pages,
            ttl=ttl,
        )
        self._init_query(executor, as_builder(builder))

    def _fetch_rows(self, first_result: int, max_results: int) -> Page:
        query = self.create_query()
        logger.debug(f"Fetching [{first_result}, +{max_results}) for {query}")
        return self._executor.execute(query, first_result, max_results, nodes=self.nodes)


class SimpleQueryResultSet(QueryExecutionMixin, BaseResultSet):
    """A result set over the results of a structured query, without prefetch.

    Only the most recently fetched page is kept, and counts are never estimated: the first
    request for a count after construction or a reset always issues a count query. Suited to
    small result volumes, where an accurate count matters more than saving round trips.
    """

    def __init__(
        self,
        executor: BaseQueryExecutor,
        builder: Union[QueryBuilder, Q, None] = None,
        page_size: int = 20,
        sort: SortInput = None,
        distinct: bool = False,
    ):
        super().__init__(page_size, sort=sort, distinct=distinct)
        self._init_query(executor, as_builder(builder))

        self._last: Optional[Page] = None
        self._count: Optional[int] = None

    def reset(self) -> None:
        self._last = None
        self._count = None
        super().reset()

    def get_results(self) -> int:
        if self._count is None:
            self._count = self._count_results()
        return self._count

    def get_estimated_results(self) -> int:
        return self.get_results()

    def is_estimated_actual(self) -> bool:
        return True

    def _get(self, page: int) -> Optional[Page]:
        first_result = self.get_first_result(page)
        if self._last is not None and self._last.first_result == first_result:
            return self._last

        result = self._executor.execute(
            self.create_query(), first_result, self.page_size, nodes=self.nodes
        )
        if not result.results:
            return None

        self._last = result
        return result


def as_builder(builder: Union[QueryBuilder, Q, None]) -> QueryBuilder:
    if isinstance(builder, QueryBuilder):
        return builder
    return CriteriaQueryBuilder(builder)
