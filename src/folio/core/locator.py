"""Locate the page an object appears on, without enumerating the whole result set"""

from __future__ import annotations

import logging
from bisect import bisect_left
from functools import cmp_to_key
from typing import Any, Optional, Union

from folio.core.comparator import compare_keys, key_tuple
from folio.core.page import ALL_RESULTS
from folio.core.query_resultset import QueryBuilder, QueryResultSet, as_builder
from folio.core.sort import SortInput, SortSpec, to_sort_spec, with_tie_break
from folio.port.executor import BaseQueryExecutor
from folio.utils.query import Q

logger = logging.getLogger(__name__)


class PageLocator:
    """Determines which page an object would appear on, for a query and a sort order.

    The query's results are fetched a page at a time, projected down to the sort keys and the
    identifier, and the object's keys are binary searched within each page. The search stops at
    the first page whose last row sorts at or after the object, so only the pages leading up to
    the object's position are fetched.

    The object need not be among the query's results: an absent object is placed on the page it
    would be inserted into.

    >>> locator = PageLocator(executor, Q(active=True), sort="name", page_size=10)
    >>> locator.locate({"id": 42, "name": "Mango"})
    3
    """

    def __init__(
        self,
        executor: BaseQueryExecutor,
        builder: Union[QueryBuilder, Q, None] = None,
        sort: SortInput = None,
        page_size: int = 20,
        id_field: Optional[str] = None,
        prefetch_pages: int = 0,
    ):
        builder = as_builder(builder)
        self._id_field = id_field or builder.id_field
        self._sort: SortSpec = with_tie_break(to_sort_spec(sort), self._id_field)
        self._directions = [sort_key.ascending for sort_key in self._sort]

        self._result_set = QueryResultSet(
            executor,
            builder,
            page_size=page_size,
            sort=self._sort,
            prefetch_pages=prefetch_pages,
        )
        self._result_set.nodes = [sort_key.key for sort_key in self._sort]

    @property
    def sort(self) -> SortSpec:
        """The sort order searched on, ending with the identifier tie-break"""
        return self._sort

    @property
    def result_set(self) -> QueryResultSet:
        return self._result_set

    def compare(self, left: tuple, right: tuple) -> int:
        """Compare two key tuples under the locator's sort order"""
        return compare_keys(left, right, self._directions)

    def locate(self, target: Any) -> int:
        """Return the index of the page `target` appears on, or would be inserted into"""
        key = cmp_to_key(self.compare)
        target_key = key(key_tuple(target, self._sort))
        page_size = self._result_set.page_size

        index = 0
        last_length = 0
        while True:
            page = self._result_set.get_page(index)
            if page is None:
                break

            keys = [key(key_tuple(row, self._sort)) for row in page]
            position = bisect_left(keys, target_key)
            if position < len(keys):
                logger.debug(f"Located {target!r} on page {index} at position {position}")
                return index

            if page_size == ALL_RESULTS:
                return 0

            last_length = len(keys)
            index += 1

        # Sorts after every row
        if index == 0:
            return 0
        if last_length < page_size:
            return index - 1
        return index
