"""Result sets that convert the results of another result set"""

from __future__ import annotations

import copy
from typing import Any, Callable, Optional, Sequence

from folio.core.page import Page
from folio.core.resultset import BaseResultSet
from folio.core.sort import SortInput, SortSpec


class ResultSetAdapter(BaseResultSet):
    """Presents the pages of `result_set` with each result passed through `convert`.

    Navigation, sorting and counting are delegated to the underlying result set. Converted pages
    keep the offset, page size and total of the page they were converted from.
    """

    def __init__(self, result_set: BaseResultSet, convert: Callable[[Any], Any]):
        super().__init__(result_set.page_size)
        self._result_set = result_set
        self._convert = convert

    @property
    def result_set(self) -> BaseResultSet:
        return self._result_set

    def _adapt(self, page: Optional[Page]) -> Optional[Page]:
        if page is None:
            return None
        return Page(
            [self._convert(item) for item in page.results],
            page.first_result,
            page.page_size,
            page.total_results,
        )

    def reset(self) -> None:
        self._result_set.reset()
        super().reset()

    def get_page(self, page: int) -> Optional[Page]:
        self._current_page = self._adapt(self._result_set.get_page(page))
        return self._current_page

    def has_next(self) -> bool:
        return self._result_set.has_next()

    def has_previous(self) -> bool:
        return self._result_set.has_previous()

    def next(self) -> Page:
        self._current_page = self._adapt(self._result_set.next())
        return self._current_page

    def previous(self) -> Page:
        self._current_page = self._adapt(self._result_set.previous())
        return self._current_page

    def next_index(self) -> int:
        return self._result_set.next_index()

    def previous_index(self) -> int:
        return self._result_set.previous_index()

    def last_index(self) -> int:
        return self._result_set.last_index()

    def sort(self, sort: SortInput) -> None:
        self._result_set.sort(sort)
        super().reset()

    def get_sort(self) -> SortSpec:
        return self._result_set.get_sort()

    def is_sorted_ascending(self) -> bool:
        return self._result_set.is_sorted_ascending()

    def set_distinct(self, distinct: bool) -> None:
        self._result_set.set_distinct(distinct)

    def is_distinct(self) -> bool:
        return self._result_set.is_distinct()

    @property
    def nodes(self) -> Optional[tuple]:
        return self._result_set.nodes

    @nodes.setter
    def nodes(self, nodes: Optional[Sequence[str]]) -> None:
        self._result_set.nodes = nodes

    def get_results(self) -> int:
        return self._result_set.get_results()

    def get_estimated_results(self) -> int:
        return self._result_set.get_estimated_results()

    def is_estimated_actual(self) -> bool:
        return self._result_set.is_estimated_actual()

    def get_pages(self) -> int:
        return self._result_set.get_pages()

    def get_estimated_pages(self) -> int:
        return self._result_set.get_estimated_pages()

    def clone(self) -> ResultSetAdapter:
        clone = copy.copy(self)
        clone._result_set = self._result_set.clone()
        return clone

    def _get(self, page: int) -> Optional[Page]:
        return self._adapt(self._result_set._fetch(page))
