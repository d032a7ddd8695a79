"""Object-level iteration across the pages of a result set"""

from __future__ import annotations

from typing import Any

from folio.core.page import ALL_RESULTS
from folio.core.resultset import BaseResultSet
from folio.exceptions import IterationExhaustedError


class ResultSetIterator:
    """A bidirectional iterator over the individual objects of a result set.

    The iterator addresses objects by absolute index, and fetches the page holding each index
    through `get_page()`, so navigating it repositions the result set's page cursor.

    >>> iterator = ResultSetIterator(result_set)
    >>> for item in iterator:
    ...     process(item)
    """

    def __init__(self, result_set: BaseResultSet, offset: int = 0):
        self._result_set = result_set
        self._index = offset
        self._last = -1

    @property
    def result_set(self) -> BaseResultSet:
        return self._result_set

    def _get(self, index: int) -> tuple[bool, Any]:
        if index < 0:
            return False, None

        page_size = self._result_set.page_size
        if page_size == ALL_RESULTS:
            page_index, position = 0, index
        else:
            page_index, position = divmod(index, page_size)

        page = self._result_set.get_page(page_index)
        if page is None or position >= len(page):
            return False, None
        return True, page[position]

    def has_next(self) -> bool:
        return self._get(self._index)[0]

    def has_previous(self) -> bool:
        return self._get(self._index - 1)[0]

    def next(self) -> Any:
        found, item = self._get(self._index)
        if not found:
            raise IterationExhaustedError(f"No object at index {self._index}")

        self._last = self._index
        self._index += 1
        return item

    def previous(self) -> Any:
        found, item = self._get(self._index - 1)
        if not found:
            raise IterationExhaustedError(f"No object before index {self._index}")

        self._index -= 1
        self._last = self._index
        return item

    def next_index(self) -> int:
        return self._index

    def previous_index(self) -> int:
        return self._index - 1

    def last_index(self) -> int:
        """Index of the object last returned by `next()` or `previous()`, or `-1`"""
        return self._last

    def __iter__(self):
        return self

    def __next__(self) -> Any:
        return self.next()
