"""Result sets over forward-only sources"""

from __future__ import annotations

import logging
from itertools import islice
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from folio.core.caching import DEFAULT_PREFETCH_PAGES, CachingResultSet
from folio.core.page import ALL_RESULTS, UNKNOWN, Page
from folio.core.sort import SortInput
from folio.exceptions import NotSupportedError

logger = logging.getLogger(__name__)

Source = Union[Iterable[Any], Callable[[], Iterator[Any]]]


class IterableResultSet(CachingResultSet):
    """Adapts a forward-only, non-seekable source to the paged cursor contract.

    `source` is either a re-iterable object (like a list, or any object whose `__iter__` starts
    afresh) or a zero-argument callable returning a fresh iterator. The source is consumed
    lazily: rows are pulled only as far as the pages requested.

    Rows behind the current position cannot be revisited. A request for an earlier offset that
    is not cached restarts iteration from the beginning, which costs time linear in the offset.
    Only use this with bounded sources that are cheap to iterate. A one-shot iterator (such as a
    generator object) cannot be restarted, and raises `NotSupportedError` instead.

    Sorting is not supported: the sort criteria are always empty, and `sort()` only resets the
    result set.
    """

    def __init__(
        self,
        source: Source,
        page_size: int = 20,
        prefetch_pages: int = DEFAULT_PREFETCH_PAGES,
        max_pages: Optional[int] = 64,
        ttl: Optional[Union[int, float]] = None,
    ):
        super().__init__(page_size, prefetch_pages=prefetch_pages, max_pages=max_pages, ttl=ttl)

        self._source = source
        self._iterator: Optional[Iterator[Any]] = None
        self._consumed = 0
        self._started = False

    def _is_restartable(self) -> bool:
        if callable(self._source):
            return True
        return iter(self._source) is not self._source

    def _restart(self) -> None:
        if self._started and not self._is_restartable():
            raise NotSupportedError(
                f"Cannot restart iteration of one-shot source {self._source!r}"
            )

        logger.debug(f"Restarting iteration of {self._source!r}")
        self._iterator = self._source() if callable(self._source) else iter(self._source)
        self._consumed = 0
        self._started = True

    @property
    def consumed(self) -> int:
        """Number of rows pulled from the current iteration"""
        return self._consumed

    def sort(self, sort: SortInput) -> None:
        """Sorting is unsupported. Equivalent to `reset()`."""
        self.reset()

    def _fetch_rows(self, first_result: int, max_results: int) -> Page:
        if self._iterator is None or first_result < self._consumed:
            self._restart()

        try:
            # Skip forward to `first_result`
            skip = first_result - self._consumed
            if skip:
                skipped = sum(1 for _ in islice(self._iterator, skip))
                self._consumed += skipped

            if max_results == ALL_RESULTS:
                rows = list(self._iterator)
            else:
                rows = list(islice(self._iterator, max_results))
        except Exception:
            # The iterator's position is unknown, so the next fetch starts over
            self._iterator = None
            self._consumed = 0
            raise
        self._consumed += len(rows)

        return Page(rows, first_result, max_results, UNKNOWN)

    def _count_results(self) -> int:
        """Count by consuming a fresh iteration of the source entirely"""
        if not self._is_restartable():
            if self._started:
                raise NotSupportedError(
                    f"Cannot count one-shot source {self._source!r} once iteration has begun"
                )
            # Counting consumes the one-shot source. Keep the rows so pages can still be served.
            rows = list(self._source)
            self._source = rows
            return len(rows)

        iterator = self._source() if callable(self._source) else iter(self._source)
        return sum(1 for _ in iterator)

    def _copy_state(self, source: IterableResultSet) -> None:
        super()._copy_state(source)
        if not source._started and not source._is_restartable():
            # Both copies would drain the same one-shot source, so keep its rows for both
            rows = list(source._source)
            source._source = rows
            self._source = rows

        # The clone starts its own iteration when it needs rows that aren't cached
        self._iterator = None
        self._consumed = 0
