"""Result sets that fetch and cache several pages per backing call"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Optional, Union

from folio.core.cache import PageCache
from folio.core.page import ALL_RESULTS, UNKNOWN, Page
from folio.core.resultset import BaseResultSet
from folio.core.sort import SortInput
from folio.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_PREFETCH_PAGES = 4


class CachingResultSet(BaseResultSet):
    """A result set that minimizes round trips to the backing source.

    Each fetch retrieves `prefetch_pages` pages' worth of rows in one call, splits them into
    pages, and caches every non-empty page by its index. Cached pages are held in a `PageCache`,
    so they may be evicted at any time. A miss simply triggers another fetch.

    While pages are fetched, a running count of results is maintained:

    * If the backing source reports a total, the count is exact.
    * A batch shorter than requested marks the end of the data, so the count becomes exact.
      This relies on the backing source only ever returning short batches at the end of the
      data. Rows inserted or removed concurrently can leave the count stale until `reset()`.
    * A full batch only proves there are at least that many rows, so the count remains an
      estimate (a lower bound).

    Subclasses implement `_fetch_rows()` to retrieve a window of rows, and `_count_results()`
    to count all rows.
    """

    def __init__(
        self,
        page_size: int,
        sort: SortInput = None,
        distinct: bool = False,
        prefetch_pages: int = DEFAULT_PREFETCH_PAGES,
        max_pages: Optional[int] = 64,
        ttl: Optional[Union[int, float]] = None,
    ):
        super().__init__(page_size, sort=sort, distinct=distinct)

        if not isinstance(prefetch_pages, int) or prefetch_pages < 0:
            raise ValidationError(
                {"prefetch_pages": [f"Prefetch pages cannot be negative, got {prefetch_pages!r}"]}
            )
        self._prefetch_pages = prefetch_pages

        self._cache = PageCache(max_pages=max_pages, ttl=ttl)
        self._count = UNKNOWN
        self._estimate = True

    @property
    def prefetch_pages(self) -> int:
        return self._prefetch_pages

    def reset(self) -> None:
        """Discard cached pages and counts, and rewind the cursor"""
        self._cache.clear()
        self._count = UNKNOWN
        self._estimate = True
        super().reset()

    ##########
    # Counts #
    ##########

    def get_results(self) -> int:
        """Return the exact number of results, counting them if the count is an estimate"""
        if self._count == UNKNOWN or self._estimate:
            self._count = self._count_results()
            self._estimate = False
            logger.debug(f"Counted {self._count} results for {self!r}")
        return self._count

    def get_estimated_results(self) -> int:
        """Return the number of results known so far, or `0` if nothing has been fetched yet"""
        return 0 if self._count == UNKNOWN else self._count

    def is_estimated_actual(self) -> bool:
        return not self._estimate

    def get_estimated_pages(self) -> int:
        """Returns an estimate of the number of pages, or `-1` if nothing has been fetched"""
        return self._calculate_pages(self._count, default=-1)

    ##########
    # Paging #
    ##########

    def _get(self, page: int) -> Optional[Page]:
        result = self._cache.get(page)
        if result is None:
            if not self._estimate and self.get_first_result(page) >= self._count:
                # Beyond the known end of the data
                return None
            logger.debug(f"Page {page} not cached. Fetching.")
            result = self._query(page)
        return result

    def _query(self, page: int) -> Optional[Page]:
        page_size = self.page_size
        first_result = self.get_first_result(page)

        if page_size == ALL_RESULTS:
            max_results, pages = ALL_RESULTS, 1
        elif self._prefetch_pages:
            max_results, pages = page_size * self._prefetch_pages, self._prefetch_pages
        else:
            max_results, pages = page_size, 1

        # Errors propagate before any state is touched
        matches = self._fetch_rows(first_result, max_results)
        rows = matches.results

        self._update_count(matches, first_result, max_results)

        result = None
        if page_size == ALL_RESULTS:
            if rows:
                result = Page(rows, 0, ALL_RESULTS, self._page_total(matches))
                self._cache[0] = result
            return result

        # Split the rows into pages. Each non-empty page is cached, and the requested one returned.
        for i in range(pages):
            start = i * page_size
            sub_rows = rows[start : start + page_size]
            if not sub_rows:
                self._cache.pop(page + i, None)
                continue

            sub_page = Page(
                sub_rows, first_result + start, page_size, self._page_total(matches)
            )
            self._cache[page + i] = sub_page
            if i == 0:
                result = sub_page

        logger.debug(
            f"Fetched rows [{first_result}, {first_result + len(rows)}) "
            f"in one call for pages {page}..{page + pages - 1}"
        )
        return result

    def _page_total(self, matches: Page) -> int:
        if matches.total_results != UNKNOWN:
            return matches.total_results
        return self._count if not self._estimate else UNKNOWN

    def _update_count(self, matches: Page, first_result: int, max_results: int) -> None:
        rows = len(matches.results)

        if matches.total_results != UNKNOWN:
            self._count = matches.total_results
            self._estimate = False
        elif max_results == ALL_RESULTS:
            # Everything from `first_result` onwards was returned
            self._count = first_result + rows
            self._estimate = False
        elif rows == 0:
            # An empty batch at or before the estimate pins the end of the data
            if self._count != UNKNOWN and self._count >= first_result:
                self._count = first_result
                self._estimate = False
        elif rows < max_results:
            self._count = first_result + rows
            self._estimate = False
        elif first_result + rows > self._count:
            self._count = first_result + rows
            self._estimate = True

        logger.debug(
            f"Results count is {self._count} ({'estimate' if self._estimate else 'exact'})"
        )

    ###########
    # Cloning #
    ###########

    def _copy_state(self, source: CachingResultSet) -> None:
        self._cache = source._cache.copy()

    #######################
    # Backing source hook #
    #######################

    @abstractmethod
    def _fetch_rows(self, first_result: int, max_results: int) -> Page:
        """Fetch up to `max_results` rows starting at `first_result`.

        `max_results` may be `ALL_RESULTS`. Failures must propagate.
        """

    @abstractmethod
    def _count_results(self) -> int:
        """Count every row in the backing source"""
