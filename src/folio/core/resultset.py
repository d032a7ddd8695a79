"""ResultSet Implementation"""

from __future__ import annotations

import copy
import logging
from abc import ABCMeta, abstractmethod
from typing import Optional, Sequence

from folio.core.page import ALL_RESULTS, Page
from folio.core.sort import SortInput, SortSpec, to_sort_spec
from folio.exceptions import IterationExhaustedError, ValidationError

logger = logging.getLogger(__name__)


def validate_page_size(page_size: int) -> int:
    if not isinstance(page_size, int) or (page_size <= 0 and page_size != ALL_RESULTS):
        raise ValidationError(
            {"page_size": [f"Page size must be positive or ALL_RESULTS, got {page_size!r}"]}
        )
    return page_size


class BaseResultSet(metaclass=ABCMeta):
    """A bidirectional, page-granular cursor over a collection of results.

    Pages are zero indexed. The cursor points at the page the next call to `next()` returns.
    `get_page(n)` repositions the cursor at `n`, so alternating between `get_page()`, `next()`
    and `previous()` behaves like a list iterator over pages.

    A result set also implements the Python iterator protocol, yielding pages from the cursor
    onwards::

        >>> for page in result_set:
        ...     render(page)

    Subclasses supply the pages by implementing `_get()`, and the counts by implementing
    `get_results()`, `get_estimated_results()` and `is_estimated_actual()`.

    Attributes:
        page_size: The maximum number of results per page, or `ALL_RESULTS`
        nodes: The nodes to project each result to, or `None` for entire results
    """

    def __init__(self, page_size: int, sort: SortInput = None, distinct: bool = False):
        self._page_size = validate_page_size(page_size)
        self._sort: SortSpec = to_sort_spec(sort)
        self._distinct = distinct
        self._nodes: Optional[tuple] = None

        self._current_page: Optional[Page] = None
        self._cursor = 0

    ###################
    # Cursor movement #
    ###################

    def reset(self) -> None:
        """Reset the cursor. Subclasses discard cached state here."""
        self._current_page = None
        self._cursor = 0

    def has_page(self, page: int) -> bool:
        """Determines if a page exists"""
        return self.get_page(page) is not None

    def get_page(self, page: int) -> Optional[Page]:
        """Return the specified page, or `None` if no such page exists"""
        if page < 0 or (self._page_size == ALL_RESULTS and page > 0):
            return None

        row = self.get_first_result(page)
        if self._current_page is None or self._current_page.first_result != row:
            self._current_page = self._fetch(page)
            if self._current_page is not None and not self._current_page.results:
                self._current_page = None

        self._cursor = page
        return self._current_page

    def has_next(self) -> bool:
        """Returns `True` if a call to `next()` would return a page"""
        return self._fetch(self._cursor) is not None

    def has_previous(self) -> bool:
        """Returns `True` if a call to `previous()` would return a page"""
        return self._fetch(self._cursor - 1) is not None

    def next(self) -> Page:
        """Return the page at the cursor and advance the cursor.

        Raises `IterationExhaustedError` if there are no more pages.
        """
        page = self._fetch(self._cursor)
        if page is None:
            raise IterationExhaustedError(f"No page after page {self._cursor - 1}")

        self._current_page = page
        self._cursor += 1
        return page

    def previous(self) -> Page:
        """Move the cursor back and return the page there.

        Raises `IterationExhaustedError` at the beginning of the result set.
        """
        page = self._fetch(self._cursor - 1)
        if page is None:
            raise IterationExhaustedError(f"No page before page {self._cursor}")

        self._current_page = page
        self._cursor -= 1
        return page

    def next_index(self) -> int:
        """Index of the page that would be returned by `next()`"""
        return self._cursor

    def previous_index(self) -> int:
        """Index of the page that would be returned by `previous()`, or `-1` at the beginning"""
        return self._cursor - 1

    def last_index(self) -> int:
        """Index of the last returned page, or `-1` if no page has been returned"""
        if self._current_page is None:
            return -1
        if self._page_size == ALL_RESULTS:
            return 0
        return self._current_page.first_result // self._page_size

    def __iter__(self):
        return self

    def __next__(self) -> Page:
        return self.next()

    ##################
    # Sort & options #
    ##################

    def sort(self, sort: SortInput) -> None:
        """Replace the sort criteria. This resets the result set."""
        self._sort = to_sort_spec(sort)
        self.reset()

    def get_sort(self) -> SortSpec:
        return self._sort

    def is_sorted_ascending(self) -> bool:
        """`True` if the primary sort key is ascending, or if the set is unsorted"""
        return not self._sort or self._sort[0].ascending

    def set_distinct(self, distinct: bool) -> None:
        """Determines if duplicate rows should be suppressed. This resets the result set."""
        if distinct != self._distinct:
            self._distinct = distinct
            self.reset()

    def is_distinct(self) -> bool:
        return self._distinct

    @property
    def nodes(self) -> Optional[tuple]:
        return self._nodes

    @nodes.setter
    def nodes(self, nodes: Optional[Sequence[str]]) -> None:
        """Sets the nodes to query. If `None` or empty, entire results are returned."""
        self._nodes = tuple(nodes) if nodes else None
        self.reset()

    @property
    def page_size(self) -> int:
        return self._page_size

    ##########
    # Counts #
    ##########

    def get_pages(self) -> int:
        """Returns the total number of pages. This may force a count of results."""
        return self._calculate_pages(self.get_results(), default=1)

    def get_estimated_pages(self) -> int:
        """Returns an estimate of the number of pages, or `-1` if nothing is known"""
        return self._calculate_pages(self.get_estimated_results(), default=-1)

    def _calculate_pages(self, results: int, default: int) -> int:
        if self._page_size == ALL_RESULTS:
            return 1
        if results == -1:
            return default
        return -(-results // self._page_size)

    @abstractmethod
    def get_results(self) -> int:
        """Return the exact number of results. This may be expensive."""

    @abstractmethod
    def get_estimated_results(self) -> int:
        """Return the number of results known so far, without querying the backing source"""

    @abstractmethod
    def is_estimated_actual(self) -> bool:
        """Returns `True` when the estimated number of results is exact"""

    ###########
    # Cloning #
    ###########

    def clone(self) -> BaseResultSet:
        """Return an independent copy of this result set.

        The copy starts at the same cursor position, but subsequent navigation on either
        object does not affect the other. Subclasses copy whatever mutable state they hold
        in `_copy_state()`.
        """
        clone = copy.copy(self)
        clone._copy_state(self)
        return clone

    def _copy_state(self, source: BaseResultSet) -> None:
        """Hook to detach mutable state from `source` after a shallow copy"""

    #########
    # Paging #
    #########

    def get_first_result(self, page: int) -> int:
        """Calculates the first row of a page"""
        return 0 if self._page_size == ALL_RESULTS else page * self._page_size

    def _fetch(self, page: int) -> Optional[Page]:
        """Return page `page`, if it can exist at all, via `_get()`"""
        if page < 0 or (self._page_size == ALL_RESULTS and page > 0):
            return None
        return self._get(page)

    @property
    def current_page(self) -> Optional[Page]:
        return self._current_page

    @abstractmethod
    def _get(self, page: int) -> Optional[Page]:
        """Return the specified page, or `None` if there is no such page"""

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}: page_size: {self._page_size}, "
            f"cursor: {self._cursor}, sort: {[str(sort_key) for sort_key in self._sort]}>"
        )
