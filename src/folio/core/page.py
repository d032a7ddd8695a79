"""Page Implementation"""

from __future__ import annotations

from typing import Any, Iterable, Iterator

from folio.exceptions import InvalidOperationError

# Page size (or limit) indicating that all results should be returned in a single page
ALL_RESULTS = -1

# Total result count, when the backing service did not calculate one
UNKNOWN = -1


class Page:
    """An immutable batch of query results.

    The purpose of this class is to prevent executor-specific data structures from leaking into
    consumers. It holds one bounded batch of results along with the offset it was fetched from,
    the page size that was requested, and the total number of rows matching the query, if known.

    Attributes:
        results: The results, as a tuple
        first_result: Offset of the first result (zero indexed)
        page_size: The requested page size, or `ALL_RESULTS`
        total_results: Number of rows matching the query, or `UNKNOWN`
    """

    __slots__ = ("_results", "_first_result", "_page_size", "_total_results")

    def __init__(
        self,
        results: Iterable[Any],
        first_result: int = 0,
        page_size: int = ALL_RESULTS,
        total_results: int = UNKNOWN,
    ):
        object.__setattr__(self, "_results", tuple(results))
        object.__setattr__(self, "_first_result", first_result)
        object.__setattr__(self, "_page_size", page_size)
        object.__setattr__(self, "_total_results", total_results)

    def __setattr__(self, name, value):
        raise InvalidOperationError(f"`{self.__class__.__name__}` objects are immutable")

    def __delattr__(self, name):
        raise InvalidOperationError(f"`{self.__class__.__name__}` objects are immutable")

    @property
    def results(self) -> tuple:
        return self._results

    @property
    def first_result(self) -> int:
        return self._first_result

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def total_results(self) -> int:
        return self._total_results

    @property
    def index(self) -> int:
        """Page number of this page, for its page size"""
        if self._page_size == ALL_RESULTS or self._page_size <= 0:
            return 0
        return self._first_result // self._page_size

    @property
    def first(self):
        """Return the first item from results"""
        if self._results:
            return self._results[0]

    @property
    def last(self):
        """Return the last item from results"""
        if self._results:
            return self._results[-1]

    def __bool__(self) -> bool:
        """Returns `True` when the page is not empty"""
        return bool(self._results)

    def __iter__(self) -> Iterator:
        """Returns an iterable on results, to support traversal"""
        return iter(self._results)

    def __len__(self) -> int:
        """Returns number of results in the page"""
        return len(self._results)

    def __getitem__(self, k):
        return self._results[k]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Page):
            return NotImplemented
        return (
            self._results,
            self._first_result,
            self._page_size,
            self._total_results,
        ) == (
            other._results,
            other._first_result,
            other._page_size,
            other._total_results,
        )

    def __hash__(self):
        return hash((self._first_result, self._page_size, self._total_results))

    def __reduce__(self):
        return (
            self.__class__,
            (self._results, self._first_result, self._page_size, self._total_results),
        )

    def __repr__(self) -> str:
        return (
            f"<Page: {len(self._results)} results, first_result: {self._first_result}, "
            f"page_size: {self._page_size}, total_results: {self._total_results}>"
        )

    def to_dict(self) -> dict:
        """Return the page as a dictionary"""
        return {
            "first_result": self._first_result,
            "page_size": self._page_size,
            "total_results": self._total_results,
            "results": list(self._results),
        }
