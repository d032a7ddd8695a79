"""Result sets over objects already held in memory"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from folio.core.comparator import sort_items
from folio.core.page import ALL_RESULTS, Page
from folio.core.resultset import BaseResultSet
from folio.core.sort import SortInput, to_sort_spec


class PreloadedResultSet(BaseResultSet):
    """A result set that pages through a list of preloaded objects.

    Objects may be mappings or attribute-bearing objects. Sorting orders the list in place,
    using the same comparator as every other in-process sort, so nulls sort high. Counts are
    always exact.
    """

    def __init__(
        self, objects: Iterable[Any], page_size: int = 20, sort: SortInput = None
    ):
        super().__init__(page_size, sort=sort)
        self._objects = list(objects)
        if self._sort:
            self._objects = sort_items(self._objects, self._sort)

    @property
    def objects(self) -> list:
        return list(self._objects)

    def sort(self, sort: SortInput) -> None:
        self._objects = sort_items(self._objects, to_sort_spec(sort))
        super().sort(sort)

    def get_results(self) -> int:
        return len(self._objects)

    def get_estimated_results(self) -> int:
        return len(self._objects)

    def is_estimated_actual(self) -> bool:
        return True

    def _get(self, page: int) -> Optional[Page]:
        first_result = self.get_first_result(page)
        if first_result >= len(self._objects):
            return None

        if self.page_size == ALL_RESULTS:
            rows = self._objects
        else:
            rows = self._objects[first_result : first_result + self.page_size]
        return Page(rows, first_result, self.page_size, len(self._objects))

    def _copy_state(self, source: PreloadedResultSet) -> None:
        self._objects = list(source._objects)
