import pytest

from folio.core.adapter import ResultSetAdapter
from folio.core.query_resultset import QueryResultSet
from folio.core.sort import SortKey

from tests.shared import Product, ids


@pytest.fixture
def adapter(executor):
    return ResultSetAdapter(QueryResultSet(executor, page_size=10), lambda row: Product(**row))


class TestResultSetAdapter:
    def test_results_are_converted(self, adapter):
        page = adapter.get_page(0)

        assert isinstance(page.first, Product)
        assert ids(page) == list(range(1, 11))

    def test_page_metadata_is_kept(self, adapter):
        original = adapter.result_set.get_page(2)
        page = adapter.get_page(2)

        assert page.first_result == original.first_result == 20
        assert page.page_size == original.page_size
        assert page.total_results == original.total_results
        assert adapter.current_page == page

    def test_missing_pages(self, adapter):
        assert adapter.get_page(3) is None

    def test_navigation_is_delegated(self, adapter):
        assert adapter.next().first.id == 1
        assert adapter.next().first.id == 11
        assert adapter.result_set.next_index() == 2
        assert adapter.next_index() == 2
        assert adapter.previous_index() == 1
        assert adapter.last_index() == 1

        assert adapter.previous().first.id == 11
        assert adapter.has_previous() is True
        assert adapter.has_next() is True

    def test_iteration(self, adapter):
        assert [len(page) for page in adapter] == [10, 10, 3]

    def test_sort_is_delegated(self, adapter):
        adapter.sort("-name")

        assert adapter.result_set.get_sort() == (SortKey("name", False),)
        assert adapter.get_sort() == (SortKey("name", False),)
        assert adapter.is_sorted_ascending() is False
        assert adapter.get_page(0).first.name == "Papaya"

    def test_distinct_and_nodes_are_delegated(self, adapter):
        adapter.set_distinct(True)
        adapter.nodes = ["id", "name"]

        assert adapter.is_distinct() is True
        assert adapter.result_set.nodes == ("id", "name")
        assert adapter.get_page(0).first == Product(id=1, name="Apple")

    def test_counts_are_delegated(self, adapter):
        assert adapter.get_estimated_results() == 0
        assert adapter.get_estimated_pages() == -1

        adapter.get_page(0)
        assert adapter.get_results() == 23
        assert adapter.is_estimated_actual() is True
        assert adapter.get_pages() == 3

    def test_reset_is_delegated(self, adapter):
        adapter.next()
        adapter.reset()

        assert adapter.next_index() == 0
        assert adapter.result_set.next_index() == 0
        assert adapter.current_page is None

    def test_clones_are_independent(self, adapter):
        adapter.next()

        clone = adapter.clone()
        clone.next()

        assert clone.result_set is not adapter.result_set
        assert clone.next_index() == 2
        assert adapter.next_index() == 1
