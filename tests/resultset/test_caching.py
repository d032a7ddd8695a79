"""Prefetch, page caching and count estimation"""

import pytest

from folio.adapters.executor.memory import MemoryQueryExecutor
from folio.core.page import ALL_RESULTS, UNKNOWN
from folio.core.query_resultset import QueryResultSet
from folio.exceptions import QueryExecutionError, ValidationError

from tests.shared import build_products, count_calls, fetch_windows, ids


class TestPrefetch:
    def test_one_fetch_serves_several_pages(self, executor, mocker):
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=4)

        result_set.get_page(0)
        assert fetch_windows(spy) == [(0, 40)]

        result_set.get_page(1)
        result_set.get_page(2)
        result_set.get_page(0)
        assert fetch_windows(spy) == [(0, 40)]

    def test_fetches_start_at_the_requested_page(self, mocker):
        executor = MemoryQueryExecutor(records=build_products(100))
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=4)

        assert result_set.get_page(5).first_result == 50
        assert fetch_windows(spy) == [(50, 40)]

        # Pages 5 through 8 are cached
        for page in range(5, 9):
            assert result_set.get_page(page).first_result == page * 10
        assert len(fetch_windows(spy)) == 1

        result_set.get_page(9)
        assert fetch_windows(spy)[-1] == (90, 40)

    def test_prefetch_can_be_disabled(self, executor, mocker):
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=0)

        result_set.get_page(0)
        result_set.get_page(1)

        assert fetch_windows(spy) == [(0, 10), (10, 10)]

    def test_negative_prefetch_is_invalid(self, executor):
        with pytest.raises(ValidationError) as exc:
            QueryResultSet(executor, page_size=10, prefetch_pages=-1)

        assert "prefetch_pages" in exc.value.messages

    def test_all_results_are_fetched_in_one_call(self, executor, mocker):
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=ALL_RESULTS)

        result_set.get_page(0)
        result_set.get_page(0)

        assert fetch_windows(spy) == [(0, ALL_RESULTS)]


class TestCacheInvalidation:
    def test_reset_forces_a_fresh_fetch(self, executor, mocker):
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10)

        result_set.get_page(0)
        result_set.reset()
        result_set.get_page(0)

        assert fetch_windows(spy) == [(0, 40), (0, 40)]

    def test_sort_clears_cached_pages_and_refetches_in_the_new_order(self, executor, mocker):
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10, sort=[("name", True)])

        assert result_set.get_page(0).first["name"] == "Apple"

        result_set.sort([("name", False)])
        page = result_set.get_page(0)

        assert page.first["name"] == "Papaya"
        assert len(fetch_windows(spy)) == 2

    def test_distinct_change_resets(self, executor, mocker):
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10)

        result_set.get_page(0)
        result_set.set_distinct(False)
        result_set.get_page(0)
        assert len(fetch_windows(spy)) == 1

        result_set.set_distinct(True)
        result_set.get_page(0)
        assert len(fetch_windows(spy)) == 2

    def test_evicted_pages_are_refetched(self, mocker):
        executor = MemoryQueryExecutor(records=build_products(100))
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=4, max_pages=2)

        result_set.get_page(0)

        # Only the last two prefetched pages are retained
        assert ids(result_set.get_page(1)) == list(range(11, 21))
        assert fetch_windows(spy) == [(0, 40), (10, 40)]

    def test_expired_pages_are_refetched(self, executor, mocker):
        clock = mocker.patch("folio.core.cache.time").monotonic
        clock.return_value = 100.0
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10, ttl=5)

        result_set.get_page(1)
        clock.return_value = 106.0
        result_set.get_page(2)
        result_set.get_page(1)

        assert fetch_windows(spy) == [(10, 40), (20, 40), (10, 40)]


class TestCountEstimation:
    def test_nothing_is_known_before_the_first_fetch(self, executor, mocker):
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10)

        assert result_set.get_estimated_results() == 0
        assert result_set.get_estimated_pages() == -1
        assert result_set.is_estimated_actual() is False
        assert spy.call_count == 0

    def test_full_batches_give_a_lower_bound(self, executor):
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=0)

        page = result_set.get_page(0)

        assert len(page) == 10
        assert page.total_results == UNKNOWN
        assert result_set.get_estimated_results() >= 10
        assert result_set.is_estimated_actual() is False

    def test_short_batch_makes_the_count_exact(self, executor, mocker):
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=0)

        result_set.get_page(0)
        page = result_set.get_page(2)

        assert len(page) == 3
        assert result_set.is_estimated_actual() is True
        assert result_set.get_estimated_results() == 23
        assert result_set.get_results() == 23
        assert result_set.get_pages() == 3
        assert count_calls(spy) == 0

    def test_short_prefetch_makes_the_count_exact_immediately(self, executor):
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=4)

        page = result_set.get_page(0)

        assert result_set.is_estimated_actual() is True
        assert result_set.get_estimated_results() == result_set.get_results() == 23
        assert page.total_results == 23

    def test_empty_batch_at_the_estimate_makes_the_count_exact(self, mocker):
        executor = MemoryQueryExecutor(records=build_products(20))
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=0)

        result_set.get_page(0)
        result_set.get_page(1)
        assert result_set.is_estimated_actual() is False

        assert result_set.get_page(2) is None
        assert result_set.is_estimated_actual() is True
        assert result_set.get_results() == 20
        assert result_set.get_pages() == 2
        assert count_calls(spy) == 0

    def test_pages_beyond_an_exact_count_are_not_fetched(self, executor, mocker):
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10)

        result_set.get_page(0)
        assert result_set.get_page(3) is None
        assert result_set.get_page(30) is None

        assert len(fetch_windows(spy)) == 1

    def test_estimated_count_is_resolved_with_a_count_query(self, executor, mocker):
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=0)

        result_set.get_page(0)
        assert result_set.get_results() == 23
        assert result_set.is_estimated_actual() is True
        assert count_calls(spy) == 1

        # The exact count is retained
        assert result_set.get_results() == 23
        assert count_calls(spy) == 1

    def test_reported_totals_are_adopted(self, mocker):
        executor = MemoryQueryExecutor(
            conn_info={"COUNT_RESULTS": True}, records=build_products(100)
        )
        spy = mocker.spy(executor, "execute")
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=0)

        page = result_set.get_page(0)

        assert page.total_results == 100
        assert result_set.is_estimated_actual() is True
        assert result_set.get_pages() == 10
        assert count_calls(spy) == 0

    def test_estimate_grows_with_full_batches(self, mocker):
        executor = MemoryQueryExecutor(records=build_products(100))
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=2)

        result_set.get_page(0)
        assert result_set.get_estimated_results() == 20
        assert result_set.get_estimated_pages() == 2

        result_set.get_page(4)
        assert result_set.get_estimated_results() == 60

        # An earlier page does not lower the estimate
        result_set.get_page(2)
        assert result_set.get_estimated_results() == 60

    def test_reset_forgets_the_count(self, executor):
        result_set = QueryResultSet(executor, page_size=10)
        result_set.get_page(0)

        result_set.reset()

        assert result_set.get_estimated_results() == 0
        assert result_set.is_estimated_actual() is False


class TestFailures:
    def test_failures_propagate_and_leave_state_untouched(self, executor, mocker):
        result_set = QueryResultSet(executor, page_size=10, prefetch_pages=0)
        result_set.get_page(0)

        mocker.patch.object(
            executor, "execute", side_effect=QueryExecutionError("Service unavailable")
        )
        with pytest.raises(QueryExecutionError):
            result_set.get_page(1)

        assert result_set.get_estimated_results() == 10
        assert result_set.is_estimated_actual() is False
        assert ids(result_set.get_page(0)) == list(range(1, 11))
