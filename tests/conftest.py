"""Module to setup fixtures and other required artifacts for tests

    isort:skip_file
"""

import pytest

from folio import Folio
from folio.adapters.executor.memory import MemoryQueryExecutor

from tests.shared import build_products


def pytest_addoption(parser):
    """Additional options for running tests with pytest"""
    parser.addoption(
        "--slow", action="store_true", default=False, help="Run slow tests"
    )
    parser.addoption(
        "--pending", action="store_true", default=False, help="Show pending tests"
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: tests that take a while to run")
    config.addinivalue_line("markers", "pending: tests for behavior not yet settled")
    config.addinivalue_line("markers", "sqlite: tests that run against in-memory SQLite")


def pytest_collection_modifyitems(config, items):
    """Configure special markers on tests, so as to control execution"""
    run_slow = run_pending = False

    if config.getoption("--slow"):
        # --slow given in cli: do not skip slow tests
        run_slow = True

    if config.getoption("--pending"):
        run_pending = True

    skip_slow = pytest.mark.skip(reason="need --slow option to run")
    skip_pending = pytest.mark.skip(reason="need --pending option to run")

    for item in items:
        if "slow" in item.keywords and run_slow is False:
            item.add_marker(skip_slow)
        if "pending" in item.keywords and run_pending is False:
            item.add_marker(skip_pending)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep environment-driven configuration from leaking into tests"""
    monkeypatch.delenv("FOLIO_ENV", raising=False)
    monkeypatch.delenv("FOLIO_LOG_LEVEL", raising=False)


@pytest.fixture
def products():
    return build_products(23)


@pytest.fixture
def executor(products):
    return MemoryQueryExecutor(records=products)


@pytest.fixture
def test_folio(executor, tmp_path):
    folio = Folio(name="Test", config={"page_size": 10}, root_path=str(tmp_path))
    folio.register_executor("default", executor)
    return folio
