import pytest

from folio import Folio
from folio.adapters.executor import EXECUTOR_PROVIDERS, Executors
from folio.adapters.executor.memory import MemoryQueryExecutor
from folio.exceptions import ConfigurationError


class TestExecutorRegistry:
    def test_default_executor_is_in_memory(self, tmp_path):
        folio = Folio(config={}, root_path=str(tmp_path))
        executor = folio.executor_for()

        assert isinstance(executor, MemoryQueryExecutor)
        assert executor.name == "default"
        assert executor.folio is folio

    def test_executors_are_initialized_lazily(self, tmp_path, mocker):
        folio = Folio(config={}, root_path=str(tmp_path))
        initialize = mocker.spy(folio.executors, "_initialize")

        assert len(folio.executors) == 0
        folio.executor_for()
        folio.executor_for()

        assert initialize.call_count == 1
        assert list(folio.executors) == ["default"]

    def test_connection_info_is_passed_on(self, tmp_path):
        folio = Folio(
            config={
                "executors": {
                    "default": {"provider": "memory"},
                    "archive": {"provider": "memory", "COUNT_RESULTS": True},
                }
            },
            root_path=str(tmp_path),
        )

        archive = folio.executor_for("archive")
        assert archive.conn_info["COUNT_RESULTS"] is True
        assert archive.count_results is True
        assert folio.executor_for().count_results is False

    def test_registered_executors_join_configured_ones(self, tmp_path):
        folio = Folio(
            config={
                "executors": {
                    "default": {"provider": "memory"},
                    "archive": {"provider": "memory"},
                }
            },
            root_path=str(tmp_path),
        )
        replacement = MemoryQueryExecutor(records=[{"id": 1}])

        folio.register_executor("default", replacement)

        assert folio.executor_for() is replacement
        assert replacement.folio is folio
        assert isinstance(folio.executor_for("archive"), MemoryQueryExecutor)

    def test_executors_can_be_removed(self, test_folio):
        del test_folio.executors["default"]

        with pytest.raises(ConfigurationError):
            test_folio.executor_for()

    def test_unknown_names(self, test_folio):
        with pytest.raises(ConfigurationError) as exc:
            test_folio.executor_for("unknown")

        assert "unknown" in str(exc.value)

    def test_unknown_providers(self, tmp_path):
        folio = Folio(
            config={"executors": {"default": {"provider": "mongodb"}}},
            root_path=str(tmp_path),
        )

        with pytest.raises(ConfigurationError) as exc:
            folio.executor_for()

        assert "mongodb" in str(exc.value)

    def test_a_default_executor_is_required(self, tmp_path):
        folio = Folio(config={}, root_path=str(tmp_path))
        folio.config["executors"] = {"archive": {"provider": "memory"}}

        with pytest.raises(ConfigurationError):
            Executors(folio).executor_for("archive")

    def test_providers(self):
        assert set(EXECUTOR_PROVIDERS) == {"memory", "sqlite", "sqlalchemy"}
