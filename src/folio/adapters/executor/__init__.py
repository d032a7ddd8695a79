"""Package for Concrete Implementations of Query Executors"""

import collections
import importlib
import logging

from folio.exceptions import ConfigurationError
from folio.port.executor import BaseQueryExecutor

logger = logging.getLogger(__name__)

EXECUTOR_PROVIDERS = {
    "memory": "folio.adapters.executor.memory.MemoryQueryExecutor",
    "sqlite": "folio.adapters.executor.sqlalchemy.SqlalchemyQueryExecutor",
    "sqlalchemy": "folio.adapters.executor.sqlalchemy.SqlalchemyQueryExecutor",
}


class Executors(collections.abc.MutableMapping):
    """Registry of the executors configured under `executors`, initialized on first use"""

    def __init__(self, folio):
        self.folio = folio
        self._executors = None

    def __getitem__(self, key):
        if self._executors is None:
            self._initialize()
        return self._executors[key]

    def __iter__(self):
        return iter(self._executors) if self._executors else iter({})

    def __len__(self):
        return len(self._executors) if self._executors else 0

    def __setitem__(self, key, value):
        if self._executors is None:
            self._initialize()

        self._executors[key] = value

    def __delitem__(self, key):
        if self._executors and key in self._executors:
            del self._executors[key]

    def _initialize(self):
        """Read config and initialize executors"""
        configured_executors = self.folio.config["executors"]
        executor_objects = {}

        if configured_executors and isinstance(configured_executors, dict):
            if "default" not in configured_executors:
                raise ConfigurationError("You must define a 'default' executor")

            for executor_name, conn_info in configured_executors.items():
                provider = conn_info.get("provider")
                if provider not in EXECUTOR_PROVIDERS:
                    raise ConfigurationError(
                        f"Unknown executor provider `{provider}` for `{executor_name}`"
                    )

                provider_module, provider_class = EXECUTOR_PROVIDERS[provider].rsplit(
                    ".", maxsplit=1
                )
                executor_cls = getattr(importlib.import_module(provider_module), provider_class)
                executor_objects[executor_name] = executor_cls(
                    executor_name, self.folio, conn_info
                )
                logger.debug(f"Initialized executor `{executor_name}` ({provider})")

        self._executors = executor_objects

    def executor_for(self, name: str = "default") -> BaseQueryExecutor:
        """Retrieve the executor registered under `name`"""
        if self._executors is None:
            self._initialize()

        try:
            return self._executors[name]
        except KeyError:
            raise ConfigurationError(f"No executor registered with name `{name}`")
