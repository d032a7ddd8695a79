"""This module implements the central Folio object, which wires configuration to executors and
constructs result sets with configured defaults.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Iterable, Optional, Union

from folio.adapters.executor import Executors
from folio.config import Config
from folio.core.iterable import IterableResultSet, Source
from folio.core.locator import PageLocator
from folio.core.preloaded import PreloadedResultSet
from folio.core.query_resultset import (
    CriteriaQueryBuilder,
    QueryBuilder,
    QueryResultSet,
    SearchQueryBuilder,
    SimpleQueryResultSet,
)
from folio.core.sort import SortInput
from folio.port.executor import BaseQueryExecutor
from folio.utils.logging import configure_logging
from folio.utils.query import Q

logger = logging.getLogger(__name__)

# a singleton sentinel value for parameter defaults
_sentinel = object()


class ConfigAttribute:
    """Makes an attribute forward to the config"""

    def __init__(self, name):
        self.__name__ = name

    def __get__(self, obj, type=None):
        return obj.config[self.__name__]

    def __set__(self, obj, value):
        obj.config[self.__name__] = value


class Folio:
    """The Folio object is a one-stop gateway to:

    * Configuration, loaded from a dictionary or a TOML file
    * Query executors, initialized from the configuration on first use
    * Result sets and page locators, constructed with the configured defaults

    Usually you create a :class:`Folio` instance in your main module or in the
    :file:`__init__.py` file of your package like this::

        from folio import Folio
        folio = Folio(config={"page_size": 25})

    Without an explicit `config`, configuration is read from `.folio.toml`, `folio.toml` or the
    `[tool.folio]` section of `pyproject.toml` in `root_path` (or the current directory) and up
    to two parent directories. Defaults apply when no configuration file is found.

    :param name: the name of this Folio instance
    :param config: optional configuration dictionary
    :param root_path: the path to start looking for configuration files from
    """

    config_class = Config

    #: The environment in effect, as set by the :envvar:`FOLIO_ENV` environment variable
    env = ConfigAttribute("env")

    #: Default page size for result sets and locators
    page_size = ConfigAttribute("page_size")

    #: Default number of pages fetched per backing call
    prefetch_pages = ConfigAttribute("prefetch_pages")

    #: Default identifier field, used for tie-breaks and identity constraints
    id_field = ConfigAttribute("id_field")

    def __init__(
        self,
        name: str = "folio",
        config: Optional[dict] = None,
        root_path: Optional[str] = None,
    ):
        self.name = name
        self.root_path = root_path or os.getcwd()
        self.config = self.load_config(config)

        self.executors = Executors(self)

    def load_config(self, config: Optional[dict] = None) -> Config:
        """Load configuration from the supplied dictionary, or from a configuration file"""
        path = os.path.join(self.root_path, "__init__.py")
        if config is not None:
            config_obj = self.config_class.load_from_dict(config)
        elif self.config_class.find_config_file(path):
            config_obj = self.config_class.load_from_path(path)
        else:
            logger.debug(f"No configuration file found in {self.root_path}. Using defaults.")
            config_obj = self.config_class.load_from_dict()

        # Load Constants
        for constant, value in config_obj["custom"].items():
            setattr(self, constant, value)

        return config_obj

    def configure_logging(self, format_string: Optional[str] = None) -> None:
        """Configure logging at the configured level"""
        configure_logging(self.config["logging"]["level"], format_string)

    #############
    # Executors #
    #############

    def register_executor(self, name: str, executor: BaseQueryExecutor) -> None:
        """Register an executor instance under `name`, replacing any configured executor"""
        executor.folio = self
        self.executors[name] = executor

    def executor_for(self, name: str = "default") -> BaseQueryExecutor:
        return self.executors.executor_for(name)

    ###############
    # Result sets #
    ###############

    def _builder(self, builder: Union[QueryBuilder, Q, None]) -> QueryBuilder:
        if isinstance(builder, QueryBuilder):
            return builder
        return CriteriaQueryBuilder(builder, id_field=self.id_field)

    def _cache_options(self) -> dict:
        return {
            "max_pages": self.config["cache"]["max_pages"],
            "ttl": self.config["cache"]["ttl"],
        }

    def result_set(
        self,
        builder: Union[QueryBuilder, Q, None] = None,
        sort: SortInput = None,
        page_size: Any = _sentinel,
        distinct: bool = False,
        prefetch_pages: Any = _sentinel,
        executor: str = "default",
    ) -> QueryResultSet:
        """Construct a caching, prefetching result set over a query"""
        return QueryResultSet(
            self.executor_for(executor),
            self._builder(builder),
            page_size=self.page_size if page_size is _sentinel else page_size,
            sort=sort,
            distinct=distinct,
            prefetch_pages=(
                self.prefetch_pages if prefetch_pages is _sentinel else prefetch_pages
            ),
            **self._cache_options(),
        )

    def simple_result_set(
        self,
        builder: Union[QueryBuilder, Q, None] = None,
        sort: SortInput = None,
        page_size: Any = _sentinel,
        distinct: bool = False,
        executor: str = "default",
    ) -> SimpleQueryResultSet:
        """Construct a result set without prefetch, that always reports exact counts"""
        return SimpleQueryResultSet(
            self.executor_for(executor),
            self._builder(builder),
            page_size=self.page_size if page_size is _sentinel else page_size,
            sort=sort,
            distinct=distinct,
        )

    def search(
        self,
        value: Optional[str],
        fields: Iterable[str] = ("name",),
        criteria: Optional[Q] = None,
        sort: SortInput = None,
        page_size: Any = _sentinel,
        executor: str = "default",
    ) -> QueryResultSet:
        """Construct a result set matching `value` against `fields`, within `criteria`"""
        builder = SearchQueryBuilder(criteria, value, fields, id_field=self.id_field)
        return self.result_set(builder, sort=sort, page_size=page_size, executor=executor)

    def iterable(self, source: Source, page_size: Any = _sentinel) -> IterableResultSet:
        """Construct a result set over a forward-only source"""
        return IterableResultSet(
            source,
            page_size=self.page_size if page_size is _sentinel else page_size,
            prefetch_pages=self.prefetch_pages,
            **self._cache_options(),
        )

    def preloaded(
        self, objects: Iterable[Any], sort: SortInput = None, page_size: Any = _sentinel
    ) -> PreloadedResultSet:
        """Construct a result set over objects already in memory"""
        return PreloadedResultSet(
            objects,
            page_size=self.page_size if page_size is _sentinel else page_size,
            sort=sort,
        )

    ############
    # Locators #
    ############

    def locator(
        self,
        builder: Union[QueryBuilder, Q, None] = None,
        sort: SortInput = None,
        page_size: Any = _sentinel,
        executor: str = "default",
    ) -> PageLocator:
        return PageLocator(
            self.executor_for(executor),
            self._builder(builder),
            sort=sort,
            page_size=self.page_size if page_size is _sentinel else page_size,
            id_field=self.id_field,
        )

    def locate(
        self,
        target: Any,
        builder: Union[QueryBuilder, Q, None] = None,
        sort: SortInput = None,
        page_size: Any = _sentinel,
        executor: str = "default",
    ) -> int:
        """Return the page `target` appears on, for the query and sort order"""
        return self.locator(builder, sort, page_size, executor).locate(target)

    def __repr__(self) -> str:
        return f"<Folio: {self.name}>"
