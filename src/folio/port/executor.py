"""Base class for Query Executors"""

import logging
from abc import ABCMeta, abstractmethod
from typing import Any, Optional, Sequence

from folio.core.page import Page
from folio.core.query import StructuredQuery
from folio.utils.query import RegisterLookupMixin

logger = logging.getLogger(__name__)


class BaseQueryExecutor(RegisterLookupMixin, metaclass=ABCMeta):
    """Executor Implementation for each backing query service. Executors are the only gateway
    through which result sets reach data.

    Result sets hand over a `StructuredQuery` along with the window of rows they want, and
    expect a `Page` back. An executor must not retain result-set state between calls.

    :param name: the name this executor is registered under.
    :param folio: the `Folio` instance the executor belongs to, if any.
    :param conn_info: connection details, as configured under `executors`.
    """

    def __init__(self, name: str = "default", folio=None, conn_info: dict = None):
        """Initialize Executor with Connection/Adapter details"""
        self.name = name
        self.folio = folio
        self.conn_info = conn_info or {}

    @abstractmethod
    def execute(
        self,
        query: StructuredQuery,
        offset: int = 0,
        limit: int = 10,
        count_only: bool = False,
        nodes: Optional[Sequence[str]] = None,
    ) -> Page:
        """Execute `query` and return a `Page`.

        - `limit == ALL_RESULTS` means every row from `offset` onwards.
        - When `count_only` is set, only the number of matching rows is calculated. The page is
          returned empty with `total_results` set, and `offset`/`limit`/`nodes` are ignored.
        - When `nodes` is supplied, each result is a mapping holding only those nodes.
        - `total_results` of row-fetching pages may be `UNKNOWN`.

        Failures of the backing service are raised as `QueryExecutionError`.
        """

    @abstractmethod
    def is_alive(self) -> bool:
        """Check if the backing service is reachable"""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.name}>"


class BaseLookup(metaclass=ABCMeta):
    """Base Lookup class to implement for each lookup

    Each lookup, which is simply a data comparison (like `name == 'John'`), is implemented as a
    subclass of this class, and has to implement the `as_expression()` method to provide the
    representation that the backing service needs.

    Lookups are identified by their names, and the names are stored in the `lookup_name` class
    variable.
    """

    lookup_name = None

    def __init__(self, source, target):
        """Source is LHS and Target is RHS of a comparison.

        For example, in the expression `name == 'John'`, `name` is source (LHS) and `'John'` is
        target (RHS).
        """
        self.source, self.target = source, target

    def process_source(self):
        """Returns `source` (LHS of the expression), transformed if necessary"""
        return self.source

    def process_target(self):
        """Returns `target` (RHS of the expression), transformed if necessary"""
        return self.target

    @abstractmethod
    def as_expression(self) -> Any:
        """Return the source and the target in the format required by the backing service."""
        raise NotImplementedError
