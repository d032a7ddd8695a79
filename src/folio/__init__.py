__version__ = "0.1.0"

from .core.adapter import ResultSetAdapter
from .core.caching import CachingResultSet
from .core.iterable import IterableResultSet
from .core.iterator import ResultSetIterator
from .core.locator import PageLocator
from .core.page import ALL_RESULTS, UNKNOWN, Page
from .core.preloaded import PreloadedResultSet
from .core.query import StructuredQuery
from .core.query_resultset import (
    CriteriaQueryBuilder,
    QueryBuilder,
    QueryResultSet,
    SearchQueryBuilder,
    SimpleQueryResultSet,
)
from .core.resultset import BaseResultSet
from .core.sort import SortKey
from .folio import Folio
from .utils.logging import configure_logging, get_logger
from .utils.query import Q

__all__ = [
    "ALL_RESULTS",
    "BaseResultSet",
    "CachingResultSet",
    "configure_logging",
    "CriteriaQueryBuilder",
    "Folio",
    "get_logger",
    "IterableResultSet",
    "Page",
    "PageLocator",
    "PreloadedResultSet",
    "Q",
    "QueryBuilder",
    "QueryResultSet",
    "ResultSetAdapter",
    "ResultSetIterator",
    "SearchQueryBuilder",
    "SimpleQueryResultSet",
    "SortKey",
    "StructuredQuery",
    "UNKNOWN",
]
