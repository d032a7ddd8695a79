"""Structured Query Implementation"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from folio.core.sort import SortInput, SortKey, SortSpec, to_sort_spec
from folio.utils.query import Q

logger = logging.getLogger(__name__)

# Marker for queries without an identity constraint
NO_IDENTITY = object()


class StructuredQuery:
    """A chainable class to gather criteria and preferences (sort order, distinct rows,
    identity constraint) before execution.

    A StructuredQuery can be constructed, filtered and passed around without fetching data.
    Every chaining method returns a new instance, leaving the original untouched, so a query
    handed to an executor cannot be altered by the result set that built it.

    Paging (offset/limit), count-only mode and projections are not part of the query. They are
    supplied by the result set to the executor on each call.

    Attributes:
        criteria: Filter criteria, as a `Q` object
        sort: The sort keys, in order of precedence
        distinct: Whether duplicate rows should be suppressed
        identity: Constrain results to the object with this identifier, if set
        id_field: Name of the unique identifier field
    """

    def __init__(
        self,
        criteria: Optional[Q] = None,
        sort: SortInput = None,
        distinct: bool = False,
        identity: Any = NO_IDENTITY,
        id_field: str = "id",
    ):
        self._criteria = criteria or Q()
        self._sort = to_sort_spec(sort)
        self._distinct = distinct
        self._identity = identity
        self._id_field = id_field

    def _clone(self, **overrides) -> StructuredQuery:
        """
        Return a copy of the current StructuredQuery, with `overrides` applied.
        """
        attrs = {
            "criteria": self._criteria,
            "sort": self._sort,
            "distinct": self._distinct,
            "identity": self._identity,
            "id_field": self._id_field,
        }
        attrs.update(overrides)
        return self.__class__(**attrs)

    #########################
    # Query support methods #
    #########################

    def filter(self, *args, **kwargs) -> StructuredQuery:
        """
        Return a new StructuredQuery instance with the args ANDed to the existing
        set.
        """
        return self._filter_or_exclude(False, *args, **kwargs)

    def exclude(self, *args, **kwargs) -> StructuredQuery:
        """
        Return a new StructuredQuery instance with NOT (args) ANDed to the existing
        set.
        """
        return self._filter_or_exclude(True, *args, **kwargs)

    def _filter_or_exclude(self, negate, *args, **kwargs) -> StructuredQuery:
        q_object = ~Q(*args, **kwargs) if negate else Q(*args, **kwargs)
        return self._clone(criteria=self._criteria & q_object)

    def order_by(self, sort: Union[SortInput, SortSpec]) -> StructuredQuery:
        """Append sort keys, skipping keys that are already sorted upon"""
        existing = {sort_key.key for sort_key in self._sort}
        additional = tuple(
            sort_key for sort_key in to_sort_spec(sort) if sort_key.key not in existing
        )
        return self._clone(sort=self._sort + additional)

    def distinct(self, distinct: bool = True) -> StructuredQuery:
        """Suppress (or stop suppressing) duplicate rows"""
        return self._clone(distinct=distinct)

    def constrain_identity(self, identity: Any) -> StructuredQuery:
        """Constrain the query to the single object identified by `identity`"""
        return self._clone(identity=identity)

    #########################
    # Query properties      #
    #########################

    @property
    def criteria(self) -> Q:
        return self._criteria

    @property
    def sort(self) -> SortSpec:
        return self._sort

    @property
    def is_distinct(self) -> bool:
        return self._distinct

    @property
    def has_identity(self) -> bool:
        return self._identity is not NO_IDENTITY

    @property
    def identity(self) -> Any:
        return None if self._identity is NO_IDENTITY else self._identity

    @property
    def id_field(self) -> str:
        return self._id_field

    def sort_keys(self) -> list[SortKey]:
        return list(self._sort)

    def __eq__(self, other):
        if not isinstance(other, StructuredQuery):
            return NotImplemented
        return (
            self._criteria == other._criteria
            and self._sort == other._sort
            and self._distinct == other._distinct
            and self._identity == other._identity
            and self._id_field == other._id_field
        )

    __hash__ = None

    def __repr__(self):
        """Support friendly print of query criteria"""
        return "<%s: criteria: %s, sort: %s, distinct: %s, identity: %s>" % (
            self.__class__.__name__,
            self._criteria.deconstruct(),
            [str(sort_key) for sort_key in self._sort],
            self._distinct,
            self.identity,
        )
