"""Sort keys and sort specifications"""

from __future__ import annotations

from typing import NamedTuple, Union

from folio.exceptions import ValidationError


class SortKey(NamedTuple):
    """A single sort criterion: the key (field/node name) and its direction"""

    key: str
    ascending: bool = True

    def __str__(self) -> str:
        return self.key if self.ascending else f"-{self.key}"


SortSpec = tuple[SortKey, ...]

SortInput = Union[None, str, SortKey, tuple, list]


def _to_sort_key(item) -> SortKey:
    if isinstance(item, SortKey):
        return item

    if isinstance(item, str):
        if not item or item == "-":
            raise ValidationError({"sort": ["Sort key cannot be empty"]})
        if item.startswith("-"):
            return SortKey(item[1:], False)
        return SortKey(item, True)

    if isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str):
        return SortKey(item[0], bool(item[1]))

    raise ValidationError({"sort": [f"Invalid sort criterion {item!r}"]})


def to_sort_spec(sort: SortInput) -> SortSpec:
    """Normalize `sort` into a tuple of `SortKey` objects.

    `sort` could be empty, a string, a `(key, ascending)` pair, a `SortKey`, or a list of any of these.
    Use a `-` before a key name to sort in descending order.
    """
    if not sort:
        return ()

    if isinstance(sort, (str, SortKey)):
        return (_to_sort_key(sort),)

    if isinstance(sort, tuple) and len(sort) == 2 and isinstance(sort[1], bool):
        return (_to_sort_key(sort),)

    return tuple(_to_sort_key(item) for item in sort)


def with_tie_break(sort: SortSpec, id_field: str) -> SortSpec:
    """Append an ascending sort on `id_field`, unless it is already sorted upon.

    A unique trailing key keeps the relative order of rows stable across repeated queries.
    """
    if any(sort_key.key == id_field for sort_key in sort):
        return tuple(sort)
    return (*sort, SortKey(id_field, True))
