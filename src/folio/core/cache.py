"""Reclaimable page cache"""

import collections.abc
import logging
import time
from collections import OrderedDict
from typing import Optional, Union

logger = logging.getLogger(__name__)


class PageCache(collections.abc.MutableMapping):
    """A bounded mapping of page index to page.

    Entries may disappear at any time: the least recently used entry is evicted once `max_pages`
    is exceeded, and entries older than `ttl` seconds expire. An evicted or expired entry is
    indistinguishable from one that was never stored, so callers must treat every miss as a
    signal to refetch.

    `max_pages=None` disables the capacity bound and `ttl=None` disables expiry.
    """

    def __init__(
        self,
        max_pages: Optional[int] = 64,
        ttl: Optional[Union[int, float]] = None,
        *args,
        **kwargs,
    ):
        self._max_pages = max_pages
        self._ttl = ttl
        self._values = OrderedDict()
        self.update(*args, **kwargs)

    def __repr__(self):
        return "<PageCache@%#08x; max_pages=%r, ttl=%r, pages=%r;>" % (
            id(self),
            self._max_pages,
            self._ttl,
            list(self._values.keys()),
        )

    @property
    def max_pages(self) -> Optional[int]:
        return self._max_pages

    @property
    def ttl(self) -> Optional[Union[int, float]]:
        return self._ttl

    def is_expired(self, key, now=None, remove=False) -> bool:
        """Check if key has expired"""
        if now is None:
            now = time.monotonic()
        expire, _value = self._values[key]
        if expire is None:
            return False
        expired = expire < now
        if expired and remove:
            del self._values[key]
        return expired

    def _purge_expired(self):
        now = time.monotonic()
        for key in list(self._values.keys()):
            self.is_expired(key, now=now, remove=True)

    def __len__(self):
        self._purge_expired()
        return len(self._values)

    def __iter__(self):
        self._purge_expired()
        return iter(list(self._values.keys()))

    def __contains__(self, key):
        if key not in self._values:
            return False
        return not self.is_expired(key, remove=True)

    def __setitem__(self, key, value):
        expire = None if self._ttl is None else time.monotonic() + self._ttl
        self._values[key] = (expire, value)
        self._values.move_to_end(key)

        if self._max_pages is not None:
            while len(self._values) > self._max_pages:
                evicted, _ = self._values.popitem(last=False)
                logger.debug(f"Evicted page {evicted} from cache")

    def __delitem__(self, key):
        del self._values[key]

    def __getitem__(self, key):
        if key not in self._values or self.is_expired(key, remove=True):
            raise KeyError(key)
        self._values.move_to_end(key)
        return self._values[key][1]

    def copy(self) -> "PageCache":
        """Return a shallow copy, with its own bookkeeping"""
        clone = self.__class__(self._max_pages, self._ttl)
        clone._values = OrderedDict(self._values)
        return clone

    def clear(self):
        self._values.clear()
