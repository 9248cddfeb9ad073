"""
Prepared statement cache.

A bounded least-recently-used cache keyed by the exact SQL text a statement
was prepared from. The default capacity of one means only the most recently
requested statement is kept: repeating the same text reuses it, any other
text forces a fresh prepare and evicts it.
"""

from collections import OrderedDict
from typing import Callable, Optional

from sprydb.adapters.base import PreparedStatement


class StatementCache:
    """
    LRU cache of prepared statements.

    :param capacity: Maximum number of statements to keep (at least 1).
    :param on_evict: Called with each statement pushed out of the cache.
    """

    def __init__(
        self,
        capacity: int = 1,
        on_evict: Optional[Callable[[PreparedStatement], None]] = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._on_evict = on_evict
        self._cache: "OrderedDict[str, PreparedStatement]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, sql: str) -> Optional[PreparedStatement]:
        """
        Get the statement prepared from ``sql``. Mark as most recently used.

        :param sql: Exact statement text.
        :returns: Cached statement or None.
        """
        try:
            self._cache.move_to_end(sql)
        except KeyError:
            self.misses += 1
            return None
        self.hits += 1
        return self._cache[sql]

    def put(self, statement: PreparedStatement) -> None:
        """
        Cache a statement under its source text. Mark as most recently used.

        :param statement: Statement to cache.
        """
        self._cache[statement.sql] = statement
        self._cache.move_to_end(statement.sql)
        while len(self._cache) > self.capacity:
            _, evicted = self._cache.popitem(last=False)
            if self._on_evict is not None:
                self._on_evict(evicted)

    def clear(self) -> None:
        """Drop every cached statement."""
        while self._cache:
            _, evicted = self._cache.popitem(last=False)
            if self._on_evict is not None:
                self._on_evict(evicted)

    def __contains__(self, sql: str) -> bool:
        return sql in self._cache

    def __len__(self) -> int:
        return len(self._cache)
