"""
Connection Registry for SpryDB

Resolves named connections to DatabaseDriver instances. The first request
for an identifier builds and connects a driver; every later request gets the
same instance back and its config argument is ignored.

Usage:
    registry = ConnectionRegistry()

    db = registry.get("default", ConnectionConfig(engine="mysql", database="app", user="app"))
    db.get_results("SELECT * FROM users")

    # Elsewhere, same instance
    registry.get("default").insert("users", {"username": "jdoe"})

The registry is an ordinary object: create one per application (or per
test) and pass it to the code that needs connections. It is not
thread-safe; serialize the first use of an identifier if several threads
may race on it.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, TextIO, Union

from sprydb.adapters.base import BaseAdapter
from sprydb.adapters.factory import create_adapter
from sprydb.core.config import ConnectionConfig, Settings, get_settings
from sprydb.driver import DatabaseDriver

logger = logging.getLogger(__name__)

DEFAULT_IDENTIFIER = "default"

AdapterFactory = Callable[[ConnectionConfig], BaseAdapter]


class ConnectionRegistry:
    """
    Named-connection cache.

    Args:
        settings: Settings handed to every driver the registry builds
        adapter_factory: Builds an adapter from a ConnectionConfig
                         (default: the engine adapter factory)
        error_stream: Error stream handed to every driver
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        adapter_factory: Optional[AdapterFactory] = None,
        error_stream: Optional[TextIO] = None,
    ):
        self.settings = settings or get_settings()
        self._adapter_factory = adapter_factory or create_adapter
        self._error_stream = error_stream
        self._drivers: Dict[str, DatabaseDriver] = {}

    def get(
        self,
        identifier: str = DEFAULT_IDENTIFIER,
        config: Optional[Union[ConnectionConfig, Dict[str, Any]]] = None,
    ) -> DatabaseDriver:
        """
        Get the driver for ``identifier``, creating it on first use.

        Args:
            identifier: Connection name
            config: Used only when the driver does not exist yet. Defaults
                    to ConnectionConfig.from_env(identifier).

        Returns:
            The driver cached under ``identifier``

        Raises:
            ConnectionError: If the connection cannot be established
                             (nothing is cached in that case)
        """
        driver = self._drivers.get(identifier)
        if driver is not None:
            return driver

        if config is None:
            config = ConnectionConfig.from_env(identifier)
        elif not isinstance(config, ConnectionConfig):
            config = ConnectionConfig(**config)

        adapter = self._adapter_factory(config)
        driver = DatabaseDriver(adapter, settings=self.settings, error_stream=self._error_stream)

        self._drivers[identifier] = driver
        logger.info(f"Opened connection '{identifier}' ({config.engine})")
        return driver

    def identifiers(self) -> List[str]:
        """Names of every open connection, in creation order."""
        return list(self._drivers)

    def close(self, identifier: str) -> bool:
        """
        Close and forget one connection.

        Returns:
            True if the connection was found and closed
        """
        driver = self._drivers.pop(identifier, None)
        if driver is None:
            return False
        try:
            driver.close()
        except Exception as e:
            logger.warning(f"Error closing connection '{identifier}': {e}")
        return True

    def close_all(self) -> int:
        """
        Close every connection.

        Returns:
            Number of connections closed
        """
        count = 0
        for identifier in list(self._drivers):
            if self.close(identifier):
                count += 1
        logger.info(f"Closed {count} connections")
        return count

    def status(self) -> Dict[str, Any]:
        """Engine info and query counts of every open connection."""
        return {
            "connections": {
                identifier: {
                    **driver.adapter.get_engine_info(),
                    "queries": len(driver.queries()),
                }
                for identifier, driver in self._drivers.items()
            },
            "connection_count": len(self._drivers),
        }

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._drivers

    def __len__(self) -> int:
        return len(self._drivers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._drivers)
