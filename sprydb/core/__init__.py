"""
Core configuration for SpryDB.
"""

from sprydb.core.config import ConnectionConfig, Settings, get_settings

__all__ = ["ConnectionConfig", "Settings", "get_settings"]
