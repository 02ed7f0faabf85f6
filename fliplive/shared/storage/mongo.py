"""
Simple MongoDB client manager that creates and tracks clients.
"""

import atexit
import threading

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient

from ..config import config


class MongoManager:
    """
    Simple MongoDB client manager.

    Features:
    - Creates and tracks one MongoDB client per label
    - Loads MONGO_URL_<LABEL> connection strings from the centralized config
    - Clients are timezone aware so datetimes round-trip as UTC
    - Ensures all clients are closed on process exit
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, "_initialized"):
            return

        self._clients: dict[str, AsyncIOMotorClient] = {}
        self._connection_strings: dict[str, str] = {}
        self._max_pool_size = config.get_mongo_max_pool_size()
        self._lock = threading.Lock()

        self._load_connection_strings()
        atexit.register(self.close_all)

        self._initialized = True

    def _get_label_from_env_var(self, env_var: str) -> str | None:
        if env_var.startswith("MONGO_URL_"):
            return env_var[10:].lower()
        return None

    def _load_connection_strings(self):
        for key, value in config.items():
            label = self._get_label_from_env_var(key)
            if label is None or not value:
                continue
            self._connection_strings[label] = value
            logger.info(
                "Loaded MongoDB connection string for label '{}': {}",
                label,
                self._hide_password(value),
            )

        if "default" not in self._connection_strings:
            self._connection_strings["default"] = config.get_mongo_url("default")

    @staticmethod
    def _hide_password(connection_string: str) -> str:
        """Mask the password part of a connection string for logging."""
        if "://" not in connection_string or "@" not in connection_string:
            return connection_string

        scheme, rest = connection_string.split("://", 1)
        auth, _, host = rest.rpartition("@")
        if ":" not in auth:
            return connection_string

        username = auth.split(":", 1)[0]
        return f"{scheme}://{username}:***@{host}"

    def get_client(self, label: str | None = None) -> AsyncIOMotorClient:
        """
        Get MongoDB client by label.

        Raises:
            ValueError: If no connection string exists for the label
        """
        label = label or "default"

        with self._lock:
            if label not in self._clients:
                if label not in self._connection_strings:
                    raise ValueError(f"No MongoDB connection string found for label '{label}'")

                logger.info("Open MongoDB client for label '{}'", label)
                self._clients[label] = AsyncIOMotorClient(
                    self._connection_strings[label],
                    maxPoolSize=self._max_pool_size,
                    tz_aware=True,
                )

            return self._clients[label]

    def close_all(self):
        """Close all clients."""
        with self._lock:
            labels = list(self._clients.keys())
            for label in labels:
                self._clients.pop(label).close()
                logger.info("Closed MongoDB client for label '{}'", label)


_mongo_manager: MongoManager | None = None


def get_mongo_manager() -> MongoManager:
    """Get the global MongoDB manager instance."""
    global _mongo_manager
    if _mongo_manager is None:
        _mongo_manager = MongoManager()
    return _mongo_manager


def get_mongo_client(label: str | None = None) -> AsyncIOMotorClient:
    """Get MongoDB client by label."""
    return get_mongo_manager().get_client(label)
