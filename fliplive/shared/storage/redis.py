"""
Simple Redis client manager that creates and tracks clients.
"""

import threading

from loguru import logger
from redis.asyncio import Redis

from ..config import config


class RedisManager:
    """
    Simple Redis client manager.

    Features:
    - Creates and tracks one asyncio Redis client per label
    - Loads REDIS_URL_<LABEL> connection strings from the centralized config
    - Exposes the raw connection URL per label for streaq workers
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

        self._clients: dict[str, Redis] = {}
        self._connection_strings: dict[str, str] = {}
        self._lock = threading.Lock()

        self._load_connection_strings()

        self._initialized = True

    def _get_label_from_env_var(self, env_var: str) -> str | None:
        if env_var.startswith("REDIS_URL_"):
            return env_var[10:].lower()
        return None

    def _load_connection_strings(self):
        for key, value in config.items():
            label = self._get_label_from_env_var(key)
            if label is None or not value:
                continue
            self._connection_strings[label] = value
            logger.info("Loaded Redis connection string for label '{}'", label)

        if "default" not in self._connection_strings:
            self._connection_strings["default"] = config.get_redis_url("default")

    def get_connection_info(self) -> dict[str, dict[str, str]]:
        """Connection URLs per label, used to build worker queue URLs."""
        return {
            label: {"original_url": url} for label, url in self._connection_strings.items()
        }

    def get_cache_client(self, label: str | None = None) -> Redis:
        """
        Get Redis client by label.

        Raises:
            ValueError: If no connection string exists for the label
        """
        label = label or "default"

        with self._lock:
            if label not in self._clients:
                if label not in self._connection_strings:
                    raise ValueError(f"No Redis connection string found for label '{label}'")

                logger.info("Open Redis client for label '{}'", label)
                self._clients[label] = Redis.from_url(self._connection_strings[label])

            return self._clients[label]

    async def close_all(self):
        """Close all clients."""
        with self._lock:
            clients = list(self._clients.items())
            self._clients.clear()

        for label, client in clients:
            try:
                await client.aclose()
                logger.info("Closed Redis client for label '{}'", label)
            except Exception as e:
                logger.error("Error closing Redis client for label '{}': {}", label, e)


_redis_manager: RedisManager | None = None


def get_redis_manager() -> RedisManager:
    """Get the global Redis manager instance."""
    global _redis_manager
    if _redis_manager is None:
        _redis_manager = RedisManager()
    return _redis_manager


def get_redis_client(label: str | None = None) -> Redis:
    """Get Redis client by label."""
    return get_redis_manager().get_cache_client(label)
