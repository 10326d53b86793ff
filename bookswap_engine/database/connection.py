import logging
import os
from typing import Optional

import redis
from pymongo import MongoClient

from bookswap_engine.database.store import KeyValueStore, MemoryStore, MongoStore, RedisStore

logger = logging.getLogger(__name__)


_store: Optional[KeyValueStore] = None


def build_store(backend: Optional[str] = None) -> KeyValueStore:
    backend = (backend or os.getenv("STORE_BACKEND", "memory")).lower()
    if backend == "mongo":
        url = os.getenv("MONGO_URL", "mongodb://localhost:27017")
        client = MongoClient(url)
        db = client[os.getenv("MONGO_DB_NAME", "bookswap")]
        logger.info(f"Using MongoDB key-value store at {url}")
        return MongoStore(db["kv_store"], client=client)
    if backend == "redis":
        url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        logger.info(f"Using Redis key-value store at {url}")
        return RedisStore(redis.Redis.from_url(url))
    if backend != "memory":
        raise ValueError(f"Unknown STORE_BACKEND: {backend}")
    logger.info("Using in-memory key-value store")
    return MemoryStore()


def connect_store(store: Optional[KeyValueStore] = None, backend: Optional[str] = None) -> KeyValueStore:
    global _store
    _store = store if store is not None else build_store(backend)
    return _store


def close_store() -> None:
    global _store
    if _store is None:
        return
    close = getattr(_store, "close", None)
    if close:
        close()
    _store = None


def get_store() -> KeyValueStore:
    if _store is None:
        raise RuntimeError("Store is not connected")
    return _store
