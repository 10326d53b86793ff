import logging
from typing import Dict, Optional, Protocol

from pymongo.collection import Collection

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, blob: str) -> None:
        ...


class MemoryStore:

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, blob: str) -> None:
        self._data[key] = blob

    def close(self) -> None:
        return


class MongoStore:
    """One document per key: ``{_id: key, value: blob}``."""

    def __init__(self, collection: Collection, client=None) -> None:
        self._collection = collection
        self._client = client

    def get(self, key: str) -> Optional[str]:
        doc = self._collection.find_one({"_id": key})
        if not doc:
            return None
        return doc.get("value")

    def set(self, key: str, blob: str) -> None:
        self._collection.replace_one({"_id": key}, {"_id": key, "value": blob}, upsert=True)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


class RedisStore:

    def __init__(self, client, prefix: str = "bookswap:") -> None:
        self._redis = client
        self._prefix = prefix

    def get(self, key: str) -> Optional[str]:
        value = self._redis.get(self._prefix + key)
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set(self, key: str, blob: str) -> None:
        self._redis.set(self._prefix + key, blob)

    def close(self) -> None:
        self._redis.close()
