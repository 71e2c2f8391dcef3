import threading
from copy import deepcopy
from datetime import datetime
from typing import Any, Iterable

from bson import ObjectId

from .services.records import utc_now


class InMemoryStore:
    """Document collections held in process memory, keyed by ObjectId in insertion order."""

    def __init__(self, collections: Iterable[str] = ()) -> None:
        self.collections: dict[str, dict[ObjectId, dict[str, Any]]] = {name: {} for name in collections}
        self.lock = threading.RLock()

    def collection(self, name: str) -> dict[ObjectId, dict[str, Any]]:
        with self.lock:
            return self.collections.setdefault(name, {})

    def find(self, name: str, **filters: Any) -> list[dict[str, Any]]:
        with self.lock:
            return [
                deepcopy(doc)
                for doc in self.collection(name).values()
                if all(doc.get(key) == value for key, value in filters.items())
            ]

    def find_one(self, name: str, record_id: ObjectId) -> dict[str, Any] | None:
        with self.lock:
            doc = self.collection(name).get(record_id)
            return deepcopy(doc) if doc is not None else None

    def insert_one(self, name: str, document: dict[str, Any]) -> ObjectId:
        record_id = self.make_id()
        with self.lock:
            self.collection(name)[record_id] = {"_id": record_id, **deepcopy(document)}
        return record_id

    def set_fields(self, name: str, record_id: ObjectId, fields: dict[str, Any]) -> dict[str, Any] | None:
        with self.lock:
            doc = self.collection(name).get(record_id)
            if doc is None:
                return None
            doc.update(deepcopy(fields))
            return deepcopy(doc)

    def delete_one(self, name: str, record_id: ObjectId) -> int:
        with self.lock:
            return 1 if self.collection(name).pop(record_id, None) is not None else 0

    @staticmethod
    def make_id() -> ObjectId:
        return ObjectId()

    @staticmethod
    def now() -> datetime:
        return utc_now()
