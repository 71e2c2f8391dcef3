from __future__ import annotations

from typing import Any, Callable, TypeVar

import structlog
from bson import ObjectId
from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .config import Settings, settings as default_settings
from .errors import RecordNotFoundError, StoreError
from .resources import RESOURCES, ResourceDefinition
from .services.records import utc_now
from .store import InMemoryStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class Persistence:
    """One operation per verb, parameterized by the resource being touched."""

    def start(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError

    def list_by_user(self, resource: ResourceDefinition, user_id: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    def find_by_id(self, resource: ResourceDefinition, record_id: ObjectId) -> dict[str, Any] | None:
        raise NotImplementedError

    def insert(self, resource: ResourceDefinition, record: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    def update_by_id(self, resource: ResourceDefinition, record_id: ObjectId, fields: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    def delete_by_id(self, resource: ResourceDefinition, record_id: ObjectId) -> int:
        raise NotImplementedError


class InMemoryPersistence(Persistence):
    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore(r.collection for r in RESOURCES.values())

    def start(self) -> None:
        logger.info("store_connected", backend="memory")

    def close(self) -> None:
        logger.info("store_closed", backend="memory")

    def ping(self) -> bool:
        return True

    def list_by_user(self, resource: ResourceDefinition, user_id: str) -> list[dict[str, Any]]:
        return self.store.find(resource.collection, userId=user_id)

    def find_by_id(self, resource: ResourceDefinition, record_id: ObjectId) -> dict[str, Any] | None:
        return self.store.find_one(resource.collection, record_id)

    def insert(self, resource: ResourceDefinition, record: dict[str, Any]) -> dict[str, Any]:
        if resource.stamps_created_at:
            record = {**record, "createdAt": self.store.now()}
            record_id = self.store.insert_one(resource.collection, record)
            return self.store.find_one(resource.collection, record_id)
        record_id = self.store.insert_one(resource.collection, record)
        return {"_id": record_id, **record}

    def update_by_id(self, resource: ResourceDefinition, record_id: ObjectId, fields: dict[str, Any]) -> dict[str, Any]:
        row = self.store.set_fields(resource.collection, record_id, fields)
        if row is None:
            raise RecordNotFoundError(resource.label, record_id)
        return row

    def delete_by_id(self, resource: ResourceDefinition, record_id: ObjectId) -> int:
        return self.store.delete_one(resource.collection, record_id)


class MongoPersistence(Persistence):
    def __init__(
        self,
        mongo_uri: str,
        database: str,
        timeout_ms: int = 5000,
        client: MongoClient | None = None,
    ) -> None:
        self.client: MongoClient = client or MongoClient(
            mongo_uri,
            tz_aware=True,
            serverSelectionTimeoutMS=timeout_ms,
        )
        self.db = self.client[database]

    def _collection(self, resource: ResourceDefinition) -> Collection:
        return self.db[resource.collection]

    def _run(self, operation: str, resource: ResourceDefinition, call: Callable[[], T]) -> T:
        try:
            return call()
        except PyMongoError as exc:
            logger.error("store_error", operation=operation, resource=resource.name, exc_info=exc)
            raise StoreError(operation, resource.name) from exc

    def start(self) -> None:
        for resource in RESOURCES.values():
            self._run("index", resource, lambda r=resource: self._collection(r).create_index([("userId", ASCENDING)]))
        logger.info("store_connected", backend="mongo", database=self.db.name)

    def close(self) -> None:
        self.client.close()
        logger.info("store_closed", backend="mongo")

    def ping(self) -> bool:
        try:
            self.client.admin.command("ping")
        except PyMongoError as exc:
            logger.warning("store_ping_failed", error=exc.__class__.__name__)
            return False
        return True

    def list_by_user(self, resource: ResourceDefinition, user_id: str) -> list[dict[str, Any]]:
        return self._run("list", resource, lambda: list(self._collection(resource).find({"userId": user_id})))

    def find_by_id(self, resource: ResourceDefinition, record_id: ObjectId) -> dict[str, Any] | None:
        return self._run("read", resource, lambda: self._collection(resource).find_one({"_id": record_id}))

    def insert(self, resource: ResourceDefinition, record: dict[str, Any]) -> dict[str, Any]:
        collection = self._collection(resource)
        if resource.stamps_created_at:
            document = {**record, "createdAt": utc_now()}
            result = self._run("insert", resource, lambda: collection.insert_one(document))
            return self._run("read", resource, lambda: collection.find_one({"_id": result.inserted_id}))
        document = dict(record)
        result = self._run("insert", resource, lambda: collection.insert_one(document))
        return {"_id": result.inserted_id, **record}

    def update_by_id(self, resource: ResourceDefinition, record_id: ObjectId, fields: dict[str, Any]) -> dict[str, Any]:
        row = self._run(
            "update",
            resource,
            lambda: self._collection(resource).find_one_and_update(
                {"_id": record_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            ),
        )
        if row is None:
            raise RecordNotFoundError(resource.label, record_id)
        return row

    def delete_by_id(self, resource: ResourceDefinition, record_id: ObjectId) -> int:
        result = self._run("delete", resource, lambda: self._collection(resource).delete_one({"_id": record_id}))
        return result.deleted_count


def get_persistence(config: Settings = default_settings) -> Persistence:
    if config.storage_backend == "mongo":
        return MongoPersistence(config.mongo_uri, config.mongo_database, config.mongo_timeout_ms)
    return InMemoryPersistence()
