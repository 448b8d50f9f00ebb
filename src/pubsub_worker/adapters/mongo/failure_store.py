"""MongoFailureStore — IFailureStore backed by a MongoDB collection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pymongo.errors import ConnectionFailure, PyMongoError

from ...exceptions import FailureStoreError, InfrastructureConnectivityError
from ...ports.store import IFailureStore

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .connection import MongoConnection

logger = logging.getLogger("pubsub_worker.adapters.mongo")

DEFAULT_COLLECTION = "failed_messages"


def translate_error(exc: PyMongoError) -> Exception:
    """Lost connections are fatal; anything else is a store error."""
    if isinstance(exc, ConnectionFailure):
        return InfrastructureConnectivityError(str(exc))
    return FailureStoreError(str(exc))


class MongoFailureStore(IFailureStore):
    """MongoDB implementation of ``IFailureStore``.

    One document per failure key::

        {"_id": "<message id>:<subscription>", "tries": 2, ...}

    A single-field index is created for every stored field the first time
    it is written, except the fields listed in ``exclude_from_indexes``.
    """

    def __init__(
        self,
        mongo: MongoConnection,
        database: str = "pubsub",
        collection: str = DEFAULT_COLLECTION,
    ) -> None:
        self._mongo = mongo
        self._database = database
        self._name = collection
        self._indexed: set[str] = set()

    @property
    def _records(self) -> Any:
        return self._mongo.collection(self._database, self._name)

    async def lookup(self, key: str) -> dict[str, Any] | None:
        try:
            doc = await self._records.find_one({"_id": key})
        except PyMongoError as e:
            raise translate_error(e) from e
        if doc is None:
            return None
        return {name: value for name, value in doc.items() if name != "_id"}

    async def insert(
        self,
        key: str,
        fields: dict[str, Any],
        *,
        exclude_from_indexes: Iterable[str] = (),
    ) -> None:
        records = self._records
        unindexed = set(exclude_from_indexes)
        try:
            await records.insert_one({"_id": key, **fields})
            for name in fields:
                if name in unindexed or name in self._indexed:
                    continue
                await records.create_index(name)
                self._indexed.add(name)
                logger.debug("Indexed %s.%s", self._name, name)
        except PyMongoError as e:
            raise translate_error(e) from e

    async def update(self, key: str, fields: dict[str, Any]) -> None:
        try:
            result = await self._records.update_one({"_id": key}, {"$set": fields})
        except PyMongoError as e:
            raise translate_error(e) from e
        if not result.matched_count:
            raise FailureStoreError(f"Record {key!r} does not exist")

    async def health_check(self) -> bool:
        return await self._mongo.health_check()
