"""MongoConnection — lazily created Motor client shared by the Mongo adapters."""

from __future__ import annotations

from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from ...exceptions import InfrastructureConnectivityError

DEFAULT_CLIENT_OPTIONS: dict[str, Any] = {
    "serverSelectionTimeoutMS": 5000,
    "connectTimeoutMS": 10000,
}


class MongoConnection:
    """One Motor client per worker, created on first use.

    Motor connects in the background, so an unreachable server only shows
    up on the first operation; a malformed URL fails here.
    """

    def __init__(
        self, url: str = "mongodb://localhost:27017", **client_options: Any
    ) -> None:
        self.url = url
        self._options = {**DEFAULT_CLIENT_OPTIONS, **client_options}
        self._client: AsyncIOMotorClient[Any] | None = None

    @property
    def client(self) -> AsyncIOMotorClient[Any]:
        if self._client is None:
            try:
                self._client = AsyncIOMotorClient(self.url, **self._options)
            except PyMongoError as e:
                raise InfrastructureConnectivityError(
                    f"Cannot create MongoDB client: {e}"
                ) from e
        return self._client

    def collection(self, database: str, name: str) -> Any:
        return self.client[database][name]

    def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            client.close()

    async def health_check(self) -> bool:
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
        except PyMongoError:
            return False
        return True
