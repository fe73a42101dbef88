"""
MongoDB connection manager.

Owns the motor client for the process. Beanie is initialized on the same
database so document models can be registered alongside the raw
collections the services use.

Example:
    from common.database import MongoDB

    db = MongoDB()
    await db.connect(uri="mongodb://localhost:27017", database_name="emotiva")
    children = db.get_collection("children")
"""

import logging
from typing import List, Type, Optional

from beanie import init_beanie, Document
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

_main_database: Optional["MongoDB"] = None


def mask_uri(uri: str) -> str:
    """Drop the credentials part of a connection string."""
    return uri.split("@")[-1] if "@" in uri else uri


class MongoDB:
    """One motor client bound to one database."""

    def __init__(self):
        self._client: Optional[AsyncIOMotorClient] = None
        self._database: Optional[AsyncIOMotorDatabase] = None

    async def connect(
        self,
        uri: str,
        database_name: str,
        document_models: Optional[List[Type[Document]]] = None,
    ) -> None:
        """
        Open the client and initialize Beanie.

        Timestamps come back timezone-aware (UTC).

        Raises:
            PyMongoError: The server could not be reached
        """
        logger.info(f"Connecting to MongoDB at {mask_uri(uri)} (database: {database_name})")

        client = AsyncIOMotorClient(uri, tz_aware=True)
        try:
            await init_beanie(
                database=client[database_name],
                document_models=document_models or [],
            )
        except PyMongoError as e:
            logger.error(f"MongoDB connection failed: {e}")
            client.close()
            raise

        self._client = client
        self._database = client[database_name]
        logger.info(f"Connected to MongoDB database: {database_name}")

    async def disconnect(self) -> None:
        if self._client is None:
            return

        logger.info(f"Closing MongoDB connection ({self._database.name})")
        self._client.close()
        self._client = None
        self._database = None

    @property
    def is_connected(self) -> bool:
        return self._database is not None

    @property
    def db(self) -> AsyncIOMotorDatabase:
        """The motor database; raises RuntimeError before connect()."""
        if self._database is None:
            raise RuntimeError("Database not connected")
        return self._database

    def get_collection(self, name: str):
        return self.db[name]


def set_main_database(db: "MongoDB") -> None:
    """Register the process-wide database used by the app."""
    global _main_database
    _main_database = db


def get_main_database() -> "MongoDB":
    if _main_database is None:
        raise RuntimeError("Main database not initialized. Call set_main_database() first.")
    return _main_database
