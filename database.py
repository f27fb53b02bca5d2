"""
Document store access.

The services only ever need two things from MongoDB: an equality-filtered,
limit-one lookup and a merge-upsert of a document by explicit id. Both are
exposed through the small DocumentStore interface so the services can be
exercised against any backend.

Configuration comes from the environment:
- DATABASE_URL / DATABASE_NAME: connection string and database name
- USERS_COLLECTION / PRODUCTS_COLLECTION: collection names
- DATABASE_TIMEOUT_MS: server selection timeout
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
USERS_COLLECTION = os.getenv("USERS_COLLECTION", "users")
PRODUCTS_COLLECTION = os.getenv("PRODUCTS_COLLECTION", "products")
DATABASE_TIMEOUT_MS = int(os.getenv("DATABASE_TIMEOUT_MS", "5000"))


class DocumentStoreError(Exception):
    """Raised for any failure talking to the backing store."""


def doc_to_dict(doc: dict) -> dict:
    out = {}
    for k, v in doc.items():
        if isinstance(v, ObjectId):
            out[k] = str(v)
        else:
            out[k] = v
    if "_id" in out:
        out["id"] = out.pop("_id")
    return out


class DocumentStore(ABC):

    @abstractmethod
    async def find_one_by_field(self, collection: str, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """Return the first document whose `field` equals `value`, or None.

        The returned map carries the document key under "id".
        """

    @abstractmethod
    async def merge_upsert_by_id(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Set `fields` on the document keyed `doc_id`, creating it if absent."""

    @abstractmethod
    async def list_collections(self) -> List[str]:
        """Collection names, for diagnostics."""


class MongoStore(DocumentStore):
    def __init__(self, db):
        self.db = db

    @property
    def name(self) -> str:
        return self.db.name

    async def find_one_by_field(self, collection, field, value):
        try:
            doc = await self.db[collection].find_one({field: value})
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e
        return doc_to_dict(doc) if doc else None

    async def merge_upsert_by_id(self, collection, doc_id, fields):
        coll = self.db[collection]
        try:
            # Ids read back from ObjectId keys arrive here as hex strings
            if ObjectId.is_valid(doc_id):
                result = await coll.update_one({"_id": ObjectId(doc_id)}, {"$set": fields})
                if result.matched_count:
                    return
            await coll.update_one({"_id": doc_id}, {"$set": fields}, upsert=True)
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e

    async def list_collections(self):
        try:
            return await self.db.list_collection_names()
        except PyMongoError as e:
            raise DocumentStoreError(str(e)) from e


_client: Optional[AsyncMongoClient] = None
_store: Optional[MongoStore] = None


def get_store() -> Optional[DocumentStore]:
    """The configured store, or None when DATABASE_URL/DATABASE_NAME are unset or invalid."""
    global _client, _store
    if _store is None and DATABASE_URL and DATABASE_NAME:
        try:
            _client = AsyncMongoClient(DATABASE_URL, serverSelectionTimeoutMS=DATABASE_TIMEOUT_MS)
        except (PyMongoError, ValueError):
            logger.exception("Could not create a client for DATABASE_URL")
            return None
        _store = MongoStore(_client[DATABASE_NAME])
        logger.info("Connected store for database %s", DATABASE_NAME)
    return _store


async def close_store() -> None:
    global _client, _store
    if _client is not None:
        await _client.close()
    _client = None
    _store = None
