"""Shared plumbing for the motor-backed repositories.

Each repository names its collection and maps entities to documents; this
base class runs the queries and turns every driver failure into a
``DatabaseError`` so pymongo exceptions never leave the adapter.

Datetimes are stored as ISO-8601 strings with an explicit UTC offset.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, Generic, List, Optional, Tuple, TypeVar

import structlog
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from beacontrack.domain.shared.errors import DatabaseError

TEntity = TypeVar("TEntity")
TResult = TypeVar("TResult")

logger = structlog.get_logger(__name__)


class MongoBaseRepository(ABC, Generic[TEntity]):
    """
    Base class for one-collection repositories.

    Example:
        class MongoElderRepository(MongoBaseRepository[Elder]):
            @property
            def collection_name(self) -> str:
                return "elders"

            def to_document(self, elder: Elder) -> Dict[str, Any]: ...
            def from_document(self, doc: Dict[str, Any]) -> Elder: ...
    """

    def __init__(self, db: AsyncIOMotorDatabase[Dict[str, Any]]):
        self._db = db
        self._collection = db[self.collection_name]

    @property
    @abstractmethod
    def collection_name(self) -> str:
        pass

    @abstractmethod
    def to_document(self, entity: TEntity) -> Dict[str, Any]:
        """Entity as a document keyed by ``_id``."""
        pass

    @abstractmethod
    def from_document(self, doc: Dict[str, Any]) -> TEntity:
        """
        Rebuild the entity from a stored document.

        Raises:
            KeyError: If a required field is missing
        """
        pass

    @property
    def collection(self) -> AsyncIOMotorCollection[Dict[str, Any]]:
        """Underlying collection, also used by the write batch."""
        return self._collection

    @staticmethod
    def datetime_to_iso(dt: Optional[datetime]) -> Optional[str]:
        """
        Serialize an aware datetime.

        Raises:
            ValueError: If dt has no timezone
        """
        if dt is None:
            return None
        if dt.tzinfo is None:
            raise ValueError("Datetime must be timezone-aware")
        return dt.isoformat()

    @staticmethod
    def iso_to_datetime(value: Optional[str]) -> Optional[datetime]:
        """Parse a stored timestamp; values without offset are read as UTC."""
        if value is None:
            return None
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    def _wrap(self, operation: str, filter_dict: Dict[str, Any], e: PyMongoError) -> DatabaseError:
        logger.error(
            "mongodb.operation_failed",
            operation=operation,
            collection=self.collection_name,
            filter=filter_dict,
            error=str(e),
        )
        return DatabaseError(f"{operation} failed on {self.collection_name}: {e}")

    async def _run(
        self, operation: str, filter_dict: Dict[str, Any], call: Awaitable[TResult]
    ) -> TResult:
        """Await a driver call, re-raising driver errors as DatabaseError."""
        try:
            return await call
        except PyMongoError as e:
            raise self._wrap(operation, filter_dict, e) from e

    async def _find_one(self, filter_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self._run("find_one", filter_dict, self._collection.find_one(filter_dict))

    async def _find_many(
        self,
        filter_dict: Dict[str, Any],
        sort: Optional[List[Tuple[str, int]]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Matching documents, optionally sorted and capped.

        Raises:
            DatabaseError: If the query fails
        """
        try:
            cursor = self._collection.find(filter_dict)
            if sort:
                cursor = cursor.sort(sort)
            if limit:
                cursor = cursor.limit(limit)
            return await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise self._wrap("find_many", filter_dict, e) from e

    async def _replace_one(self, document: Dict[str, Any]) -> None:
        """Upsert a whole document by ``_id``."""
        filter_dict = {"_id": document["_id"]}
        await self._run(
            "replace_one",
            filter_dict,
            self._collection.replace_one(filter_dict, document, upsert=True),
        )

    async def _insert_one(self, document: Dict[str, Any]) -> None:
        await self._run(
            "insert_one", {"_id": document.get("_id")}, self._collection.insert_one(document)
        )

    async def _update_one(self, filter_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> int:
        """Field-level update; returns the modified count (0 or 1)."""
        result = await self._run(
            "update_one", filter_dict, self._collection.update_one(filter_dict, update_dict)
        )
        return result.modified_count

    async def _count(self, filter_dict: Dict[str, Any]) -> int:
        return await self._run(
            "count", filter_dict, self._collection.count_documents(filter_dict)
        )
