"""
Document store used to persist every entity of the API

Documents are JSON objects addressed by slash-separated paths, e.g.
``groups/<group_id>`` or ``users/<user_id>/attributes/<attribute_id>``.
A collection is the path of a document without its last segment.
"""
import asyncio
import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError

from errors import BackendError, EntityNotFound
from models import DocumentRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Query:
    """
    A predicate on a document field.

    - ``==``: the field equals the value
    - ``includes``: the field is a list containing the value, or a mapping
      with the value as one of its keys
    """
    field: str
    operator: Literal["==", "includes"]
    value: Any


def collection_of(path: str) -> str:
    """Return the collection a document path belongs to"""
    collection, _, document_id = path.rstrip("/").rpartition("/")
    if not collection or not document_id:
        raise ValueError(f"Not a document path: {path!r}")
    return collection


def _same_value(left: Any, right: Any) -> bool:
    """Equality that keeps booleans, numbers and strings apart (True != 1)"""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right


def matches(document: Dict[str, Any], queries: Iterable[Query]) -> bool:
    """Check whether a document satisfies every query"""
    for query in queries:
        field_value = document.get(query.field)

        if query.operator == "==":
            if not _same_value(field_value, query.value):
                return False
        elif query.operator == "includes":
            if isinstance(field_value, (dict, list, tuple, set)):
                if query.value not in field_value:
                    return False
            else:
                return False
        else:
            raise ValueError(f"Unsupported query operator: {query.operator}")

    return True


@runtime_checkable
class DocumentStore(Protocol):
    """Interface every document store implements"""

    async def get(self, path: str) -> Dict[str, Any]:
        ...

    async def find(self, collection: str, queries: Iterable[Query] = ()) -> List[Dict[str, Any]]:
        ...

    async def set(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def delete(self, path: str) -> None:
        ...

    async def exists(self, path: str) -> bool:
        ...


class InMemoryDocumentStore:
    """Document store kept in a dict. Used for tests and local development."""

    def __init__(self, documents: Dict[str, Dict[str, Any]] = None):
        self._documents: Dict[str, Dict[str, Any]] = {}
        for path, data in (documents or {}).items():
            self._documents[path] = copy.deepcopy(data)

    async def get(self, path: str) -> Dict[str, Any]:
        if path not in self._documents:
            raise EntityNotFound()
        return copy.deepcopy(self._documents[path])

    async def find(self, collection: str, queries: Iterable[Query] = ()) -> List[Dict[str, Any]]:
        queries = list(queries)
        return [
            copy.deepcopy(data)
            for path, data in sorted(self._documents.items())
            if collection_of(path) == collection and matches(data, queries)
        ]

    async def set(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        collection_of(path)
        self._documents[path] = copy.deepcopy(data)
        return copy.deepcopy(data)

    async def delete(self, path: str) -> None:
        if path not in self._documents:
            raise EntityNotFound()
        del self._documents[path]

    async def exists(self, path: str) -> bool:
        return path in self._documents


class SqlDocumentStore:
    """
    Document store backed by the ``documents`` table.

    Queries select the collection in SQL and evaluate the predicates in
    Python, so the same code runs on PostgreSQL and SQLite.
    """

    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def get(self, path: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self._get, path)

    async def find(self, collection: str, queries: Iterable[Query] = ()) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._find, collection, list(queries))

    async def set(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._set, path, data)

    async def delete(self, path: str) -> None:
        await asyncio.to_thread(self._delete, path)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self._exists, path)

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------
    def _get(self, path: str) -> Dict[str, Any]:
        try:
            with self._session_factory() as db:
                record = db.get(DocumentRecord, path)
                if record is None:
                    raise EntityNotFound()
                return copy.deepcopy(record.data)
        except SQLAlchemyError as e:
            logger.error(f"[STORE] Failed to read {path}: {e}")
            raise BackendError() from e

    def _find(self, collection: str, queries: List[Query]) -> List[Dict[str, Any]]:
        try:
            with self._session_factory() as db:
                records = (
                    db.query(DocumentRecord)
                    .filter(DocumentRecord.collection == collection)
                    .order_by(DocumentRecord.path)
                    .all()
                )
                return [copy.deepcopy(r.data) for r in records if matches(r.data, queries)]
        except SQLAlchemyError as e:
            logger.error(f"[STORE] Failed to query {collection}: {e}")
            raise BackendError() from e

    def _set(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        collection = collection_of(path)
        try:
            with self._session_factory() as db:
                record = db.get(DocumentRecord, path)
                if record is None:
                    db.add(DocumentRecord(path=path, collection=collection, data=data))
                else:
                    record.data = data
                db.commit()
                return copy.deepcopy(data)
        except SQLAlchemyError as e:
            logger.error(f"[STORE] Failed to write {path}: {e}")
            raise BackendError() from e

    def _delete(self, path: str) -> None:
        try:
            with self._session_factory() as db:
                record = db.get(DocumentRecord, path)
                if record is None:
                    raise EntityNotFound()
                db.delete(record)
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"[STORE] Failed to delete {path}: {e}")
            raise BackendError() from e

    def _exists(self, path: str) -> bool:
        try:
            with self._session_factory() as db:
                return db.get(DocumentRecord, path) is not None
        except SQLAlchemyError as e:
            logger.error(f"[STORE] Failed to read {path}: {e}")
            raise BackendError() from e
