"""
Typed access to a collection of documents
"""
import uuid
from typing import Generic, Iterable, List, Type, TypeVar

from pydantic import BaseModel

from errors import EntityAlreadyExists, EntityNotFound
from services.document_store import DocumentStore, Query

M = TypeVar("M", bound=BaseModel)


def generate_id() -> str:
    return uuid.uuid4().hex


def to_document(entity: BaseModel) -> dict:
    return entity.model_dump(mode="json", by_alias=True)


class Repository(Generic[M]):
    """Reads and writes pydantic entities stored under ``collection/<id>``"""

    def __init__(self, store: DocumentStore, model: Type[M], collection: str):
        self.store = store
        self.model = model
        self.collection = collection

    def path(self, entity_id: str) -> str:
        return f"{self.collection}/{entity_id}"

    async def get(self, entity_id: str) -> M:
        return self.model.model_validate(await self.store.get(self.path(entity_id)))

    async def find(self, queries: Iterable[Query] = ()) -> List[M]:
        documents = await self.store.find(self.collection, queries)
        return [self.model.model_validate(document) for document in documents]

    async def exists(self, entity_id: str) -> bool:
        return await self.store.exists(self.path(entity_id))

    async def create(self, entity: M) -> M:
        if await self.exists(entity.id):
            raise EntityAlreadyExists()
        await self.store.set(self.path(entity.id), to_document(entity))
        return entity

    async def update(self, entity: M) -> M:
        if not await self.exists(entity.id):
            raise EntityNotFound()
        await self.store.set(self.path(entity.id), to_document(entity))
        return entity

    async def save(self, entity: M) -> M:
        """Create or overwrite"""
        await self.store.set(self.path(entity.id), to_document(entity))
        return entity

    async def delete(self, entity_id: str) -> None:
        await self.store.delete(self.path(entity_id))
