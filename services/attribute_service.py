"""
Attribute definitions and the attribute values held by each user
"""
import logging
from typing import Any, Dict, List, Optional

from errors import EntityNotFound, NotAllowed
from models import Attribute, AttributeSnapshot, AttributeValue, SnapshotBlame, UserAttribute
from services.document_store import DocumentStore, Query
from services.repository import Repository, generate_id

logger = logging.getLogger(__name__)


class AttributeService:
    """CRUD for attribute definitions"""

    def __init__(self, store: DocumentStore):
        self.attributes = Repository(store, Attribute, "attributes")

    async def find(
        self,
        name: Optional[str] = None,
        tags: Optional[List[str]] = None,
        conversations: Optional[List[str]] = None,
    ) -> List[Attribute]:
        queries = []
        if name is not None:
            queries.append(Query("name", "==", name))
        for tag in tags or []:
            queries.append(Query("tags", "includes", tag))
        for conversation_id in conversations or []:
            queries.append(Query("conversations", "includes", conversation_id))
        return await self.attributes.find(queries)

    async def create(self, data: Dict[str, Any]) -> Attribute:
        # The creator may pick the id, since templates and scripts refer to it
        attribute = Attribute(**{"id": generate_id(), **data})
        return await self.attributes.create(attribute)

    async def get(self, attribute_id: str) -> Attribute:
        return await self.attributes.get(attribute_id)

    async def update(self, attribute_id: str, data: Dict[str, Any]) -> Attribute:
        existing = await self.attributes.get(attribute_id)
        attribute = existing.model_copy(update={**data, "id": attribute_id})
        return await self.attributes.update(Attribute.model_validate(attribute.model_dump()))

    async def delete(self, attribute_id: str) -> None:
        await self.attributes.delete(attribute_id)


class UserAttributeService:
    """
    Attribute values held by users.

    Every write appends a snapshot to the attribute's history. Writes are a
    plain read-modify-write against the store: two concurrent writes to the
    same user attribute may interleave, and the last one wins.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self.definitions = Repository(store, Attribute, "attributes")

    def _repository(self, user_id: str) -> Repository[UserAttribute]:
        return Repository(self.store, UserAttribute, f"users/{user_id}/attributes")

    async def find(self, user_id: str, value: Optional[AttributeValue] = None) -> List[UserAttribute]:
        queries = [Query("value", "==", value)] if value is not None else []
        return await self._repository(user_id).find(queries)

    async def get(self, user_id: str, attribute_id: str) -> UserAttribute:
        return await self._repository(user_id).get(attribute_id)

    async def create(
        self,
        user_id: str,
        attribute_id: str,
        value: AttributeValue,
        observer: str,
        message: Optional[SnapshotBlame] = None,
    ) -> UserAttribute:
        if not await self.definitions.exists(attribute_id):
            raise NotAllowed(
                "The attribute ID does not refer to a valid attribute. "
                "Retrieve a list of valid attributes by making a GET request to /attributes."
            )

        attribute = UserAttribute(
            id=attribute_id,
            value=value,
            history=[AttributeSnapshot(value=value, observer=observer, message=message)],
            user_id=user_id,
        )
        return await self._repository(user_id).create(attribute)

    async def update(
        self,
        user_id: str,
        attribute_id: str,
        value: AttributeValue,
        observer: str,
        message: Optional[SnapshotBlame] = None,
    ) -> UserAttribute:
        repository = self._repository(user_id)
        attribute = await repository.get(attribute_id)
        attribute.record(AttributeSnapshot(value=value, observer=observer, message=message))
        return await repository.save(attribute)

    async def delete(self, user_id: str, attribute_id: str) -> None:
        await self._repository(user_id).delete(attribute_id)

    async def record(
        self,
        user_id: str,
        attribute_id: str,
        value: AttributeValue,
        observer: str,
        message: Optional[SnapshotBlame] = None,
    ) -> UserAttribute:
        """
        Upsert a user attribute: append a snapshot if it exists, otherwise
        create it with a single-entry history. Issues exactly one write.
        """
        repository = self._repository(user_id)
        snapshot = AttributeSnapshot(value=value, observer=observer, message=message)

        try:
            attribute = await repository.get(attribute_id)
            attribute.record(snapshot)
        except EntityNotFound:
            attribute = UserAttribute(id=attribute_id, value=value, history=[snapshot], user_id=user_id)

        await repository.save(attribute)
        logger.debug(f"[ATTRIBUTES] user={user_id} attribute={attribute_id} history={len(attribute.history)}")
        return attribute

    async def template_input(self, user_id: str) -> Dict[str, Dict[str, Any]]:
        """
        Every attribute the user holds, merged with its definition, keyed by
        attribute id. This is what question and report templates see as
        ``context.input``.
        """
        result = {}
        for attribute in await self.find(user_id):
            entry = {}
            try:
                entry.update((await self.definitions.get(attribute.id)).model_dump(mode="json"))
            except EntityNotFound:
                logger.warning(f"[ATTRIBUTES] user={user_id} holds undefined attribute {attribute.id}")
            entry.update(attribute.model_dump(mode="json", by_alias=True))
            result[attribute.id] = entry
        return result
