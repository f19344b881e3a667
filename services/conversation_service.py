"""
Conversation management
"""
import logging
from typing import Any, Dict, List, Optional

from errors import EntityNotFound
from models import Conversation, Group, Principal
from services.document_store import DocumentStore, Query, matches
from services.question_service import QuestionService
from services.repository import Repository, generate_id

logger = logging.getLogger(__name__)


def permitted_ids(groups: List[Group], user_id: str, field: str) -> List[str]:
    """
    Ids in ``group.conversations`` or ``group.reports`` that the user's role
    grants access to, across all the given groups, without duplicates.
    """
    ids = []
    for group in groups:
        role = group.participants.get(user_id)
        for entity_id, roles in getattr(group, field).items():
            if role in roles and entity_id not in ids:
                ids.append(entity_id)
    return ids


class ConversationService:
    """Service for conversations"""

    def __init__(self, store: DocumentStore):
        self.conversations = Repository(store, Conversation, "conversations")
        self.groups = Repository(store, Group, "groups")
        self.questions = QuestionService(store)

    async def find(
        self,
        principal: Principal,
        name: Optional[str] = None,
        description: Optional[str] = None,
        once: Optional[bool] = None,
        tags: Optional[List[str]] = None,
    ) -> List[Conversation]:
        """
        Groot sees every matching conversation; anyone else sees only the
        conversations their roles allow them to take.
        """
        queries = []
        for field, value in (("name", name), ("description", description), ("once", once)):
            if value is not None:
                queries.append(Query(field, "==", value))
        for tag in tags or []:
            queries.append(Query("tags", "includes", tag))

        if principal.is_groot:
            return await self.conversations.find(queries)

        groups = await self.groups.find([Query("participants", "includes", principal.id)])
        found = []
        for conversation_id in permitted_ids(groups, principal.id, "conversations"):
            try:
                conversation = await self.conversations.get(conversation_id)
            except EntityNotFound:
                logger.warning(f"[CONVERSATIONS] a group refers to missing conversation {conversation_id}")
                continue
            if matches(conversation.model_dump(mode="json"), queries):
                found.append(conversation)

        return found

    async def create(self, data: Dict[str, Any]) -> Conversation:
        conversation = Conversation(**{**data, "id": generate_id()})
        return await self.conversations.create(conversation)

    async def get(self, conversation_id: str) -> Conversation:
        return await self.conversations.get(conversation_id)

    async def update(self, conversation_id: str, data: Dict[str, Any]) -> Conversation:
        conversation = Conversation(**{**data, "id": conversation_id})
        return await self.conversations.update(conversation)

    async def delete(self, conversation_id: str) -> None:
        """Delete a conversation along with its questions"""
        await self.conversations.delete(conversation_id)
        deleted = await self.questions.delete_all(conversation_id)
        logger.info(f"[CONVERSATIONS] deleted conversation={conversation_id} and {deleted} question(s)")
