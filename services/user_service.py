"""
User profiles
"""
import logging
from typing import Any, Dict, List, Optional

from models import Group, User
from services.document_store import DocumentStore, Query
from services.repository import Repository

logger = logging.getLogger(__name__)


class UserService:
    """Service for user profiles"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.users = Repository(store, User, "users")
        self.groups = Repository(store, Group, "groups")

    async def find(self, name: Optional[str] = None, email: Optional[str] = None) -> List[User]:
        queries = []
        if name is not None:
            queries.append(Query("name", "==", name))
        if email is not None:
            queries.append(Query("email", "==", email))
        return await self.users.find(queries)

    async def get(self, user_id: str) -> User:
        return await self.users.get(user_id)

    async def update(self, user_id: str, data: Dict[str, Any]) -> User:
        user = await self.users.get(user_id)
        user = User.model_validate({**user.model_dump(), **data, "id": user_id})
        return await self.users.update(user)

    async def delete(self, user_id: str) -> None:
        """Delete a user, their attributes, and their group memberships"""
        await self.users.delete(user_id)

        attributes_collection = f"users/{user_id}/attributes"
        for attribute in await self.store.find(attributes_collection):
            await self.store.delete(f"{attributes_collection}/{attribute['id']}")

        for group in await self.groups.find([Query("participants", "includes", user_id)]):
            del group.participants[user_id]
            await self.groups.save(group)

        logger.info(f"[USERS] deleted user={user_id}")
