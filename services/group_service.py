"""
Group management
"""
import logging
from typing import Any, Dict, List, Optional

from errors import EntityNotFound
from models import Group, Principal
from services.document_store import DocumentStore, Query
from services.repository import Repository, generate_id

logger = logging.getLogger(__name__)


class GroupService:
    """Service for groups and joining them by code"""

    def __init__(self, store: DocumentStore):
        self.groups = Repository(store, Group, "groups")

    async def find(
        self,
        principal: Principal,
        name: Optional[str] = None,
        code: Optional[str] = None,
        participants: Optional[List[str]] = None,
        conversations: Optional[List[str]] = None,
        reports: Optional[List[str]] = None,
        tags: Optional[List[str]] = None,
    ) -> List[Group]:
        """
        Find groups matching the filters. Callers other than groot only see
        groups they participate in.
        """
        queries = []
        if name is not None:
            queries.append(Query("name", "==", name))
        if code is not None:
            queries.append(Query("code", "==", code))
        for field, values in (
            ("participants", participants),
            ("conversations", conversations),
            ("reports", reports),
            ("tags", tags),
        ):
            for value in values or []:
                queries.append(Query(field, "includes", value))

        if not principal.is_groot:
            queries.append(Query("participants", "includes", principal.id))

        return await self.groups.find(queries)

    async def create(self, data: Dict[str, Any]) -> Group:
        group = Group(**{**data, "id": generate_id()})
        await self.groups.create(group)
        logger.info(f"[GROUPS] created group={group.id} with {len(group.participants)} participant(s)")
        return group

    async def get(self, group_id: str) -> Group:
        return await self.groups.get(group_id)

    async def update(self, group_id: str, data: Dict[str, Any]) -> Group:
        group = Group(**{**data, "id": group_id})
        return await self.groups.update(group)

    async def delete(self, group_id: str) -> None:
        await self.groups.delete(group_id)

    async def join(self, principal: Principal, code: str) -> Group:
        """
        Join the group with the given code as a mentee. Someone who already
        participates keeps the role they have.
        """
        found = await self.groups.find([Query("code", "==", code)])
        if not found:
            raise EntityNotFound("Could not find a group with that code.")

        group = found[0]
        if principal.id in group.participants:
            logger.info(f"[GROUPS] user={principal.id} already participates in group={group.id}")
            return group

        group.participants[principal.id] = "mentee"
        await self.groups.save(group)
        logger.info(f"[GROUPS] user={principal.id} joined group={group.id}")
        return group
