"""
Groups, and joining them by code
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from auth.dependencies import get_current_user, permit
from auth.permissions import GROOT, GroupContext
from database import get_store
from models import Group, ParticipantRole, Principal
from services.document_store import DocumentStore
from services.group_service import GroupService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/groups", tags=["Groups"])


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class GroupRequest(BaseModel):
    """Request to create or replace a group"""
    name: str
    participants: Dict[str, ParticipantRole] = Field(default_factory=dict)
    conversations: Dict[str, List[ParticipantRole]] = Field(default_factory=dict)
    reports: Dict[str, List[ParticipantRole]] = Field(default_factory=dict)
    code: str
    tags: List[str] = Field(default_factory=list)


class JoinGroupRequest(BaseModel):
    """Request to join a group"""
    code: str


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=List[Group])
async def list_groups(
    name: Optional[str] = Query(None),
    code: Optional[str] = Query(None),
    participants: Optional[List[str]] = Query(None),
    conversations: Optional[List[str]] = Query(None),
    reports: Optional[List[str]] = Query(None),
    tags: Optional[List[str]] = Query(None),
    user: Principal = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    """
    List groups. Groot sees every group, anyone else only the groups they
    participate in.
    """
    return await GroupService(store).find(
        user,
        name=name,
        code=code,
        participants=participants,
        conversations=conversations,
        reports=reports,
        tags=tags,
    )


@router.post("", response_model=Group, status_code=201)
async def create_group(
    body: GroupRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await GroupService(store).create(body.model_dump())


@router.put("/join", response_model=Group)
async def join_group(
    body: JoinGroupRequest,
    user: Principal = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    """Join the group with the given code as a mentee"""
    return await GroupService(store).join(user, body.code)


@router.get("/{group_id}", response_model=Group)
async def get_group(
    group_id: str,
    user: Principal = Depends(permit(GroupContext(("participant",)))),
    store: DocumentStore = Depends(get_store),
):
    return await GroupService(store).get(group_id)


@router.put("/{group_id}", response_model=Group)
async def update_group(
    group_id: str,
    body: GroupRequest,
    user: Principal = Depends(permit(GroupContext(("supermentor",)))),
    store: DocumentStore = Depends(get_store),
):
    group = await GroupService(store).update(group_id, body.model_dump())
    logger.info(f"[GROUPS] user={user.id} updated group={group_id}")
    return group


@router.delete("/{group_id}", status_code=204)
async def delete_group(
    group_id: str,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    await GroupService(store).delete(group_id)
    return Response(status_code=204)
