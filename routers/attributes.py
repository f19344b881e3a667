"""
Attribute definitions
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from auth.dependencies import get_current_user, permit
from auth.permissions import GROOT
from database import get_store
from models import Attribute, Principal
from services.attribute_service import AttributeService
from services.document_store import DocumentStore

router = APIRouter(prefix="/api/attributes", tags=["Attributes"])


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class AttributeCreateRequest(BaseModel):
    """Request to define an attribute. The id is generated when left out."""
    id: Optional[str] = None
    name: str
    description: str
    tags: List[str] = Field(default_factory=list)
    conversations: List[str] = Field(default_factory=list)


class AttributeUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    conversations: Optional[List[str]] = None


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=List[Attribute])
async def list_attributes(
    name: Optional[str] = Query(None),
    tags: Optional[List[str]] = Query(None),
    conversations: Optional[List[str]] = Query(None),
    user: Principal = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return await AttributeService(store).find(name=name, tags=tags, conversations=conversations)


@router.post("", response_model=Attribute, status_code=201)
async def create_attribute(
    body: AttributeCreateRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await AttributeService(store).create(body.model_dump(exclude_none=True))


@router.get("/{attribute_id}", response_model=Attribute)
async def get_attribute(
    attribute_id: str,
    user: Principal = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    return await AttributeService(store).get(attribute_id)


@router.put("/{attribute_id}", response_model=Attribute)
async def update_attribute(
    attribute_id: str,
    body: AttributeUpdateRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    """Update an attribute definition. Fields left out keep their value."""
    return await AttributeService(store).update(attribute_id, body.model_dump(exclude_none=True))


@router.delete("/{attribute_id}", status_code=204)
async def delete_attribute(
    attribute_id: str,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    await AttributeService(store).delete(attribute_id)
    return Response(status_code=204)
