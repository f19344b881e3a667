"""
Lua scripts that compute user attributes
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from auth.dependencies import permit
from auth.permissions import GROOT
from database import get_store
from models import ComputedAttribute, DependentAttribute, Principal, Script, UserAttribute
from services.document_store import DocumentStore
from services.script_service import ScriptService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scripts", tags=["Scripts"])


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class ScriptRequest(BaseModel):
    """Request to create or replace a script"""
    name: str
    description: str
    tags: List[str] = Field(default_factory=list)
    input: List[DependentAttribute] = Field(default_factory=list)
    computed: List[ComputedAttribute] = Field(default_factory=list)
    content: str = Field(..., description="Base64 encoded Lua source defining compute(context)")


class RunScriptRequest(BaseModel):
    """The user to run the script for"""
    user: str


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=List[Script])
async def list_scripts(
    name: Optional[str] = Query(None),
    tags: Optional[List[str]] = Query(None),
    input: Optional[List[str]] = Query(None),
    computed: Optional[List[str]] = Query(None),
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await ScriptService(store).find(name=name, tags=tags, input=input, computed=computed)


@router.post("", response_model=Script, status_code=201)
async def create_script(
    body: ScriptRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await ScriptService(store).create(body.model_dump())


@router.get("/{script_id}", response_model=Script)
async def get_script(
    script_id: str,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await ScriptService(store).get(script_id)


@router.put("/{script_id}", response_model=Script)
async def update_script(
    script_id: str,
    body: ScriptRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await ScriptService(store).update(script_id, body.model_dump())


@router.delete("/{script_id}", status_code=204)
async def delete_script(
    script_id: str,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    await ScriptService(store).delete(script_id)
    return Response(status_code=204)


@router.put("/{script_id}/run", response_model=List[UserAttribute])
async def run_script(
    script_id: str,
    body: RunScriptRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    """
    Run a script for a user and return the attributes it computed.
    """
    computed = await ScriptService(store).run(script_id, body.user)
    logger.info(f"[SCRIPT] user={user.id} ran script={script_id} for user={body.user}, {len(computed)} attribute(s)")
    return computed
