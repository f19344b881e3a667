"""
User profiles, the attributes they hold, and their rendered reports
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from auth.dependencies import permit
from auth.permissions import GROOT, ReportContext, UserContext
from database import get_store
from models import AttributeValue, Principal, User, UserAttribute
from services.attribute_service import UserAttributeService
from services.document_store import DocumentStore
from services.report_service import ReportService
from services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

# Who may look at a user's data
VIEWERS = UserContext(("self", "mentor", "supermentor"))


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class UserUpdateRequest(BaseModel):
    """Request to update a user's profile"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class UserAttributeCreateRequest(BaseModel):
    """Request to give a user an attribute"""
    id: str
    value: AttributeValue


class UserAttributeUpdateRequest(BaseModel):
    """Request to change the value of a user's attribute"""
    value: AttributeValue


# =============================================================================
# PROFILE ENDPOINTS
# =============================================================================

@router.get("", response_model=List[User])
async def list_users(
    name: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    """List every user. Groot only."""
    return await UserService(store).find(name=name, email=email)


@router.get("/{user_id}", response_model=User)
async def get_user(
    user_id: str,
    user: Principal = Depends(permit(VIEWERS)),
    store: DocumentStore = Depends(get_store),
):
    return await UserService(store).get(user_id)


@router.put("/{user_id}", response_model=User)
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    user: Principal = Depends(permit(UserContext(("self",)))),
    store: DocumentStore = Depends(get_store),
):
    """Update your own profile. Fields left out keep their value."""
    updated = await UserService(store).update(user_id, body.model_dump(exclude_none=True))
    logger.info(f"[USERS] user={user.id} updated their profile")
    return updated


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    user: Principal = Depends(permit(UserContext(("self",)))),
    store: DocumentStore = Depends(get_store),
):
    """
    Delete your own account, along with your attributes and group memberships.
    """
    await UserService(store).delete(user_id)
    return Response(status_code=204)


# =============================================================================
# ATTRIBUTE ENDPOINTS
# =============================================================================

@router.get("/{user_id}/attributes", response_model=List[UserAttribute])
async def list_user_attributes(
    user_id: str,
    value: Optional[str] = Query(None),
    user: Principal = Depends(permit(VIEWERS)),
    store: DocumentStore = Depends(get_store),
):
    return await UserAttributeService(store).find(user_id, value=value)


@router.post("/{user_id}/attributes", response_model=UserAttribute, status_code=201)
async def create_user_attribute(
    user_id: str,
    body: UserAttributeCreateRequest,
    user: Principal = Depends(permit(VIEWERS)),
    store: DocumentStore = Depends(get_store),
):
    """
    Give a user an attribute. The attribute must be defined, and the caller
    is recorded as the one who observed the value.
    """
    return await UserAttributeService(store).create(user_id, body.id, body.value, observer=user.id)


@router.get("/{user_id}/attributes/{attribute_id}", response_model=UserAttribute)
async def get_user_attribute(
    user_id: str,
    attribute_id: str,
    user: Principal = Depends(permit(VIEWERS)),
    store: DocumentStore = Depends(get_store),
):
    return await UserAttributeService(store).get(user_id, attribute_id)


@router.put("/{user_id}/attributes/{attribute_id}", response_model=UserAttribute)
async def update_user_attribute(
    user_id: str,
    attribute_id: str,
    body: UserAttributeUpdateRequest,
    user: Principal = Depends(permit(VIEWERS)),
    store: DocumentStore = Depends(get_store),
):
    """Change the value of an attribute, appending to its history"""
    return await UserAttributeService(store).update(user_id, attribute_id, body.value, observer=user.id)


@router.delete("/{user_id}/attributes/{attribute_id}", status_code=204)
async def delete_user_attribute(
    user_id: str,
    attribute_id: str,
    user: Principal = Depends(permit(UserContext(("supermentor",)))),
    store: DocumentStore = Depends(get_store),
):
    await UserAttributeService(store).delete(user_id, attribute_id)
    logger.info(f"[USERS] user={user.id} deleted attribute={attribute_id} of user={user_id}")
    return Response(status_code=204)


# =============================================================================
# REPORT ENDPOINTS
# =============================================================================

@router.get("/{user_id}/reports/{report_id}", response_class=HTMLResponse)
async def render_user_report(
    user_id: str,
    report_id: str,
    user: Principal = Depends(permit(ReportContext())),
    store: DocumentStore = Depends(get_store),
):
    """Render a report for a user, as HTML"""
    html = await ReportService(store).render(report_id, user_id)
    return HTMLResponse(content=html)
