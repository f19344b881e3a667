"""
Report templates
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from auth.dependencies import get_current_user, permit
from auth.permissions import GROOT, ReportContext
from database import get_store
from models import DependentAttribute, Principal, Report
from services.document_store import DocumentStore
from services.report_service import ReportService

router = APIRouter(prefix="/api/reports", tags=["Reports"])


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class ReportRequest(BaseModel):
    """Request to create or replace a report"""
    name: str
    description: str
    tags: List[str] = Field(default_factory=list)
    template: str = Field(..., description="Base64 encoded Jinja template")
    input: List[DependentAttribute] = Field(default_factory=list)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=List[Report])
async def list_reports(
    name: Optional[str] = Query(None),
    tags: Optional[List[str]] = Query(None),
    user: Principal = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    """List the reports the caller's roles give them access to"""
    return await ReportService(store).find(user, name=name, tags=tags)


@router.post("", response_model=Report, status_code=201)
async def create_report(
    body: ReportRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await ReportService(store).create(body.model_dump())


@router.get("/{report_id}", response_model=Report)
async def get_report(
    report_id: str,
    user: Principal = Depends(permit(ReportContext())),
    store: DocumentStore = Depends(get_store),
):
    return await ReportService(store).get(report_id)


@router.put("/{report_id}", response_model=Report)
async def update_report(
    report_id: str,
    body: ReportRequest,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    return await ReportService(store).update(report_id, body.model_dump())


@router.delete("/{report_id}", status_code=204)
async def delete_report(
    report_id: str,
    user: Principal = Depends(permit(GROOT)),
    store: DocumentStore = Depends(get_store),
):
    await ReportService(store).delete(report_id)
    return Response(status_code=204)
