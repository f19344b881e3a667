"""
Reports: templates rendered into HTML from a user's attributes
"""
import logging
from typing import Any, Dict, List, Optional

from errors import EntityNotFound, PreconditionFailed
from models import Attribute, Group, Principal, Report, User
from services.attribute_service import UserAttributeService
from services.conversation_service import permitted_ids
from services.document_store import DocumentStore, Query
from services.repository import Repository, generate_id
from services.script_service import decode_source
from services.template_service import render_html

logger = logging.getLogger(__name__)


class ReportService:
    """Service for reports and rendering them for a user"""

    def __init__(self, store: DocumentStore):
        self.reports = Repository(store, Report, "reports")
        self.groups = Repository(store, Group, "groups")
        self.users = Repository(store, User, "users")
        self.definitions = Repository(store, Attribute, "attributes")
        self.user_attributes = UserAttributeService(store)

    async def find(
        self,
        principal: Principal,
        name: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> List[Report]:
        """Groot sees every report; anyone else sees the reports their roles allow"""
        queries = [Query("name", "==", name)] if name is not None else []
        for tag in tags or []:
            queries.append(Query("tags", "includes", tag))

        reports = await self.reports.find(queries)
        if principal.is_groot:
            return reports

        groups = await self.groups.find([Query("participants", "includes", principal.id)])
        allowed = set(permitted_ids(groups, principal.id, "reports"))
        return [report for report in reports if report.id in allowed]

    async def create(self, data: Dict[str, Any]) -> Report:
        report = Report(**{**data, "id": generate_id()})
        decode_source(report.template)
        return await self.reports.create(report)

    async def get(self, report_id: str) -> Report:
        return await self.reports.get(report_id)

    async def update(self, report_id: str, data: Dict[str, Any]) -> Report:
        report = Report(**{**data, "id": report_id})
        decode_source(report.template)
        return await self.reports.update(report)

    async def delete(self, report_id: str) -> None:
        await self.reports.delete(report_id)

    async def render(self, report_id: str, user_id: str) -> str:
        """
        Render a report for a user.

        Raises:
            EntityNotFound: the report or user does not exist
            PreconditionFailed: a required input attribute is missing
        """
        report = await self.reports.get(report_id)
        user = await self.users.get(user_id)

        input = {}
        for dependency in report.input:
            try:
                attribute = await self.user_attributes.get(user_id, dependency.id)
            except EntityNotFound:
                if dependency.optional:
                    continue
                raise PreconditionFailed(f"Could not find the required attribute {dependency.id} for the user.")

            entry = {}
            try:
                entry.update((await self.definitions.get(dependency.id)).model_dump(mode="json"))
            except EntityNotFound:
                logger.warning(f"[REPORTS] report={report_id} depends on undefined attribute {dependency.id}")
            entry["value"] = attribute.value
            input[dependency.id] = entry

        html = render_html(decode_source(report.template), input, user.model_dump(mode="json"))
        logger.info(f"[REPORTS] rendered report={report_id} for user={user_id}")
        return html
