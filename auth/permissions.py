"""
Role-based authorization for the mentoring API

An endpoint declares an authorization context: the kind of data it exposes
and which relational roles may access it. The engine decides, for an
authenticated principal, whether a request in that context may proceed.
Roles are relational: a user is a mentor *in a group*, so most decisions
consult the groups the principal participates in.
"""
import logging
from dataclasses import dataclass
from typing import Literal, Optional, Tuple, Union

from models import Group, Principal
from services.document_store import DocumentStore, Query

logger = logging.getLogger(__name__)

UserRole = Literal["self", "mentor", "supermentor"]
GroupRole = Literal["participant", "mentee", "mentor", "supermentor"]


# =============================================================================
# AUTHORIZATION CONTEXTS
# =============================================================================

@dataclass(frozen=True)
class GrootContext:
    """Only groot may proceed"""


@dataclass(frozen=True)
class UserContext:
    """Data about a user, accessible to the listed relations"""
    roles: Tuple[UserRole, ...]

    def __post_init__(self):
        if not self.roles:
            raise ValueError("UserContext requires at least one role")


@dataclass(frozen=True)
class GroupContext:
    """Data about a group, accessible to the listed roles within it"""
    roles: Tuple[GroupRole, ...]

    def __post_init__(self):
        if not self.roles:
            raise ValueError("GroupContext requires at least one role")


@dataclass(frozen=True)
class ConversationContext:
    """Roles are resolved from each group's conversation access list"""


@dataclass(frozen=True)
class ReportContext:
    """Roles are resolved from each group's report access list"""


AuthorizationContext = Union[GrootContext, UserContext, GroupContext, ConversationContext, ReportContext]

GROOT = GrootContext()


@dataclass(frozen=True)
class ResourceParams:
    """Identifiers of the resource being accessed, taken from the route"""
    user_id: Optional[str] = None
    group_id: Optional[str] = None
    conversation_id: Optional[str] = None
    report_id: Optional[str] = None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


def allow(reason: str) -> Decision:
    return Decision(True, reason)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


# =============================================================================
# ENGINE
# =============================================================================

class AuthorizationEngine:
    """
    Decides whether a principal may access a resource in a given context.

    The engine only reads group data; it never mutates state. The only
    failure it raises is ``EntityNotFound`` when a group it had to fetch does
    not exist. Any case no rule explicitly allows is denied.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def authorize(
        self,
        principal: Optional[Principal],
        context: AuthorizationContext,
        params: ResourceParams = ResourceParams(),
    ) -> Decision:
        decision = await self._decide(principal, context, params)

        who = principal.id if principal else None
        if decision.allowed:
            logger.info(f"[AUTHZ] allowed user={who}: {decision.reason}")
        else:
            logger.info(f"[AUTHZ] denied user={who}: {decision.reason}")

        return decision

    async def _decide(
        self,
        principal: Optional[Principal],
        context: AuthorizationContext,
        params: ResourceParams,
    ) -> Decision:
        if principal is None:
            return deny("an unauthenticated user cannot be authorized")

        # Groot can access every endpoint, checked before anything else
        if principal.is_groot:
            return allow("user is groot")

        match context:
            case GrootContext():
                return deny("only groot may access this resource")
            case UserContext(roles=roles):
                return await self._authorize_user(principal, roles, params)
            case GroupContext(roles=roles):
                return await self._authorize_group(principal, roles, params)
            case ConversationContext():
                return await self._authorize_conversation(principal, params)
            case ReportContext():
                return await self._authorize_report(principal, params)
            case _:
                logger.warning(f"[AUTHZ] no rule matched context {context!r}")
                return deny("no authorization context matched")

    async def _find_groups(self, *queries: Query) -> list:
        documents = await self.store.find("groups", queries)
        return [Group.model_validate(document) for document in documents]

    async def _authorize_user(
        self,
        principal: Principal,
        roles: Tuple[UserRole, ...],
        params: ResourceParams,
    ) -> Decision:
        if params.user_id is None:
            return deny("no user specified")

        for role in roles:
            if role == "self":
                if params.user_id == principal.id:
                    return allow("user is accessing information about themselves")
                continue

            # The principal must hold the role in a group shared with the user.
            # The user's own role in that group does not matter.
            groups = await self._find_groups(
                Query("participants", "includes", params.user_id),
                Query("participants", "includes", principal.id),
            )
            if any(group.participants.get(principal.id) == role for group in groups):
                return allow(f"user is a {role} of the user in a group")

        return deny("user is unauthorized to access the requested user data")

    async def _authorize_group(
        self,
        principal: Principal,
        roles: Tuple[GroupRole, ...],
        params: ResourceParams,
    ) -> Decision:
        if params.group_id is None:
            return deny("no group specified")

        # Raises EntityNotFound for an unknown group
        group = Group.model_validate(await self.store.get(f"groups/{params.group_id}"))
        role_in_group = group.participants.get(principal.id)

        for role in roles:
            if role == "participant" and role_in_group is not None:
                return allow("user is a participant in the group")
            if role_in_group == role:
                return allow(f"user is a {role} in the group")

        return deny("user is unauthorized to access the requested group data")

    async def _authorize_conversation(self, principal: Principal, params: ResourceParams) -> Decision:
        conversation_id = params.conversation_id
        if conversation_id is None:
            return deny("no conversation specified")

        groups = await self._find_groups(
            Query("participants", "includes", principal.id),
            Query("conversations", "includes", conversation_id),
        )
        for group in groups:
            if group.participants.get(principal.id) in group.conversations.get(conversation_id, []):
                return allow("user is in a group that is allowed to take the conversation")

        return deny("user is unauthorized to access conversation data")

    async def _authorize_report(self, principal: Principal, params: ResourceParams) -> Decision:
        report_id = params.report_id
        if report_id is None:
            return deny("no report specified")

        queries = [
            Query("participants", "includes", principal.id),
            Query("reports", "includes", report_id),
        ]
        # A user id is only present when rendering a report for a user,
        # not when fetching the report itself
        if params.user_id is not None:
            queries.append(Query("participants", "includes", params.user_id))

        groups = await self._find_groups(*queries)
        for group in groups:
            if group.participants.get(principal.id) in group.reports.get(report_id, []):
                return allow("user is in a group that is allowed to view the report")

        return deny("user is unauthorized to access report data")
