"""
FastAPI dependencies for authentication and authorization
"""
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from database import get_store
from errors import EntityNotFound, InvalidToken, NotAllowed
from models import Principal, User
from services.document_store import DocumentStore
from .jwt_handler import decode_token
from .permissions import AuthorizationContext, AuthorizationEngine, ResourceParams

logger = logging.getLogger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)


def get_authorization_engine(store: DocumentStore = Depends(get_store)) -> AuthorizationEngine:
    return AuthorizationEngine(store)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    store: DocumentStore = Depends(get_store),
) -> Principal:
    """
    Get the current authenticated user.

    Raises:
        InvalidToken: no valid bearer token, or no profile for its user
    """
    if not credentials or not credentials.credentials:
        logger.debug("[AUTH] no bearer token on request")
        raise InvalidToken()

    token = credentials.credentials.strip()
    token_data = decode_token(token)

    if not token_data:
        logger.warning("[AUTH] invalid or expired token")
        raise InvalidToken("Invalid or expired token.")

    try:
        user = User.model_validate(await store.get(f"users/{token_data.user_id}"))
    except EntityNotFound:
        logger.warning(f"[AUTH] no profile for user={token_data.user_id}")
        raise InvalidToken("User not found.")

    principal = Principal(**user.model_dump(), is_groot=token_data.is_groot, token=token)

    # Store the principal in request state for later use
    request.state.user = principal

    logger.info(f"[AUTH] authenticated user={principal.id}")
    return principal


def resource_params(request: Request) -> ResourceParams:
    """Read the ids of the resource being accessed from the route"""
    path_params = request.path_params
    return ResourceParams(
        user_id=path_params.get("user_id"),
        group_id=path_params.get("group_id"),
        conversation_id=path_params.get("conversation_id"),
        report_id=path_params.get("report_id"),
    )


def permit(context: AuthorizationContext):
    """
    Dependency to require that the current user may access the route in the
    given authorization context.

    Usage:
        @router.get("/{user_id}")
        async def get_user(user: Principal = Depends(permit(UserContext(("self", "mentor"))))):
            ...
    """
    async def permission_checker(
        request: Request,
        user: Principal = Depends(get_current_user),
        engine: AuthorizationEngine = Depends(get_authorization_engine),
    ) -> Principal:
        decision = await engine.authorize(user, context, resource_params(request))

        if not decision:
            raise NotAllowed()

        return user

    return permission_checker
