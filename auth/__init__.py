"""
Authentication and Authorization module for the mentoring API
"""

from .jwt_handler import create_access_token, decode_token
from .dependencies import get_current_user, permit
from .permissions import (
    GROOT,
    AuthorizationEngine,
    ConversationContext,
    GroupContext,
    GrootContext,
    ReportContext,
    ResourceParams,
    UserContext,
)

__all__ = [
    # JWT
    "create_access_token",
    "decode_token",
    # Dependencies
    "get_current_user",
    "permit",
    # Permissions
    "GROOT",
    "AuthorizationEngine",
    "ConversationContext",
    "GroupContext",
    "GrootContext",
    "ReportContext",
    "ResourceParams",
    "UserContext",
]
