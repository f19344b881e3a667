"""
API Routers
"""

from .attributes import router as attributes_router
from .conversations import router as conversations_router
from .groups import router as groups_router
from .meta import router as meta_router
from .reports import router as reports_router
from .scripts import router as scripts_router
from .users import router as users_router

__all__ = [
    "attributes_router",
    "conversations_router",
    "groups_router",
    "meta_router",
    "reports_router",
    "scripts_router",
    "users_router",
]
