"""API routers for treebridged.

This module contains FastAPI routers for all API endpoints.
"""

from .documents import router as documents_router
from .status import router as status_router

__all__ = [
    "documents_router",
    "status_router",
]
