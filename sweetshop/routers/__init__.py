"""
Routers for the sweet shop API
"""

from .auth import router as auth_router
from .sweets import router as sweets_router

__all__ = ["auth_router", "sweets_router"]
