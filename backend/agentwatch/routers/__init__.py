"""API routers."""
from .monitors import router as monitors_router
from .tiers import router as tiers_router

__all__ = ["monitors_router", "tiers_router"]
