"""API routes module."""

from .tracking import router as tracking_router
from .stats import router as stats_router
from .system import router as system_router

__all__ = [
    "tracking_router",
    "stats_router",
    "system_router",
]
