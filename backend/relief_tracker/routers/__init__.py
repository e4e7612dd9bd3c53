"""API Routers for Relief Tracker."""

from relief_tracker.routers.auth import router as auth_router
from relief_tracker.routers.pins import router as pins_router
from relief_tracker.routers.admin import router as admin_router
from relief_tracker.routers.realtime import router as realtime_router

__all__ = [
    "auth_router",
    "pins_router",
    "admin_router",
    "realtime_router",
]
