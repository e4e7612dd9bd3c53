"""SQLAlchemy models for Relief Tracker."""

from relief_tracker.models.user import UserProfile
from relief_tracker.models.pin import ReliefPin

__all__ = [
    "UserProfile",
    "ReliefPin",
]
