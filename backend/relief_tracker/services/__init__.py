"""Services for Relief Tracker."""

from relief_tracker.services.storage import StorageService, get_storage_service
from relief_tracker.services.repository import PinRepository, ProfileRepository
from relief_tracker.services.visibility import Viewer
from relief_tracker.services.moderation import ModerationService
from relief_tracker.services.submission import SubmissionService
from relief_tracker.services.sweeper import SweepResult, auto_complete_expired_pins
from relief_tracker.services.notifications import PinChangeBroker, get_change_broker

__all__ = [
    "StorageService",
    "get_storage_service",
    "PinRepository",
    "ProfileRepository",
    "Viewer",
    "ModerationService",
    "SubmissionService",
    "SweepResult",
    "auto_complete_expired_pins",
    "PinChangeBroker",
    "get_change_broker",
]
