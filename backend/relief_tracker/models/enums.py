"""Enumeration types for the Relief Tracker domain model."""

from enum import Enum


class UserRole(str, Enum):
    """Role of a user profile."""
    PUBLIC = "public"
    ADMIN = "admin"


class ReliefType(str, Enum):
    """Kind of relief distributed at a pin."""
    FOOD = "food"
    MEDICAL = "medical"
    SHELTER = "shelter"
    WATER = "water"
    CLOTHING = "clothing"
    OTHER = "other"


class PinStatus(str, Enum):
    """Moderation status of a relief pin."""
    PENDING = "pending"        # Submitted, awaiting admin review
    APPROVED = "approved"      # Publicly visible
    REJECTED = "rejected"      # Terminal
    COMPLETED = "completed"    # Terminal, relief window is over


class PinAction(str, Enum):
    """Admin moderation actions on a pin (delete is handled separately)."""
    APPROVE = "approve"
    REJECT = "reject"
    COMPLETE = "complete"
    HIDE = "hide"
    UNHIDE = "unhide"


class StatusFilter(str, Enum):
    """Client-side status facet of the pin list."""
    ALL = "all"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class PinChangeKind(str, Enum):
    """Kind of change published on the pin change feed."""
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

