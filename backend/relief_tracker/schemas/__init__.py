"""Pydantic schemas for Relief Tracker API."""

from relief_tracker.schemas.user import *
from relief_tracker.schemas.pin import *
from relief_tracker.schemas.auth import *
