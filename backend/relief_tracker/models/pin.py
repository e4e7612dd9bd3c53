"""ReliefPin model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, ForeignKey, Enum as SQLEnum, Text, Float, Boolean, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relief_tracker.core.database import Base
from relief_tracker.models.enums import PinStatus, ReliefType

if TYPE_CHECKING:
    from relief_tracker.models.user import UserProfile


class ReliefPin(Base):
    """A relief distribution point dropped on the map."""

    __tablename__ = "relief_pins"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    # Owner, fixed at creation
    user_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Location
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    location_name: Mapped[str] = mapped_column(String(255), nullable=False)

    relief_type: Mapped[ReliefType] = mapped_column(
        SQLEnum(ReliefType, name="relief_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    status: Mapped[PinStatus] = mapped_column(
        SQLEnum(PinStatus, name="pin_status", values_callable=lambda e: [m.value for m in e]),
        default=PinStatus.PENDING,
        nullable=False,
        index=True,
    )
    # Hidden pins stay in the table for history but drop out of every list
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    # Relief window (UTC)
    start_datetime: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    end_datetime: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    user_profile: Mapped["UserProfile"] = relationship(
        "UserProfile", back_populates="pins"
    )
