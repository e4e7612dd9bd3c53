"""UserProfile model."""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relief_tracker.core.database import Base
from relief_tracker.models.enums import UserRole

if TYPE_CHECKING:
    from relief_tracker.models.pin import ReliefPin


class UserProfile(Base):
    """Profile linked 1:1 to a Firebase Auth identity."""

    __tablename__ = "user_profiles"

    # Firebase UID
    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        default=UserRole.PUBLIC,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    pins: Mapped[list["ReliefPin"]] = relationship(
        "ReliefPin", back_populates="user_profile"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
