"""User model for the course marketplace."""
import enum
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base


class UserRole(str, enum.Enum):
    USER = "user"
    CREATOR = "creator"
    ADMIN = "admin"


class User(Base):
    """User model for authentication and role-gated operations."""

    __tablename__ = "users"

    # Primary key
    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # User info
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # Account info
    status: Mapped[str] = mapped_column(String(50), default="active")
    user_role: Mapped[str] = mapped_column(String(50), default=UserRole.USER.value)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    creator_profile: Mapped["CreatorProfile"] = relationship(
        "CreatorProfile", back_populates="user", uselist=False
    )

    # Indexes
    __table_args__ = (
        Index("idx_user_status", "status"),
        Index("idx_user_role", "user_role"),
    )

    @property
    def is_admin(self) -> bool:
        return self.user_role == UserRole.ADMIN.value

    @property
    def is_creator(self) -> bool:
        return self.user_role in (UserRole.CREATOR.value, UserRole.ADMIN.value)

    def __repr__(self) -> str:
        return f"<User(uuid={self.uuid}, email={self.email}, role={self.user_role})>"
