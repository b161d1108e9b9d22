"""Video asset model: a pointer to an uploaded object in storage."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Integer, BigInteger, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base


class VideoAsset(Base):
    """Uploaded video registered after a direct-to-storage upload.

    ``storage_key`` is the only link into the bucket. It is handed to
    clients exclusively through signed URLs.
    """

    __tablename__ = "video_assets"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    storage_key: Mapped[str] = mapped_column(String(1024), unique=True, nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)

    # Media info (seconds / pixels)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)

    thumbnail_key: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    preview_key: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    is_processed: Mapped[bool] = mapped_column(Boolean, default=False)

    uploaded_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<VideoAsset(uuid={self.uuid}, storage_key={self.storage_key})>"
