"""Video catalog model. ``views`` is a cached counter over the view ledger."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from videotube.database import Base


class Video(Base):
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    video_url = Column(Text, nullable=False)
    thumbnail_url = Column(Text, nullable=False)
    duration = Column(Float, nullable=False, default=0.0)

    # Written by the admission policy (+1), reconciliation and explicit resets only
    views = Column(Integer, nullable=False, default=0, server_default="0")

    is_published = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="videos", lazy="selectin")
    comments = relationship("Comment", back_populates="video", cascade="all, delete-orphan", passive_deletes=True)
    view_events = relationship("ViewEvent", back_populates="video", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("Like", back_populates="video", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("views >= 0", name="ck_videos_views_non_negative"),
        Index("ix_videos_owner_created", "owner_id", "created_at"),
        Index("ix_videos_published_created", "is_published", "created_at"),
    )

    def is_owned_by(self, user_id: int | None) -> bool:
        return user_id is not None and self.owner_id == user_id

    def __repr__(self) -> str:
        return f"<Video(id={self.id}, owner_id={self.owner_id}, views={self.views})>"
