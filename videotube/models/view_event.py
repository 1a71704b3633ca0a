"""View ledger model, the source of truth for video view counts."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from videotube.database import Base


class ViewEvent(Base):
    __tablename__ = "view_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    video_id = Column(Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False)
    # NULL for anonymous viewers; deleted accounts keep their rows as anonymous
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    ip_address = Column(String(45), nullable=True)
    view_count = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_viewed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    video = relationship("Video", back_populates="view_events")
    user = relationship("User", lazy="selectin")

    __table_args__ = (
        # NULL user ids never collide, so anonymous rows are not constrained
        UniqueConstraint("video_id", "user_id", name="uq_view_events_video_user"),
        Index("ix_view_events_anonymous", "video_id", "ip_address", "last_viewed_at"),
    )

    def __repr__(self) -> str:
        return f"<ViewEvent(id={self.id}, video_id={self.video_id}, user_id={self.user_id})>"
