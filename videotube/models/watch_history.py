from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Table
from sqlalchemy.orm import relationship

from videotube.database import Base

watch_later = Table(
    "watch_later",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("video_id", Integer, ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True),
    Column("added_at", DateTime, default=datetime.utcnow, nullable=False),
)


class WatchHistoryEntry(Base):
    __tablename__ = "watch_history"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    video_id = Column(Integer, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False)
    watched_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="watch_history")
    video = relationship("Video", lazy="selectin")

    __table_args__ = (Index("ix_watch_history_user_watched", "user_id", "watched_at"),)
