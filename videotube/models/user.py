from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from videotube.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(120), index=True, nullable=False)
    avatar_url = Column(Text, nullable=False)
    cover_image_url = Column(Text, nullable=True)
    hashed_password = Column(String, nullable=False)
    refresh_token = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    videos = relationship("Video", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship("Comment", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    tweets = relationship("Tweet", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
    watch_history = relationship(
        "WatchHistoryEntry",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="WatchHistoryEntry.watched_at.desc()",
    )
    playlists = relationship("Playlist", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
